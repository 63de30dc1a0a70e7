"""
Error type tests
"""
import unittest

from werkzeug import exceptions

from errors import (
    ReliefError, Unauthorized, Forbidden, NotFound, ValidationError,
    InsufficientStock, NeedCompleted, InternalError,
)
from tests.base import AppTestCase
from tests.factories import TestDataFactory


class ErrorTypeTests(unittest.TestCase):

    def test_status_codes_come_from_werkzeug(self):
        cases = [
            (Unauthorized, exceptions.Unauthorized, 401),
            (Forbidden, exceptions.Forbidden, 403),
            (NotFound, exceptions.NotFound, 404),
            (ValidationError, exceptions.BadRequest, 400),
            (InsufficientStock, exceptions.BadRequest, 400),
            (NeedCompleted, exceptions.BadRequest, 400),
            (InternalError, exceptions.InternalServerError, 500),
        ]
        for error_class, base, code in cases:
            error = error_class()
            self.assertIsInstance(error, base)
            self.assertIsInstance(error, ReliefError)
            self.assertEqual(error.code, code)

    def test_message_and_default_description(self):
        self.assertEqual(InsufficientStock("Only 2 food left").message, "Only 2 food left")
        self.assertEqual(NeedCompleted().to_dict(), {"error": "Need is already completed"})


class ErrorHandlerTests(AppTestCase):

    def test_unknown_route_renders_json(self):
        self.assertError(self.get("/no-such-route"), 404)

    def test_service_error_renders_description(self):
        response = self.get("/needs/999", user=TestDataFactory.create_user())
        self.assertEqual(response.get_json(), {"error": "Need not found"})
