"""
Tests for the need status ladders and display helpers
"""
import unittest
from types import SimpleNamespace

from status_helpers import (
    WORKFLOW_STOCK, WORKFLOW_DISPATCH,
    STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_RESOLVED,
    STATUS_RESOURCES_DISPATCHED, STATUS_COMPLETED,
    advance_status, get_ladder, is_on_ladder, is_terminal, translate_status, get_need_status_display,
)


def make_need(status, required=10, fulfilled=0):
    return SimpleNamespace(status=status, required_quantity=required, fulfilled_quantity=fulfilled)


class AdvanceStatusTests(unittest.TestCase):

    def test_moves_forward(self):
        self.assertEqual(advance_status(STATUS_PENDING, STATUS_IN_PROGRESS, WORKFLOW_STOCK), STATUS_IN_PROGRESS)
        self.assertEqual(advance_status(STATUS_PENDING, STATUS_COMPLETED, WORKFLOW_DISPATCH), STATUS_COMPLETED)

    def test_never_moves_backwards(self):
        self.assertEqual(advance_status(STATUS_RESOLVED, STATUS_IN_PROGRESS, WORKFLOW_STOCK), STATUS_RESOLVED)
        self.assertEqual(
            advance_status(STATUS_RESOURCES_DISPATCHED, STATUS_RESOURCES_DISPATCHED, WORKFLOW_DISPATCH),
            STATUS_RESOURCES_DISPATCHED
        )

    def test_rejects_statuses_from_other_ladder(self):
        with self.assertRaises(ValueError):
            advance_status(STATUS_IN_PROGRESS, STATUS_COMPLETED, WORKFLOW_DISPATCH)
        with self.assertRaises(ValueError):
            advance_status(STATUS_PENDING, STATUS_RESOURCES_DISPATCHED, WORKFLOW_STOCK)

    def test_unknown_workflow(self):
        with self.assertRaises(ValueError):
            get_ladder("courier")


class LadderTests(unittest.TestCase):

    def test_membership_and_terminal(self):
        self.assertTrue(is_on_ladder(STATUS_PENDING, WORKFLOW_STOCK))
        self.assertTrue(is_on_ladder(STATUS_PENDING, WORKFLOW_DISPATCH))
        self.assertFalse(is_on_ladder(STATUS_RESOLVED, WORKFLOW_DISPATCH))
        self.assertTrue(is_terminal(STATUS_RESOLVED))
        self.assertTrue(is_terminal(STATUS_COMPLETED))
        self.assertFalse(is_terminal(STATUS_RESOURCES_DISPATCHED))

    def test_translate_status(self):
        self.assertEqual(translate_status(STATUS_IN_PROGRESS, WORKFLOW_STOCK, WORKFLOW_DISPATCH),
                         STATUS_RESOURCES_DISPATCHED)
        self.assertEqual(translate_status(STATUS_COMPLETED, WORKFLOW_DISPATCH, WORKFLOW_STOCK), STATUS_RESOLVED)
        # Statuses off the source ladder are left alone
        self.assertEqual(translate_status(STATUS_RESOLVED, WORKFLOW_DISPATCH, WORKFLOW_STOCK), STATUS_RESOLVED)


class StatusDisplayTests(unittest.TestCase):

    def test_pending(self):
        display = get_need_status_display(make_need(STATUS_PENDING))
        self.assertEqual(display.label, "Pending")
        self.assertEqual(display.progress_pct, 0)

    def test_in_progress(self):
        display = get_need_status_display(make_need(STATUS_IN_PROGRESS, fulfilled=4))
        self.assertEqual(display.detail_text, "4 of 10 fulfilled")
        self.assertEqual(display.progress_pct, 40)

    def test_dispatched(self):
        display = get_need_status_display(make_need(STATUS_RESOURCES_DISPATCHED, fulfilled=6))
        self.assertEqual(display.label, "Resources Dispatched")
        self.assertEqual(display.to_dict()["detailText"], "6 of 10 delivered")

    def test_over_fulfilled(self):
        display = get_need_status_display(make_need(STATUS_COMPLETED, fulfilled=13))
        self.assertEqual(display.label, "Completed")
        self.assertEqual(display.detail_text, "Fulfilled with 3 extra")
        self.assertEqual(display.progress_pct, 100)
