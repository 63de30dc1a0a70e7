"""
User administration endpoint tests
"""
from flask_jwt_extended import decode_token

from models import db, User, ROLE_ADMIN, ROLE_WORKER, ROLE_INDIVIDUAL
from tests.base import AppTestCase
from tests.factories import TestDataFactory


class AdminUserTests(AppTestCase):

    def setUp(self):
        super().setUp()
        self.admin = TestDataFactory.create_user(email="root@example.com", role=ROLE_ADMIN)
        self.user = TestDataFactory.create_user(email="plain@example.com")

    def test_list_users(self):
        body = self.get("/admin/users", user=self.admin).get_json()
        self.assertEqual({u["email"] for u in body["users"]}, {"root@example.com", "plain@example.com"})

    def test_non_admin_forbidden(self):
        response = self.get("/admin/users", user=self.user)
        self.assertError(response, 403, "permission")

    def test_create_user_with_any_role(self):
        response = self.post("/admin/users", user=self.admin, json={
            "email": "second.admin@example.com", "password": "secret1", "name": "Second", "role": ROLE_ADMIN,
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()["role"], ROLE_ADMIN)

    def test_update_user(self):
        organization = TestDataFactory.create_organization(self.admin)
        response = self.patch("/admin/users", user=self.admin, json={
            "userId": self.user.id,
            "updates": {"name": "Renamed", "role": ROLE_WORKER, "organizationId": organization.id},
        })
        body = response.get_json()
        self.assertEqual(body["name"], "Renamed")
        self.assertEqual(body["role"], ROLE_WORKER)
        self.assertEqual(body["organizationId"], organization.id)
        self.assertEqual(body["email"], "plain@example.com")

    def test_update_user_email_collision(self):
        response = self.patch("/admin/users", user=self.admin, json={
            "userId": self.user.id, "updates": {"email": "root@example.com"},
        })
        self.assertError(response, 400, "already in use")

    def test_update_unknown_user(self):
        response = self.patch("/admin/users", user=self.admin, json={"userId": 999, "updates": {"name": "X"}})
        self.assertError(response, 404, "User not found")

    def test_delete_user_by_body_and_path(self):
        other = TestDataFactory.create_user()
        response = self.delete("/admin/users", user=self.admin, json={"userId": self.user.id})
        self.assertEqual(response.status_code, 200)
        response = self.delete(f"/admin/users/{other.id}", user=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(User.query.count(), 1)

    def test_cannot_delete_last_admin(self):
        response = self.delete(f"/admin/users/{self.admin.id}", user=self.admin)
        self.assertError(response, 400, "last admin")
        self.assertIsNotNone(db.session.get(User, self.admin.id))

    def test_cannot_delete_reporter(self):
        TestDataFactory.create_need(self.user)
        self.assertError(self.delete(f"/admin/users/{self.user.id}", user=self.admin), 400, "reported needs")

    def test_change_role_returns_new_token(self):
        response = self.patch(f"/users/{self.user.id}", user=self.admin, json={"role": ROLE_WORKER})
        body = response.get_json()
        self.assertEqual(body["user"]["role"], ROLE_WORKER)
        self.assertEqual(decode_token(body["token"])["role"], ROLE_WORKER)

    def test_cannot_change_admin_role(self):
        other_admin = TestDataFactory.create_user(role=ROLE_ADMIN)
        response = self.patch(f"/users/{other_admin.id}", user=self.admin, json={"role": ROLE_INDIVIDUAL})
        self.assertError(response, 400, "Cannot change admin role")
