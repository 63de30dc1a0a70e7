"""
Flask CLI command tests
"""
from models import db, User, Need, ROLE_ADMIN
from status_helpers import STATUS_RESOURCES_DISPATCHED, STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_RESOLVED
from tests.base import AppTestCase
from tests.factories import TestDataFactory


class CreateAdminCommandTests(AppTestCase):

    def setUp(self):
        super().setUp()
        self.runner = self.app.test_cli_runner()

    def test_create_admin_with_prompts(self):
        result = self.runner.invoke(
            args=["create-admin"],
            input="Chief@Relief.test\nChief Admin\nlongpassword\nlongpassword\n",
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("created successfully", result.output)

        admin = User.query.filter_by(email="chief@relief.test").first()
        self.assertIsNotNone(admin)
        self.assertEqual(admin.role, ROLE_ADMIN)
        self.assertTrue(admin.check_password("longpassword"))

    def test_create_admin_short_password(self):
        result = self.runner.invoke(args=[
            "create-admin", "--email", "a@relief.test", "--name", "A", "--password", "short",
        ])
        self.assertIn("at least 8 characters", result.output)
        self.assertEqual(User.query.count(), 0)

    def test_create_admin_existing_email(self):
        TestDataFactory.create_user(email="taken@relief.test")
        result = self.runner.invoke(args=[
            "create-admin", "--email", "taken@relief.test", "--name", "T", "--password", "longpassword",
        ])
        self.assertIn("already exists", result.output)
        self.assertEqual(User.query.filter_by(role=ROLE_ADMIN).count(), 0)


class MigrateWorkflowCommandTests(AppTestCase):

    def setUp(self):
        super().setUp()
        self.runner = self.app.test_cli_runner()

    def test_migrate_to_stock(self):
        user = TestDataFactory.create_user()
        dispatched = TestDataFactory.create_need(user, status=STATUS_RESOURCES_DISPATCHED)
        done = TestDataFactory.create_need(user, status=STATUS_COMPLETED)

        result = self.runner.invoke(args=["migrate-workflow-statuses", "--to", "stock"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Migrated 2 need(s)", result.output)
        self.assertIn("NEED_WORKFLOW=stock", result.output)
        self.assertEqual(db.session.get(Need, dispatched.id).status, STATUS_IN_PROGRESS)
        self.assertEqual(db.session.get(Need, done.id).status, STATUS_RESOLVED)

    def test_nothing_to_migrate(self):
        result = self.runner.invoke(args=["migrate-workflow-statuses", "--to", "dispatch"])
        self.assertIn("No needs to migrate", result.output)

    def test_rejects_unknown_workflow(self):
        result = self.runner.invoke(args=["migrate-workflow-statuses", "--to", "teleport"])
        self.assertNotEqual(result.exit_code, 0)


class InitDbCommandTests(AppTestCase):

    def test_init_db(self):
        result = self.app.test_cli_runner().invoke(args=["init-db"])
        self.assertIn("Database initialized.", result.output)
