"""Role column migrations: remapping stored roles into the active role set."""

import uuid

from django.db import connection
from django.db.migrations.executor import MigrationExecutor
from django.test import TransactionTestCase, override_settings

INITIAL = [("authentication", "0001_initial")]
REMAPPED = [("authentication", "0002_remap_roles_to_active_set")]

SHARED_ROLES = ["administrator", "editor", "author", "subscriber"]


class RoleMigrationTests(TransactionTestCase):
    """Walk the authentication app back to its initial schema and forward again."""

    def setUp(self):
        super().setUp()
        self._migrate(INITIAL)
        self.old_apps = self._apps_at(INITIAL)

    def tearDown(self):
        self._migrate(self._leaf_nodes())
        super().tearDown()

    @staticmethod
    def _executor() -> MigrationExecutor:
        executor = MigrationExecutor(connection)
        executor.loader.build_graph()
        return executor

    def _migrate(self, targets):
        self._executor().migrate(targets)

    def _apps_at(self, targets):
        return self._executor().loader.project_state(targets).apps

    def _leaf_nodes(self):
        return self._executor().loader.graph.leaf_nodes()

    def _make_user(self, email, role):
        User = self.old_apps.get_model("authentication", "User")
        user = User.objects.create(id=uuid.uuid4(), email=email, name=email, password_hash="", role=role)
        return user.pk

    def _roles(self, targets):
        User = self._apps_at(targets).get_model("authentication", "User")
        return dict(User.objects.values_list("email", "role"))

    def _seed_every_role(self):
        for role in SHARED_ROLES + ["contributor"]:
            self._make_user(f"{role}@example.com", role)

    def test_contributors_are_narrowed_to_subscriber(self):
        self._seed_every_role()

        self._migrate(REMAPPED)
        roles = self._roles(REMAPPED)

        self.assertEqual(roles["contributor@example.com"], "subscriber")
        for role in SHARED_ROLES:
            self.assertEqual(roles[f"{role}@example.com"], role)

    def test_round_trip_keeps_shared_roles(self):
        self._seed_every_role()

        self._migrate(REMAPPED)
        self._migrate(INITIAL)
        roles = self._roles(INITIAL)

        for role in SHARED_ROLES:
            self.assertEqual(roles[f"{role}@example.com"], role)
        self.assertEqual(roles["contributor@example.com"], "subscriber")

    def test_no_user_is_promoted_by_migrations(self):
        self._make_user("editor@example.com", "editor")
        self._make_user("author@example.com", "author")

        self._migrate(REMAPPED)

        self.assertNotIn("administrator", self._roles(REMAPPED).values())

    def test_legacy_configuration_keeps_contributors(self):
        self._seed_every_role()

        with override_settings(CMS_ROLE_SET="legacy"):
            self._migrate(REMAPPED)

        self.assertEqual(self._roles(REMAPPED)["contributor@example.com"], "contributor")

    def test_empty_table_migrates_cleanly(self):
        self._migrate(REMAPPED)
        User = self._apps_at(REMAPPED).get_model("authentication", "User")
        self.assertFalse(User.objects.exists())
