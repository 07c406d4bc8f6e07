"""Custom user manager handling bcrypt hashing and the first-user bootstrap."""

import logging
import uuid

import bcrypt
from django.apps import apps
from django.contrib.auth.base_user import BaseUserManager
from django.db import transaction
from django.utils import timezone

from access_control.policy import on_user_create
from access_control.roles import DEFAULT_ROLE, Role

logger = logging.getLogger(__name__)


class UserManager(BaseUserManager):
    """Manager to create users with bcrypt password hashes."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str, **extra_fields):
        if not email:
            raise ValueError("The Email must be set")
        email = self.normalize_email(email)
        user = self.model(id=uuid.uuid4(), email=email, **extra_fields)
        user.password_hash = self.hash_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, role=None, **extra_fields):
        """Create a user, applying the bootstrap rule to the requested role.

        The user count is read while holding a row lock on the bootstrap
        singleton, so concurrent first signups cannot both be promoted.
        """
        if password is None:
            raise ValueError("Password must be provided")

        bootstrap_model = apps.get_model("authentication", "UserBootstrap")
        with transaction.atomic(using=self._db):
            bootstrap, _ = (
                bootstrap_model.objects.using(self._db).select_for_update().get_or_create(pk=1)
            )
            existing = self.using(self._db).count()
            resolved = on_user_create(role if role is not None else DEFAULT_ROLE, existing)
            user = self._create_user(email, password, role=resolved.value, **extra_fields)
            if existing == 0:
                bootstrap.promoted_at = timezone.now()
                bootstrap.save(update_fields=["promoted_at"])
                logger.info("Bootstrapped %s as the first administrator", user.email)
        return user

    def create_superuser(self, email: str, password: str, **extra_fields):
        """Create an administrator (used by ``createsuperuser``)."""
        extra_fields.setdefault("is_active", True)
        return self.create_user(email, password, role=Role.ADMINISTRATOR, **extra_fields)

    @staticmethod
    def hash_password(raw_password: str) -> str:
        """Hash a raw password using bcrypt and return the utf-8 string."""
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(raw_password.encode(), salt)
        return hashed.decode()

    @staticmethod
    def verify_password(user, raw_password: str) -> bool:
        """Verify raw password against stored bcrypt hash."""

        if not user.password_hash:
            return False
        return bcrypt.checkpw(raw_password.encode(), user.password_hash.encode("utf-8"))


__all__ = ["UserManager"]
