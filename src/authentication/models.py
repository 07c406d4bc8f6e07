"""Custom User model with a closed-enumeration role column.

Note: Django's groups/permissions (PermissionsMixin) are intentionally not
used; authorization is decided by the access_control predicate layer from
the ``role`` column alone.
"""

import uuid
from typing import Optional, ClassVar

from django.contrib.auth.models import AbstractBaseUser
from django.db import models

from access_control.roles import DEFAULT_ROLE, Role
from .managers import UserManager

ROLE_CHOICES = Role.choices


class User(AbstractBaseUser):
    """CMS user identified by email with bcrypt password hashes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    password_hash = models.CharField(max_length=128)
    name = models.CharField(max_length=150)
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=DEFAULT_ROLE.value,
        db_default=DEFAULT_ROLE.value,
    )
    is_active = models.BooleanField(default=True)
    token_version = models.PositiveIntegerField(default=1)
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: ClassVar[list[str]] = ["name"]

    objects = UserManager()

    class Meta:
        """Newest users first; the column admits every known role.

        Which of them may be written is decided by the active role set
        (``CMS_ROLE_SET``) at the serializer and manager level.
        """
        ordering = ["-date_joined"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(role__in=Role.values),
                name="users_role_valid",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.email

    def set_password(self, raw_password: Optional[str]) -> None:  # type: ignore[override]
        """Override to ensure bcrypt hashing via manager utility."""

        if raw_password is None:
            self.password_hash = ""
        else:
            self.password_hash = UserManager.hash_password(raw_password)

    def check_password(self, raw_password: Optional[str]) -> bool:  # type: ignore[override]
        """Delegate to bcrypt verification helper."""

        if raw_password is None:
            return False
        return UserManager.verify_password(self, raw_password)


class UserBootstrap(models.Model):
    """Singleton row locked while a user is created.

    Holding ``select_for_update`` on this row serializes the "no users yet"
    check so only one account can ever be auto-promoted.
    """

    id = models.PositiveSmallIntegerField(primary_key=True, default=1, editable=False)
    promoted_at = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"bootstrap(promoted_at={self.promoted_at})"


__all__ = ["User", "UserBootstrap", "ROLE_CHOICES"]
