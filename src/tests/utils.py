"""Shared helpers for tests (user creation, JWT clients, fake Redis)."""

from __future__ import annotations

from typing import Dict
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from access_control.roles import Role
from authentication.managers import UserManager
from authentication.services import TokenService

User = get_user_model()

DEFAULT_PASSWORD = "StrongPass123"


class FakeRedis:
    """Minimal Redis stub supporting the commands used by the auth services."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; TTL is ignored in tests, value stored in-memory."""
        self._store[key] = value

    def get(self, key: str):
        """Return stored value for key or None, matching Redis GET semantics."""
        return self._store.get(key)

    def incr(self, key: str) -> int:
        value = int(self._store.get(key, 0)) + 1
        self._store[key] = str(value)
        return value

    def expire(self, key: str, ttl_seconds: int) -> bool:
        return key in self._store

    def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self._store.pop(key, None) is not None)

    def flushall(self) -> None:
        self._store.clear()


class RedisPatchedTestCase(TestCase):
    """TestCase with both Redis client factories pointed at one FakeRedis."""

    @classmethod
    def setUpClass(cls):
        """Patch Redis clients to use in-memory fake for all tests."""
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("authentication.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        """Stop Redis patches after all tests complete."""
        for patcher in cls.patchers:
            patcher.stop()
        super().tearDownClass()

    def setUp(self):
        """Fresh blocklist/lockout state and an anonymous APIClient per test."""
        self.fake_redis.flushall()
        self.api_client: APIClient = APIClient()


def create_user(email: str, role: Role | str, password: str = DEFAULT_PASSWORD, **extra):
    """Create a user with a bcrypt-hashed password, bypassing the bootstrap rule."""

    extra.setdefault("name", email.split("@")[0].title())
    return User.objects.create(
        email=email,
        password_hash=UserManager.hash_password(password),
        role=Role(role).value,
        **extra,
    )


def auth_client(user) -> APIClient:
    """APIClient carrying a freshly minted access token for ``user``."""

    access, _ = TokenService.generate_tokens(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    return client


def create_staff():
    """One user per canonical role, keyed by role."""

    return {
        role: create_user(f"{role.value}@example.com", role)
        for role in (Role.ADMINISTRATOR, Role.EDITOR, Role.AUTHOR, Role.SUBSCRIBER)
    }
