"""Matrix tests for authentication flows (register, login, refresh, logout, soft delete)."""

from __future__ import annotations

import time
from unittest import mock

import jwt
import redis
from django.conf import settings
from django.db import DatabaseError
from django.test import override_settings
from rest_framework.test import APIClient

from access_control.roles import Role
from authentication.services import AuthStoreUnavailable, TokenService
from tests.utils import RedisPatchedTestCase, create_user


class AuthFlowTests(RedisPatchedTestCase):
    """End-to-end tests covering auth endpoints and soft delete behavior."""

    @classmethod
    def setUpTestData(cls):
        """An administrator first, then the active user under test."""
        cls.password = "StrongPass123"
        create_user("admin@example.com", Role.ADMINISTRATOR, cls.password)
        cls.user = create_user("user@example.com", Role.SUBSCRIBER, cls.password)

    def _login(self, email=None, password=None):
        return self.api_client.post(
            "/auth/login/",
            {"email": email or self.user.email, "password": password or self.password},
            format="json",
        )

    def _login_two_devices(self):
        """Helper to perform two logins for the same user."""
        login_a = self._login().json()["data"]
        login_b = self._login().json()["data"]
        return login_a, login_b

    def _create_two_device_clients(self):
        """Helper to create two APIClients authenticated as the same user."""
        login_a, login_b = self._login_two_devices()
        client_a = APIClient()
        client_b = APIClient()
        client_a.credentials(HTTP_AUTHORIZATION=f"Bearer {login_a['access']}")
        client_b.credentials(HTTP_AUTHORIZATION=f"Bearer {login_b['access']}")
        return client_a, client_b

    def test_register_success(self):
        """Successful registration returns profile and envelope."""
        payload = {
            "email": "new@example.com",
            "password": "NewPass123!",
            "repeat_password": "NewPass123!",
            "name": "New",
        }
        response = self.api_client.post("/auth/register/", payload, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(body["errors"], [])
        self.assertEqual(body["data"]["email"], payload["email"])

    def test_register_password_mismatch(self):
        """Mismatched passwords yield 400 with errors populated."""
        payload = {
            "email": "new2@example.com",
            "password": "Password123",
            "repeat_password": "Mismatch123",
            "name": "New",
        }
        response = self.api_client.post("/auth/register/", payload, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 400)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_register_duplicate_email(self):
        payload = {
            "email": self.user.email,
            "password": "Password123",
            "repeat_password": "Password123",
            "name": "Dup",
        }
        response = self.api_client.post("/auth/register/", payload, format="json")
        self.assertEqual(response.status_code, 400)

    def test_login_success_returns_tokens(self):
        """Valid credentials return access and refresh tokens."""
        response = self._login()
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertIn("access", body["data"])
        self.assertIn("refresh", body["data"])
        self.assertEqual(body["errors"], [])

    def test_access_token_claims(self):
        """Access tokens carry identity and version but never the role."""
        access = self._login().json()["data"]["access"]
        payload = TokenService.decode_token(access, expected_type="access")

        self.assertEqual(payload["sub"], str(self.user.id))
        self.assertEqual(payload["ver"], self.user.token_version)
        self.assertNotIn("role", payload)
        self.assertEqual(payload["exp"] - payload["iat"], settings.ACCESS_TOKEN_TTL_SECONDS)

    def test_login_invalid_credentials_401(self):
        """Bad password returns 401 with null data."""
        response = self._login(password="wrongpass")
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_login_inactive_user_401(self):
        """Inactive user cannot log in and receives 401."""
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])

        response = self._login()
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    @override_settings(LOGIN_MAX_ATTEMPTS=3)
    def test_login_locked_after_repeated_failures(self):
        """Too many bad passwords lock the account even for the right password."""
        for _ in range(3):
            self.assertEqual(self._login(password="wrongpass").status_code, 401)

        response = self._login()
        self.assertEqual(response.status_code, 401)
        self.assertNotIn("access", response.json().get("data") or {})

    @override_settings(LOGIN_MAX_ATTEMPTS=3)
    def test_successful_login_resets_failure_counter(self):
        self._login(password="wrongpass")
        self._login(password="wrongpass")
        self.assertEqual(self._login().status_code, 200)

        self._login(password="wrongpass")
        self._login(password="wrongpass")
        self.assertEqual(self._login().status_code, 200)

    def test_login_when_auth_store_down_returns_503(self):
        """Lockout bookkeeping fails closed when Redis is unreachable."""
        broken = mock.Mock()
        broken.get.side_effect = redis.ConnectionError("down")
        with mock.patch("authentication.services.get_redis_client", return_value=broken):
            response = self._login()

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_refresh_with_valid_refresh_token(self):
        """Refresh endpoint issues new access/refresh tokens."""
        login = self._login().json()
        old_access = login["data"]["access"]
        refresh_token = login["data"]["refresh"]

        response = self.api_client.post("/auth/refresh/", {"refresh": refresh_token}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertIn("access", body["data"])
        self.assertIn("refresh", body["data"])
        self.assertNotEqual(body["data"]["access"], old_access)

    def test_refresh_token_is_single_use(self):
        refresh_token = self._login().json()["data"]["refresh"]

        first = self.api_client.post("/auth/refresh/", {"refresh": refresh_token}, format="json")
        second = self.api_client.post("/auth/refresh/", {"refresh": refresh_token}, format="json")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 401)

    def test_refresh_with_access_token_rejected(self):
        """Providing an access token to refresh endpoint returns 401."""
        tokens = self._login().json()["data"]

        response = self.api_client.post("/auth/refresh/", {"refresh": tokens["access"]}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_logout_blocklists_token(self):
        """Logout blocklists current access token causing subsequent 401."""
        tokens = self._login().json()["data"]
        self.api_client.credentials(**{"HTTP_AUTHORIZATION": f"Bearer {tokens['access']}"})

        logout_response = self.api_client.post("/auth/logout/")
        self.assertEqual(logout_response.status_code, 204)

        # Reusing the same token should now fail because it was blocklisted.
        me_response = self.api_client.get("/auth/me/")
        self.assertEqual(me_response.status_code, 401)

    def test_soft_delete_blocks_token_and_future_login(self):
        """Soft delete blocklists active token and prevents future logins."""
        tokens = self._login().json()["data"]
        self.api_client.credentials(**{"HTTP_AUTHORIZATION": f"Bearer {tokens['access']}"})

        delete_response = self.api_client.delete("/auth/me/")
        self.assertEqual(delete_response.status_code, 204)

        # Existing token is blocklisted.
        me_response = self.api_client.get("/auth/me/")
        self.assertEqual(me_response.status_code, 401)

        # User is inactive and cannot log in again.
        self.api_client.credentials()
        self.assertEqual(self._login().status_code, 401)

    def test_logout_all_revokes_access_and_refresh_tokens_across_devices(self):
        """logout-all invalidates all existing tokens (access and refresh)."""
        login_a, login_b = self._login_two_devices()

        client_a = APIClient()
        client_a.credentials(HTTP_AUTHORIZATION=f"Bearer {login_a['access']}")
        logout_all_response = client_a.post("/auth/logout-all/")
        self.assertEqual(logout_all_response.status_code, 204)

        # Device B's access token is stale after the token_version bump.
        client_b = APIClient()
        client_b.credentials(HTTP_AUTHORIZATION=f"Bearer {login_b['access']}")
        self.assertEqual(client_b.get("/auth/me/").status_code, 401)

        for refresh in (login_a["refresh"], login_b["refresh"]):
            response = self.api_client.post("/auth/refresh/", {"refresh": refresh}, format="json")
            self.assertEqual(response.status_code, 401)

    def test_refresh_after_soft_delete_returns_401(self):
        """Refresh tokens issued before soft delete must not work afterwards."""
        login = self._login().json()["data"]

        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login['access']}")
        self.assertEqual(self.api_client.delete("/auth/me/").status_code, 204)

        self.api_client.credentials()
        refresh_response = self.api_client.post(
            "/auth/refresh/",
            {"refresh": login["refresh"]},
            format="json",
        )
        body = refresh_response.json()

        self.assertEqual(refresh_response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_logout_redis_down_returns_503(self):
        """If Redis is unavailable during logout, the API should fail-closed."""
        access = self._login().json()["data"]["access"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        with mock.patch.object(
                TokenService,
                "block_token",
                side_effect=AuthStoreUnavailable("Redis unavailable while blocklisting"),
        ):
            response = self.api_client.post("/auth/logout/")

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_expired_refresh_token_returns_401(self):
        """Expired refresh tokens should be rejected with 401 Unauthorized."""
        now = int(time.time())
        payload = {
            "sub": str(self.user.id),
            "jti": "expired-jti",
            "exp": now - 60,
            "iat": now - 120,
            "type": "refresh",
            "ver": self.user.token_version,
        }
        expired_refresh = jwt.encode(payload, settings.SECRET_KEY, algorithm=TokenService.ALGORITHM)

        response = self.api_client.post(
            "/auth/refresh/",
            {"refresh": expired_refresh},
            format="json",
        )
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_token_with_malformed_subject_is_rejected(self):
        now = int(time.time())
        payload = {
            "sub": "not-a-uuid",
            "jti": "odd-jti",
            "exp": now + 60,
            "iat": now,
            "type": "access",
            "ver": 1,
        }
        token = jwt.encode(payload, settings.SECRET_KEY, algorithm=TokenService.ALGORITHM)
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        self.assertEqual(self.api_client.get("/auth/me/").status_code, 401)

    def test_concurrent_logout_from_multiple_devices(self):
        """Multiple access tokens for the same user can be logged out independently."""
        client_a, client_b = self._create_two_device_clients()

        self.assertEqual(client_a.post("/auth/logout/").status_code, 204)
        self.assertEqual(client_b.post("/auth/logout/").status_code, 204)

        self.assertEqual(client_a.get("/auth/me/").status_code, 401)
        self.assertEqual(client_b.get("/auth/me/").status_code, 401)

        self.assertEqual(self._login().status_code, 200)

    def test_concurrent_soft_delete_is_idempotent_and_safe(self):
        """Repeated DELETE /auth/me/ calls do not corrupt state."""
        client_a, client_b = self._create_two_device_clients()

        self.assertEqual(client_a.delete("/auth/me/").status_code, 204)

        # The middleware rejects the second token because the user is inactive.
        self.assertEqual(client_b.delete("/auth/me/").status_code, 401)

        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)

        self.assertEqual(client_a.get("/auth/me/").status_code, 401)
        self.assertEqual(client_b.get("/auth/me/").status_code, 401)

    def test_patch_me_updates_name(self):
        access = self._login().json()["data"]["access"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        response = self.api_client.patch("/auth/me/", {"name": "Renamed"}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["name"], "Renamed")

    def test_patch_me_cannot_change_email_or_role(self):
        """PATCH /auth/me/ rejects email and role changes explicitly."""
        access = self._login().json()["data"]["access"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        for payload in ({"email": "new@example.com"}, {"role": "administrator"}):
            response = self.api_client.patch("/auth/me/", payload, format="json")
            body = response.json()

            self.assertEqual(response.status_code, 400)
            self.assertIsNone(body["data"])
            self.assertTrue(body["errors"])

        self.user.refresh_from_db()
        self.assertEqual(self.user.role, Role.SUBSCRIBER)

    def test_refresh_when_database_unavailable_returns_503_with_envelope(self):
        """Database errors during refresh should surface as 503 with JSON envelope."""
        refresh_token = self._login().json()["data"]["refresh"]

        with mock.patch(
                "authentication.views._get_active_user",
                side_effect=DatabaseError("DB down"),
        ):
            response = self.api_client.post(
                "/auth/refresh/",
                {"refresh": refresh_token},
                format="json",
            )

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])
