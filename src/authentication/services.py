"""Token service for JWT creation, decoding, blocklist checks, and login lockout."""

import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Tuple

import jwt
from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed

from core.redis_client import get_redis_client


class AuthStoreUnavailable(Exception):
    """Raised when the Redis-backed auth store cannot be reached (fail-closed)."""


class TokenService:
    """Handle JWT issuance, decoding, and blocklist operations."""

    REFRESH_TTL = timedelta(hours=24)
    ALGORITHM = "HS256"
    BLOCKLIST_PREFIX = "blocklist:token:"

    @classmethod
    def access_ttl(cls) -> timedelta:
        return timedelta(seconds=settings.ACCESS_TOKEN_TTL_SECONDS)

    @classmethod
    def generate_tokens(cls, user) -> Tuple[str, str]:
        """Generate signed access and refresh tokens for the given user."""

        now = datetime.now(timezone.utc)
        access_payload = cls._build_payload(user, "access", now, cls.access_ttl())
        refresh_payload = cls._build_payload(user, "refresh", now, cls.REFRESH_TTL)

        access_token = jwt.encode(access_payload, settings.SECRET_KEY, algorithm=cls.ALGORITHM)
        refresh_token = jwt.encode(refresh_payload, settings.SECRET_KEY, algorithm=cls.ALGORITHM)
        return access_token, refresh_token

    @classmethod
    def _build_payload(cls, user, token_type: str, issued_at: datetime, ttl: timedelta) -> dict[str, Any]:
        exp = issued_at + ttl
        return {
            "sub": str(user.id),
            "jti": str(uuid.uuid4()),
            "exp": int(exp.timestamp()),
            "iat": int(issued_at.timestamp()),
            "type": token_type,
            "ver": user.token_version,
        }

    @classmethod
    def decode_token(cls, token: str, expected_type: str | None = None) -> dict[str, Any]:
        """Decode and validate a JWT; optionally enforce token type."""

        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[cls.ALGORITHM])
        except jwt.ExpiredSignatureError as exc:  # pragma: no cover - simple mapping
            raise AuthenticationFailed("Token has expired") from exc
        except jwt.InvalidTokenError as exc:  # pragma: no cover - simple mapping
            raise AuthenticationFailed("Invalid token") from exc

        if expected_type and payload.get("type") != expected_type:
            raise AuthenticationFailed("Invalid token type")

        return payload

    @classmethod
    def block_token(cls, jti: str, exp: int) -> None:
        """Add token jti to blocklist until its expiration timestamp."""

        client = get_redis_client()
        ttl_seconds = max(0, exp - int(time.time()))
        try:
            client.setex(f"{cls.BLOCKLIST_PREFIX}{jti}", ttl_seconds, "1")
        except Exception as exc:  # pragma: no cover - network failure
            raise AuthStoreUnavailable("Redis unavailable while blocklisting") from exc

    @classmethod
    def is_token_blocked(cls, jti: str) -> bool:
        """Check if a token jti is present in the blocklist."""

        client = get_redis_client()
        try:
            return client.get(f"{cls.BLOCKLIST_PREFIX}{jti}") is not None
        except Exception as exc:  # pragma: no cover - network failure
            raise AuthStoreUnavailable("Redis unavailable while checking blocklist") from exc


class LoginThrottle:
    """Lock an account's login after too many consecutive failures.

    Failures are counted per normalized email in Redis. Once
    ``LOGIN_MAX_ATTEMPTS`` is reached the counter is pinned for
    ``LOGIN_LOCK_SECONDS``; a successful login clears it.
    """

    PREFIX = "login:failures:"

    @classmethod
    def _key(cls, email: str) -> str:
        return f"{cls.PREFIX}{email.strip().lower()}"

    @classmethod
    def is_locked(cls, email: str) -> bool:
        client = get_redis_client()
        try:
            failures = client.get(cls._key(email))
        except Exception as exc:  # pragma: no cover - network failure
            raise AuthStoreUnavailable("Redis unavailable while checking login lock") from exc
        return failures is not None and int(failures) >= settings.LOGIN_MAX_ATTEMPTS

    @classmethod
    def register_failure(cls, email: str) -> int:
        client = get_redis_client()
        key = cls._key(email)
        try:
            failures = int(client.incr(key))
            client.expire(key, settings.LOGIN_LOCK_SECONDS)
        except Exception as exc:  # pragma: no cover - network failure
            raise AuthStoreUnavailable("Redis unavailable while recording login failure") from exc
        return failures

    @classmethod
    def reset(cls, email: str) -> None:
        client = get_redis_client()
        try:
            client.delete(cls._key(email))
        except Exception as exc:  # pragma: no cover - network failure
            raise AuthStoreUnavailable("Redis unavailable while clearing login failures") from exc


__all__ = ["TokenService", "LoginThrottle", "AuthStoreUnavailable"]
