"""Closed role enumeration, privilege ranks, and the capability table."""

import logging
from typing import Any, Iterable

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import models

from .decisions import EntityType, Operation

logger = logging.getLogger(__name__)


class InvalidRole(ValueError):
    """Raised by the strict parser for a value outside the active role set."""


class Role(models.TextChoices):
    ADMINISTRATOR = "administrator", "Administrator"
    EDITOR = "editor", "Editor"
    AUTHOR = "author", "Author"
    CONTRIBUTOR = "contributor", "Contributor"
    SUBSCRIBER = "subscriber", "Subscriber"


DEFAULT_ROLE = Role.SUBSCRIBER

# Gaps leave room for future roles without renumbering.
_RANKS = {
    Role.ADMINISTRATOR: 50,
    Role.EDITOR: 40,
    Role.AUTHOR: 30,
    Role.CONTRIBUTOR: 20,
    Role.SUBSCRIBER: 10,
}

CANONICAL_ROLES = (Role.ADMINISTRATOR, Role.EDITOR, Role.AUTHOR, Role.SUBSCRIBER)
LEGACY_ROLES = (Role.ADMINISTRATOR, Role.EDITOR, Role.AUTHOR, Role.CONTRIBUTOR, Role.SUBSCRIBER)

ROLE_SETS = {
    "canonical": CANONICAL_ROLES,
    "legacy": LEGACY_ROLES,
}


def active_roles() -> tuple[Role, ...]:
    """Return the role set selected by ``settings.CMS_ROLE_SET``."""

    name = getattr(settings, "CMS_ROLE_SET", "canonical")
    try:
        return ROLE_SETS[name]
    except KeyError as exc:
        raise ImproperlyConfigured(f"Unknown CMS_ROLE_SET {name!r}") from exc


def require_role(value: Any) -> Role:
    """Strictly parse ``value`` into an active Role or raise InvalidRole."""

    if isinstance(value, Role):
        role = value
    else:
        try:
            role = Role(str(value))
        except ValueError as exc:
            raise InvalidRole(f"Unknown role {value!r}") from exc
    if role not in active_roles():
        raise InvalidRole(f"Role {role.value!r} is not part of the active role set")
    return role


def parse_role(value: Any) -> Role | None:
    """Lenient parser: anything outside the active set resolves to None.

    ``value`` may be a Role, a role string, or a user-like object exposing a
    ``role`` attribute. None means least privilege.
    """

    if value is None:
        return None
    if not isinstance(value, (Role, str)):
        value = getattr(value, "role", None)
        if value is None:
            return None
    try:
        return require_role(value)
    except InvalidRole:
        logger.warning("Treating invalid role %r as least privileged", value)
        return None


def rank(role: Any) -> int:
    """Privilege rank of ``role``; 0 for unknown, absent, or inactive roles."""

    parsed = parse_role(role)
    if parsed is None:
        return 0
    return _RANKS[parsed]


def at_least(minimum: Role) -> frozenset[Role]:
    """All roles (in any configuration) ranked at or above ``minimum``."""

    return frozenset(role for role in Role if _RANKS[role] >= _RANKS[minimum])


ADMINISTRATORS = at_least(Role.ADMINISTRATOR)
EDITORIAL = at_least(Role.EDITOR)
WRITERS = at_least(Role.AUTHOR)
STAFF = at_least(Role.CONTRIBUTOR)
EVERYONE = at_least(Role.SUBSCRIBER)

# Named policies selectable per global singleton.
GLOBAL_POLICIES = {
    "editorial": EDITORIAL,
    "authenticated": EVERYONE,
}

_COLLECTION_CAPABILITIES = {
    EntityType.CATEGORIES: {
        Operation.READ: EVERYONE,
        Operation.CREATE: EDITORIAL,
        Operation.UPDATE: EDITORIAL,
        Operation.DELETE: EDITORIAL,
        Operation.ADMIN: STAFF,
    },
    EntityType.MEDIA: {
        Operation.READ: EVERYONE,
        Operation.CREATE: WRITERS,
        Operation.UPDATE: WRITERS,
        Operation.DELETE: EDITORIAL,
        Operation.ADMIN: STAFF,
    },
    EntityType.PAGES: {
        Operation.READ: EVERYONE,
        Operation.CREATE: EDITORIAL,
        Operation.UPDATE: EDITORIAL,
        Operation.DELETE: EDITORIAL,
        Operation.ADMIN: EVERYONE,
    },
    EntityType.POSTS: {
        Operation.READ: EVERYONE,
        Operation.CREATE: WRITERS,
        Operation.UPDATE: EDITORIAL,
        Operation.DELETE: EDITORIAL,
        Operation.ADMIN: EVERYONE,
    },
    EntityType.USERS: {
        Operation.READ: ADMINISTRATORS,
        Operation.CREATE: ADMINISTRATORS,
        Operation.UPDATE: ADMINISTRATORS,
        Operation.DELETE: ADMINISTRATORS,
        Operation.ADMIN: EVERYONE,
    },
}


def global_policy(entity_type: EntityType) -> frozenset[Role]:
    """Role set of the named policy configured for a global singleton."""

    policies = getattr(settings, "CMS_GLOBAL_POLICIES", {})
    name = policies.get(entity_type.value, "editorial")
    try:
        return GLOBAL_POLICIES[name]
    except KeyError as exc:
        raise ImproperlyConfigured(
            f"Unknown global policy {name!r} for {entity_type.value!r}"
        ) from exc


def capabilities(entity_type: EntityType) -> dict[Operation, frozenset[Role]]:
    """Operation -> roles granted unconditionally for one entity type."""

    entity_type = EntityType(entity_type)
    if entity_type in (EntityType.HEADER, EntityType.FOOTER):
        policy = global_policy(entity_type)
        return {
            Operation.READ: EVERYONE,
            Operation.UPDATE: policy,
            Operation.ADMIN: policy,
        }
    return _COLLECTION_CAPABILITIES[entity_type]


def can_unconditionally(role: Any, entity_type: EntityType, operation: Operation) -> bool:
    parsed = parse_role(role)
    if parsed is None:
        return False
    return parsed in capabilities(entity_type).get(Operation(operation), frozenset())


def remap_role(value: str | None, role_set: Iterable[Role] = CANONICAL_ROLES) -> str:
    """Nearest value of ``role_set`` for a stored role, never escalating privilege."""

    allowed = tuple(Role(role) for role in role_set)
    if value in allowed:
        return Role(value).value
    try:
        current = _RANKS[Role(value)]
    except ValueError:
        return DEFAULT_ROLE.value
    lower = [role for role in allowed if _RANKS[role] < current]
    if not lower:
        return DEFAULT_ROLE.value
    return max(lower, key=_RANKS.__getitem__).value


__all__ = [
    "Role",
    "InvalidRole",
    "DEFAULT_ROLE",
    "CANONICAL_ROLES",
    "LEGACY_ROLES",
    "ROLE_SETS",
    "GLOBAL_POLICIES",
    "active_roles",
    "require_role",
    "parse_role",
    "rank",
    "at_least",
    "capabilities",
    "global_policy",
    "can_unconditionally",
    "remap_role",
]
