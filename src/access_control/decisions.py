"""Access decision types returned by every predicate.

A decision is exactly one of ``Allow``, ``Deny`` or ``ScopedFilter``. None of
them has a truth value: callers must ask ``is_allow``/``is_deny``/``is_scoped``
so that an ownership filter is never mistaken for a plain boolean grant.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from django.db.models import Q


class Operation(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ADMIN = "admin"


class EntityType(str, Enum):
    CATEGORIES = "categories"
    MEDIA = "media"
    PAGES = "pages"
    POSTS = "posts"
    USERS = "users"
    HEADER = "header"
    FOOTER = "footer"


# Operations that may resolve to an ownership filter.
SCOPABLE_OPERATIONS = frozenset({Operation.READ, Operation.UPDATE})


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


class ScopeViolation(RuntimeError):
    """A ScopedFilter was produced for an operation that must be boolean."""


class AccessDecision:
    is_allow = False
    is_deny = False
    is_scoped = False

    def __bool__(self):
        raise TypeError(
            f"{type(self).__name__} has no truth value; use is_allow/is_deny/is_scoped"
        )

    def label(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Allow(AccessDecision):
    is_allow = True

    def label(self) -> str:
        return "allow"


@dataclass(frozen=True)
class Deny(AccessDecision):
    reason: DenyReason = DenyReason.FORBIDDEN
    is_deny = True

    def label(self) -> str:
        return "deny"


@dataclass(frozen=True)
class Clause:
    """``field`` equals ``value``, or contains it when the field is multi-valued."""

    field: str
    value: Any

    def to_q(self) -> Q:
        return Q(**{self.field: self.value})

    def matches(self, record: Any) -> bool:
        target = str(self.value)
        return any(str(candidate) == target for candidate in _field_values(record, self.field))


@dataclass(frozen=True)
class ScopedFilter(AccessDecision):
    """Disjunction of ownership clauses the store must AND into its query."""

    clauses: tuple[Clause, ...]
    is_scoped = True

    def label(self) -> str:
        return "scoped"

    def to_q(self) -> Q:
        query = Q()
        for clause in self.clauses:
            query |= clause.to_q()
        return query

    def matches(self, record: Any) -> bool:
        return any(clause.matches(record) for clause in self.clauses)

    def resolve(self, record: Any) -> AccessDecision:
        """Collapse the filter to Allow/Deny for one concrete record."""
        return ALLOW if self.matches(record) else FORBIDDEN


def scoped(*clauses: tuple[str, Any]) -> ScopedFilter:
    return ScopedFilter(tuple(Clause(field, value) for field, value in clauses))


def _field_values(record: Any, field: str) -> list[Any]:
    """Flatten a record field into comparable scalar values.

    Works on mappings and model instances. Foreign keys are read through
    their ``<name>_id`` attribute, many-to-many managers through ``all()``.
    """

    if record is None:
        return []
    if isinstance(record, dict):
        value = record.get(field)
    elif hasattr(record, f"{field}_id"):
        value = getattr(record, f"{field}_id")
    else:
        value = getattr(record, field, None)

    if value is None:
        return []
    if hasattr(value, "all") and callable(value.all):
        return [item.pk for item in value.all()]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [getattr(item, "pk", item) for item in value]
    return [getattr(value, "pk", value)]


ALLOW = Allow()
FORBIDDEN = Deny(DenyReason.FORBIDDEN)
UNAUTHENTICATED = Deny(DenyReason.UNAUTHENTICATED)


__all__ = [
    "Operation",
    "EntityType",
    "SCOPABLE_OPERATIONS",
    "DenyReason",
    "ScopeViolation",
    "AccessDecision",
    "Allow",
    "Deny",
    "Clause",
    "ScopedFilter",
    "scoped",
    "ALLOW",
    "FORBIDDEN",
    "UNAUTHENTICATED",
]
