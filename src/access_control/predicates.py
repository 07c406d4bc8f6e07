"""Per-entity access predicates.

Each predicate set answers create/read/update/delete/admin for one entity
type. Predicates receive an already normalized ``Actor`` (or None for an
anonymous caller) and the target record when the operation has one.
"""

from dataclasses import dataclass
from typing import Any

from .decisions import (
    ALLOW,
    FORBIDDEN,
    UNAUTHENTICATED,
    AccessDecision,
    EntityType,
    Operation,
    scoped,
)
from .roles import Role, can_unconditionally

PUBLISHED = "published"
DRAFT = "draft"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller reduced to what predicates may look at."""

    id: Any
    role: Role


class PredicateSet:
    """Role-table driven defaults; subclasses special-case ownership."""

    entity_type: EntityType

    def check(self, operation: Operation, actor: Actor | None, record: Any = None) -> AccessDecision:
        return getattr(self, operation.value)(actor, record)

    def _by_role(self, operation: Operation, actor: Actor | None) -> AccessDecision:
        if actor is None:
            return UNAUTHENTICATED
        if can_unconditionally(actor.role, self.entity_type, operation):
            return ALLOW
        return FORBIDDEN

    def create(self, actor, record=None):
        return self._by_role(Operation.CREATE, actor)

    def read(self, actor, record=None):
        return self._by_role(Operation.READ, actor)

    def update(self, actor, record=None):
        return self._by_role(Operation.UPDATE, actor)

    def delete(self, actor, record=None):
        return self._by_role(Operation.DELETE, actor)

    def admin(self, actor, record=None):
        return self._by_role(Operation.ADMIN, actor)


class PublicReadPredicates(PredicateSet):
    def read(self, actor, record=None):
        return ALLOW


class CategoryPredicates(PublicReadPredicates):
    entity_type = EntityType.CATEGORIES


class MediaPredicates(PublicReadPredicates):
    entity_type = EntityType.MEDIA


class PublishablePredicates(PredicateSet):
    """Authenticated-or-published reads plus author-scoped updates."""

    def read(self, actor, record=None):
        if actor is not None:
            return ALLOW
        if record is None:
            return scoped(("status", PUBLISHED))
        if _status(record) == PUBLISHED:
            return ALLOW
        return UNAUTHENTICATED

    def update(self, actor, record=None):
        decision = self._by_role(Operation.UPDATE, actor)
        if decision.is_deny and actor is not None and actor.role == Role.AUTHOR:
            return self.author_scope(actor)
        return decision

    def author_scope(self, actor: Actor) -> AccessDecision:
        raise NotImplementedError


class PagePredicates(PublishablePredicates):
    entity_type = EntityType.PAGES

    def author_scope(self, actor):
        return scoped(("created_by", actor.id))


class PostPredicates(PublishablePredicates):
    entity_type = EntityType.POSTS

    def author_scope(self, actor):
        return scoped(("authors", actor.id), ("created_by", actor.id))


class UserPredicates(PredicateSet):
    entity_type = EntityType.USERS

    def read(self, actor, record=None):
        return self._self_or_all(Operation.READ, actor)

    def update(self, actor, record=None):
        return self._self_or_all(Operation.UPDATE, actor)

    def _self_or_all(self, operation, actor):
        decision = self._by_role(operation, actor)
        if decision.is_deny and actor is not None:
            return scoped(("id", actor.id))
        return decision


class GlobalPredicates(PublicReadPredicates):
    """Header/Footer singletons: only read and update apply."""

    def __init__(self, entity_type: EntityType):
        self.entity_type = entity_type

    def create(self, actor, record=None):
        return UNAUTHENTICATED if actor is None else FORBIDDEN

    delete = create


# Field-level rules: (entity, field) -> {operation: roles allowed}. An empty
# set means nobody, not even an administrator.
FIELD_RULES = {
    (EntityType.USERS, "role"): {
        Operation.READ: frozenset({Role.ADMINISTRATOR}),
        Operation.CREATE: frozenset({Role.ADMINISTRATOR}),
        Operation.UPDATE: frozenset({Role.ADMINISTRATOR}),
    },
    (EntityType.POSTS, "populated_authors"): {
        Operation.CREATE: frozenset(),
        Operation.UPDATE: frozenset(),
    },
}


def _status(record: Any) -> Any:
    if isinstance(record, dict):
        return record.get("status")
    return getattr(record, "status", None)


__all__ = [
    "Actor",
    "PredicateSet",
    "CategoryPredicates",
    "MediaPredicates",
    "PagePredicates",
    "PostPredicates",
    "UserPredicates",
    "GlobalPredicates",
    "FIELD_RULES",
    "PUBLISHED",
    "DRAFT",
]
