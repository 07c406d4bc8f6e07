"""Predicate evaluation harness consulted by the content store.

``evaluate`` is the single entry point for record-level decisions,
``field_access`` for restricted subfields and ``on_user_create`` for the
first-user bootstrap rule. Everything here is pure: no I/O and no shared
mutable state.
"""

import logging
from typing import Any

from .decisions import (
    SCOPABLE_OPERATIONS,
    UNAUTHENTICATED,
    AccessDecision,
    EntityType,
    Operation,
    ScopeViolation,
)
from .predicates import (
    FIELD_RULES,
    Actor,
    CategoryPredicates,
    GlobalPredicates,
    MediaPredicates,
    PagePredicates,
    PostPredicates,
    PredicateSet,
    UserPredicates,
)
from .roles import DEFAULT_ROLE, Role, parse_role

logger = logging.getLogger(__name__)


class UnknownEntityType(LookupError):
    """No predicate set is registered for the requested entity type."""


PREDICATES: dict[EntityType, PredicateSet] = {
    EntityType.CATEGORIES: CategoryPredicates(),
    EntityType.MEDIA: MediaPredicates(),
    EntityType.PAGES: PagePredicates(),
    EntityType.POSTS: PostPredicates(),
    EntityType.USERS: UserPredicates(),
    EntityType.HEADER: GlobalPredicates(EntityType.HEADER),
    EntityType.FOOTER: GlobalPredicates(EntityType.FOOTER),
}


def resolve_actor(user: Any) -> Actor | None:
    """Normalize a request user into an Actor.

    Anonymous, inactive, and invalid-role users all come back as None and are
    treated as unauthenticated from here on.
    """

    if isinstance(user, Actor):
        role = parse_role(user.role)
        return None if role is None else Actor(id=user.id, role=role)
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    if not getattr(user, "is_active", True):
        return None
    role = parse_role(getattr(user, "role", None))
    if role is None:
        return None
    return Actor(id=getattr(user, "pk", None), role=role)


def get_predicates(entity_type: Any) -> PredicateSet:
    try:
        return PREDICATES[EntityType(entity_type)]
    except (KeyError, ValueError) as exc:
        raise UnknownEntityType(f"No access predicates registered for {entity_type!r}") from exc


def evaluate(operation: Any, entity_type: Any, acting_user: Any, record: Any = None) -> AccessDecision:
    """Return the AccessDecision for one operation on one entity type."""

    operation = Operation(operation)
    predicates = get_predicates(entity_type)
    actor = resolve_actor(acting_user)

    if actor is None and not _may_be_public(operation, predicates.entity_type):
        decision = UNAUTHENTICATED
    else:
        decision = predicates.check(operation, actor, record)

    if decision.is_scoped and operation not in SCOPABLE_OPERATIONS:
        raise ScopeViolation(
            f"{type(predicates).__name__}.{operation.value} returned a scoped filter"
        )

    logger.debug(
        "access %s %s actor=%s record=%s -> %s",
        operation.value,
        predicates.entity_type.value,
        actor,
        getattr(record, "pk", None),
        decision,
    )
    return decision


def evaluate_record(operation: Any, entity_type: Any, acting_user: Any, record: Any) -> AccessDecision:
    """Like ``evaluate`` but collapses a scoped filter against ``record``."""

    decision = evaluate(operation, entity_type, acting_user, record)
    if decision.is_scoped:
        return decision.resolve(record)
    return decision


def field_access(entity_type: Any, field_name: str, operation: Any, acting_user: Any) -> bool:
    """Whether ``acting_user`` may see or write one field of an entity."""

    rules = FIELD_RULES.get((EntityType(entity_type), field_name))
    if rules is None:
        return True
    allowed = rules.get(Operation(operation))
    if allowed is None:
        return True
    actor = resolve_actor(acting_user)
    return actor is not None and actor.role in allowed


def on_user_create(candidate_role: Any, existing_user_count: int) -> Role:
    """Resolve the role a new user is stored with.

    The very first user always becomes an administrator. Afterwards the
    requested role is honoured when valid, falling back to the default.
    """

    if existing_user_count == 0:
        if candidate_role != Role.ADMINISTRATOR:
            logger.info("Promoting first user to administrator (requested %r)", candidate_role)
        return Role.ADMINISTRATOR
    return parse_role(candidate_role) or DEFAULT_ROLE


def describe_access(acting_user: Any) -> dict[str, dict[str, str]]:
    """Decision labels for every entity/operation pair, without a record."""

    summary = {}
    for entity_type in PREDICATES:
        summary[entity_type.value] = {
            operation.value: evaluate(operation, entity_type, acting_user).label()
            for operation in Operation
        }
    return summary


def _may_be_public(operation: Operation, entity_type: EntityType) -> bool:
    if operation != Operation.READ:
        return False
    return entity_type != EntityType.USERS


__all__ = [
    "PREDICATES",
    "UnknownEntityType",
    "resolve_actor",
    "get_predicates",
    "evaluate",
    "evaluate_record",
    "field_access",
    "on_user_create",
    "describe_access",
]
