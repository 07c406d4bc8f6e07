"""DRF permission class mapping HTTP methods to CMS access predicates."""

from rest_framework import permissions
from rest_framework.exceptions import NotAuthenticated

from .decisions import DenyReason, Operation
from .policy import evaluate, evaluate_record


METHOD_OPERATIONS = {
    "GET": Operation.READ,
    "HEAD": Operation.READ,
    "OPTIONS": Operation.READ,
    "POST": Operation.CREATE,
    "PUT": Operation.UPDATE,
    "PATCH": Operation.UPDATE,
    "DELETE": Operation.DELETE,
}


class CMSPermission(permissions.BasePermission):
    """Check access via the predicate set of the view's ``entity_type``.

    ``has_permission`` runs without a record, so a scoped decision lets the
    request through and the view narrows its queryset with ``scope_queryset``.
    ``has_object_permission`` resolves the same decision against the concrete
    record.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        entity_type = getattr(view, "entity_type", None)
        operation = self._operation(request)
        if not entity_type or operation is None:
            return False

        decision = evaluate(operation, entity_type, request.user)
        if decision.is_deny:
            self._raise_if_unauthenticated(decision)
            return False
        return True

    def has_object_permission(self, request, view, obj) -> bool:
        entity_type = getattr(view, "entity_type", None)
        operation = self._operation(request)
        if not entity_type or operation is None:
            return False

        decision = evaluate_record(operation, entity_type, request.user, obj)
        if decision.is_deny:
            self._raise_if_unauthenticated(decision)
            return False
        return True

    @staticmethod
    def _operation(request) -> Operation | None:
        return METHOD_OPERATIONS.get(request.method)

    @staticmethod
    def _raise_if_unauthenticated(decision) -> None:
        if decision.reason == DenyReason.UNAUTHENTICATED:
            raise NotAuthenticated()


def scope_queryset(queryset, decision):
    """Fold a read/update decision into a queryset."""

    if decision.is_allow:
        return queryset
    if decision.is_scoped:
        return queryset.filter(decision.to_q()).distinct()
    return queryset.none()


__all__ = ["CMSPermission", "METHOD_OPERATIONS", "scope_queryset"]
