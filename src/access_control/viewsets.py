"""Base viewset for collections guarded by the CMS predicate layer."""

from core.response import BaseViewSet
from .decisions import Operation
from .permissions import CMSPermission, scope_queryset
from .policy import evaluate


class CMSViewSet(BaseViewSet):
    """ModelViewSet whose queryset is narrowed by the caller's read decision.

    Records the caller cannot read are invisible (404) for every action;
    write operations are then checked per record by ``CMSPermission``.
    """

    permission_classes = [CMSPermission]
    entity_type = None

    def get_queryset(self):
        decision = evaluate(Operation.READ, self.entity_type, self.request.user)
        return scope_queryset(super().get_queryset(), decision)


__all__ = ["CMSViewSet"]
