"""Access introspection endpoint for the current caller."""

from typing import Any

from core.response import BaseAPIView, api_response
from .policy import describe_access, resolve_actor


class AccessView(BaseAPIView):
    """Summarize what the caller may do on every entity type.

    Each operation is labelled ``allow``, ``deny`` or ``scoped`` (allowed on a
    subset of records only). Anonymous callers get the public summary.
    """

    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        actor = resolve_actor(request.user)
        return api_response(
            {
                "authenticated": actor is not None,
                "entities": describe_access(request.user),
            }
        )


__all__ = ["AccessView"]
