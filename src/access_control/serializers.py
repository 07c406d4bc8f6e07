"""Serializer mixin enforcing field-level access predicates."""

import logging
from collections.abc import Mapping

from .decisions import Operation
from .policy import field_access

logger = logging.getLogger(__name__)


class FieldAccessMixin:
    """Hide unreadable fields and strip unwritable ones.

    Subclasses set ``access_entity``. Restricted fields are removed from the
    representation and silently dropped from the incoming payload before any
    field validation runs, independently of the record-level decision.
    """

    access_entity = None

    def _acting_user(self):
        request = self.context.get("request")
        return getattr(request, "user", None)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        user = self._acting_user()
        for name in list(data):
            if not field_access(self.access_entity, name, Operation.READ, user):
                data.pop(name)
        return data

    def to_internal_value(self, data):
        if isinstance(data, Mapping):
            data = self._strip_unwritable(data)
        return super().to_internal_value(data)

    def _strip_unwritable(self, data):
        operation = Operation.CREATE if self.instance is None else Operation.UPDATE
        user = self._acting_user()
        denied = [
            name for name in data if not field_access(self.access_entity, name, operation, user)
        ]
        if not denied:
            return data
        data = data.copy()
        for name in denied:
            logger.warning(
                "Dropping %s.%s on %s for user %s",
                self.access_entity,
                name,
                operation.value,
                getattr(user, "pk", None),
            )
            data.pop(name)
        return data


__all__ = ["FieldAccessMixin"]
