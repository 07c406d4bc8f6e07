"""Django app holding the access predicate layer.

It owns no models: roles live on the user row and decisions are computed.
Loading the app registers the configuration checks for CMS views.
"""

from django.apps import AppConfig


class AccessControlConfig(AppConfig):
    """Predicate registry, DRF permission glue, and the /access/ summary."""

    name = "access_control"
    verbose_name = "CMS access predicates"

    def ready(self) -> None:
        from . import checks  # noqa: F401
