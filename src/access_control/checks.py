"""System checks for CMS access configuration."""

from django.conf import settings
from django.core.checks import Error, register

from access_control.permissions import CMSPermission
from access_control.policy import UnknownEntityType, get_predicates
from access_control.roles import GLOBAL_POLICIES, ROLE_SETS


@register()
def cms_views_have_entity_type(app_configs, **kwargs):
    """Ensure CMSPermission-protected views declare a registered entity_type."""
    errors: list[Error] = []

    # Import here to avoid circular imports at module load time.
    from authentication.views import UserViewSet
    from content.views import (
        CategoryViewSet,
        FooterView,
        HeaderView,
        MediaViewSet,
        PageViewSet,
        PostViewSet,
    )

    cms_views = [
        CategoryViewSet,
        MediaViewSet,
        PageViewSet,
        PostViewSet,
        UserViewSet,
        HeaderView,
        FooterView,
    ]

    for view_cls in cms_views:
        permission_classes = getattr(view_cls, "permission_classes", [])
        if CMSPermission not in permission_classes:
            continue
        entity_type = getattr(view_cls, "entity_type", None)
        if not entity_type:
            errors.append(
                Error(
                    f"{view_cls.__name__} uses CMSPermission but does not define entity_type.",
                    obj=view_cls,
                    id="access_control.E001",
                )
            )
            continue
        try:
            get_predicates(entity_type)
        except UnknownEntityType:
            errors.append(
                Error(
                    f"{view_cls.__name__}.entity_type {entity_type!r} has no predicate set.",
                    obj=view_cls,
                    id="access_control.E002",
                )
            )

    return errors


@register()
def cms_settings_are_known(app_configs, **kwargs):
    """Reject unknown role sets and global policy names early."""
    errors: list[Error] = []

    role_set = getattr(settings, "CMS_ROLE_SET", "canonical")
    if role_set not in ROLE_SETS:
        errors.append(
            Error(
                f"CMS_ROLE_SET {role_set!r} is not one of {sorted(ROLE_SETS)}.",
                id="access_control.E003",
            )
        )

    for slug, name in getattr(settings, "CMS_GLOBAL_POLICIES", {}).items():
        if name not in GLOBAL_POLICIES:
            errors.append(
                Error(
                    f"CMS_GLOBAL_POLICIES[{slug!r}] = {name!r} is not one of {sorted(GLOBAL_POLICIES)}.",
                    id="access_control.E004",
                )
            )

    return errors
