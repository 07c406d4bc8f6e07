"""Bring stored roles inside the active role set (``CMS_ROLE_SET``).

Values outside the set are remapped to the nearest role that does not grant
more privilege; with the canonical set that turns ``contributor`` into
``subscriber``. Values already in the set are never touched, and reversing
is a no-op because every remapped value is also valid in the wider set.
"""

import logging

from django.db import migrations

from access_control.roles import active_roles, remap_role

logger = logging.getLogger(__name__)


def remap_to_active_set(apps, schema_editor):
    User = apps.get_model("authentication", "User")
    role_set = [role.value for role in active_roles()]
    stale = User.objects.exclude(role__in=role_set).values_list("role", flat=True).distinct()
    for value in list(stale):
        target = remap_role(value, role_set)
        updated = User.objects.filter(role=value).update(role=target)
        logger.info("Remapped %d user(s) from role %r to %r", updated, value, target)


class Migration(migrations.Migration):
    dependencies = [
        ("authentication", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(remap_to_active_set, migrations.RunPython.noop),
    ]
