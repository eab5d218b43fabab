"""Helpers services use to describe a mutation for the audit sink."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from django.db import models


def snapshot(instance: Optional[models.Model], fields: Iterable[str]) -> Optional[Dict[str, Any]]:
    """Return ``{field: value}`` for the given model fields.

    Foreign keys are read through their ``<name>_id`` attribute so no extra
    query is issued.
    """
    if instance is None:
        return None
    data: Dict[str, Any] = {}
    for name in fields:
        field = instance._meta.get_field(name)
        attname = getattr(field, "attname", name)
        data[name] = getattr(instance, attname)
    return data
