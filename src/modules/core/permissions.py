"""Authorization predicate hook for DRF views.

Permission-model internals live outside this project.  A view declares
which action each DRF action performs (``action_permissions``) and
``ActionPermission`` asks ``actor_may_perform(user, action)`` before the
service is invoked.  The predicate defaults to Django's ``has_perm`` and can
be replaced with ``FULFILLMENT_AUTHORIZATION_PREDICATE``.
"""

from __future__ import annotations

from typing import Callable

import structlog
from django.conf import settings
from django.utils.module_loading import import_string
from rest_framework.permissions import BasePermission

logger = structlog.get_logger(__name__)


def default_predicate(user, action: str) -> bool:
    return bool(user and user.is_authenticated and user.has_perm(action))


def get_predicate() -> Callable[..., bool]:
    dotted_path = getattr(settings, "FULFILLMENT_AUTHORIZATION_PREDICATE", "")
    if dotted_path:
        return import_string(dotted_path)
    return default_predicate


def actor_may_perform(user, action: str) -> bool:
    return get_predicate()(user, action)


class ActionPermission(BasePermission):
    """Evaluate the authorization predicate for the current view action.

    Views without an entry for the current action are not restricted
    beyond the other permission classes.
    """

    message = "You do not have permission to perform this action."

    def has_permission(self, request, view) -> bool:
        mapping = getattr(view, "action_permissions", None) or {}
        action = mapping.get(getattr(view, "action", None))
        if action is None:
            return True
        allowed = actor_may_perform(request.user, action)
        if not allowed:
            logger.warning(
                "authorization.denied",
                action=action,
                user_id=str(getattr(request.user, "pk", "")),
            )
        return allowed
