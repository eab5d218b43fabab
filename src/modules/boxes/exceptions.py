"""Box domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import ConflictError, NotFoundError


class BoxNotFound(NotFoundError):
    """The requested box does not exist."""


class BoxAlreadyExists(ConflictError):
    """Another box already uses this number."""


class BoxClosed(ConflictError):
    """The box is closed and its membership can no longer change."""


class OrderNotEligibleForBox(ConflictError):
    """Only purchased orders that are not boxed yet can join a box."""


class OrderNotInBox(ConflictError):
    """The order is not a member of this box."""
