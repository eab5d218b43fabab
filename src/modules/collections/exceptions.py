"""Collection domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import ConflictError, NotFoundError, ValidationError


class CollectionNotFound(NotFoundError):
    """The requested collection does not exist."""


class CollectionNotAvailable(ValidationError):
    """The collection belongs to another customer or its window has passed."""


class CollectionNotReady(ConflictError):
    """Not every live member is ready for delivery."""


class OrderNotInCollection(ConflictError):
    """The order is not a member of this collection."""


class OrderNotReadyForDelivery(ConflictError):
    """Only an order that is ready for delivery can be handed over."""
