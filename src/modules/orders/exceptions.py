"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  The DRF
exception handler translates them into HTTP responses; views never catch
them.
"""

from __future__ import annotations

from modules.core.exceptions import ConflictError, NotFoundError, ValidationError


class OrderNotFound(NotFoundError):
    """The requested order does not exist."""


class InvalidOrderPosition(ValidationError):
    """The target is not a position, or is not reachable through this operation."""


class OrderClosed(ConflictError):
    """The order is cancelled or archived and accepts no further changes."""


class OrderNotUnderPurchase(ConflictError):
    """The purchase can only be confirmed while the order is under purchase."""


class InvalidSettlement(ValidationError):
    """Discount, expenses or the resulting amount to pay is out of range."""
