"""Cart domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import ConflictError, NotFoundError


class CartNotFound(NotFoundError):
    """The requested cart does not exist."""


class CartClosed(ConflictError):
    """The cart is closed and its membership can no longer change."""


class OrderNotEligibleForCart(ConflictError):
    """Only orders under purchase and not yet in a cart can join one."""


class OrderNotInCart(ConflictError):
    """The order is not a member of this cart."""
