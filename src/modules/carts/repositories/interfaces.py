"""Cart repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.carts.models import Cart, PurchaseInvoice


class ICartRepository(IRepository["Cart"]):
    """Repository contract for carts and their purchase invoices."""

    @abstractmethod
    def create(self) -> Cart:
        """Open a new, empty cart."""

    @abstractmethod
    def members(self, cart: Cart) -> models.QuerySet:
        """Orders currently in the cart."""

    @abstractmethod
    def adjust_count(self, cart: Cart, delta: int) -> None:
        """Shift ``orders_count`` by ``delta`` with an ``F()`` update."""

    @abstractmethod
    def create_purchase_invoice(self, cart: Cart, data: Dict[str, Any]) -> PurchaseInvoice:
        """Write the merchant invoice of a closed cart."""
