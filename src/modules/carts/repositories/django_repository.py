"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Greatest

from modules.carts.models import Cart, PurchaseInvoice
from modules.carts.repositories.interfaces import ICartRepository
from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Cart]:
        try:
            return Cart.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Cart]:
        try:
            return Cart.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = Cart.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: Cart) -> Cart:
        entity.save()
        return entity

    def create(self) -> Cart:
        cart = Cart()
        cart.save()
        return cart

    def members(self, cart: Cart) -> models.QuerySet:
        return Order.objects.filter(cart=cart).select_related("invoice")

    def adjust_count(self, cart: Cart, delta: int) -> None:
        Cart.objects.filter(pk=cart.pk).update(
            orders_count=Greatest(models.F("orders_count") + delta, 0)
        )
        cart.refresh_from_db(fields=["orders_count"])

    def create_purchase_invoice(self, cart: Cart, data: Dict[str, Any]) -> PurchaseInvoice:
        invoice, created = PurchaseInvoice.objects.update_or_create(cart=cart, defaults=data)
        logger.info("cart.purchase_invoice_written", cart_id=str(cart.id), created=created)
        return invoice
