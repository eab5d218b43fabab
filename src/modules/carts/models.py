"""Cart and PurchaseInvoice models.

A cart groups orders bought together from one merchant.  It is created
open, closes automatically once every live member has been purchased, and
never reopens.  ``orders_count`` is a denormalised counter maintained with
``F()`` expressions in the same transaction as the membership change;
``CartService.recount`` only repairs drift.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.db import models

from modules.core.models import BaseModel


class Cart(BaseModel):
    sequence: models.PositiveIntegerField = models.PositiveIntegerField(
        unique=True, editable=False
    )
    orders_count: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    is_available: models.BooleanField = models.BooleanField(default=True)
    closed_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "carts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_available"], name="carts_available_idx"),
        ]

    @property
    def cart_number(self) -> str:
        return f"CART-{self.sequence}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.sequence:
            last = Cart.objects.aggregate(last=models.Max("sequence"))["last"] or 0
            self.sequence = last + 1
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.cart_number


class PurchaseInvoice(BaseModel):
    """Merchant-side invoice written when a cart closes.

    ``total = sum(invoice totals + expenses) - sum(discounts)`` over the
    cart's live members.
    """

    cart: models.OneToOneField = models.OneToOneField(
        "carts.Cart",
        on_delete=models.CASCADE,
        related_name="purchase_invoice",
    )
    orders_count: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    expenses_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        db_table = "purchase_invoices"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.cart} : {self.total}"
