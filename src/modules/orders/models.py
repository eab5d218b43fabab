"""Order, OrderDetail, Invoice and OrderPositionHistory models.

Business rules implemented:
- ``position`` is always a member of ``OrderPosition`` (choices + check
  constraint); transitions are validated at the service layer.
- Each position change generates a history record (``signals.py``; bulk
  advances write theirs explicitly).
- Order number auto-generated as human-readable identifier.
- Customer FK uses PROTECT to preserve financial history.
- ``OrderDetail`` keeps the product description and the price snapshot
  taken at creation time.
- ``Invoice`` is created empty with the order and populated in place when
  the purchase is confirmed.
- CANCELLED and archived orders accept no further transitions.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.conf import settings
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    OrderPosition,
    PaymentBy,
    PaymentMethod,
    PurchaseMethod,
    reached,
)

logger = structlog.get_logger(__name__)

MONEY = {"max_digits": 12, "decimal_places": 2}


def _human_number(prefix: str) -> str:
    """``<PREFIX>-YYYYMMDD-XXXXXX``."""
    now = timezone.now()
    return f"{prefix}-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


class Order(BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``ORD-YYYYMMDD-XXXXXX``).  The UUIDv7 ``id`` is used for
    all internal references and API lookups.

    ``cart``, ``box`` and ``collection`` record container membership; the
    container counters are kept in step by the services in the same
    transaction.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    customer: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    position: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(
        choices=OrderPosition.choices,
        default=OrderPosition.NEW,
    )
    cart: models.ForeignKey = models.ForeignKey(
        "carts.Cart",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    box: models.ForeignKey = models.ForeignKey(
        "boxes.Box",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    collection: models.ForeignKey = models.ForeignKey(
        "collections.Collection",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    is_archived: models.BooleanField = models.BooleanField(default=False)
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["position"], name="orders_position_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(position__in=OrderPosition.values),
                name="orders_position_valid",
            ),
        ]
        permissions = [
            ("confirm_purchase", "Can confirm the purchase of an order"),
            ("cancel_order", "Can cancel an order"),
            ("archive_order", "Can archive an order"),
            ("advance_position", "Can move an order to another position"),
            ("view_reports", "Can view order and financial reports"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_closed(self) -> bool:
        """``True`` when the order accepts no further transitions."""
        return self.is_archived or self.position == OrderPosition.CANCELLED

    def has_reached(self, milestone: OrderPosition) -> bool:
        return reached(self.position, milestone)

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        return _human_number("ORD")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for attempt in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
                logger.warning("order.number_collision", attempt=attempt + 1)
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.order_number} ({self.get_position_display()})"


class OrderDetail(BaseModel):
    """What was ordered, where it goes, and the price snapshot at creation.

    The price fields are ``None`` when the order was created without a
    foreign price (the purchaser fills the invoice later).
    """

    order: models.OneToOneField = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="detail",
    )
    title: models.CharField = models.CharField(max_length=255)
    color: models.CharField = models.CharField(max_length=100, blank=True, default="")
    size: models.CharField = models.CharField(max_length=50, blank=True, default="")
    product_link: models.URLField = models.URLField(max_length=1000, blank=True, default="")
    image_url: models.URLField = models.URLField(max_length=1000, blank=True, default="")
    description: models.TextField = models.TextField(blank=True, default="")
    original_price = models.DecimalField(null=True, blank=True, **MONEY)
    local_price = models.DecimalField(null=True, blank=True, **MONEY)
    commission = models.DecimalField(null=True, blank=True, **MONEY)
    total = models.DecimalField(null=True, blank=True, **MONEY)
    deposit_amount = models.DecimalField(null=True, blank=True, **MONEY)
    prepaid_value = models.DecimalField(default=Decimal("0.00"), **MONEY)
    city_id: models.PositiveIntegerField = models.PositiveIntegerField()
    area_id: models.PositiveIntegerField = models.PositiveIntegerField()
    payment_by: models.CharField = models.CharField(
        max_length=10,
        choices=PaymentBy.choices,
        default=PaymentBy.RECEIVER,
    )

    class Meta:
        db_table = "order_details"

    def __str__(self) -> str:
        return self.title


class Invoice(BaseModel):
    """Customer invoice of a single order.

    Settlement fields (``payment_method``, ``cash_amount``,
    ``card_paid_amount``, ``amount_paid``, ``settled_at``) stay ``None``
    until the purchase is confirmed.  Once confirmed,
    ``cash_amount + card_paid_amount == amount_paid``.
    """

    order: models.OneToOneField = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="invoice",
    )
    invoice_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    item_price = models.DecimalField(default=Decimal("0.00"), **MONEY)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(default=1)
    total_amount = models.DecimalField(default=Decimal("0.00"), **MONEY)
    payment_method: models.CharField = models.CharField(  # noqa: DJ01
        max_length=10,
        choices=PaymentMethod.choices,
        null=True,
        blank=True,
    )
    purchase_method: models.CharField = models.CharField(
        max_length=10,
        choices=PurchaseMethod.choices,
        default=PurchaseMethod.ONLINE,
    )
    discount_amount = models.DecimalField(default=Decimal("0.00"), **MONEY)
    expenses_amount = models.DecimalField(default=Decimal("0.00"), **MONEY)
    expenses_notes: models.TextField = models.TextField(blank=True, default="")
    cash_amount = models.DecimalField(null=True, blank=True, **MONEY)
    card_paid_amount = models.DecimalField(null=True, blank=True, **MONEY)
    amount_paid = models.DecimalField(null=True, blank=True, **MONEY)
    cart: models.ForeignKey = models.ForeignKey(
        "carts.Cart",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices",
    )
    card: models.ForeignKey = models.ForeignKey(
        "treasury.PaymentCard",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoices",
    )
    settled_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "invoices"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["payment_method"], name="invoices_payment_idx"),
        ]

    @property
    def is_settled(self) -> bool:
        return self.settled_at is not None

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.invoice_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = _human_number("INV")
                if not Invoice.objects.filter(invoice_number=candidate).exists():
                    self.invoice_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique invoice_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.invoice_number


class OrderPositionHistory(BaseModel):
    """Append-only audit trail for order position changes.

    Each record captures a single change with the responsible user and
    optional notes (e.g. cancellation reason).  ``user`` is nullable:
    ``None`` means the change was performed by the system (e.g. a shipment
    send advancing every member of a box).
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="position_history",
    )
    old_position: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(
        choices=OrderPosition.choices,
        null=True,
        blank=True,
    )
    new_position: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(
        choices=OrderPosition.choices,
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_position_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="oph_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_position} -> {self.new_position}"
