"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Creation is
wrapped in ``transaction.atomic()`` so the Order aggregate (Order +
OrderDetail + Invoice) is persisted atomically.

Concurrency control on position changes uses ``select_for_update()``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.orders.models import Invoice, Order, OrderDetail
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            customer=data["customer"],
            collection=data.get("collection"),
            notes=data.get("notes", ""),
        )
        order._position_change_user_id = data.get("user_id")
        order.save()
        OrderDetail.objects.create(order=order, **data["detail"])
        Invoice.objects.create(order=order, **data["invoice"])

        logger.info("order.persisted", order_id=str(order.id))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> models.QuerySet:
        return Order.objects.select_related("customer", "detail", "invoice")

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Uses ``select_related`` for the customer, detail and invoice (single
        JOIN) and ``prefetch_related`` for the position history.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                self._base_queryset()
                .prefetch_related("position_history")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Only the order row is locked (``of=("self",)``) so the joined
        customer row stays free for other writers.  Returns ``None`` for
        non-existent or invalid IDs.
        """
        try:
            return (
                self._base_queryset()
                .select_for_update(of=("self",))
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """List orders with optional Django ORM look-ups.

        Examples of valid filters::

            {"position": OrderPosition.PURCHASED}
            {"customer_id": "<uuid>", "is_archived": False}
        """
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save / Delete
    # ------------------------------------------------------------------

    def save(self, entity: Order) -> Order:
        entity.save()
        logger.debug("order.saved", order_id=str(entity.id))
        return entity

    def save_invoice(self, invoice: Invoice) -> Invoice:
        invoice.save()
        return invoice

    def list_invoices(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = Invoice.objects.select_related("order")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def delete(self, order: Order) -> None:
        order_id = str(order.id)
        order.delete()
        logger.info("order.deleted", order_id=order_id)
