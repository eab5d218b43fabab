"""Collection model.

A collection groups the orders one customer placed within a rolling window
so they are delivered together.  ``status`` is a cache of
``derive_collection_status`` over the members' positions: it is rewritten
whenever a read path recomputes it and is never used for decisions.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import models
from django.utils import timezone

from modules.collections.constants import CollectionStatus
from modules.core.models import BaseModel


class Collection(BaseModel):
    customer: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="collections",
    )
    status: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(
        choices=CollectionStatus.choices,
        default=CollectionStatus.IN_PROGRESS,
    )
    prepaid_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        db_table = "collections"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "-created_at"], name="collections_customer_idx"),
        ]
        permissions = [
            ("send_to_delivery", "Can hand a collection over to delivery"),
        ]

    def is_within_window(self, now: Optional[timezone.datetime] = None) -> bool:
        """``True`` while new orders of the customer may still join."""
        now = now or timezone.now()
        return now - self.created_at <= timedelta(days=settings.COLLECTION_WINDOW_DAYS)

    def __str__(self) -> str:
        return f"Collection {self.id} ({self.get_status_display()})"
