"""Box model.

A box packs purchased orders at the abroad warehouse.  It is closed by an
operator before it can be put on a shipment.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class Box(BaseModel):
    number: models.CharField = models.CharField(max_length=50, unique=True)
    orders_count: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    is_available: models.BooleanField = models.BooleanField(default=True)
    closed_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "boxes"
        ordering = ["-created_at"]
        verbose_name_plural = "boxes"
        indexes = [
            models.Index(fields=["is_available"], name="boxes_available_idx"),
        ]
        permissions = [
            ("close_box", "Can close a box"),
        ]

    @property
    def is_closed(self) -> bool:
        return not self.is_available

    def __str__(self) -> str:
        return f"Box {self.number}"
