"""Carrier, Shipment and ShipmentImage models.

One shipment carries exactly one closed box.  ``carrier_reference`` and
``carrier_sync_error`` belong to the carrier hand-off, which happens after
the local send commits and never rolls it back.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.shipments.constants import ShipmentStatus


class Carrier(BaseModel):
    name: models.CharField = models.CharField(max_length=100, unique=True)
    is_active: models.BooleanField = models.BooleanField(default=True)

    class Meta:
        db_table = "carriers"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Shipment(BaseModel):
    box: models.OneToOneField = models.OneToOneField(
        "boxes.Box",
        on_delete=models.PROTECT,
        related_name="shipment",
    )
    carrier: models.ForeignKey = models.ForeignKey(
        "shipments.Carrier",
        on_delete=models.PROTECT,
        related_name="shipments",
    )
    sender_name: models.CharField = models.CharField(max_length=255)
    weight = models.DecimalField(max_digits=8, decimal_places=2)
    status: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(
        choices=ShipmentStatus.choices,
        default=ShipmentStatus.READY,
    )
    carrier_reference: models.CharField = models.CharField(max_length=100, blank=True, default="")
    carrier_sync_error: models.TextField = models.TextField(blank=True, default="")
    sent_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    arrived_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "shipments"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="shipments_status_idx"),
        ]
        permissions = [
            ("send_shipment", "Can hand a shipment over to the carrier"),
            ("receive_shipment", "Can mark a shipment as arrived and open its box"),
        ]

    def __str__(self) -> str:
        return f"Shipment of {self.box} ({self.get_status_display()})"


class ShipmentImage(BaseModel):
    shipment: models.ForeignKey = models.ForeignKey(
        "shipments.Shipment",
        on_delete=models.CASCADE,
        related_name="images",
    )
    url: models.URLField = models.URLField(max_length=1000)

    class Meta:
        db_table = "shipment_images"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return self.url
