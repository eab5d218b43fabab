"""Shipment domain constants."""

from __future__ import annotations

from django.db import models


class ShipmentStatus(models.IntegerChoices):
    READY = 1, "Ready"
    SHIPPING = 2, "Shipping"
    ARRIVED = 3, "Arrived"
