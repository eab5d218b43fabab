"""Django ORM implementation of the Shipment repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError
from django.db import models

from modules.shipments.models import Carrier, Shipment, ShipmentImage
from modules.shipments.repositories.interfaces import IShipmentRepository


class ShipmentDjangoRepository(IShipmentRepository):
    """Concrete Shipment repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Shipment]:
        try:
            return (
                Shipment.objects.select_related("box", "carrier")
                .prefetch_related("images")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Shipment]:
        try:
            return (
                Shipment.objects.select_for_update(of=("self",))
                .select_related("box")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = Shipment.objects.select_related("box", "carrier")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: Shipment) -> Shipment:
        entity.save()
        return entity

    def get_by_box(self, box_id) -> Optional[Shipment]:
        return Shipment.objects.filter(box_id=box_id).first()

    def get_carrier(self, carrier_id) -> Optional[Carrier]:
        try:
            return Carrier.objects.filter(id=carrier_id, is_active=True).first()
        except (ValueError, ValidationError):
            return None

    def create_carrier(self, name: str) -> Carrier:
        return Carrier.objects.create(name=name)

    def add_image(self, shipment: Shipment, url: str) -> ShipmentImage:
        return ShipmentImage.objects.create(shipment=shipment, url=url)

    def record_sync(self, shipment: Shipment, reference: str = "", error: str = "") -> None:
        fields = {"carrier_sync_error": error}
        if reference:
            fields["carrier_reference"] = reference
        Shipment.objects.filter(pk=shipment.pk).update(**fields)
        for name, value in fields.items():
            setattr(shipment, name, value)

    def list_carriers(self, active_only: bool = True) -> models.QuerySet:
        queryset = Carrier.objects.all()
        if active_only:
            queryset = queryset.filter(is_active=True)
        return queryset
