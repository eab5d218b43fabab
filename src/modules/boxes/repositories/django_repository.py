"""Django ORM implementation of the Box repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Greatest

from modules.boxes.models import Box
from modules.boxes.repositories.interfaces import IBoxRepository
from modules.orders.models import Order


class BoxDjangoRepository(IBoxRepository):
    """Concrete Box repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Box]:
        try:
            return Box.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Box]:
        try:
            return Box.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_number(self, number: str) -> Optional[Box]:
        return Box.objects.filter(number=number).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = Box.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: Box) -> Box:
        entity.save()
        return entity

    def members(self, box: Box) -> models.QuerySet:
        return Order.objects.filter(box=box).select_related("customer", "detail")

    def adjust_count(self, box: Box, delta: int) -> None:
        Box.objects.filter(pk=box.pk).update(
            orders_count=Greatest(models.F("orders_count") + delta, 0)
        )
        box.refresh_from_db(fields=["orders_count"])
