"""Django ORM implementation of the Collection repository."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import models

from modules.collections.models import Collection
from modules.collections.repositories.interfaces import ICollectionRepository
from modules.orders.models import Order


class CollectionDjangoRepository(ICollectionRepository):
    """Concrete Collection repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Collection]:
        try:
            return Collection.objects.select_related("customer").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Collection]:
        try:
            return Collection.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = Collection.objects.select_related("customer")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: Collection) -> Collection:
        entity.save()
        return entity

    def create(self, customer_id) -> Collection:
        return Collection.objects.create(customer_id=customer_id)

    def latest_for_customer(self, customer_id) -> Optional[Collection]:
        return Collection.objects.filter(customer_id=customer_id).order_by("-created_at").first()

    def members(self, collection: Collection) -> models.QuerySet:
        return Order.objects.filter(collection=collection).select_related("detail")

    def member_positions(self, collection: Collection) -> List[int]:
        return list(
            Order.objects.filter(collection=collection, is_archived=False).values_list(
                "position", flat=True
            )
        )

    def adjust_totals(self, collection: Collection, total: Decimal, prepaid: Decimal) -> None:
        Collection.objects.filter(pk=collection.pk).update(
            total=models.F("total") + total,
            prepaid_value=models.F("prepaid_value") + prepaid,
        )
        collection.refresh_from_db(fields=["total", "prepaid_value"])

    def write_status(self, collection: Collection, status: int) -> None:
        Collection.objects.filter(pk=collection.pk).exclude(status=status).update(status=status)
        collection.status = status
