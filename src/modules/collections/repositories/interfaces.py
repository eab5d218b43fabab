"""Collection repository interface."""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.collections.models import Collection


class ICollectionRepository(IRepository["Collection"]):
    """Repository contract for customer collections."""

    @abstractmethod
    def create(self, customer_id) -> Collection:
        """Create an empty collection for the customer."""

    @abstractmethod
    def latest_for_customer(self, customer_id) -> Optional[Collection]:
        """The customer's most recent collection, if any."""

    @abstractmethod
    def members(self, collection: Collection) -> models.QuerySet:
        """Orders in the collection."""

    @abstractmethod
    def member_positions(self, collection: Collection) -> List[int]:
        """Positions of every unarchived member, cancelled ones included."""

    @abstractmethod
    def adjust_totals(self, collection: Collection, total: Decimal, prepaid: Decimal) -> None:
        """Shift ``total`` and ``prepaid_value`` with an ``F()`` update."""

    @abstractmethod
    def write_status(self, collection: Collection, status: int) -> None:
        """Persist the cached status."""
