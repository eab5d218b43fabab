"""Collection service layer (Use Cases).

A new order joins the customer's latest collection while that collection is
inside the membership window, otherwise a new collection is opened.  The
stored status is only a cache: every read path recomputes it from the
members' positions and rewrites it.  A failed cache write is logged and the
read carries on with the derived value.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

import structlog
from django.db import DatabaseError, models, transaction

from modules.collections.constants import CollectionStatus
from modules.collections.events import CollectionChanged
from modules.collections.exceptions import (
    CollectionNotAvailable,
    CollectionNotFound,
    CollectionNotReady,
    OrderNotInCollection,
    OrderNotReadyForDelivery,
)
from modules.collections.status import derive_collection_status
from modules.core.audit import snapshot
from modules.core.exceptions import ValidationError
from modules.orders.constants import OrderPosition
from modules.orders.events import OrderPositionChanged
from modules.orders.exceptions import OrderNotFound
from modules.orders.signals import record_bulk_history
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.collections.models import Collection
    from modules.collections.repositories.interfaces import ICollectionRepository
    from modules.customers.models import Customer
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

COLLECTION_FIELDS = ("customer", "status", "prepaid_value", "total")


class CollectionService:
    """Application service for Collection use-cases."""

    def __init__(
        self,
        repository: ICollectionRepository,
        order_repository: IOrderRepository,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._repo = repository
        self._order_repo = order_repository
        self._bus = event_bus or default_event_bus

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    @transaction.atomic
    def resolve_or_create_for_customer(self, customer: Customer) -> Collection:
        """The customer's latest collection if still inside the window, else a new one."""
        latest = self._repo.latest_for_customer(customer.id)
        if latest and latest.is_within_window():
            return latest

        collection = self._repo.create(customer.id)
        logger.info(
            "collection.created",
            collection_id=str(collection.id),
            customer_id=str(customer.id),
            previous_collection_id=str(latest.id) if latest else None,
        )
        self._publish(collection, "create", None)
        return collection

    def validate_for_customer(self, collection_id, customer: Customer) -> Collection:
        """Check an explicitly chosen collection.

        Raises:
            CollectionNotAvailable: it does not exist, belongs to another
                customer, or its window has passed.
        """
        collection = self._repo.get_by_id(str(collection_id))
        if (
            not collection
            or collection.customer_id != customer.id
            or not collection.is_within_window()
        ):
            logger.warning(
                "collection.not_available",
                collection_id=str(collection_id),
                customer_id=str(customer.id),
            )
            raise CollectionNotAvailable(
                "Collection is not open for this customer.", attr="collection_id"
            )
        return collection

    @transaction.atomic
    def add_totals(self, collection: Collection, total: Decimal, prepaid: Decimal) -> Collection:
        """Account for an order that joined (positive) or left (negative)."""
        before = snapshot(collection, COLLECTION_FIELDS)
        self._repo.adjust_totals(collection, total, prepaid)
        logger.info(
            "collection.totals_changed",
            collection_id=str(collection.id),
            total_delta=str(total),
            prepaid_delta=str(prepaid),
        )
        self._publish(collection, "totals", before)
        return collection

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def recompute_status(self, collection_or_id) -> Collection:
        """Derive the status from the members and rewrite the cached value.

        Raises:
            CollectionNotFound: the collection does not exist.
        """
        collection = self._resolve(collection_or_id)
        derived = derive_collection_status(self._repo.member_positions(collection))
        if derived == collection.status:
            return collection
        try:
            with transaction.atomic():
                self._repo.write_status(collection, derived)
        except DatabaseError:
            logger.warning(
                "collection.status_cache_write_failed",
                collection_id=str(collection.id),
                derived_status=int(derived),
            )
        collection.status = derived
        return collection

    # ------------------------------------------------------------------
    # Delivery hand-over
    # ------------------------------------------------------------------

    @transaction.atomic
    def send_to_delivery(self, collection_id: str) -> Collection:
        """Hand every live member over to delivery at once.

        Raises:
            CollectionNotFound: the collection does not exist.
            CollectionNotReady: no live member, or not all of them ready.
        """
        collection = self._repo.get_for_update(str(collection_id))
        if not collection:
            raise CollectionNotFound(f"Collection {collection_id} not found.")
        before = snapshot(collection, COLLECTION_FIELDS)
        log = logger.bind(collection_id=str(collection.id))

        live = list(
            self._repo.members(collection)
            .filter(is_archived=False)
            .exclude(position=OrderPosition.CANCELLED)
            .select_for_update(of=("self",))
        )
        ready = [o for o in live if o.position == OrderPosition.READY_FOR_DELIVERY]
        if not live or len(ready) != len(live):
            log.warning("collection.not_ready", ready=len(ready), total=len(live))
            raise CollectionNotReady(
                f"{len(ready)}/{len(live)} orders are ready for delivery."
            )

        self._order_repo.list({"pk__in": [o.pk for o in ready]}).update(
            position=OrderPosition.OUT_FOR_DELIVERY
        )
        record_bulk_history(
            [(o, o.position) for o in ready],
            OrderPosition.OUT_FOR_DELIVERY,
            notes="Collection sent to delivery",
        )
        self._repo.write_status(collection, CollectionStatus.COMPLETE)

        log.info("collection.sent_to_delivery", orders_count=len(ready))
        for order in ready:
            self._publish_position(order, order.position)
        self._publish(collection, "send_to_delivery", before)
        return collection

    @transaction.atomic
    def send_one_to_delivery(self, collection_id: str, order_id: str, user_id=None):
        """Hand a single ready member over to delivery.

        Raises:
            CollectionNotFound / OrderNotFound: either side does not exist.
            OrderNotInCollection: the order belongs to another collection.
            OrderNotReadyForDelivery: the order is not ready for delivery.
        """
        collection = self._repo.get_by_id(str(collection_id))
        if not collection:
            raise CollectionNotFound(f"Collection {collection_id} not found.")
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if order.collection_id != collection.id:
            raise OrderNotInCollection("Order is not in this collection.")
        if order.position != OrderPosition.READY_FOR_DELIVERY or order.is_archived:
            logger.warning(
                "collection.order_not_ready",
                collection_id=str(collection.id),
                order_id=str(order.id),
                position=order.position,
            )
            raise OrderNotReadyForDelivery("Order is not ready for delivery.")

        old_position = order.position
        order.position = OrderPosition.OUT_FOR_DELIVERY
        order._position_change_notes = "Sent to delivery"
        order._position_change_user_id = user_id
        order.save(update_fields=["position"])

        logger.info(
            "collection.order_sent_to_delivery",
            collection_id=str(collection.id),
            order_id=str(order.id),
        )
        self._publish_position(order, old_position)
        self.recompute_status(collection)
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_collection(self, collection_id: str) -> Collection:
        """Retrieve a collection with a freshly recomputed status.

        Raises:
            CollectionNotFound: the collection does not exist.
        """
        return self.recompute_status(collection_id)

    def list_collections(self, customer_id=None) -> List[Collection]:
        filters = {"customer_id": _customer_uuid(customer_id)} if customer_id else None
        return [self.recompute_status(c) for c in self._repo.list(filters)]

    def available_for_customer(self, customer_id) -> List[Collection]:
        """Collections a new order of the customer may still join."""
        return [
            c for c in self._repo.list({"customer_id": _customer_uuid(customer_id)})
            if c.is_within_window()
        ]

    def members(self, collection: Collection) -> models.QuerySet:
        return self._repo.members(collection)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve(self, collection_or_id) -> Collection:
        if hasattr(collection_or_id, "pk"):
            return collection_or_id
        collection = self._repo.get_by_id(str(collection_or_id))
        if not collection:
            raise CollectionNotFound(f"Collection {collection_or_id} not found.")
        return collection

    def _publish(self, collection: Collection, action: str, before) -> None:
        self._bus.publish_on_commit(
            CollectionChanged(
                aggregate_id=collection.id,
                entity_type="collection",
                action=action,
                before=before,
                after=snapshot(collection, COLLECTION_FIELDS),
            )
        )

    def _publish_position(self, order, old_position: int) -> None:
        self._bus.publish_on_commit(
            OrderPositionChanged(
                aggregate_id=order.id,
                entity_type="order",
                action="advance_position",
                before={"position": int(old_position)},
                after={"position": int(OrderPosition.OUT_FOR_DELIVERY)},
            )
        )


def _customer_uuid(value) -> UUID:
    try:
        return value if isinstance(value, UUID) else UUID(str(value))
    except ValueError:
        raise ValidationError("Invalid customer id.", attr="customer") from None
