"""Box service layer (Use Cases).

Orders join a box once purchased (PURCHASED or RECEIVED_ABROAD) and only
while the box is open.  Closing a box is the operator's signal that it can
be put on a shipment.  Locks are taken order first, then box.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from modules.boxes.events import BoxChanged
from modules.boxes.exceptions import (
    BoxAlreadyExists,
    BoxClosed,
    BoxNotFound,
    OrderNotEligibleForBox,
    OrderNotInBox,
)
from modules.boxes.models import Box
from modules.core.audit import snapshot
from modules.orders.constants import BOXABLE_POSITIONS, OrderPosition
from modules.orders.exceptions import OrderNotFound
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.boxes.repositories.interfaces import IBoxRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

BOX_FIELDS = ("number", "orders_count", "is_available", "closed_at")


class BoxService:
    """Application service for Box use-cases."""

    def __init__(
        self,
        repository: IBoxRepository,
        order_repository: IOrderRepository,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._repo = repository
        self._order_repo = order_repository
        self._bus = event_bus or default_event_bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_box(self, number: str) -> Box:
        """Open a new box.

        Raises:
            BoxAlreadyExists: the number is taken.
        """
        if self._repo.get_by_number(number):
            raise BoxAlreadyExists(f"Box {number} already exists.", attr="number")
        try:
            with transaction.atomic():
                box = self._repo.save(Box(number=number))
        except IntegrityError as exc:
            raise BoxAlreadyExists(f"Box {number} already exists.", attr="number") from exc

        logger.info("box.created", box_id=str(box.id), number=number)
        self._publish(box, "create", None)
        return box

    @transaction.atomic
    def close_box(self, box_id: str) -> Box:
        """Close an open box.

        Raises:
            BoxNotFound: the box does not exist.
            BoxClosed: the box is already closed.
        """
        box = self._lock_open_box(box_id)
        before = snapshot(box, BOX_FIELDS)
        box.is_available = False
        box.closed_at = timezone.now()
        self._repo.save(box)

        logger.info("box.closed", box_id=str(box.id), orders_count=box.orders_count)
        self._publish(box, "close", before)
        return box

    @transaction.atomic
    def add_order(self, box_id: str, order_id: str) -> Box:
        """Pack a purchased order into an open box.

        Raises:
            OrderNotFound / BoxNotFound: either side does not exist.
            OrderNotEligibleForBox: the order is not purchased, is closed, or
                is already boxed.
            BoxClosed: the box is closed.
        """
        order = self._lock_order(order_id)
        log = logger.bind(box_id=str(box_id), order_id=str(order_id))

        if order.position not in BOXABLE_POSITIONS or order.is_archived:
            log.warning("box.order_not_purchased", position=order.position)
            raise OrderNotEligibleForBox("Only purchased orders can be added to a box.")
        if order.box_id is not None:
            log.warning("box.order_already_boxed", current_box_id=str(order.box_id))
            raise OrderNotEligibleForBox("Order is already in a box.")

        box = self._lock_open_box(box_id)
        before = snapshot(box, BOX_FIELDS)
        order.box = box
        order.save(update_fields=["box"])
        self._repo.adjust_count(box, 1)

        log.info("box.order_added", orders_count=box.orders_count)
        self._publish(box, "add_order", before)
        return box

    @transaction.atomic
    def remove_order(self, box_id: str, order_id: str) -> Box:
        """Take an order out of an open box.

        Raises:
            OrderNotFound / BoxNotFound: either side does not exist.
            OrderNotInBox: the order is not in this box.
            BoxClosed: the box is closed.
        """
        order = self._lock_order(order_id)
        if order.box_id is None or str(order.box_id) != str(box_id):
            raise OrderNotInBox("Order is not in this box.")

        box = self._lock_open_box(box_id)
        before = snapshot(box, BOX_FIELDS)
        self.detach(order, box)

        logger.info(
            "box.order_removed",
            box_id=str(box.id),
            order_id=str(order.id),
            orders_count=box.orders_count,
        )
        self._publish(box, "remove_order", before)
        return box

    def lock_box(self, box_id) -> Optional[Box]:
        """Lock a box row, open or closed; ``None`` when it does not exist."""
        return self._repo.get_for_update(str(box_id))

    def detach(self, order: Order, box: Box) -> None:
        """Drop the membership of a locked order; the caller holds the box lock."""
        order.box = None
        order.save(update_fields=["box"])
        self._repo.adjust_count(box, -1)

    @transaction.atomic
    def recount(self, box_id) -> Box:
        """Repair ``orders_count`` from the actual membership.

        Raises:
            BoxNotFound: the box does not exist.
        """
        box = self._repo.get_for_update(str(box_id))
        if not box:
            raise BoxNotFound(f"Box {box_id} not found.")
        actual = self._repo.members(box).count()
        if actual != box.orders_count:
            logger.warning(
                "box.counter_repaired",
                box_id=str(box.id),
                stored=box.orders_count,
                actual=actual,
            )
            box.orders_count = actual
            box.save(update_fields=["orders_count"])
        return box

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_box(self, box_id: str) -> Box:
        """Retrieve a single box by ID.

        Raises:
            BoxNotFound: the box does not exist.
        """
        box = self._repo.get_by_id(box_id)
        if not box:
            raise BoxNotFound(f"Box {box_id} not found.")
        return box

    def list_boxes(self, is_available: Optional[bool] = None) -> models.QuerySet:
        filters = {} if is_available is None else {"is_available": is_available}
        return self._repo.list(filters)

    def members(self, box: Box) -> models.QuerySet:
        return self._repo.members(box)

    def available_orders(self) -> models.QuerySet:
        """Purchased or received-abroad orders that are not boxed yet."""
        return self._order_repo.list(
            {
                "position__in": sorted(BOXABLE_POSITIONS),
                "box__isnull": True,
                "is_archived": False,
            }
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_order(self, order_id) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _lock_open_box(self, box_id) -> Box:
        box = self._repo.get_for_update(str(box_id))
        if not box:
            raise BoxNotFound(f"Box {box_id} not found.")
        if not box.is_available:
            logger.warning("box.closed_rejected", box_id=str(box_id))
            raise BoxClosed(f"Box {box.number} is closed.")
        return box

    def _publish(self, box: Box, action: str, before) -> None:
        self._bus.publish_on_commit(
            BoxChanged(
                aggregate_id=box.id,
                entity_type="box",
                action=action,
                before=before,
                after=snapshot(box, BOX_FIELDS),
            )
        )
