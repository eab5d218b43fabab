"""Shipment service layer (Use Cases).

A shipment is created for a closed box, then moves READY -> SHIPPING ->
ARRIVED.  Each step advances the box's member orders in bulk inside the
same transaction.  The carrier hand-off runs in a Celery task after the
send commits; its failures are recorded on the shipment and retried, and
never undo the local state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

import structlog
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from modules.boxes.exceptions import BoxNotFound
from modules.core.audit import snapshot
from modules.orders.constants import SHIPPABLE_POSITIONS, OrderPosition
from modules.orders.events import OrderPositionChanged
from modules.orders.signals import record_bulk_history
from modules.shipments.constants import ShipmentStatus
from modules.shipments.dtos import CarrierShipmentDTO
from modules.shipments.events import ShipmentChanged
from modules.shipments.exceptions import (
    BoxStillOpen,
    CarrierNotFound,
    CarrierUnavailable,
    InvalidShipmentStatus,
    ShipmentAlreadyExists,
    ShipmentNotFound,
)
from modules.shipments.models import Shipment
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.boxes.repositories.interfaces import IBoxRepository
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.shipments.dtos import CreateShipmentDTO
    from modules.shipments.gateways import ICarrierGateway
    from modules.shipments.models import Carrier, ShipmentImage
    from modules.shipments.repositories.interfaces import IShipmentRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

SHIPMENT_FIELDS = ("box", "carrier", "status", "sender_name", "weight", "sent_at", "arrived_at")


class ShipmentService:
    """Application service for Shipment use-cases."""

    def __init__(
        self,
        repository: IShipmentRepository,
        box_repository: IBoxRepository,
        order_repository: IOrderRepository,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._repo = repository
        self._box_repo = box_repository
        self._order_repo = order_repository
        self._bus = event_bus or default_event_bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_shipment(self, dto: CreateShipmentDTO) -> Shipment:
        """Put a closed box on a shipment.

        Raises:
            BoxNotFound: the box does not exist.
            BoxStillOpen: the box has not been closed.
            ShipmentAlreadyExists: the box already has a shipment.
            CarrierNotFound: the carrier does not exist or is inactive.
        """
        box = self._box_repo.get_for_update(str(dto.box_id))
        if not box:
            raise BoxNotFound(f"Box {dto.box_id} not found.")
        log = logger.bind(box_id=str(box.id))

        if box.is_available:
            log.warning("shipment.box_still_open")
            raise BoxStillOpen(f"Box {box.number} must be closed before shipping.")
        if self._repo.get_by_box(box.id):
            log.warning("shipment.duplicate")
            raise ShipmentAlreadyExists(f"Box {box.number} already has a shipment.")
        carrier = self._repo.get_carrier(dto.carrier_id)
        if not carrier:
            raise CarrierNotFound(f"Carrier {dto.carrier_id} not found.", attr="carrier_id")

        try:
            with transaction.atomic():
                shipment = self._repo.save(
                    Shipment(
                        box=box,
                        carrier=carrier,
                        sender_name=dto.sender_name,
                        weight=dto.weight,
                    )
                )
        except IntegrityError as exc:
            raise ShipmentAlreadyExists(f"Box {box.number} already has a shipment.") from exc

        log.info("shipment.created", shipment_id=str(shipment.id), carrier=carrier.name)
        self._publish(shipment, "create", None)
        return shipment

    @transaction.atomic
    def send_shipment(self, shipment_id: str) -> int:
        """Hand a ready shipment over; its purchased orders start shipping.

        Returns the number of orders advanced.

        Raises:
            ShipmentNotFound: the shipment does not exist.
            InvalidShipmentStatus: the shipment is not ready.
        """
        shipment = self._lock(shipment_id, ShipmentStatus.READY)
        before = snapshot(shipment, SHIPMENT_FIELDS)
        shipment.status = ShipmentStatus.SHIPPING
        shipment.sent_at = timezone.now()
        self._repo.save(shipment)

        updated = self._advance_members(
            shipment, SHIPPABLE_POSITIONS, OrderPosition.SHIPPING, "Shipment sent"
        )
        logger.info("shipment.sent", shipment_id=str(shipment.id), orders_updated=updated)
        self._publish(shipment, "send", before)
        transaction.on_commit(lambda: _schedule_carrier_sync(shipment.id))
        return updated

    @transaction.atomic
    def mark_arrived(self, shipment_id: str) -> int:
        """The shipment reached the local warehouse; its orders have arrived.

        Raises:
            ShipmentNotFound: the shipment does not exist.
            InvalidShipmentStatus: the shipment is not shipping.
        """
        shipment = self._lock(shipment_id, ShipmentStatus.SHIPPING)
        before = snapshot(shipment, SHIPMENT_FIELDS)
        shipment.status = ShipmentStatus.ARRIVED
        shipment.arrived_at = timezone.now()
        self._repo.save(shipment)

        updated = self._advance_members(
            shipment, {OrderPosition.SHIPPING}, OrderPosition.ARRIVED_LOCAL, "Shipment arrived"
        )
        logger.info("shipment.arrived", shipment_id=str(shipment.id), orders_updated=updated)
        self._publish(shipment, "arrive", before)
        return updated

    @transaction.atomic
    def open_box(self, shipment_id: str) -> int:
        """Unpack an arrived shipment; its orders move on to preparation.

        Raises:
            ShipmentNotFound: the shipment does not exist.
            InvalidShipmentStatus: the shipment has not arrived.
        """
        shipment = self._lock(shipment_id, ShipmentStatus.ARRIVED)
        updated = self._advance_members(
            shipment, {OrderPosition.ARRIVED_LOCAL}, OrderPosition.PREPARING, "Box opened"
        )
        logger.info("shipment.box_opened", shipment_id=str(shipment.id), orders_updated=updated)
        return updated

    @transaction.atomic
    def add_image(self, shipment_id: str, url: str) -> ShipmentImage:
        """Raises:
        ShipmentNotFound: the shipment does not exist.
        """
        shipment = self.get_shipment(shipment_id)
        image = self._repo.add_image(shipment, url)
        logger.info("shipment.image_added", shipment_id=str(shipment.id))
        return image

    @transaction.atomic
    def create_carrier(self, name: str) -> Carrier:
        carrier = self._repo.create_carrier(name)
        logger.info("carrier.created", carrier_id=str(carrier.id), name=name)
        return carrier

    def sync_with_carrier(self, shipment_id: str, gateway: ICarrierGateway) -> str:
        """Register the shipment with the carrier and store its reference.

        The outcome, success or failure, is stored on the shipment.

        Raises:
            ShipmentNotFound: the shipment does not exist.
            CarrierUnavailable: the gateway failed; the error is recorded.
        """
        shipment = self.get_shipment(shipment_id)
        log = logger.bind(shipment_id=str(shipment.id))
        order_numbers = list(
            self._box_repo.members(shipment.box).values_list("order_number", flat=True)
        )
        payload = CarrierShipmentDTO(
            shipment_id=shipment.id,
            box_number=shipment.box.number,
            sender_name=shipment.sender_name,
            weight=shipment.weight,
            orders_count=len(order_numbers),
            order_numbers=order_numbers,
        )
        try:
            reference = gateway.register_shipment(payload)
        except CarrierUnavailable as exc:
            self._repo.record_sync(shipment, error=str(exc.detail))
            log.warning("shipment.carrier_sync_failed", error=str(exc.detail))
            raise
        self._repo.record_sync(shipment, reference=reference)
        log.info("shipment.carrier_synced", carrier_reference=reference)
        return reference

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_shipment(self, shipment_id: str) -> Shipment:
        """Raises:
        ShipmentNotFound: the shipment does not exist.
        """
        shipment = self._repo.get_by_id(str(shipment_id))
        if not shipment:
            raise ShipmentNotFound(f"Shipment {shipment_id} not found.")
        return shipment

    def list_shipments(self, status: Optional[int] = None) -> models.QuerySet:
        return self._repo.list({"status": status} if status else None)

    def list_carriers(self) -> models.QuerySet:
        return self._repo.list_carriers()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock(self, shipment_id, required: ShipmentStatus) -> Shipment:
        shipment = self._repo.get_for_update(str(shipment_id))
        if not shipment:
            raise ShipmentNotFound(f"Shipment {shipment_id} not found.")
        if shipment.status != required:
            logger.warning(
                "shipment.invalid_status",
                shipment_id=str(shipment.id),
                status=shipment.status,
                required=int(required),
            )
            raise InvalidShipmentStatus(
                f"Shipment is {shipment.get_status_display().lower()}, "
                f"expected {required.label.lower()}."
            )
        return shipment

    def _advance_members(
        self,
        shipment: Shipment,
        from_positions: Iterable[int],
        to_position: OrderPosition,
        notes: str,
    ) -> int:
        """Move the box's live members from ``from_positions`` to ``to_position``."""
        members = list(
            self._box_repo.members(shipment.box)
            .filter(position__in=list(from_positions), is_archived=False)
            .select_for_update(of=("self",))
        )
        if not members:
            return 0
        updated = self._order_repo.list({"pk__in": [o.pk for o in members]}).update(
            position=to_position
        )
        record_bulk_history([(o, o.position) for o in members], to_position, notes=notes)
        for order in members:
            self._bus.publish_on_commit(
                OrderPositionChanged(
                    aggregate_id=order.id,
                    entity_type="order",
                    action="advance_position",
                    before={"position": int(order.position)},
                    after={"position": int(to_position)},
                )
            )
        return updated

    def _publish(self, shipment: Shipment, action: str, before) -> None:
        self._bus.publish_on_commit(
            ShipmentChanged(
                aggregate_id=shipment.id,
                entity_type="shipment",
                action=action,
                before=before,
                after=snapshot(shipment, SHIPMENT_FIELDS),
            )
        )


def _schedule_carrier_sync(shipment_id) -> None:
    from modules.shipments.tasks import sync_shipment_with_carrier

    sync_shipment_with_carrier.delay(str(shipment_id))
