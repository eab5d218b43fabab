"""Carrier hand-off tasks for shipments."""

import structlog
from celery import shared_task
from django.conf import settings

from modules.boxes.repositories.django_repository import BoxDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.shipments.exceptions import CarrierUnavailable
from modules.shipments.gateways import build_carrier_gateway
from modules.shipments.repositories.django_repository import ShipmentDjangoRepository
from modules.shipments.services import ShipmentService

logger = structlog.get_logger(__name__)


@shared_task(
    name="shipments.sync_shipment_with_carrier",
    autoretry_for=(CarrierUnavailable,),
    retry_backoff=True,
    max_retries=settings.CARRIER_SYNC_MAX_RETRIES,
)
def sync_shipment_with_carrier(shipment_id: str):
    """Register a sent shipment with the carrier, retrying while it is unavailable."""
    gateway = build_carrier_gateway()
    if gateway is None:
        logger.info("shipment.carrier_sync_skipped", shipment_id=shipment_id, reason="no_carrier")
        return {"shipment_id": shipment_id, "status": "skipped"}

    service = ShipmentService(
        repository=ShipmentDjangoRepository(),
        box_repository=BoxDjangoRepository(),
        order_repository=OrderDjangoRepository(),
    )
    reference = service.sync_with_carrier(shipment_id, gateway)
    return {"shipment_id": shipment_id, "status": "synced", "reference": reference}
