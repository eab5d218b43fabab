"""Event handlers for the Collections bounded context."""

from __future__ import annotations

import structlog

from modules.collections.repositories.django_repository import CollectionDjangoRepository
from modules.collections.services import CollectionService
from modules.orders.events import OrderPositionChanged
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class CollectionStatusRefresher(IEventHandler[OrderPositionChanged]):
    """Refresh the cached status of the moved order's collection."""

    def handle(self, event: OrderPositionChanged) -> None:
        collection_id = (
            Order.objects.filter(pk=event.aggregate_id)
            .values_list("collection_id", flat=True)
            .first()
        )
        if collection_id is None:
            return
        service = CollectionService(
            repository=CollectionDjangoRepository(),
            order_repository=OrderDjangoRepository(),
        )
        collection = service.recompute_status(collection_id)
        logger.debug(
            "collection.status_refreshed",
            collection_id=str(collection_id),
            status=int(collection.status),
        )


collection_status_refresher = CollectionStatusRefresher()
