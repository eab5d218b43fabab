"""Periodic maintenance tasks.

Counters change in the same transaction as membership; these tasks only
repair drift and refresh the cached collection statuses.
"""

import structlog
from celery import shared_task

from modules.boxes.repositories.django_repository import BoxDjangoRepository
from modules.boxes.services import BoxService
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.collections.repositories.django_repository import CollectionDjangoRepository
from modules.collections.services import CollectionService
from modules.orders.repositories.django_repository import OrderDjangoRepository

logger = structlog.get_logger(__name__)


@shared_task(name="core.recompute_collection_statuses")
def recompute_collection_statuses():
    """Rewrite every collection's cached status from its members."""
    service = CollectionService(CollectionDjangoRepository(), OrderDjangoRepository())
    collections = service.list_collections()
    logger.info("maintenance.collection_statuses_recomputed", collections=len(collections))
    return {"collections": len(collections)}


@shared_task(name="core.repair_container_counters")
def repair_container_counters():
    """Recount every open cart and box, then refresh collection statuses."""
    order_repository = OrderDjangoRepository()
    carts = CartService(CartDjangoRepository(), order_repository)
    boxes = BoxService(BoxDjangoRepository(), order_repository)

    cart_ids = list(carts.list_carts(is_available=True).values_list("id", flat=True))
    for cart_id in cart_ids:
        carts.recount(cart_id)
    box_ids = list(boxes.list_boxes(is_available=True).values_list("id", flat=True))
    for box_id in box_ids:
        boxes.recount(box_id)

    result = recompute_collection_statuses()
    logger.info(
        "maintenance.container_counters_repaired",
        carts=len(cart_ids),
        boxes=len(box_ids),
        collections=result["collections"],
    )
    return {"carts": len(cart_ids), "boxes": len(box_ids), **result}
