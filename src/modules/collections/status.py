"""Pure derivation of a collection's status from its members' positions."""

from __future__ import annotations

from typing import Iterable

from modules.collections.constants import CollectionStatus
from modules.orders.constants import OrderPosition, reached


def derive_collection_status(positions: Iterable[int]) -> CollectionStatus:
    """Status of a collection whose members sit at ``positions``.

    Cancelled members are ignored.  A member counts as ready once it has
    reached READY_FOR_DELIVERY.  No live member ready (or no live member at
    all) is IN_PROGRESS, some is PARTIAL, all is COMPLETE.
    """
    live = [p for p in positions if p != OrderPosition.CANCELLED]
    ready = sum(1 for p in live if reached(p, OrderPosition.READY_FOR_DELIVERY))
    if live and ready == len(live):
        return CollectionStatus.COMPLETE
    if ready:
        return CollectionStatus.PARTIAL
    return CollectionStatus.IN_PROGRESS
