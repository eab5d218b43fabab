"""Order domain constants.

``OrderPosition`` is the one canonical enumeration of fulfillment states.
The stored integers are the codes the purchase and cart flows of the live
data already use (3 = purchased).  Code must compare positions through
``position_rank`` / ``reached`` and never through raw integers: the legacy
lookup table numbers the same states differently (see
``LEGACY_POSITION_CODES``).
"""

from __future__ import annotations

from typing import Optional

from django.db import models


class OrderPosition(models.IntegerChoices):
    NEW = 1, "New"
    UNDER_PURCHASE = 2, "Under purchase"
    PURCHASED = 3, "Purchased"
    RECEIVED_ABROAD = 4, "Received at the abroad warehouse"
    BOXED = 5, "Boxed"
    SHIPPING = 6, "Shipping"
    ARRIVED_LOCAL = 7, "Arrived locally"
    PREPARING = 8, "Preparing"
    READY_FOR_DELIVERY = 9, "Ready for delivery"
    OUT_FOR_DELIVERY = 10, "Out for delivery"
    DELIVERED = 11, "Delivered"
    CANCELLED = 12, "Cancelled"
    RETURN_PENDING = 13, "Return pending"
    RETURNED_ABROAD = 14, "Returned to the abroad warehouse"
    RETURNED = 15, "Returned"
    PARTIAL = 16, "Partial"

    @classmethod
    def from_legacy_code(cls, code: int) -> "OrderPosition":
        """Translate a code from the legacy position lookup table."""
        try:
            return LEGACY_POSITION_CODES[int(code)]
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"Unknown legacy position code: {code!r}") from None


# The happy path, in order.  Off-path states (cancel, returns, partial)
# have no rank.
FORWARD_SEQUENCE: tuple[OrderPosition, ...] = (
    OrderPosition.NEW,
    OrderPosition.UNDER_PURCHASE,
    OrderPosition.PURCHASED,
    OrderPosition.RECEIVED_ABROAD,
    OrderPosition.BOXED,
    OrderPosition.SHIPPING,
    OrderPosition.ARRIVED_LOCAL,
    OrderPosition.PREPARING,
    OrderPosition.READY_FOR_DELIVERY,
    OrderPosition.OUT_FOR_DELIVERY,
    OrderPosition.DELIVERED,
)

_RANK: dict[int, int] = {position.value: i for i, position in enumerate(FORWARD_SEQUENCE)}

LEGACY_POSITION_CODES: dict[int, OrderPosition] = {
    1: OrderPosition.NEW,
    2: OrderPosition.UNDER_PURCHASE,
    3: OrderPosition.RECEIVED_ABROAD,
    4: OrderPosition.SHIPPING,
    5: OrderPosition.ARRIVED_LOCAL,
    6: OrderPosition.SHIPPING,
    7: OrderPosition.ARRIVED_LOCAL,
    8: OrderPosition.PREPARING,
    # returned to the company, then on its way back abroad
    9: OrderPosition.RETURN_PENDING,
    10: OrderPosition.RETURN_PENDING,
    11: OrderPosition.RETURNED_ABROAD,
    # returned and refunded
    12: OrderPosition.RETURNED,
    13: OrderPosition.READY_FOR_DELIVERY,
    14: OrderPosition.OUT_FOR_DELIVERY,
    15: OrderPosition.DELIVERED,
    16: OrderPosition.CANCELLED,
}

END_STATES: set[int] = {
    OrderPosition.DELIVERED,
    OrderPosition.CANCELLED,
    OrderPosition.RETURNED,
}

# An order can join a box only while it sits in one of these
BOXABLE_POSITIONS: set[int] = {OrderPosition.PURCHASED, OrderPosition.RECEIVED_ABROAD}

# Box members a shipment send moves to SHIPPING
SHIPPABLE_POSITIONS: set[int] = {
    OrderPosition.PURCHASED,
    OrderPosition.RECEIVED_ABROAD,
    OrderPosition.BOXED,
}


def position_rank(position: int) -> Optional[int]:
    """Index on the happy path, or ``None`` for off-path states."""
    return _RANK.get(int(position))


def reached(position: int, milestone: OrderPosition) -> bool:
    """``True`` when ``position`` is on the happy path at or beyond ``milestone``."""
    rank = position_rank(position)
    return rank is not None and rank >= _RANK[milestone.value]


def positions_at_or_beyond(milestone: OrderPosition) -> list[OrderPosition]:
    """Happy-path positions at or beyond ``milestone`` (for ORM ``__in`` filters)."""
    return list(FORWARD_SEQUENCE[_RANK[milestone.value]:])


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"
    CARD = "card", "Card"


class PurchaseMethod(models.TextChoices):
    MALL = "mall", "Mall"
    ONLINE = "online", "Online"


class PaymentBy(models.TextChoices):
    """Who pays the local delivery fee."""

    RECEIVER = "receiver", "Receiver"
    SALES = "sales", "Seller"


ORDER_NUMBER_MAX_RETRIES = 5
