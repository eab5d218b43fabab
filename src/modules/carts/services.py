"""Cart service layer (Use Cases).

Membership rules:
- only an order under purchase that is not in a cart yet can join;
- membership only changes while the cart is open;
- the cart closes itself once it has at least one live member and every
  live member has been purchased, and then never reopens.

Locks are taken order first, then cart.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import structlog
from django.db import models, transaction
from django.utils import timezone

from modules.carts.events import CartChanged
from modules.carts.exceptions import (
    CartClosed,
    CartNotFound,
    OrderNotEligibleForCart,
    OrderNotInCart,
)
from modules.core.audit import snapshot
from modules.orders.constants import OrderPosition, positions_at_or_beyond
from modules.orders.exceptions import OrderNotFound
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.carts.models import Cart
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

CART_FIELDS = ("orders_count", "is_available", "closed_at")


class CartService:
    """Application service for Cart use-cases."""

    def __init__(
        self,
        repository: ICartRepository,
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
    def open_cart(self) -> Cart:
        cart = self._repo.create()
        logger.info("cart.opened", cart_id=str(cart.id), cart_number=cart.cart_number)
        self._publish(cart, "open", None)
        return cart

    @transaction.atomic
    def add_order(self, cart_id: str, order_id: str) -> Cart:
        """Put an order under purchase into an open cart.

        Raises:
            OrderNotFound / CartNotFound: either side does not exist.
            OrderNotEligibleForCart: the order is not under purchase or is
                already in a cart.
            CartClosed: the cart is closed.
        """
        order = self._lock_order(order_id)
        log = logger.bind(cart_id=str(cart_id), order_id=str(order_id))

        if order.position != OrderPosition.UNDER_PURCHASE or order.is_archived:
            log.warning("cart.order_not_under_purchase", position=order.position)
            raise OrderNotEligibleForCart("Only orders under purchase can be added to a cart.")
        if order.cart_id is not None:
            log.warning("cart.order_already_in_cart", current_cart_id=str(order.cart_id))
            raise OrderNotEligibleForCart("Order is already in a cart.")

        cart = self._lock_open_cart(cart_id)
        before = _snapshot(cart)

        order.cart = cart
        order.save(update_fields=["cart"])
        invoice = order.invoice
        invoice.cart = cart
        invoice.save(update_fields=["cart"])
        self._repo.adjust_count(cart, 1)

        log.info("cart.order_added", orders_count=cart.orders_count)
        self._publish(cart, "add_order", before)
        return cart

    @transaction.atomic
    def remove_order(self, cart_id: str, order_id: str) -> Cart:
        """Take an order that is still under purchase out of an open cart.

        Raises:
            OrderNotFound / CartNotFound: either side does not exist.
            OrderNotInCart: the order belongs to another cart or none.
            OrderNotEligibleForCart: the order is no longer under purchase.
            CartClosed: the cart is closed.
        """
        order = self._lock_order(order_id)
        log = logger.bind(cart_id=str(cart_id), order_id=str(order_id))

        if order.cart_id is None or str(order.cart_id) != str(cart_id):
            raise OrderNotInCart("Order is not in this cart.")
        if order.position != OrderPosition.UNDER_PURCHASE:
            log.warning("cart.remove_after_purchase", position=order.position)
            raise OrderNotEligibleForCart("Only orders still under purchase can leave a cart.")

        cart = self._lock_open_cart(cart_id)
        before = _snapshot(cart)
        self.detach(order, cart)

        log.info("cart.order_removed", orders_count=cart.orders_count)
        self._publish(cart, "remove_order", before)
        self.close_if_complete(cart.id)
        return cart

    def lock_cart(self, cart_id) -> Optional[Cart]:
        """Lock a cart row, open or closed; ``None`` when it does not exist."""
        return self._repo.get_for_update(str(cart_id))

    def detach(self, order: Order, cart: Cart) -> None:
        """Drop the membership of a locked order; the caller holds the cart lock."""
        order.cart = None
        order.save(update_fields=["cart"])
        invoice = order.invoice
        invoice.cart = None
        invoice.save(update_fields=["cart"])
        self._repo.adjust_count(cart, -1)

    @transaction.atomic
    def close_if_complete(self, cart_id) -> bool:
        """Close the cart when every live member has been purchased.

        A cart with no live members stays open.  Returns ``True`` when this
        call closed the cart.
        """
        cart = self._repo.get_for_update(str(cart_id))
        if not cart or not cart.is_available:
            return False

        live = self._repo.members(cart).filter(is_archived=False).exclude(
            position=OrderPosition.CANCELLED
        )
        total = live.count()
        at_or_beyond = positions_at_or_beyond(OrderPosition.PURCHASED)
        purchased = live.filter(position__in=at_or_beyond).count()
        if total == 0 or purchased != total:
            return False

        before = _snapshot(cart)
        cart.is_available = False
        cart.closed_at = timezone.now()
        self._repo.save(cart)

        sums = live.aggregate(
            subtotal=models.Sum("invoice__total_amount"),
            expenses=models.Sum("invoice__expenses_amount"),
            discounts=models.Sum("invoice__discount_amount"),
        )
        subtotal = sums["subtotal"] or Decimal("0.00")
        expenses = sums["expenses"] or Decimal("0.00")
        discounts = sums["discounts"] or Decimal("0.00")
        purchase_invoice = self._repo.create_purchase_invoice(
            cart,
            {
                "orders_count": total,
                "subtotal": subtotal,
                "expenses_total": expenses,
                "discount_total": discounts,
                "total": subtotal + expenses - discounts,
            },
        )

        logger.info(
            "cart.auto_closed",
            cart_id=str(cart.id),
            orders_count=total,
            total=str(purchase_invoice.total),
        )
        self._publish(cart, "close", before)
        return True

    @transaction.atomic
    def recount(self, cart_id) -> Cart:
        """Repair ``orders_count`` from the actual membership.

        Raises:
            CartNotFound: the cart does not exist.
        """
        cart = self._repo.get_for_update(str(cart_id))
        if not cart:
            raise CartNotFound(f"Cart {cart_id} not found.")
        actual = self._repo.members(cart).count()
        if actual != cart.orders_count:
            logger.warning(
                "cart.counter_repaired",
                cart_id=str(cart.id),
                stored=cart.orders_count,
                actual=actual,
            )
            cart.orders_count = actual
            cart.save(update_fields=["orders_count"])
        return cart

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cart(self, cart_id: str) -> Cart:
        """Retrieve a single cart by ID.

        Raises:
            CartNotFound: the cart does not exist.
        """
        cart = self._repo.get_by_id(cart_id)
        if not cart:
            raise CartNotFound(f"Cart {cart_id} not found.")
        return cart

    def list_carts(self, is_available: Optional[bool] = None) -> models.QuerySet:
        filters = {} if is_available is None else {"is_available": is_available}
        return self._repo.list(filters)

    def members(self, cart: Cart) -> models.QuerySet:
        return self._repo.members(cart)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_order(self, order_id) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _lock_open_cart(self, cart_id) -> Cart:
        cart = self._repo.get_for_update(str(cart_id))
        if not cart:
            raise CartNotFound(f"Cart {cart_id} not found.")
        if not cart.is_available:
            logger.warning("cart.closed", cart_id=str(cart_id))
            raise CartClosed(f"Cart {cart.cart_number} is closed.")
        return cart

    def _publish(self, cart: Cart, action: str, before) -> None:
        self._bus.publish_on_commit(
            CartChanged(
                aggregate_id=cart.id,
                entity_type="cart",
                action=action,
                before=before,
                after=_snapshot(cart),
            )
        )


def _snapshot(cart: Cart):
    return snapshot(cart, CART_FIELDS)
