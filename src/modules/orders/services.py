"""Order service layer (Use Cases).

Orchestrates order creation, administrative position changes, purchase
confirmation, cancellation and archiving.  All write operations are atomic:
the service defines the unit-of-work boundary, and every collaborator it
calls joins the same transaction.

Business rules enforced:
- A new order joins the customer's collection only inside its window.
- Cancelled or archived orders accept no further changes.
- Confirming a purchase debits the foreign treasury, settles the invoice,
  marks the order purchased and may close its cart, all or nothing.
- Cancelling detaches the order from an open cart or box and takes it out
  of its collection totals.

Locks are taken order first, then cart or box, then treasury.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.conf import settings
from django.db import models, transaction
from django.utils import timezone

from modules.core.audit import snapshot
from modules.orders.constants import OrderPosition, PaymentBy, PaymentMethod
from modules.orders.events import (
    OrderArchived,
    OrderCancelled,
    OrderCreated,
    OrderDeleted,
    OrderPositionChanged,
    OrderPurchaseConfirmed,
)
from modules.orders.exceptions import (
    InvalidOrderPosition,
    InvalidSettlement,
    OrderClosed,
    OrderNotFound,
    OrderNotUnderPurchase,
)
from modules.pricing.calculators import adjust_for_shipping, quantize, quote
from modules.treasury.constants import Currency, Subaccount
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.boxes.services import BoxService
    from modules.carts.services import CartService
    from modules.collections.services import CollectionService
    from modules.customers.services import CustomerService
    from modules.orders.dtos import ConfirmPurchaseDTO, CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.treasury.services import PaymentCardService, TreasuryLedger
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

ORDER_FIELDS = ("order_number", "position", "cart", "box", "collection", "is_archived")

ZERO = Decimal("0.00")

PAYMENT_SUBACCOUNTS = {
    PaymentMethod.CASH: Subaccount.CASH,
    PaymentMethod.CARD: Subaccount.CARD,
}


class OrderService:
    """Application service for Order use-cases.

    Receives its repository and the collaborating services via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_service: CustomerService,
        collection_service: CollectionService,
        cart_service: CartService,
        box_service: BoxService,
        ledger: TreasuryLedger,
        payment_cards: PaymentCardService,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._order_repo = order_repository
        self._customers = customer_service
        self._collections = collection_service
        self._carts = cart_service
        self._boxes = box_service
        self._ledger = ledger
        self._cards = payment_cards
        self._bus = event_bus or default_event_bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, user_id: Optional[int] = None) -> Order:
        """Create an order for the customer behind ``dto.customer_phone``.

        Steps:
        1. Resolve the customer by handle.
        2. Use the chosen collection, or the customer's open one, or a new one.
        3. Price the item when a foreign price is given.
        4. Persist order, detail and invoice shell at NEW.
        5. Add the invoice total and prepaid value to the collection.

        Raises:
            CustomerNotFound: no active customer has that handle.
            CollectionNotAvailable: the chosen collection is not open for
                the customer.
        """
        customer = self._customers.resolve_by_handle(dto.customer_phone)
        log = logger.bind(customer_id=str(customer.id))
        log.info("order.creation_started")

        if dto.collection_id:
            collection = self._collections.validate_for_customer(dto.collection_id, customer)
        else:
            collection = self._collections.resolve_or_create_for_customer(customer)

        detail: Dict[str, Any] = {
            "title": dto.title,
            "color": dto.color,
            "size": dto.size,
            "product_link": dto.product_link,
            "image_url": dto.image_url,
            "description": dto.description,
            "prepaid_value": quantize(dto.prepaid_value),
            "city_id": dto.city_id,
            "area_id": dto.area_id,
            "payment_by": dto.payment_by,
        }
        invoice: Dict[str, Any] = {}
        if dto.foreign_price is not None:
            price = quote(dto.foreign_price)
            detail.update(
                original_price=price.foreign_price,
                local_price=price.local_price,
                commission=price.commission,
                total=price.total,
                deposit_amount=price.deposit,
            )
            invoice = {
                "item_price": price.total,
                "total_amount": adjust_for_shipping(
                    price.total,
                    settings.SHIPPING_COST,
                    payer_is_receiver=dto.payment_by == PaymentBy.RECEIVER,
                ),
            }

        order = self._order_repo.create(
            {
                "customer": customer,
                "collection": collection,
                "notes": dto.notes,
                "detail": detail,
                "invoice": invoice,
                "user_id": user_id,
            }
        )
        self._collections.add_totals(
            collection,
            order.invoice.total_amount,
            order.detail.prepaid_value,
        )

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            collection_id=str(collection.id),
            total_amount=str(order.invoice.total_amount),
        )
        self._publish(OrderCreated, order, "create", None, user_id)
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def advance_position(
        self,
        order_id: str,
        new_position: int,
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> Order:
        """Move an order to any position except CANCELLED.

        Staff corrections are allowed in both directions; no container is
        touched.

        Raises:
            OrderNotFound: the order does not exist.
            InvalidOrderPosition: unknown target, or CANCELLED.
            OrderClosed: the order is cancelled or archived.
        """
        if new_position not in OrderPosition.values:
            raise InvalidOrderPosition(f"Unknown position {new_position}.", attr="position")
        target = OrderPosition(new_position)
        if target == OrderPosition.CANCELLED:
            raise InvalidOrderPosition(
                "Use the cancel operation to cancel an order.", attr="position"
            )

        order = self._lock_open_order(order_id)
        before = snapshot(order, ORDER_FIELDS)
        log = logger.bind(
            order_id=str(order.id),
            old_position=int(order.position),
            new_position=int(target),
        )

        order.position = target
        order._position_change_notes = notes
        order._position_change_user_id = user_id
        self._order_repo.save(order)

        log.info("order.position_changed")
        self._publish(OrderPositionChanged, order, "advance_position", before, user_id)
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def confirm_purchase(
        self,
        order_id: str,
        dto: ConfirmPurchaseDTO,
        user_id: Optional[int] = None,
    ) -> Order:
        """Settle the purchase of an order and mark it purchased.

        ``amount_to_pay = total_amount - prepaid - discount + expenses`` is
        debited from the foreign sub-balance that matches the payment method.
        A card payment names the registered card it was charged to.
        The debit, the invoice, the position and the cart closure commit or
        roll back together.

        Raises:
            OrderNotFound: the order does not exist.
            OrderClosed: the order is cancelled or archived.
            OrderNotUnderPurchase: the order is not under purchase, which is
                also how a repeated confirmation fails.
            InvalidSettlement: negative discount, expenses or amount to pay,
                or a card payment without a card.
            PaymentCardNotFound: the card is not registered.
            InsufficientBalance: the treasury cannot cover the amount.
        """
        order = self._lock_open_order(order_id)
        log = logger.bind(order_id=str(order.id), payment_method=dto.payment_method)

        if order.position != OrderPosition.UNDER_PURCHASE:
            log.warning("order.confirm_not_under_purchase", position=int(order.position))
            raise OrderNotUnderPurchase(
                f"Order {order.order_number} is {order.get_position_display().lower()}, "
                "only orders under purchase can be confirmed."
            )
        if dto.discount < 0:
            raise InvalidSettlement("Discount must not be negative.", attr="discount")
        if dto.expenses < 0:
            raise InvalidSettlement("Expenses must not be negative.", attr="expenses")

        before = snapshot(order, ORDER_FIELDS)
        invoice = order.invoice
        discount = quantize(dto.discount)
        expenses = quantize(dto.expenses)
        amount = quantize(
            invoice.total_amount - order.detail.prepaid_value - discount + expenses
        )
        if amount < 0:
            log.warning("order.negative_amount_to_pay", amount=str(amount))
            raise InvalidSettlement(
                f"Amount to pay would be negative ({amount}).", attr="discount"
            )

        card = None
        if dto.payment_method == PaymentMethod.CARD:
            if dto.card_id is None:
                raise InvalidSettlement("Card payments must name a card.", attr="card_id")
            card = self._cards.get_card(str(dto.card_id), attr="card_id")

        # cart before treasury
        if order.cart_id:
            self._carts.lock_cart(order.cart_id)
        if amount > 0:
            self._ledger.debit(
                Currency.FOREIGN,
                PAYMENT_SUBACCOUNTS[dto.payment_method],
                amount,
                reference=order.order_number,
                notes="Purchase confirmation",
                user_id=user_id,
            )

        invoice.payment_method = dto.payment_method
        invoice.purchase_method = dto.purchase_method
        invoice.discount_amount = discount
        invoice.expenses_amount = expenses
        invoice.expenses_notes = dto.expenses_notes
        invoice.cash_amount = amount if dto.payment_method == PaymentMethod.CASH else ZERO
        invoice.card_paid_amount = amount if dto.payment_method == PaymentMethod.CARD else ZERO
        invoice.amount_paid = amount
        invoice.card = card
        invoice.settled_at = timezone.now()
        self._order_repo.save_invoice(invoice)

        order.position = OrderPosition.PURCHASED
        order._position_change_notes = "Purchase confirmed"
        order._position_change_user_id = user_id
        self._order_repo.save(order)

        cart_closed = False
        if order.cart_id:
            cart_closed = self._carts.close_if_complete(order.cart_id)

        log.info("order.purchase_confirmed", amount_paid=str(amount), cart_closed=cart_closed)
        self._publish(OrderPurchaseConfirmed, order, "confirm_purchase", before, user_id)
        self._publish(OrderPositionChanged, order, "advance_position", before, user_id)
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def cancel_order(
        self,
        order_id: str,
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> Order:
        """Cancel an order and drop it from its open containers.

        An open cart is re-evaluated afterwards: when the cancelled order
        was the last one not yet purchased, the cart closes.

        Raises:
            OrderNotFound: the order does not exist.
            OrderClosed: the order is already cancelled or archived.
        """
        order = self._lock_open_order(order_id)
        before = snapshot(order, ORDER_FIELDS)
        log = logger.bind(order_id=str(order.id), old_position=int(order.position))

        cart_id = self._release_containers(order, log)

        order.position = OrderPosition.CANCELLED
        order._position_change_notes = notes or "Order cancelled"
        order._position_change_user_id = user_id
        self._order_repo.save(order)

        self._release_collection_totals(order)
        if cart_id:
            self._carts.close_if_complete(cart_id)

        log.info("order.cancelled")
        self._publish(OrderCancelled, order, "cancel", before, user_id)
        self._publish(OrderPositionChanged, order, "advance_position", before, user_id)
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def archive_order(self, order_id: str, user_id: Optional[int] = None) -> Order:
        """Archive an order; archived orders are closed for good.

        A live order leaves its open cart or box and its collection totals
        the same way a cancelled one does.  A cancelled order has already
        been released, so archiving it only sets the flag.

        Raises:
            OrderNotFound: the order does not exist.
            OrderClosed: the order is already archived.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if order.is_archived:
            raise OrderClosed(f"Order {order.order_number} is already archived.")

        before = snapshot(order, ORDER_FIELDS)
        log = logger.bind(order_id=str(order.id), position=int(order.position))
        was_live = order.position != OrderPosition.CANCELLED

        cart_id = self._release_containers(order, log) if was_live else None
        order.is_archived = True
        self._order_repo.save(order)

        if was_live:
            self._release_collection_totals(order)
        if cart_id:
            self._carts.close_if_complete(cart_id)

        log.info("order.archived")
        self._publish(OrderArchived, order, "archive", before, user_id)
        return order

    @transaction.atomic
    def delete_order(self, order_id: str, user_id: Optional[int] = None) -> None:
        """Remove an order for good, keeping container counters and totals right.

        Raises:
            OrderNotFound: the order does not exist.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        before = snapshot(order, ORDER_FIELDS)
        aggregate_id = order.id

        if order.cart_id:
            cart = self._carts.lock_cart(order.cart_id)
            if cart:
                self._carts.detach(order, cart)
        if order.box_id:
            box = self._boxes.lock_box(order.box_id)
            if box:
                self._boxes.detach(order, box)
        if not order.is_closed:
            self._release_collection_totals(order)

        self._order_repo.delete(order)
        self._bus.publish_on_commit(
            OrderDeleted(
                aggregate_id=aggregate_id,
                entity_type="order",
                action="delete",
                before=before,
                after=None,
                actor_id=str(user_id) if user_id else None,
            )
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Return orders, optionally filtered with ORM look-ups."""
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _release_containers(self, order: Order, log) -> Optional[Any]:
        """Detach ``order`` from an open cart or box; returns the cart id it left."""
        cart_id = None
        if order.cart_id:
            cart = self._carts.lock_cart(order.cart_id)
            if cart and cart.is_available:
                self._carts.detach(order, cart)
                cart_id = cart.id
                log.info("order.detached_from_cart", cart_id=str(cart.id))
        if order.box_id:
            box = self._boxes.lock_box(order.box_id)
            if box and box.is_available:
                self._boxes.detach(order, box)
                log.info("order.detached_from_box", box_id=str(box.id))
        return cart_id

    def _release_collection_totals(self, order: Order) -> None:
        if order.collection_id:
            self._collections.add_totals(
                order.collection,
                -order.invoice.total_amount,
                -order.detail.prepaid_value,
            )

    def _lock_open_order(self, order_id) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if order.is_closed:
            logger.warning(
                "order.closed_rejected",
                order_id=str(order.id),
                position=int(order.position),
                is_archived=order.is_archived,
            )
            raise OrderClosed(f"Order {order.order_number} is closed to changes.")
        return order

    def _publish(self, event_cls, order: Order, action: str, before, user_id) -> None:
        self._bus.publish_on_commit(
            event_cls(
                aggregate_id=order.id,
                entity_type="order",
                action=action,
                before=before,
                after=snapshot(order, ORDER_FIELDS),
                actor_id=str(user_id) if user_id else None,
            )
        )
