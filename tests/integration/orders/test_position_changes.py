"""Integration tests for administrative position changes, cancellation,
archiving and deletion."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.collections.models import Collection
from modules.orders.constants import OrderPosition, PaymentMethod
from modules.orders.dtos import ConfirmPurchaseDTO
from modules.orders.exceptions import InvalidOrderPosition, OrderClosed, OrderNotFound
from modules.orders.models import Order

pytestmark = pytest.mark.integration


class TestAdvancePosition:
    def test_moves_forward_and_back(self, order_service, make_order):
        order = make_order()

        order = order_service.advance_position(order.id, OrderPosition.RECEIVED_ABROAD)
        assert order.position == OrderPosition.RECEIVED_ABROAD

        order = order_service.advance_position(order.id, OrderPosition.UNDER_PURCHASE)
        assert order.position == OrderPosition.UNDER_PURCHASE

    def test_cancelled_is_not_a_target(self, order_service, make_order):
        order = make_order()
        with pytest.raises(InvalidOrderPosition):
            order_service.advance_position(order.id, OrderPosition.CANCELLED)

    def test_unknown_position(self, order_service, make_order):
        order = make_order()
        with pytest.raises(InvalidOrderPosition) as exc_info:
            order_service.advance_position(order.id, 99)
        assert exc_info.value.attr == "position"

    def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.advance_position("00000000-0000-0000-0000-000000000000", 2)

    def test_cancelled_order_is_closed(self, order_service, make_order):
        order = make_order()
        order_service.cancel_order(order.id)
        with pytest.raises(OrderClosed):
            order_service.advance_position(order.id, OrderPosition.PURCHASED)

    def test_archived_order_is_closed(self, order_service, make_order):
        order = make_order()
        order_service.archive_order(order.id)
        with pytest.raises(OrderClosed):
            order_service.advance_position(order.id, OrderPosition.PURCHASED)


class TestCancelOrder:
    def test_cancel_subtracts_collection_totals(self, order_service, make_order):
        keep = make_order()
        drop = make_order(prepaid_value=Decimal("10.00"))

        order_service.cancel_order(drop.id, notes="Customer changed mind")

        collection = Collection.objects.get(pk=keep.collection_id)
        assert collection.total == Decimal("108.20")
        assert collection.prepaid_value == Decimal("0.00")

    def test_cancel_twice(self, order_service, make_order):
        order = make_order()
        order_service.cancel_order(order.id)
        with pytest.raises(OrderClosed):
            order_service.cancel_order(order.id)

    def test_cancel_detaches_from_open_cart(self, order_service, cart_service, make_order):
        order = make_order(position=OrderPosition.UNDER_PURCHASE)
        cart = cart_service.open_cart()
        cart_service.add_order(cart.id, order.id)

        cancelled = order_service.cancel_order(order.id)

        cart.refresh_from_db()
        assert cancelled.position == OrderPosition.CANCELLED
        assert cancelled.cart_id is None
        assert cancelled.invoice.cart_id is None
        assert cart.orders_count == 0
        assert cart.is_available is True

    def test_cancel_closes_cart_when_rest_is_purchased(
        self, order_service, cart_service, make_order, fund_foreign
    ):
        fund_foreign(cash=Decimal("500"))
        bought = make_order(position=OrderPosition.UNDER_PURCHASE)
        dropped = make_order(position=OrderPosition.UNDER_PURCHASE)
        cart = cart_service.open_cart()
        cart_service.add_order(cart.id, bought.id)
        cart_service.add_order(cart.id, dropped.id)

        order_service.confirm_purchase(
            bought.id, ConfirmPurchaseDTO(payment_method=PaymentMethod.CASH)
        )
        order_service.cancel_order(dropped.id)

        cart.refresh_from_db()
        assert cart.is_available is False
        assert cart.orders_count == 1

    def test_cancel_detaches_from_open_box(self, order_service, box_service, make_order):
        order = make_order(position=OrderPosition.PURCHASED)
        box = box_service.create_box("BX-100")
        box_service.add_order(box.id, order.id)

        cancelled = order_service.cancel_order(order.id)

        box.refresh_from_db()
        assert cancelled.box_id is None
        assert box.orders_count == 0

    def test_closed_box_keeps_its_member(self, order_service, box_service, make_order):
        order = make_order(position=OrderPosition.PURCHASED)
        box = box_service.create_box("BX-101")
        box_service.add_order(box.id, order.id)
        box_service.close_box(box.id)

        cancelled = order_service.cancel_order(order.id)

        box.refresh_from_db()
        assert cancelled.box_id == box.id
        assert box.orders_count == 1


class TestArchiveAndDelete:
    def test_archive_twice(self, order_service, make_order):
        order = make_order()
        assert order_service.archive_order(order.id).is_archived is True
        with pytest.raises(OrderClosed):
            order_service.archive_order(order.id)

    def test_archive_releases_open_box_and_collection_totals(
        self, order_service, box_service, make_order
    ):
        keep = make_order(position=OrderPosition.PURCHASED)
        shelved = make_order(position=OrderPosition.PURCHASED, prepaid_value=Decimal("5.00"))
        box = box_service.create_box("BX-210")
        box_service.add_order(box.id, keep.id)
        box_service.add_order(box.id, shelved.id)

        order_service.archive_order(shelved.id)

        box.refresh_from_db()
        shelved.refresh_from_db()
        assert shelved.box_id is None
        assert box.orders_count == 1
        collection = Collection.objects.get(pk=keep.collection_id)
        assert collection.total == Decimal("108.20")
        assert collection.prepaid_value == Decimal("0.00")

    def test_archive_cancelled_order_does_not_subtract_twice(self, order_service, make_order):
        keep = make_order()
        drop = make_order()
        order_service.cancel_order(drop.id)

        order_service.archive_order(drop.id)
        order_service.delete_order(drop.id)

        assert Collection.objects.get(pk=keep.collection_id).total == Decimal("108.20")

    def test_delete_keeps_counters_and_totals(self, order_service, box_service, make_order):
        keep = make_order(position=OrderPosition.PURCHASED)
        drop = make_order(position=OrderPosition.PURCHASED)
        box = box_service.create_box("BX-200")
        box_service.add_order(box.id, keep.id)
        box_service.add_order(box.id, drop.id)

        order_service.delete_order(drop.id)

        box.refresh_from_db()
        assert box.orders_count == 1
        assert not Order.objects.filter(pk=drop.pk).exists()
        assert Collection.objects.get(pk=keep.collection_id).total == Decimal("108.20")

    def test_delete_cancelled_order_does_not_subtract_twice(self, order_service, make_order):
        keep = make_order()
        drop = make_order()
        order_service.cancel_order(drop.id)

        order_service.delete_order(drop.id)

        assert Collection.objects.get(pk=keep.collection_id).total == Decimal("108.20")

    def test_delete_unknown(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.delete_order("not-a-uuid")
