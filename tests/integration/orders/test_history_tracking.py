"""Integration tests for automatic OrderPositionHistory tracking."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.customers.models import Customer
from modules.orders.constants import OrderPosition
from modules.orders.models import Order, OrderPositionHistory
from modules.shipments.dtos import CreateShipmentDTO

pytestmark = pytest.mark.integration


def test_service_advance_generates_history(order_service, make_order, operator):
    order = make_order()

    order_service.advance_position(
        order.id, OrderPosition.UNDER_PURCHASE, notes="Buyer assigned", user_id=operator.pk
    )

    history = OrderPositionHistory.objects.filter(order=order).order_by("created_at")
    assert history.count() == 2
    last = history.last()
    assert last.old_position == OrderPosition.NEW
    assert last.new_position == OrderPosition.UNDER_PURCHASE
    assert last.notes == "Buyer assigned"
    assert last.user_id == operator.pk


def test_cancel_generates_history(order_service, make_order):
    order = make_order()

    order_service.cancel_order(order.id)

    last = OrderPositionHistory.objects.filter(order=order).order_by("created_at").last()
    assert last.new_position == OrderPosition.CANCELLED
    assert last.notes == "Order cancelled"


def test_saving_without_position_change_adds_nothing(make_order):
    order = make_order()
    order = Order.objects.get(pk=order.pk)
    order.notes = "Gift wrap"
    order.save()

    assert OrderPositionHistory.objects.filter(order=order).count() == 1


def test_model_create_and_update_generates_history():
    customer = Customer.objects.create(name="Direct", phone="0911000050")
    order = Order.objects.create(customer=customer, notes="Direct order")

    history = OrderPositionHistory.objects.filter(order=order).order_by("created_at")
    assert history.count() == 1
    assert history.first().new_position == OrderPosition.NEW

    order.position = OrderPosition.UNDER_PURCHASE
    order.save()

    assert history.count() == 2
    assert history.last().new_position == OrderPosition.UNDER_PURCHASE


def test_bulk_shipment_send_records_each_member(
    shipment_service, box_service, make_order, carrier
):
    orders = [make_order(position=OrderPosition.PURCHASED) for _ in range(2)]
    box = box_service.create_box("BX-H1")
    for order in orders:
        box_service.add_order(box.id, order.id)
    box_service.close_box(box.id)
    shipment = shipment_service.create_shipment(
        CreateShipmentDTO(
            box_id=box.id, carrier_id=carrier.id, sender_name="Warehouse", weight=Decimal("3")
        )
    )

    shipment_service.send_shipment(shipment.id)

    for order in orders:
        last = OrderPositionHistory.objects.filter(order=order).order_by("created_at").last()
        assert last.old_position == OrderPosition.PURCHASED
        assert last.new_position == OrderPosition.SHIPPING
        assert last.notes == "Shipment sent"
