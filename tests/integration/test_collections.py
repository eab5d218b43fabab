"""Integration tests for collections and the delivery hand-over."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone
from freezegun import freeze_time

from modules.collections.constants import CollectionStatus
from modules.collections.exceptions import (
    CollectionNotReady,
    OrderNotInCollection,
    OrderNotReadyForDelivery,
)
from modules.collections.models import Collection
from modules.orders.constants import OrderPosition
from modules.orders.models import Order, OrderPositionHistory

pytestmark = pytest.mark.integration


class TestWindow:
    def test_window_boundary(self, customer):
        with freeze_time("2026-03-01 12:00:00"):
            collection = Collection.objects.create(customer=customer)
            now = timezone.now()
        assert collection.is_within_window(now + timedelta(days=4)) is True
        assert collection.is_within_window(now + timedelta(days=4, seconds=1)) is False

    def test_available_for_customer(self, collection_service, make_order, customer):
        order = make_order()
        stale = Collection.objects.create(customer=customer)
        Collection.objects.filter(pk=stale.pk).update(
            created_at=timezone.now() - timedelta(days=10)
        )

        available = collection_service.available_for_customer(customer.id)

        assert [c.id for c in available] == [order.collection_id]


class TestStatus:
    def test_status_follows_members(self, collection_service, order_service, make_order):
        first = make_order()
        second = make_order()
        collection_id = first.collection_id

        status = collection_service.get_collection(collection_id).status
        assert status == CollectionStatus.IN_PROGRESS

        order_service.advance_position(first.id, OrderPosition.READY_FOR_DELIVERY)
        assert collection_service.get_collection(collection_id).status == CollectionStatus.PARTIAL

        order_service.cancel_order(second.id)
        collection = collection_service.get_collection(collection_id)
        assert collection.status == CollectionStatus.COMPLETE
        assert Collection.objects.get(pk=collection_id).status == CollectionStatus.COMPLETE


class TestSendToDelivery:
    def test_not_ready_reports_progress(self, collection_service, order_service, make_order):
        ready = make_order(position=OrderPosition.READY_FOR_DELIVERY)
        make_order()
        make_order(position=OrderPosition.PREPARING)

        with pytest.raises(CollectionNotReady) as exc_info:
            collection_service.send_to_delivery(ready.collection_id)

        assert exc_info.value.detail == "1/3 orders are ready for delivery."
        ready.refresh_from_db()
        assert ready.position == OrderPosition.READY_FOR_DELIVERY

    def test_sends_every_live_member(self, collection_service, order_service, make_order):
        orders = [make_order(position=OrderPosition.READY_FOR_DELIVERY) for _ in range(2)]
        cancelled = make_order()
        order_service.cancel_order(cancelled.id)

        collection = collection_service.send_to_delivery(orders[0].collection_id)

        assert collection.status == CollectionStatus.COMPLETE
        positions = set(
            Order.objects.filter(pk__in=[o.pk for o in orders]).values_list("position", flat=True)
        )
        assert positions == {OrderPosition.OUT_FOR_DELIVERY}
        assert OrderPositionHistory.objects.filter(
            new_position=OrderPosition.OUT_FOR_DELIVERY
        ).count() == 2
        cancelled.refresh_from_db()
        assert cancelled.position == OrderPosition.CANCELLED

    def test_archived_member_does_not_block_delivery(
        self, collection_service, order_service, make_order
    ):
        ready = make_order(position=OrderPosition.READY_FOR_DELIVERY)
        shelved = make_order(position=OrderPosition.PREPARING)
        order_service.archive_order(shelved.id)

        assert (
            collection_service.get_collection(ready.collection_id).status
            == CollectionStatus.COMPLETE
        )
        collection_service.send_to_delivery(ready.collection_id)

        ready.refresh_from_db()
        shelved.refresh_from_db()
        assert ready.position == OrderPosition.OUT_FOR_DELIVERY
        assert shelved.position == OrderPosition.PREPARING

    def test_empty_collection_is_not_ready(self, collection_service, customer):
        collection = collection_service.resolve_or_create_for_customer(customer)
        with pytest.raises(CollectionNotReady):
            collection_service.send_to_delivery(collection.id)


class TestSendOne:
    def test_sends_single_order(self, collection_service, make_order, operator):
        ready = make_order(position=OrderPosition.READY_FOR_DELIVERY)
        make_order()

        order = collection_service.send_one_to_delivery(
            ready.collection_id, ready.id, user_id=operator.pk
        )

        assert order.position == OrderPosition.OUT_FOR_DELIVERY
        last = OrderPositionHistory.objects.filter(order=ready).order_by("created_at").last()
        assert last.user_id == operator.pk
        status = collection_service.get_collection(ready.collection_id).status
        assert status == CollectionStatus.PARTIAL

    def test_order_not_ready(self, collection_service, make_order):
        order = make_order(position=OrderPosition.PREPARING)
        with pytest.raises(OrderNotReadyForDelivery):
            collection_service.send_one_to_delivery(order.collection_id, order.id)

    def test_order_of_another_collection(self, collection_service, make_order, other_customer):
        mine = make_order(position=OrderPosition.READY_FOR_DELIVERY)
        theirs = make_order(
            position=OrderPosition.READY_FOR_DELIVERY, customer_phone=other_customer.phone
        )
        with pytest.raises(OrderNotInCollection):
            collection_service.send_one_to_delivery(mine.collection_id, theirs.id)


class TestCollectionApi:
    def test_send_all_not_ready_conflicts(self, auth_client, make_order):
        order = make_order()

        response = auth_client.post(f"/api/v1/collections/{order.collection_id}/send-all/")

        assert response.status_code == 409
        assert response.json()["errors"][0]["detail"] == "0/1 orders are ready for delivery."

    def test_available_requires_customer(self, auth_client):
        response = auth_client.get("/api/v1/collections/available/")
        assert response.status_code == 400

    def test_send_order(self, auth_client, make_order):
        order = make_order(position=OrderPosition.READY_FOR_DELIVERY)

        response = auth_client.post(
            f"/api/v1/collections/{order.collection_id}/orders/{order.id}/send/"
        )

        assert response.status_code == 200
        assert response.json()["position"] == OrderPosition.OUT_FOR_DELIVERY
