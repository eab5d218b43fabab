"""Integration tests for the Order endpoints.

Covers:
- Success paths: create 201, list (paginated, filtered), retrieve, position
  change, purchase confirmation, cancel, archive, delete 204.
- Error envelope: validation 400, missing customer 404, closed order and
  insufficient funds 409.
- Authorization: 401 without credentials, 403 without the action permission.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.constants import OrderPosition
from modules.orders.models import Order

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def _detail_url(order_id) -> str:
    return f"{ORDERS_URL}{order_id}/"


def _payload(**overrides):
    data = {
        "customer_phone": "0911000001",
        "title": "Silk scarf",
        "city_id": 1,
        "area_id": 3,
        "foreign_price": "10.00",
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_create_returns_201(self, auth_client, customer):
        response = auth_client.post(ORDERS_URL, _payload(), format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["position"] == OrderPosition.NEW
        assert data["position_name"] == "New"
        assert data["customer_name"] == customer.name
        assert data["detail"]["total"] == "88.20"
        assert data["invoice"]["total_amount"] == "108.20"
        assert len(data["position_history"]) == 1

    def test_missing_title_returns_400(self, auth_client, customer):
        payload = _payload()
        del payload["title"]

        response = auth_client.post(ORDERS_URL, payload, format="json")

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "validation_error"
        assert body["errors"][0]["attr"] == "title"

    def test_unknown_customer_returns_404(self, auth_client):
        response = auth_client.post(
            ORDERS_URL, _payload(customer_phone="0919999999"), format="json"
        )

        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "customer_not_found"
        assert Order.objects.count() == 0

    def test_requires_authentication(self, api_client, customer):
        response = api_client.post(ORDERS_URL, _payload(), format="json")
        assert response.status_code == 401

    def test_requires_permission(self, plain_client, customer):
        response = plain_client.post(ORDERS_URL, _payload(), format="json")
        assert response.status_code == 403
        assert Order.objects.count() == 0


# ---------------------------------------------------------------------------
# List / Retrieve
# ---------------------------------------------------------------------------


class TestReadOrders:
    def test_list_is_paginated(self, auth_client, make_order):
        for _ in range(3):
            make_order()

        response = auth_client.get(ORDERS_URL, {"page_size": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 3
        assert len(data["results"]) == 2
        assert data["next"] is not None
        assert data["results"][0]["total_amount"] == "108.20"

    def test_filter_by_position(self, auth_client, make_order):
        make_order()
        under_purchase = make_order(position=OrderPosition.UNDER_PURCHASE)

        response = auth_client.get(ORDERS_URL, {"position": OrderPosition.UNDER_PURCHASE})

        ids = [row["id"] for row in response.json()["results"]]
        assert ids == [str(under_purchase.id)]

    def test_filter_by_customer(self, auth_client, make_order, other_customer):
        make_order()
        theirs = make_order(customer_phone=other_customer.phone)

        response = auth_client.get(ORDERS_URL, {"customer": str(other_customer.id)})

        ids = [row["id"] for row in response.json()["results"]]
        assert ids == [str(theirs.id)]

    def test_search_by_title(self, auth_client, make_order):
        make_order(title="Wireless earbuds")
        make_order(title="Leather handbag")

        response = auth_client.get(ORDERS_URL, {"search": "earbuds"})

        assert response.json()["count"] == 1

    def test_retrieve(self, auth_client, make_order):
        order = make_order()

        response = auth_client.get(_detail_url(order.id))

        assert response.status_code == 200
        assert response.json()["order_number"] == order.order_number

    def test_retrieve_unknown_returns_404(self, auth_client):
        response = auth_client.get(_detail_url("00000000-0000-0000-0000-000000000000"))
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestOrderCommands:
    def test_patch_advances_position(self, auth_client, make_order):
        order = make_order()

        response = auth_client.patch(
            _detail_url(order.id), {"position": OrderPosition.UNDER_PURCHASE}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["position"] == OrderPosition.UNDER_PURCHASE

    def test_patch_cannot_cancel(self, auth_client, make_order):
        order = make_order()

        response = auth_client.patch(
            _detail_url(order.id), {"position": OrderPosition.CANCELLED}, format="json"
        )

        assert response.status_code == 400

    def test_confirm_purchase(self, auth_client, make_order, fund_foreign, payment_card):
        order = make_order(position=OrderPosition.UNDER_PURCHASE)
        fund_foreign(card=Decimal("200"))

        response = auth_client.post(
            f"{_detail_url(order.id)}confirm-purchase/",
            {"payment_method": "card", "purchase_method": "mall", "card_id": str(payment_card.id)},
            format="json",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["position"] == OrderPosition.PURCHASED
        assert data["invoice"]["card_paid_amount"] == "108.20"
        assert data["invoice"]["card_id"] == str(payment_card.id)

    def test_confirm_purchase_insufficient_funds(self, auth_client, make_order):
        order = make_order(position=OrderPosition.UNDER_PURCHASE)

        response = auth_client.post(
            f"{_detail_url(order.id)}confirm-purchase/",
            {"payment_method": "cash"},
            format="json",
        )

        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "insufficient_funds"

    def test_cancel_then_patch_conflicts(self, auth_client, make_order):
        order = make_order()

        cancel = auth_client.post(f"{_detail_url(order.id)}cancel/", {}, format="json")
        patch = auth_client.patch(
            _detail_url(order.id), {"position": OrderPosition.PURCHASED}, format="json"
        )

        assert cancel.status_code == 200
        assert cancel.json()["position"] == OrderPosition.CANCELLED
        assert patch.status_code == 409
        assert patch.json()["errors"][0]["code"] == "conflict"

    def test_archive(self, auth_client, make_order):
        order = make_order()

        response = auth_client.post(f"{_detail_url(order.id)}archive/")

        assert response.status_code == 200
        assert response.json()["is_archived"] is True

    def test_delete(self, auth_client, make_order):
        order = make_order()

        response = auth_client.delete(_detail_url(order.id))

        assert response.status_code == 204
        assert not Order.objects.filter(pk=order.pk).exists()
