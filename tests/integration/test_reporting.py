"""Integration tests for the read-only reports."""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from rest_framework.test import APIClient

from modules.carts.exceptions import CartNotFound
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.orders.constants import OrderPosition, PaymentMethod, PurchaseMethod
from modules.orders.dtos import ConfirmPurchaseDTO
from modules.reporting.services import ReportingService

pytestmark = pytest.mark.integration


@pytest.fixture()
def reporting(order_repository):
    carts = CartService(CartDjangoRepository(), order_repository)
    return ReportingService(order_repository, carts)


@pytest.fixture()
def book(make_order, order_service, fund_foreign, payment_card):
    """Six orders spread over the positions the reports distinguish."""
    fund_foreign(cash=Decimal("500.00"), card=Decimal("500.00"))
    orders = {
        "new": make_order(),
        "cash": make_order(position=OrderPosition.UNDER_PURCHASE),
        "card": make_order(position=OrderPosition.UNDER_PURCHASE),
        "pending": make_order(position=OrderPosition.UNDER_PURCHASE, prepaid_value=Decimal("20")),
        "cancelled": make_order(),
        "archived": make_order(),
    }
    order_service.confirm_purchase(
        orders["cash"].id,
        ConfirmPurchaseDTO(
            payment_method=PaymentMethod.CASH,
            discount=Decimal("3.00"),
            expenses=Decimal("1.00"),
        ),
    )
    order_service.confirm_purchase(
        orders["card"].id,
        ConfirmPurchaseDTO(
            payment_method=PaymentMethod.CARD,
            purchase_method=PurchaseMethod.MALL,
            card_id=payment_card.id,
        ),
    )
    order_service.cancel_order(orders["cancelled"].id)
    order_service.archive_order(orders["archived"].id)
    return orders


class TestOrdersByPosition:
    def test_every_position_is_listed(self, reporting):
        rows = reporting.orders_by_position()

        assert [row.position for row in rows] == [p.value for p in OrderPosition]
        assert all(row.order_count == 0 for row in rows)

    def test_counts_and_settled_amounts(self, reporting, book):
        rows = {row.position: row for row in reporting.orders_by_position()}

        assert rows[OrderPosition.NEW].order_count == 1
        assert rows[OrderPosition.UNDER_PURCHASE].order_count == 1
        assert rows[OrderPosition.CANCELLED].order_count == 1
        purchased = rows[OrderPosition.PURCHASED]
        assert purchased.order_count == 2
        assert purchased.cash_amount == Decimal("106.20")
        assert purchased.card_amount == Decimal("108.20")
        assert purchased.discount_amount == Decimal("3.00")
        assert purchased.expenses_amount == Decimal("1.00")


class TestSummaries:
    def test_statistics(self, reporting, book):
        stats = reporting.statistics_summary()

        assert stats.total_orders == 6
        assert stats.archived_orders == 1
        assert stats.cancelled_orders == 1
        assert stats.active_orders == 4

    def test_financial(self, reporting, book):
        summary = reporting.financial_summary()

        assert summary.cash_orders == 1
        assert summary.cash_total == Decimal("106.20")
        assert summary.card_orders == 1
        assert summary.card_total == Decimal("108.20")
        assert summary.under_purchase_orders == 1
        assert summary.under_purchase_deposits == Decimal("20.00")
        assert summary.total_revenue == Decimal("214.40")
        assert summary.total_discounts == Decimal("3.00")
        assert summary.total_expenses == Decimal("1.00")
        assert summary.total_orders == 5
        assert summary.net_revenue == Decimal("212.40")

    def test_financial_without_orders_is_zero(self, reporting):
        summary = reporting.financial_summary()

        assert summary.total_revenue == Decimal("0.00")
        assert summary.net_revenue == Decimal("0.00")
        assert summary.total_orders == 0

    def test_payment_method_breakdown(self, reporting, book):
        rows = {row.method: row for row in reporting.payment_method_breakdown()}

        assert set(rows) == {PaymentMethod.CASH, PaymentMethod.CARD}
        assert rows[PaymentMethod.CASH].cash_total == Decimal("106.20")
        assert rows[PaymentMethod.CASH].discount_total == Decimal("3.00")
        assert rows[PaymentMethod.CARD].card_total == Decimal("108.20")
        assert rows[PaymentMethod.CARD].cash_total == Decimal("0.00")

    def test_purchase_method_breakdown_counts_settled_only(self, reporting, book):
        rows = {row.method: row.order_count for row in reporting.purchase_method_breakdown()}

        assert rows == {PurchaseMethod.MALL: 1, PurchaseMethod.ONLINE: 1}


class TestCartSummary:
    def test_progress_of_members(self, reporting, cart_service, order_service, make_order):
        cart = cart_service.open_cart()
        bought = make_order(position=OrderPosition.UNDER_PURCHASE, foreign_price=None)
        waiting = make_order(position=OrderPosition.UNDER_PURCHASE)
        cart_service.add_order(cart.id, bought.id)
        cart_service.add_order(cart.id, waiting.id)
        order_service.confirm_purchase(
            bought.id, ConfirmPurchaseDTO(payment_method=PaymentMethod.CASH)
        )

        summary = reporting.cart_summary(cart.id)

        assert summary.cart_number == cart.cart_number
        assert summary.is_available is True
        assert summary.orders_count == 2
        assert summary.actual_orders_count == 2
        assert summary.pending_orders == 1
        assert summary.purchased_orders == 1
        assert summary.completed_orders == 0

    def test_unknown_cart(self, reporting):
        with pytest.raises(CartNotFound):
            reporting.cart_summary("00000000-0000-0000-0000-000000000000")


class TestReportsApi:
    def test_statistics_endpoint(self, auth_client, book):
        response = auth_client.get("/api/v1/reports/statistics/")

        assert response.status_code == 200
        data = response.json()
        assert data["total_orders"] == 6
        assert len(data["by_position"]) == len(OrderPosition)

    def test_financial_endpoint(self, auth_client, book):
        response = auth_client.get("/api/v1/reports/financial/")

        assert response.status_code == 200
        assert Decimal(response.json()["net_revenue"]) == Decimal("212.40")

    @pytest.mark.parametrize(
        "path", ["orders-by-position", "payment-methods", "purchase-methods"]
    )
    def test_list_endpoints(self, auth_client, path):
        response = auth_client.get(f"/api/v1/reports/{path}/")

        assert response.status_code == 200
        assert isinstance(response.json(), list)

    def test_cart_endpoint(self, auth_client, cart_service):
        cart = cart_service.open_cart()

        response = auth_client.get(f"/api/v1/reports/carts/{cart.id}/")

        assert response.status_code == 200
        assert response.json()["cart_number"] == cart.cart_number

    def test_reports_need_their_own_permission(self):
        user = get_user_model().objects.create_user(username="clerk", password="clerk-pass")
        user.user_permissions.add(
            Permission.objects.get(codename="view_order", content_type__app_label="orders")
        )
        client = APIClient()
        client.force_authenticate(user=user)

        assert client.get("/api/v1/reports/statistics/").status_code == 403
        assert client.get("/api/v1/orders/").status_code == 200
