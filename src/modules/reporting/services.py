"""Reporting service: derived, read-only projections.

Nothing here writes.  Every figure is computed from orders, invoices and
carts at call time; "live" orders are the ones that are not archived.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List

import structlog
from django.db.models import Count, Q, Sum

from modules.orders.constants import (
    OrderPosition,
    PaymentMethod,
    positions_at_or_beyond,
)
from modules.reporting.dtos import (
    CartSummaryDTO,
    FinancialSummaryDTO,
    MethodBreakdownDTO,
    PositionCountDTO,
    StatisticsSummaryDTO,
)

if TYPE_CHECKING:
    from modules.carts.services import CartService
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


def _money(value) -> Decimal:
    return value if value is not None else ZERO


class ReportingService:
    def __init__(self, order_repository: IOrderRepository, cart_service: CartService) -> None:
        self._order_repo = order_repository
        self._carts = cart_service

    def orders_by_position(self) -> List[PositionCountDTO]:
        """Live orders per position with their settled amounts; every position is listed."""
        rows = (
            self._order_repo.list({"is_archived": False})
            .order_by()
            .values("position")
            .annotate(
                order_count=Count("id"),
                cash_amount=Sum("invoice__cash_amount"),
                card_amount=Sum("invoice__card_paid_amount"),
                discount_amount=Sum("invoice__discount_amount"),
                expenses_amount=Sum("invoice__expenses_amount"),
            )
        )
        by_position = {row["position"]: row for row in rows}
        result = []
        for position in OrderPosition:
            row = by_position.get(position.value, {})
            result.append(
                PositionCountDTO(
                    position=position.value,
                    position_name=position.label,
                    order_count=row.get("order_count", 0),
                    cash_amount=_money(row.get("cash_amount")),
                    card_amount=_money(row.get("card_amount")),
                    discount_amount=_money(row.get("discount_amount")),
                    expenses_amount=_money(row.get("expenses_amount")),
                )
            )
        return result

    def statistics_summary(self) -> StatisticsSummaryDTO:
        counts = self._order_repo.list().aggregate(
            total=Count("id"),
            archived=Count("id", filter=Q(is_archived=True)),
            cancelled=Count(
                "id", filter=Q(is_archived=False, position=OrderPosition.CANCELLED)
            ),
        )
        active = counts["total"] - counts["archived"] - counts["cancelled"]
        return StatisticsSummaryDTO(
            total_orders=counts["total"],
            active_orders=active,
            cancelled_orders=counts["cancelled"],
            archived_orders=counts["archived"],
            by_position=self.orders_by_position(),
        )

    def financial_summary(self) -> FinancialSummaryDTO:
        """Settlement totals over all invoices.

        ``net_revenue`` is revenue less discounts plus expenses.
        """
        invoices = self._order_repo.list_invoices().aggregate(
            cash_orders=Count(
                "id",
                filter=Q(payment_method=PaymentMethod.CASH, cash_amount__isnull=False),
            ),
            cash_total=Sum(
                "cash_amount",
                filter=Q(payment_method=PaymentMethod.CASH, cash_amount__isnull=False),
            ),
            card_orders=Count(
                "id",
                filter=Q(payment_method=PaymentMethod.CARD, card_paid_amount__isnull=False),
            ),
            card_total=Sum(
                "card_paid_amount",
                filter=Q(payment_method=PaymentMethod.CARD, card_paid_amount__isnull=False),
            ),
            revenue_cash=Sum("cash_amount", filter=Q(payment_method__isnull=False)),
            revenue_card=Sum("card_paid_amount", filter=Q(payment_method__isnull=False)),
            discounts=Sum("discount_amount"),
            expenses=Sum("expenses_amount"),
        )
        under_purchase = self._order_repo.list(
            {"is_archived": False, "position": OrderPosition.UNDER_PURCHASE}
        ).aggregate(count=Count("id"), deposits=Sum("detail__prepaid_value"))
        total_orders = self._order_repo.list({"is_archived": False}).count()

        revenue = _money(invoices["revenue_cash"]) + _money(invoices["revenue_card"])
        discounts = _money(invoices["discounts"])
        expenses = _money(invoices["expenses"])
        summary = FinancialSummaryDTO(
            cash_orders=invoices["cash_orders"],
            cash_total=_money(invoices["cash_total"]),
            card_orders=invoices["card_orders"],
            card_total=_money(invoices["card_total"]),
            under_purchase_orders=under_purchase["count"],
            under_purchase_deposits=_money(under_purchase["deposits"]),
            total_revenue=revenue,
            total_discounts=discounts,
            total_expenses=expenses,
            total_orders=total_orders,
            net_revenue=revenue - discounts + expenses,
        )
        logger.debug("reporting.financial_summary", net_revenue=str(summary.net_revenue))
        return summary

    def payment_method_breakdown(self) -> List[MethodBreakdownDTO]:
        rows = (
            self._order_repo.list_invoices({"payment_method__isnull": False})
            .order_by("payment_method")
            .values("payment_method")
            .annotate(
                order_count=Count("id"),
                cash_total=Sum("cash_amount"),
                card_total=Sum("card_paid_amount"),
                discount_total=Sum("discount_amount"),
                expenses_total=Sum("expenses_amount"),
            )
        )
        return [
            MethodBreakdownDTO(
                method=row["payment_method"],
                order_count=row["order_count"],
                cash_total=_money(row["cash_total"]),
                card_total=_money(row["card_total"]),
                discount_total=_money(row["discount_total"]),
                expenses_total=_money(row["expenses_total"]),
            )
            for row in rows
        ]

    def purchase_method_breakdown(self) -> List[MethodBreakdownDTO]:
        """Only settled invoices count; an unsettled one has no purchase yet."""
        rows = (
            self._order_repo.list_invoices({"settled_at__isnull": False})
            .order_by("purchase_method")
            .values("purchase_method")
            .annotate(
                order_count=Count("id"),
                cash_total=Sum("cash_amount"),
                card_total=Sum("card_paid_amount"),
            )
        )
        return [
            MethodBreakdownDTO(
                method=row["purchase_method"],
                order_count=row["order_count"],
                cash_total=_money(row["cash_total"]),
                card_total=_money(row["card_total"]),
            )
            for row in rows
        ]

    def cart_summary(self, cart_id: str) -> CartSummaryDTO:
        """Progress of a cart's live members.

        Raises:
            CartNotFound: the cart does not exist.
        """
        cart = self._carts.get_cart(cart_id)
        counts = (
            self._carts.members(cart)
            .filter(is_archived=False)
            .aggregate(
                actual=Count("id"),
                pending=Count("id", filter=Q(position=OrderPosition.UNDER_PURCHASE)),
                purchased=Count("id", filter=Q(position=OrderPosition.PURCHASED)),
                completed=Count(
                    "id",
                    filter=Q(position__in=positions_at_or_beyond(OrderPosition.RECEIVED_ABROAD)),
                ),
            )
        )
        return CartSummaryDTO(
            cart_id=str(cart.id),
            cart_number=cart.cart_number,
            is_available=cart.is_available,
            orders_count=cart.orders_count,
            actual_orders_count=counts["actual"],
            pending_orders=counts["pending"],
            purchased_orders=counts["purchased"],
            completed_orders=counts["completed"],
        )
