"""Read-only projections returned by ``ReportingService``."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class PositionCountDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    position: int
    position_name: str
    order_count: int
    cash_amount: Decimal = Decimal("0.00")
    card_amount: Decimal = Decimal("0.00")
    discount_amount: Decimal = Decimal("0.00")
    expenses_amount: Decimal = Decimal("0.00")


class StatisticsSummaryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_orders: int
    active_orders: int
    cancelled_orders: int
    archived_orders: int
    by_position: List[PositionCountDTO]


class FinancialSummaryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    cash_orders: int
    cash_total: Decimal
    card_orders: int
    card_total: Decimal
    under_purchase_orders: int
    under_purchase_deposits: Decimal
    total_revenue: Decimal
    total_discounts: Decimal
    total_expenses: Decimal
    total_orders: int
    net_revenue: Decimal


class MethodBreakdownDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: str
    order_count: int
    cash_total: Decimal
    card_total: Decimal
    discount_total: Optional[Decimal] = None
    expenses_total: Optional[Decimal] = None


class CartSummaryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    cart_id: str
    cart_number: str
    is_available: bool
    orders_count: int
    actual_orders_count: int
    pending_orders: int
    purchased_orders: int
    completed_orders: int
