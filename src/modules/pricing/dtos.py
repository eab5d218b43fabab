"""Pricing DTOs."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class PriceQuote(BaseModel):
    """Every intermediate amount of a priced item."""

    model_config = ConfigDict(frozen=True)

    foreign_price: Decimal
    exchange_rate: Decimal
    local_price: Decimal
    commission: Decimal
    total: Decimal
    deposit: Decimal
