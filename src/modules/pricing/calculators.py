"""Pricing engine.

Pure ``Decimal`` transforms from a foreign product price to the amounts an
order carries.  Every result is quantized to cents with ``ROUND_HALF_UP``;
intermediate values are rounded before they feed the next step, so a quote
always adds up exactly on the invoice.

Worked example (rate 7.35, commission 20%, deposit 30%)::

    10.00 foreign -> 73.50 local -> 14.70 commission -> 88.20 total
    deposit = 26.46
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.conf import settings

from modules.core.exceptions import ValidationError
from modules.pricing.dtos import PriceQuote

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def quantize(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _require_non_negative(value: Decimal, name: str) -> Decimal:
    value = Decimal(value)
    if value < 0:
        raise ValidationError(f"{name} must not be negative.", attr=name)
    return value


def to_local_price(foreign_price: Decimal, rate: Decimal) -> Decimal:
    """Convert a foreign price into local currency."""
    foreign_price = _require_non_negative(foreign_price, "foreign_price")
    rate = _require_non_negative(rate, "rate")
    return quantize(foreign_price * rate)


def with_commission(local_price: Decimal, percentage: Decimal) -> Decimal:
    """Return the commission charged on ``local_price`` (not the sum)."""
    local_price = _require_non_negative(local_price, "local_price")
    percentage = _require_non_negative(percentage, "percentage")
    return quantize(local_price * percentage / HUNDRED)


def deposit_amount(total: Decimal, percentage: Decimal) -> Decimal:
    """Advance the customer pays when the order is placed."""
    total = _require_non_negative(total, "total")
    percentage = _require_non_negative(percentage, "percentage")
    return quantize(total * percentage / HUNDRED)


def adjust_for_shipping(
    total: Decimal, shipping_cost: Decimal, payer_is_receiver: bool
) -> Decimal:
    """Fold the local delivery fee into an invoice total.

    The receiver paying adds the fee to what is collected; the seller
    paying absorbs it, so it is subtracted.
    """
    shipping_cost = _require_non_negative(shipping_cost, "shipping_cost")
    if payer_is_receiver:
        return quantize(Decimal(total) + shipping_cost)
    return quantize(Decimal(total) - shipping_cost)


def quote(
    foreign_price: Decimal,
    rate: Optional[Decimal] = None,
    commission_percentage: Optional[Decimal] = None,
    deposit_percentage: Optional[Decimal] = None,
) -> PriceQuote:
    """Price an item end to end with the configured defaults."""
    rate = settings.EXCHANGE_RATE if rate is None else rate
    if commission_percentage is None:
        commission_percentage = settings.COMMISSION_PERCENTAGE
    if deposit_percentage is None:
        deposit_percentage = settings.DEPOSIT_PERCENTAGE

    local_price = to_local_price(foreign_price, rate)
    commission = with_commission(local_price, commission_percentage)
    total = quantize(local_price + commission)
    return PriceQuote(
        foreign_price=quantize(foreign_price),
        exchange_rate=Decimal(rate),
        local_price=local_price,
        commission=commission,
        total=total,
        deposit=deposit_amount(total, deposit_percentage),
    )
