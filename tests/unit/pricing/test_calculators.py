"""Unit tests for the pricing engine."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.core.exceptions import ValidationError
from modules.pricing.calculators import (
    adjust_for_shipping,
    deposit_amount,
    quantize,
    quote,
    to_local_price,
    with_commission,
)

pytestmark = pytest.mark.unit


class TestQuote:
    def test_worked_example(self):
        price = quote(
            Decimal("10"),
            rate=Decimal("7.35"),
            commission_percentage=Decimal("20"),
            deposit_percentage=Decimal("30"),
        )

        assert price.local_price == Decimal("73.50")
        assert price.commission == Decimal("14.70")
        assert price.total == Decimal("88.20")
        assert price.deposit == Decimal("26.46")

    def test_defaults_come_from_settings(self, settings):
        settings.EXCHANGE_RATE = Decimal("2")
        settings.COMMISSION_PERCENTAGE = Decimal("10")
        settings.DEPOSIT_PERCENTAGE = Decimal("50")

        price = quote(Decimal("5"))

        assert price.local_price == Decimal("10.00")
        assert price.commission == Decimal("1.00")
        assert price.total == Decimal("11.00")
        assert price.deposit == Decimal("5.50")
        assert price.exchange_rate == Decimal("2")

    def test_zero_price_is_allowed(self):
        price = quote(Decimal("0"))
        assert price.total == Decimal("0.00")
        assert price.deposit == Decimal("0.00")


class TestSteps:
    def test_results_are_rounded_half_up_to_cents(self):
        assert quantize(Decimal("1.005")) == Decimal("1.01")
        assert to_local_price(Decimal("1.333"), Decimal("1")) == Decimal("1.33")
        assert with_commission(Decimal("0.05"), Decimal("50")) == Decimal("0.03")

    def test_commission_is_the_fee_only(self):
        assert with_commission(Decimal("100.00"), Decimal("20")) == Decimal("20.00")

    def test_deposit_percentage(self):
        assert deposit_amount(Decimal("88.20"), Decimal("30")) == Decimal("26.46")

    @pytest.mark.parametrize(
        ("payer_is_receiver", "expected"),
        [(True, Decimal("108.20")), (False, Decimal("68.20"))],
    )
    def test_shipping_adjustment(self, payer_is_receiver, expected):
        assert adjust_for_shipping(Decimal("88.20"), Decimal("20"), payer_is_receiver) == expected

    @pytest.mark.parametrize(
        "call",
        [
            lambda: to_local_price(Decimal("-1"), Decimal("7.35")),
            lambda: to_local_price(Decimal("1"), Decimal("-7.35")),
            lambda: with_commission(Decimal("10"), Decimal("-5")),
            lambda: deposit_amount(Decimal("-10"), Decimal("30")),
            lambda: adjust_for_shipping(Decimal("10"), Decimal("-1"), True),
        ],
    )
    def test_negative_inputs_are_rejected(self, call):
        with pytest.raises(ValidationError):
            call()
