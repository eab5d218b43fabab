"""Integration tests for purchase confirmation.

The debit, the invoice settlement, the position change and the cart
closure are one unit of work: a failing debit must leave all of them
untouched.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.carts.models import PurchaseInvoice
from modules.orders.constants import OrderPosition, PaymentMethod, PurchaseMethod
from modules.orders.dtos import ConfirmPurchaseDTO
from modules.orders.exceptions import InvalidSettlement, OrderClosed, OrderNotUnderPurchase
from modules.orders.models import Invoice
from modules.treasury.exceptions import InsufficientBalance, PaymentCardNotFound
from modules.treasury.models import TreasuryMovement

pytestmark = pytest.mark.integration


def _confirm(method=PaymentMethod.CASH, **overrides):
    return ConfirmPurchaseDTO(payment_method=method, **overrides)


@pytest.fixture()
def under_purchase(make_order):
    return make_order(position=OrderPosition.UNDER_PURCHASE)


class TestSuccessfulConfirmation:
    def test_debits_matching_subaccount(self, order_service, under_purchase, fund_foreign, ledger):
        fund_foreign(cash=Decimal("500"), card=Decimal("50"))

        order = order_service.confirm_purchase(under_purchase.id, _confirm())

        assert order.position == OrderPosition.PURCHASED
        foreign = ledger.balances().foreign
        assert foreign.cash_amount == Decimal("391.80")
        assert foreign.card_amount == Decimal("50.00")
        assert foreign.current_value == foreign.cash_amount + foreign.card_amount

    def test_settles_invoice(self, order_service, under_purchase, fund_foreign, payment_card):
        fund_foreign(card=Decimal("500"))

        order_service.confirm_purchase(
            under_purchase.id,
            _confirm(
                PaymentMethod.CARD,
                card_id=payment_card.id,
                purchase_method=PurchaseMethod.MALL,
                discount=Decimal("8.20"),
                expenses=Decimal("5.00"),
                expenses_notes="Courier to warehouse",
            ),
        )

        invoice = Invoice.objects.get(order=under_purchase)
        assert invoice.payment_method == PaymentMethod.CARD
        assert invoice.purchase_method == PurchaseMethod.MALL
        assert invoice.amount_paid == Decimal("105.00")
        assert invoice.card_paid_amount == Decimal("105.00")
        assert invoice.cash_amount == Decimal("0.00")
        assert invoice.settled_at is not None
        assert invoice.card_id == payment_card.id

    def test_cash_payment_records_no_card(self, order_service, under_purchase, fund_foreign):
        fund_foreign(cash=Decimal("500"))

        order_service.confirm_purchase(under_purchase.id, _confirm())

        assert Invoice.objects.get(order=under_purchase).card_id is None

    def test_cart_is_locked_before_the_treasury(
        self, order_service, cart_service, under_purchase, fund_foreign, monkeypatch
    ):
        fund_foreign(cash=Decimal("500"))
        cart = cart_service.open_cart()
        cart_service.add_order(cart.id, under_purchase.id)
        calls = []
        carts, ledger = order_service._carts, order_service._ledger
        lock_cart, debit = carts.lock_cart, ledger.debit

        def recording_lock_cart(cart_id):
            calls.append("cart")
            return lock_cart(cart_id)

        def recording_debit(*args, **kwargs):
            calls.append("treasury")
            return debit(*args, **kwargs)

        monkeypatch.setattr(carts, "lock_cart", recording_lock_cart)
        monkeypatch.setattr(ledger, "debit", recording_debit)

        order_service.confirm_purchase(under_purchase.id, _confirm())

        assert calls == ["cart", "treasury"]

    def test_prepaid_value_reduces_the_debit(
        self, order_service, make_order, fund_foreign, ledger
    ):
        order = make_order(position=OrderPosition.UNDER_PURCHASE, prepaid_value=Decimal("8.20"))
        fund_foreign(cash=Decimal("100"))

        order_service.confirm_purchase(order.id, _confirm())

        assert ledger.balances().foreign.cash_amount == Decimal("0.00")

    def test_debit_is_journaled_with_order_number(
        self, order_service, under_purchase, fund_foreign
    ):
        fund_foreign(cash=Decimal("500"))

        order_service.confirm_purchase(under_purchase.id, _confirm())

        movement = TreasuryMovement.objects.get(reference=under_purchase.order_number)
        assert movement.amount == Decimal("108.20")
        assert movement.balance_after == Decimal("391.80")

    def test_zero_amount_skips_the_debit(self, order_service, make_order, ledger):
        order = make_order(position=OrderPosition.UNDER_PURCHASE, foreign_price=None)

        order = order_service.confirm_purchase(order.id, _confirm())

        assert order.position == OrderPosition.PURCHASED
        assert order.invoice.amount_paid == Decimal("0.00")
        assert TreasuryMovement.objects.count() == 0


class TestRejectedConfirmation:
    def test_insufficient_balance_rolls_everything_back(
        self, order_service, under_purchase, fund_foreign, ledger
    ):
        fund_foreign(cash=Decimal("100"))

        with pytest.raises(InsufficientBalance):
            order_service.confirm_purchase(under_purchase.id, _confirm())

        under_purchase.refresh_from_db()
        assert under_purchase.position == OrderPosition.UNDER_PURCHASE
        assert Invoice.objects.get(order=under_purchase).settled_at is None
        assert ledger.balances().foreign.cash_amount == Decimal("100.00")

    def test_other_subaccount_does_not_cover(self, order_service, under_purchase, fund_foreign):
        fund_foreign(card=Decimal("1000"))

        with pytest.raises(InsufficientBalance):
            order_service.confirm_purchase(under_purchase.id, _confirm(PaymentMethod.CASH))

    def test_second_confirmation_fails(self, order_service, under_purchase, fund_foreign, ledger):
        fund_foreign(cash=Decimal("500"))
        order_service.confirm_purchase(under_purchase.id, _confirm())

        with pytest.raises(OrderNotUnderPurchase):
            order_service.confirm_purchase(under_purchase.id, _confirm())

        assert ledger.balances().foreign.cash_amount == Decimal("391.80")

    def test_order_not_under_purchase(self, order_service, make_order):
        order = make_order()
        with pytest.raises(OrderNotUnderPurchase):
            order_service.confirm_purchase(order.id, _confirm())

    def test_cancelled_order(self, order_service, under_purchase):
        order_service.cancel_order(under_purchase.id)
        with pytest.raises(OrderClosed):
            order_service.confirm_purchase(under_purchase.id, _confirm())

    def test_card_payment_needs_a_card(self, order_service, under_purchase, fund_foreign, ledger):
        fund_foreign(card=Decimal("500"))

        with pytest.raises(InvalidSettlement) as exc_info:
            order_service.confirm_purchase(under_purchase.id, _confirm(PaymentMethod.CARD))

        assert exc_info.value.attr == "card_id"
        assert ledger.balances().foreign.card_amount == Decimal("500.00")

    def test_unknown_card_is_rejected(self, order_service, under_purchase, fund_foreign):
        fund_foreign(card=Decimal("500"))

        with pytest.raises(PaymentCardNotFound) as exc_info:
            order_service.confirm_purchase(
                under_purchase.id,
                _confirm(PaymentMethod.CARD, card_id="00000000-0000-0000-0000-000000000000"),
            )

        assert exc_info.value.attr == "card_id"
        under_purchase.refresh_from_db()
        assert under_purchase.position == OrderPosition.UNDER_PURCHASE

    @pytest.mark.parametrize(
        "overrides",
        [
            {"discount": Decimal("-1")},
            {"expenses": Decimal("-1")},
            {"discount": Decimal("200")},
        ],
    )
    def test_invalid_settlement(self, order_service, under_purchase, overrides):
        with pytest.raises(InvalidSettlement):
            order_service.confirm_purchase(under_purchase.id, _confirm(**overrides))


class TestCartClosure:
    def test_last_purchase_closes_cart(
        self, order_service, cart_service, make_order, fund_foreign
    ):
        fund_foreign(cash=Decimal("1000"))
        first = make_order(position=OrderPosition.UNDER_PURCHASE)
        second = make_order(position=OrderPosition.UNDER_PURCHASE)
        cart = cart_service.open_cart()
        cart_service.add_order(cart.id, first.id)
        cart_service.add_order(cart.id, second.id)

        order_service.confirm_purchase(first.id, _confirm())
        cart.refresh_from_db()
        assert cart.is_available is True

        order_service.confirm_purchase(
            second.id, _confirm(expenses=Decimal("2.00"), discount=Decimal("1.00"))
        )
        cart.refresh_from_db()
        assert cart.is_available is False
        assert cart.closed_at is not None

        purchase_invoice = PurchaseInvoice.objects.get(cart=cart)
        assert purchase_invoice.orders_count == 2
        assert purchase_invoice.subtotal == Decimal("216.40")
        assert purchase_invoice.expenses_total == Decimal("2.00")
        assert purchase_invoice.discount_total == Decimal("1.00")
        assert purchase_invoice.total == Decimal("217.40")

    def test_archived_member_does_not_hold_the_cart_open(
        self, order_service, cart_service, make_order, fund_foreign
    ):
        fund_foreign(cash=Decimal("500"))
        kept = make_order(position=OrderPosition.UNDER_PURCHASE)
        shelved = make_order(position=OrderPosition.UNDER_PURCHASE)
        cart = cart_service.open_cart()
        cart_service.add_order(cart.id, kept.id)
        cart_service.add_order(cart.id, shelved.id)

        order_service.archive_order(shelved.id)
        shelved.refresh_from_db()
        assert shelved.cart_id is None

        order_service.confirm_purchase(kept.id, _confirm())

        cart.refresh_from_db()
        assert cart.is_available is False
        assert cart.orders_count == 1
        assert PurchaseInvoice.objects.get(cart=cart).orders_count == 1
