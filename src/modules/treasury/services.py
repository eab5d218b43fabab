"""Treasury ledger (Use Cases).

``TreasuryLedger`` owns every change to the two singleton accounts:
purchase-confirmation debits, operator top-ups and balance sets, currency
conversion and the foreign cash/card redistribution.  Each operation locks
the account row first and evaluates its predicate against the locked
balance, so no sequence of operations can drive a balance negative.

Lock order, when both accounts are touched: LOCAL, then FOREIGN.

``PaymentCardService`` keeps the register of cards that card-paid purchases
are charged to.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
import uuid6
from django.conf import settings
from django.db import models, transaction

from modules.core.audit import snapshot
from modules.pricing.calculators import quantize
from modules.treasury.constants import (
    ALLOWED_SUBACCOUNTS,
    SUBACCOUNT_FIELDS,
    Currency,
    MovementKind,
    Subaccount,
)
from modules.treasury.dtos import (
    AccountBalanceDTO,
    CreatePaymentCardDTO,
    TreasuryBalancesDTO,
    UpdatePaymentCardDTO,
)
from modules.treasury.events import TreasuryBalanceChanged
from modules.treasury.exceptions import (
    InsufficientBalance,
    InvalidAmount,
    InvalidSubaccount,
    PaymentCardInUse,
    PaymentCardNotFound,
    RedistributionMismatch,
)
from modules.treasury.models import PaymentCard
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.treasury.models import TreasuryAccount
    from modules.treasury.repositories.interfaces import (
        IPaymentCardRepository,
        ITreasuryRepository,
    )
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

BALANCE_FIELDS = ("currency", "current_value", "cash_amount", "card_amount")


class TreasuryLedger:
    """Application service for treasury movements.

    Receives an ``ITreasuryRepository`` via constructor injection (DIP).
    """

    def __init__(
        self,
        repository: ITreasuryRepository,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._repo = repository
        self._bus = event_bus or default_event_bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def debit(
        self,
        currency: str,
        subaccount: str,
        amount: Decimal,
        reference: str = "",
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> TreasuryAccount:
        """Take ``amount`` out of one sub-balance.

        Raises:
            InvalidAmount: ``amount`` is not positive.
            InvalidSubaccount: the currency has no such sub-balance.
            InsufficientBalance: the locked balance is smaller than ``amount``.
        """
        amount = _positive(amount, "amount")
        _check_subaccount(currency, subaccount)

        account = self._repo.lock_account(currency)
        before = snapshot(account, BALANCE_FIELDS)
        balance = account.balance_of(subaccount)
        log = logger.bind(
            currency=currency, subaccount=subaccount, amount=str(amount), reference=reference
        )

        if amount > balance:
            log.warning("treasury.insufficient_funds", balance=str(balance))
            raise InsufficientBalance(
                f"{currency} {subaccount.lower()} balance {balance} is less than {amount}."
            )

        _apply(account, subaccount, -amount)
        self._repo.save_account(account)
        self._repo.add_movement(
            account, MovementKind.DEBIT, subaccount, amount, reference, notes, user_id
        )
        log.info("treasury.debited", balance_after=str(account.balance_of(subaccount)))
        self._publish(account, "debit", before, user_id)
        return account

    @transaction.atomic
    def credit(
        self,
        currency: str,
        subaccount: str,
        amount: Decimal,
        reference: str = "",
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> TreasuryAccount:
        """Add ``amount`` to one sub-balance (operator top-up).

        Raises:
            InvalidAmount: ``amount`` is not positive.
            InvalidSubaccount: the currency has no such sub-balance.
        """
        amount = _positive(amount, "amount")
        _check_subaccount(currency, subaccount)

        account = self._repo.lock_account(currency)
        before = snapshot(account, BALANCE_FIELDS)
        _apply(account, subaccount, amount)
        self._repo.save_account(account)
        self._repo.add_movement(
            account, MovementKind.CREDIT, subaccount, amount, reference, notes, user_id
        )
        logger.info(
            "treasury.credited",
            currency=currency,
            subaccount=subaccount,
            amount=str(amount),
            balance_after=str(account.balance_of(subaccount)),
        )
        self._publish(account, "credit", before, user_id)
        return account

    @transaction.atomic
    def convert(
        self,
        amount_local: Decimal,
        rate: Decimal,
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> TreasuryBalancesDTO:
        """Move money from the local account into foreign cash.

        The foreign side is credited ``amount_local * rate``.  Both accounts
        change or neither does.

        Raises:
            InvalidAmount: ``amount_local`` or ``rate`` is not positive.
            InsufficientBalance: the local balance is smaller than ``amount_local``.
        """
        amount_local = _positive(amount_local, "amount_local")
        rate = _positive(rate, "rate", quantized=False)
        amount_foreign = quantize(amount_local * rate)
        reference = f"CONV-{uuid6.uuid7().hex[:12].upper()}"

        local = self._repo.lock_account(Currency.LOCAL)
        foreign = self._repo.lock_account(Currency.FOREIGN)
        local_before = snapshot(local, BALANCE_FIELDS)
        foreign_before = snapshot(foreign, BALANCE_FIELDS)

        if amount_local > local.current_value:
            logger.warning(
                "treasury.insufficient_funds",
                currency=Currency.LOCAL,
                amount=str(amount_local),
                balance=str(local.current_value),
            )
            raise InsufficientBalance(
                f"Local balance {local.current_value} is less than {amount_local}."
            )

        _apply(local, Subaccount.TOTAL, -amount_local)
        _apply(foreign, Subaccount.CASH, amount_foreign)
        self._repo.save_account(local)
        self._repo.save_account(foreign)
        self._repo.add_movement(
            local, MovementKind.CONVERT_OUT, Subaccount.TOTAL, amount_local,
            reference, notes, user_id,
        )
        self._repo.add_movement(
            foreign, MovementKind.CONVERT_IN, Subaccount.CASH, amount_foreign,
            reference, notes, user_id,
        )

        logger.info(
            "treasury.converted",
            reference=reference,
            amount_local=str(amount_local),
            amount_foreign=str(amount_foreign),
            rate=str(rate),
        )
        self._publish(local, "convert", local_before, user_id)
        self._publish(foreign, "convert", foreign_before, user_id)
        return self._balances_of(local, foreign)

    @transaction.atomic
    def redistribute(
        self,
        card_amount: Decimal,
        cash_amount: Decimal,
        user_id: Optional[int] = None,
    ) -> TreasuryAccount:
        """Re-split the foreign total between card and cash.

        The pair must add up to the current total within
        ``REDISTRIBUTION_TOLERANCE``.  The total never changes: a rounding
        difference is absorbed by the cash side, or by the card side when
        cash would go negative.

        Raises:
            InvalidAmount: either amount is negative.
            RedistributionMismatch: the pair does not preserve the total.
        """
        card_amount = _non_negative(card_amount, "card_amount")
        cash_amount = _non_negative(cash_amount, "cash_amount")

        account = self._repo.lock_account(Currency.FOREIGN)
        before = snapshot(account, BALANCE_FIELDS)
        requested_total = card_amount + cash_amount
        difference = abs(requested_total - account.current_value)

        if difference > settings.REDISTRIBUTION_TOLERANCE:
            logger.warning(
                "treasury.redistribution_mismatch",
                requested_total=str(requested_total),
                current_value=str(account.current_value),
            )
            raise RedistributionMismatch(
                f"Card + cash ({requested_total}) must equal the current total "
                f"({account.current_value})."
            )

        rounding = account.current_value - requested_total
        if cash_amount + rounding >= 0:
            cash_amount += rounding
        else:
            card_amount += rounding

        card_delta = card_amount - account.card_amount
        cash_delta = cash_amount - account.cash_amount
        account.card_amount = card_amount
        account.cash_amount = cash_amount
        self._repo.save_account(account)
        if card_delta:
            self._repo.add_movement(
                account, MovementKind.REDISTRIBUTE, Subaccount.CARD, card_delta, user_id=user_id
            )
        if cash_delta:
            self._repo.add_movement(
                account, MovementKind.REDISTRIBUTE, Subaccount.CASH, cash_delta, user_id=user_id
            )

        logger.info(
            "treasury.redistributed",
            card_amount=str(card_amount),
            cash_amount=str(cash_amount),
        )
        self._publish(account, "redistribute", before, user_id)
        return account

    @transaction.atomic
    def set_balance(
        self,
        currency: str,
        subaccount: str,
        value: Decimal,
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> TreasuryAccount:
        """Operator balance-set, journaled as a signed adjustment.

        Raises:
            InvalidAmount: ``value`` is negative.
            InvalidSubaccount: the currency has no such sub-balance.
        """
        value = _non_negative(value, "value")
        _check_subaccount(currency, subaccount)

        account = self._repo.lock_account(currency)
        before = snapshot(account, BALANCE_FIELDS)
        delta = value - account.balance_of(subaccount)
        if not delta:
            return account

        _apply(account, subaccount, delta)
        self._repo.save_account(account)
        self._repo.add_movement(
            account, MovementKind.ADJUST, subaccount, delta, notes=notes, user_id=user_id
        )
        logger.info(
            "treasury.balance_set",
            currency=currency,
            subaccount=subaccount,
            value=str(value),
            delta=str(delta),
        )
        self._publish(account, "set_balance", before, user_id)
        return account

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def balances(self) -> TreasuryBalancesDTO:
        return self._balances_of(
            self._repo.get_account(Currency.LOCAL),
            self._repo.get_account(Currency.FOREIGN),
        )

    def history(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        return self._repo.list_movements(filters)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _balances_of(local: TreasuryAccount, foreign: TreasuryAccount) -> TreasuryBalancesDTO:
        return TreasuryBalancesDTO(
            local=AccountBalanceDTO(
                currency=Currency.LOCAL, current_value=local.current_value
            ),
            foreign=AccountBalanceDTO(
                currency=Currency.FOREIGN,
                current_value=foreign.current_value,
                cash_amount=foreign.cash_amount,
                card_amount=foreign.card_amount,
            ),
        )

    def _publish(
        self,
        account: TreasuryAccount,
        action: str,
        before: Optional[Dict[str, Any]],
        user_id: Optional[int],
    ) -> None:
        self._bus.publish_on_commit(
            TreasuryBalanceChanged(
                aggregate_id=account.id,
                entity_type="treasury",
                action=action,
                before=before,
                after=snapshot(account, BALANCE_FIELDS),
                actor_id=str(user_id) if user_id else None,
            )
        )


def _apply(account: TreasuryAccount, subaccount: str, delta: Decimal) -> None:
    """Shift one sub-balance, keeping ``current_value`` equal to the split sum."""
    if subaccount == Subaccount.TOTAL:
        account.current_value += delta
        return
    field = SUBACCOUNT_FIELDS[subaccount]
    setattr(account, field, getattr(account, field) + delta)
    account.current_value += delta


def _check_subaccount(currency: str, subaccount: str) -> None:
    if subaccount not in ALLOWED_SUBACCOUNTS.get(currency, set()):
        raise InvalidSubaccount(
            f"{currency} account has no {subaccount} balance.", attr="subaccount"
        )


def _positive(value: Decimal, name: str, quantized: bool = True) -> Decimal:
    value = quantize(value) if quantized else Decimal(value)
    if value <= 0:
        raise InvalidAmount(f"{name} must be greater than zero.", attr=name)
    return value


def _non_negative(value: Decimal, name: str) -> Decimal:
    value = quantize(value)
    if value < 0:
        raise InvalidAmount(f"{name} must not be negative.", attr=name)
    return value


class PaymentCardService:
    """Application service for the purchasing cards.

    A card referenced by an invoice cannot be deleted; the invoice keeps
    pointing at it.
    """

    def __init__(self, repository: IPaymentCardRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_card(self, dto: CreatePaymentCardDTO) -> PaymentCard:
        card = self._repo.save(
            PaymentCard(label=dto.label, last_four=dto.card_number[-4:], exp_date=dto.exp_date)
        )
        logger.info("payment_card.created", card_id=str(card.id), last_four=card.last_four)
        return card

    @transaction.atomic
    def update_card(self, id: str, dto: UpdatePaymentCardDTO) -> PaymentCard:
        """Update the supplied fields.

        Raises:
            PaymentCardNotFound: the card does not exist.
        """
        card = self._repo.get_for_update(id)
        if not card:
            raise PaymentCardNotFound(f"Payment card {id} not found.")
        if dto.label is not None:
            card.label = dto.label
        if dto.exp_date is not None:
            card.exp_date = dto.exp_date
        card = self._repo.save(card)
        logger.info("payment_card.updated", card_id=str(id))
        return card

    @transaction.atomic
    def delete_card(self, id: str) -> None:
        """Remove an unused card.

        Raises:
            PaymentCardNotFound: the card does not exist.
            PaymentCardInUse: an invoice was paid with the card.
        """
        card = self._repo.get_for_update(id)
        if not card:
            raise PaymentCardNotFound(f"Payment card {id} not found.")
        if self._repo.is_in_use(card):
            logger.warning("payment_card.delete_in_use", card_id=str(id))
            raise PaymentCardInUse("Payment card is referenced by invoices.")
        self._repo.delete(card)
        logger.info("payment_card.deleted", card_id=str(id))

    def get_card(self, id: str, attr: Optional[str] = None) -> PaymentCard:
        """Retrieve a single card by ID.

        Raises:
            PaymentCardNotFound: the card does not exist.
        """
        card = self._repo.get_by_id(id)
        if not card:
            raise PaymentCardNotFound(f"Payment card {id} not found.", attr=attr)
        return card

    def list_cards(self) -> models.QuerySet:
        return self._repo.list()
