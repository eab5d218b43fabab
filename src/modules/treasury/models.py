"""Treasury models.

``TreasuryAccount`` holds exactly one row per currency.  Rows are created
lazily with zero balances and only ever mutated by ``TreasuryLedger``, which
locks the row before reading a balance.  ``TreasuryMovement`` is the
append-only journal every ledger operation writes.  ``PaymentCard`` names the
cards a card-paid purchase is charged to.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel
from modules.treasury.constants import (
    CARD_EXPIRY_WARNING_DAYS,
    SUBACCOUNT_FIELDS,
    CardStatus,
    Currency,
    MovementKind,
    Subaccount,
)

ZERO = Decimal("0.00")


class TreasuryAccount(BaseModel):
    currency = models.CharField(max_length=10, choices=Currency.choices, unique=True)
    current_value = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    cash_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    card_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)

    class Meta:
        db_table = "treasury_accounts"
        ordering = ["currency"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(current_value__gte=0),
                name="treasury_current_value_non_negative",
            ),
            models.CheckConstraint(
                check=models.Q(cash_amount__gte=0),
                name="treasury_cash_non_negative",
            ),
            models.CheckConstraint(
                check=models.Q(card_amount__gte=0),
                name="treasury_card_non_negative",
            ),
        ]
        permissions = [
            ("debit_treasury", "Can debit the treasury"),
            ("credit_treasury", "Can top up the treasury"),
            ("convert_treasury", "Can convert local to foreign currency"),
            ("redistribute_treasury", "Can move foreign money between cash and card"),
        ]

    def balance_of(self, subaccount: str) -> Decimal:
        return getattr(self, SUBACCOUNT_FIELDS[subaccount])

    @property
    def is_split(self) -> bool:
        return self.currency == Currency.FOREIGN

    def __str__(self) -> str:
        return f"{self.currency}: {self.current_value}"


class TreasuryMovement(BaseModel):
    """One journal line.  ``balance_after`` is the touched sub-balance."""

    account = models.ForeignKey(
        TreasuryAccount, on_delete=models.PROTECT, related_name="movements"
    )
    kind = models.CharField(max_length=20, choices=MovementKind.choices)
    subaccount = models.CharField(
        max_length=10, choices=Subaccount.choices, default=Subaccount.TOTAL
    )
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    balance_after = models.DecimalField(max_digits=14, decimal_places=2)
    reference = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "treasury_movements"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["account", "-created_at"], name="treasury_mv_account_idx"),
            models.Index(fields=["reference"], name="treasury_mv_reference_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.kind} {self.amount} ({self.subaccount})"


class PaymentCard(BaseModel):
    """A purchasing card the foreign card balance is spent through.

    Only the last four digits are kept; the full number and the security
    code are never stored.
    """

    label = models.CharField(max_length=100, blank=True, default="")
    last_four = models.CharField(max_length=4)
    exp_date = models.DateField()

    class Meta:
        db_table = "payment_cards"
        ordering = ["-created_at"]

    @property
    def masked_number(self) -> str:
        return f"****-****-****-{self.last_four}"

    def status_on(self, today: date) -> str:
        if self.exp_date < today:
            return CardStatus.EXPIRED
        if self.exp_date <= today + timedelta(days=CARD_EXPIRY_WARNING_DAYS):
            return CardStatus.EXPIRING_SOON
        return CardStatus.VALID

    def __str__(self) -> str:
        return f"{self.label or 'Card'} {self.masked_number}"
