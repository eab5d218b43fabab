"""Django ORM implementation of the Treasury repository.

``lock_account`` is the only way the ledger reads a balance it is about to
change: ``SELECT ... FOR UPDATE`` serializes concurrent debits so two
callers can never both pass a sufficiency check against the same funds.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models

from modules.treasury.models import PaymentCard, TreasuryAccount, TreasuryMovement
from modules.treasury.repositories.interfaces import (
    IPaymentCardRepository,
    ITreasuryRepository,
)

logger = structlog.get_logger(__name__)


class TreasuryDjangoRepository(ITreasuryRepository):
    """Concrete Treasury repository backed by Django ORM."""

    def get_account(self, currency: str) -> TreasuryAccount:
        account, _ = TreasuryAccount.objects.get_or_create(currency=currency)
        return account

    def lock_account(self, currency: str) -> TreasuryAccount:
        account, created = TreasuryAccount.objects.select_for_update().get_or_create(
            currency=currency
        )
        if created:
            logger.info("treasury.account_created", currency=currency)
        return account

    def save_account(self, account: TreasuryAccount) -> TreasuryAccount:
        account.save(update_fields=["current_value", "cash_amount", "card_amount"])
        return account

    def add_movement(
        self,
        account: TreasuryAccount,
        kind: str,
        subaccount: str,
        amount: Decimal,
        reference: str = "",
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> TreasuryMovement:
        return TreasuryMovement.objects.create(
            account=account,
            kind=kind,
            subaccount=subaccount,
            amount=amount,
            balance_after=account.balance_of(subaccount),
            reference=reference,
            notes=notes,
            user_id=user_id,
        )

    def list_movements(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = TreasuryMovement.objects.select_related("account")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset


class PaymentCardDjangoRepository(IPaymentCardRepository):
    """Concrete payment card repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[PaymentCard]:
        try:
            return PaymentCard.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[PaymentCard]:
        try:
            return PaymentCard.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save(self, card: PaymentCard) -> PaymentCard:
        card.save()
        return card

    def delete(self, card: PaymentCard) -> None:
        card.delete()

    def is_in_use(self, card: PaymentCard) -> bool:
        return card.invoices.exists()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = PaymentCard.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset
