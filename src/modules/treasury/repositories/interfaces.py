"""Treasury repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional

from django.db import models

if TYPE_CHECKING:
    from modules.treasury.models import PaymentCard, TreasuryAccount, TreasuryMovement


class ITreasuryRepository(ABC):
    """Access to the two singleton accounts and their journal."""

    @abstractmethod
    def get_account(self, currency: str) -> TreasuryAccount:
        """Return the account row, creating it with zero balances if absent."""

    @abstractmethod
    def lock_account(self, currency: str) -> TreasuryAccount:
        """Return the account row under an exclusive row lock."""

    @abstractmethod
    def save_account(self, account: TreasuryAccount) -> TreasuryAccount:
        """Persist balance fields."""

    @abstractmethod
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
        """Append a journal line."""

    @abstractmethod
    def list_movements(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Journal lines, newest first."""


class IPaymentCardRepository(ABC):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[PaymentCard]:
        """Return the card, or ``None`` when it does not exist."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[PaymentCard]:
        """Return the card under a row lock, or ``None``."""

    @abstractmethod
    def save(self, card: PaymentCard) -> PaymentCard:
        """Insert or update a card."""

    @abstractmethod
    def delete(self, card: PaymentCard) -> None:
        """Remove a card."""

    @abstractmethod
    def is_in_use(self, card: PaymentCard) -> bool:
        """``True`` when an invoice references the card."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Cards, newest first."""
