"""Treasury DTOs."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.treasury.constants import Currency, Subaccount


class MovementDTO(BaseModel):
    """Input for a debit or a credit (top-up)."""

    model_config = ConfigDict(frozen=True)

    currency: Currency
    subaccount: Subaccount = Subaccount.TOTAL
    amount: Decimal
    reference: str = ""
    notes: str = ""


class ConvertDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount_local: Decimal
    rate: Decimal
    notes: str = ""


class RedistributeDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    card_amount: Decimal
    cash_amount: Decimal


class SetBalanceDTO(BaseModel):
    """Operator balance-set; applied as a journaled adjustment."""

    model_config = ConfigDict(frozen=True)

    currency: Currency
    subaccount: Subaccount = Subaccount.TOTAL
    value: Decimal
    notes: str = ""


class AccountBalanceDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: Currency
    current_value: Decimal
    cash_amount: Optional[Decimal] = None
    card_amount: Optional[Decimal] = None


class TreasuryBalancesDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    local: AccountBalanceDTO
    foreign: AccountBalanceDTO


def _not_expired(v: Optional[date]) -> Optional[date]:
    if v is not None and v < date.today():
        raise ValueError("Card expiry date must not be in the past.")
    return v


class CreatePaymentCardDTO(BaseModel):
    """Card registration.  Only the last four digits of ``card_number`` are kept."""

    model_config = ConfigDict(frozen=True)

    card_number: str
    exp_date: date
    label: str = ""

    @field_validator("card_number")
    @classmethod
    def sixteen_digits(cls, v: str) -> str:
        digits = re.sub(r"\D", "", v)
        if len(digits) != 16:
            raise ValueError("Card number must have 16 digits.")
        return digits

    @field_validator("exp_date")
    @classmethod
    def not_expired(cls, v: Optional[date]) -> Optional[date]:
        return _not_expired(v)


class UpdatePaymentCardDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: Optional[str] = None
    exp_date: Optional[date] = None

    @field_validator("exp_date")
    @classmethod
    def not_expired(cls, v: Optional[date]) -> Optional[date]:
        return _not_expired(v)
