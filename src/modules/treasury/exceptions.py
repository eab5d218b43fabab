"""Treasury domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import (
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)


class InsufficientBalance(InsufficientFundsError):
    """The locked sub-balance is smaller than the debit."""


class InvalidAmount(ValidationError):
    """Zero or negative movement amount."""

    default_code = "invalid_amount"


class InvalidSubaccount(ValidationError):
    """The currency has no such sub-balance."""

    default_code = "invalid_subaccount"


class RedistributionMismatch(ValidationError):
    """Cash + card does not add up to the foreign account total."""

    default_code = "redistribution_mismatch"


class PaymentCardNotFound(NotFoundError):
    default_code = "payment_card_not_found"


class PaymentCardInUse(ConflictError):
    """The card is referenced by a settled invoice."""

    default_code = "payment_card_in_use"
