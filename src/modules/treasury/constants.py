"""Treasury constants."""

from django.db import models


class Currency(models.TextChoices):
    LOCAL = "LOCAL", "Local currency"
    FOREIGN = "FOREIGN", "Foreign currency"


class Subaccount(models.TextChoices):
    """Which balance of an account a movement touches.

    The local account only has ``TOTAL``; the foreign account is split into
    ``CASH`` and ``CARD`` whose sum is its ``current_value``.
    """

    TOTAL = "TOTAL", "Total"
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"


class MovementKind(models.TextChoices):
    DEBIT = "DEBIT", "Debit"
    CREDIT = "CREDIT", "Credit"
    CONVERT_OUT = "CONVERT_OUT", "Conversion out"
    CONVERT_IN = "CONVERT_IN", "Conversion in"
    REDISTRIBUTE = "REDISTRIBUTE", "Redistribution"
    ADJUST = "ADJUST", "Balance adjustment"


ALLOWED_SUBACCOUNTS: dict[str, set[str]] = {
    Currency.LOCAL: {Subaccount.TOTAL},
    Currency.FOREIGN: {Subaccount.CASH, Subaccount.CARD},
}

SUBACCOUNT_FIELDS: dict[str, str] = {
    Subaccount.TOTAL: "current_value",
    Subaccount.CASH: "cash_amount",
    Subaccount.CARD: "card_amount",
}


class CardStatus(models.TextChoices):
    VALID = "valid", "Valid"
    EXPIRING_SOON = "expiring_soon", "Expiring soon"
    EXPIRED = "expired", "Expired"


CARD_EXPIRY_WARNING_DAYS = 30
