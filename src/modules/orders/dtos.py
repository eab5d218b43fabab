"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer and the Service layer.
DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO``: input for order creation.
- ``ConfirmPurchaseDTO``: settlement input for ``confirm_purchase``.
- ``AdvancePositionDTO``: administrative position change.
- ``CancelOrderDTO``: cancellation notes.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import OrderPosition, PaymentBy, PaymentMethod, PurchaseMethod

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    ``customer_phone`` is the customer's handle.  ``foreign_price`` is
    optional: without it the order is created unpriced and the invoice
    totals stay at zero until the purchase is confirmed.
    """

    model_config = ConfigDict(frozen=True)

    customer_phone: str
    collection_id: Optional[UUID] = None
    title: str
    color: str = ""
    size: str = ""
    product_link: str = ""
    image_url: str = ""
    description: str = ""
    notes: str = ""
    city_id: int
    area_id: int
    foreign_price: Optional[Decimal] = None
    prepaid_value: Decimal = Decimal("0")
    payment_by: PaymentBy = PaymentBy.RECEIVER

    @field_validator("customer_phone", "title")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("This field may not be blank.")
        return v.strip()

    @field_validator("city_id", "area_id")
    @classmethod
    def positive_id(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Must be a positive identifier.")
        return v

    @field_validator("foreign_price")
    @classmethod
    def price_not_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Price must not be negative.")
        return v

    @field_validator("prepaid_value")
    @classmethod
    def prepaid_not_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Prepaid value must not be negative.")
        return v


class ConfirmPurchaseDTO(BaseModel):
    """Settlement of a purchase made on the customer's behalf."""

    model_config = ConfigDict(frozen=True)

    payment_method: PaymentMethod
    purchase_method: PurchaseMethod = PurchaseMethod.ONLINE
    discount: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    expenses_notes: str = ""
    card_id: Optional[UUID] = None


class AdvancePositionDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    position: OrderPosition
    notes: str = ""


class CancelOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    notes: str = ""
