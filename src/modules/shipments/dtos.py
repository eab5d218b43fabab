"""Shipment DTOs."""

from __future__ import annotations

from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class CreateShipmentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    box_id: UUID
    carrier_id: UUID
    sender_name: str
    weight: Decimal

    @field_validator("sender_name")
    @classmethod
    def sender_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Sender name is required.")
        return v.strip()

    @field_validator("weight")
    @classmethod
    def weight_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Weight must be greater than zero.")
        return v


class AddImageDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str


class CreateCarrierDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class CarrierShipmentDTO(BaseModel):
    """What the carrier gateway receives for one shipment."""

    model_config = ConfigDict(frozen=True)

    shipment_id: UUID
    box_number: str
    sender_name: str
    weight: Decimal
    orders_count: int
    order_numbers: List[str]
