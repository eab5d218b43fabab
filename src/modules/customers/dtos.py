"""Customer DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.customers.models import normalize_phone


class CreateCustomerDTO(BaseModel):
    """Input for customer registration.  ``phone`` is the lookup handle."""

    model_config = ConfigDict(frozen=True)

    name: str
    phone: str
    email: str = ""
    city: str = ""
    address: str = ""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required.")
        return v.strip()

    @field_validator("phone")
    @classmethod
    def phone_has_digits(cls, v: str) -> str:
        phone = normalize_phone(v)
        if len(phone.lstrip("+")) < 7:
            raise ValueError("Phone number is too short.")
        return phone


class UpdateCustomerDTO(BaseModel):
    """Partial update; ``None`` fields are left untouched."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None
