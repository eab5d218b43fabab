"""Box DTOs."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class CreateBoxDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: str

    @field_validator("number")
    @classmethod
    def number_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Box number is required.")
        return v.strip()


class BoxMembershipDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
