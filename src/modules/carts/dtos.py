"""Cart DTOs."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CartMembershipDTO(BaseModel):
    """Input for adding an order to, or removing it from, a cart."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
