"""Domain events for the Carts bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import EntityChanged


@dataclass(frozen=True)
class CartChanged(EntityChanged):
    """Cart opened, closed, or its membership changed."""
