"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import EntityChanged


@dataclass(frozen=True)
class OrderCreated(EntityChanged):
    """Raised when an order is created."""


@dataclass(frozen=True)
class OrderPositionChanged(EntityChanged):
    """Raised when an order moves to another position."""


@dataclass(frozen=True)
class OrderPurchaseConfirmed(EntityChanged):
    """Raised when the purchase of an order is confirmed and paid."""


@dataclass(frozen=True)
class OrderCancelled(EntityChanged):
    """Raised when an order is cancelled."""


@dataclass(frozen=True)
class OrderArchived(EntityChanged):
    """Raised when an order is archived."""


@dataclass(frozen=True)
class OrderDeleted(EntityChanged):
    """Raised when an order is removed administratively."""
