"""Domain events for the Treasury bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import EntityChanged


@dataclass(frozen=True)
class TreasuryBalanceChanged(EntityChanged):
    """Any ledger operation that moved money."""
