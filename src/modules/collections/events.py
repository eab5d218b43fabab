"""Domain events for the Collections bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import EntityChanged


@dataclass(frozen=True)
class CollectionChanged(EntityChanged):
    """Collection created, totals changed, or handed over to delivery."""
