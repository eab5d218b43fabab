"""Domain events for the Boxes bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import EntityChanged


@dataclass(frozen=True)
class BoxChanged(EntityChanged):
    """Box created, closed, or its membership changed."""
