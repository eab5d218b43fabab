"""Domain events primitives for the modular monolith."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Base domain event (immutable)."""

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)


@dataclass(frozen=True)
class EntityChanged(DomainEvent):
    """A successful mutation of a fulfillment entity.

    Carries the before/after snapshots the audit sink records.  Modules
    subclass it to give each mutation a distinct ``event_name``; handlers
    subscribed to ``EntityChanged`` receive every subclass.
    """

    entity_type: str = ""
    action: str = ""
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    actor_id: Optional[str] = None
