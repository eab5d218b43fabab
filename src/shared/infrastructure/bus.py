"""In-memory event bus implementation."""

from __future__ import annotations

from typing import Dict, List, Type

import structlog
from django.db import transaction

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus.

    Handlers subscribed to a base event class also receive its subclasses
    (dispatch walks the event's MRO).
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        for event_class in type(event).__mro__:
            for handler in self._handlers.get(event_class, []):
                handler.handle(event)

    def publish_on_commit(self, event: DomainEvent) -> None:
        logger.debug(
            "event_bus.deferred",
            event_name=event.event_name,
            aggregate_id=str(event.aggregate_id),
        )
        transaction.on_commit(lambda: self.publish(event), robust=True)


# Global bus instance (singleton)

event_bus = InMemoryEventBus()
