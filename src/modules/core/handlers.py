"""Audit sink: records every ``EntityChanged`` event."""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import structlog

from modules.core.models import AuditEntry
from shared.domain.bus import IEventHandler
from shared.domain.events import EntityChanged

logger = structlog.get_logger(__name__)


class AuditTrailHandler(IEventHandler[EntityChanged]):
    """Persist the before/after snapshot of a committed mutation."""

    def handle(self, event: EntityChanged) -> None:
        _, created = AuditEntry.objects.get_or_create(
            event_id=event.event_id,
            defaults={
                "event_type": event.event_name,
                "entity_type": event.entity_type,
                "entity_id": str(event.aggregate_id),
                "action": event.action,
                "before": _to_json(event.before),
                "after": _to_json(event.after),
                "actor_id": event.actor_id or "",
                "occurred_at": event.occurred_on,
            },
        )
        logger.info(
            "audit.recorded",
            entity_type=event.entity_type,
            entity_id=str(event.aggregate_id),
            action=event.action,
            duplicate=not created,
        )


def _to_json(value: Any) -> Any:
    if value is None:
        return None
    return json.loads(json.dumps(_normalize_for_json(value)))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value


audit_trail_handler = AuditTrailHandler()
