"""Domain events for the Shipments bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import EntityChanged


@dataclass(frozen=True)
class ShipmentChanged(EntityChanged):
    """Shipment created, sent, arrived, or its box opened."""
