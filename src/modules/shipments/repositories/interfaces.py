"""Shipment repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.shipments.models import Carrier, Shipment, ShipmentImage


class IShipmentRepository(IRepository["Shipment"]):
    """Repository contract for shipments, their images and carriers."""

    @abstractmethod
    def get_by_box(self, box_id) -> Optional[Shipment]:
        """The shipment of a box, if any."""

    @abstractmethod
    def get_carrier(self, carrier_id) -> Optional[Carrier]:
        """An active carrier by id."""

    @abstractmethod
    def create_carrier(self, name: str) -> Carrier:
        """Register a carrier."""

    @abstractmethod
    def add_image(self, shipment: Shipment, url: str) -> ShipmentImage:
        """Attach an image to the shipment."""

    @abstractmethod
    def record_sync(self, shipment: Shipment, reference: str = "", error: str = "") -> None:
        """Store the outcome of the carrier hand-off."""

    @abstractmethod
    def list_carriers(self, active_only: bool = True):
        """Carriers ordered by name."""
