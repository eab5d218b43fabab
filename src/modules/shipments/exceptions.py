"""Shipment domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import ConflictError, InternalError, NotFoundError


class ShipmentNotFound(NotFoundError):
    """The requested shipment does not exist."""


class CarrierNotFound(NotFoundError):
    """The carrier does not exist or is inactive."""


class BoxStillOpen(ConflictError):
    """A box must be closed before it is put on a shipment."""


class ShipmentAlreadyExists(ConflictError):
    """The box already has a shipment."""


class InvalidShipmentStatus(ConflictError):
    """The shipment is not in the status this step requires."""


class CarrierUnavailable(InternalError):
    """The carrier service could not be reached or rejected the request."""

    status_code = 502
    default_code = "carrier_unavailable"
    default_detail = "Carrier service unavailable."
