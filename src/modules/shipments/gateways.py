"""Carrier gateway: the opaque remote service that takes over a shipment.

``ICarrierGateway`` is the contract the service depends on;
``HttpCarrierGateway`` talks to the carrier's HTTP API with httpx.
"""

from __future__ import annotations

from typing import Optional, Protocol

import httpx
import structlog
from django.conf import settings

from modules.shipments.dtos import CarrierShipmentDTO
from modules.shipments.exceptions import CarrierUnavailable

logger = structlog.get_logger(__name__)


class ICarrierGateway(Protocol):
    def register_shipment(self, shipment: CarrierShipmentDTO) -> str:
        """Hand the shipment over and return the carrier's reference.

        Raises:
            CarrierUnavailable: transport failure or a rejected request.
        """
        ...


class HttpCarrierGateway:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        account_id: str = "",
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._account_id = account_id
        self._timeout = timeout

    def register_shipment(self, shipment: CarrierShipmentDTO) -> str:
        payload = shipment.model_dump(mode="json")
        payload["account_id"] = self._account_id
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(
                    f"{self._base_url}/api/shipments",
                    json=payload,
                    headers={"X-API-Key": self._api_key},
                )
        except httpx.RequestError as exc:
            logger.error(
                "carrier.request_failed",
                shipment_id=str(shipment.shipment_id),
                error=str(exc),
            )
            raise CarrierUnavailable(f"Carrier service unreachable: {exc}") from exc

        if response.status_code not in (200, 201):
            logger.error(
                "carrier.request_rejected",
                shipment_id=str(shipment.shipment_id),
                status_code=response.status_code,
            )
            raise CarrierUnavailable(f"Carrier service answered {response.status_code}.")

        reference = response.json().get("reference")
        if not reference:
            raise CarrierUnavailable("Carrier response has no reference.")
        return str(reference)


def build_carrier_gateway() -> Optional[ICarrierGateway]:
    """Gateway configured from settings, or ``None`` when no carrier URL is set."""
    if not settings.CARRIER_API_URL:
        return None
    return HttpCarrierGateway(
        base_url=settings.CARRIER_API_URL,
        api_key=settings.CARRIER_API_KEY,
        account_id=settings.CARRIER_ACCOUNT_ID,
        timeout=settings.CARRIER_TIMEOUT_SECONDS,
    )
