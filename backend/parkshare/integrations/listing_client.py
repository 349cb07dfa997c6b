"""HTTP client for the listing service (parking spots and vehicles)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.exceptions import CollaboratorException, ValidationException
from .listing_contracts import SpotSnapshot

logger = logging.getLogger(__name__)

COLLABORATOR_NAME = "listing-service"


class ListingServiceClient:
    """
    Thin client for the listing service REST API.

    Implements both ``SpotDirectory`` and ``VehicleRegistry``. A 404 maps to
    ``None``; timeouts, transport errors, other non-2xx responses and
    malformed payloads raise ``CollaboratorException``. No retries here.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
        headers: Dict[str, str] | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("Listing service base_url must be provided")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._headers = {"Accept": "application/json", **(headers or {})}

    def get_spot(self, spot_id: str) -> Optional[SpotSnapshot]:
        payload = self.request("GET", f"/spots/{spot_id}", operation="get_spot")
        if payload is None:
            return None
        try:
            spot = payload.get("spot", payload) if isinstance(payload, dict) else None
            if not isinstance(spot, dict):
                raise TypeError(f"expected an object, got {type(payload).__name__}")
            return SpotSnapshot.from_payload(spot)
        except (ValidationException, KeyError, TypeError, ValueError) as exc:
            logger.error("Malformed spot payload for %s: %s", spot_id, exc)
            raise CollaboratorException(COLLABORATOR_NAME, "get_spot", "malformed spot payload")

    def list_owner_spot_ids(self, owner_id: str) -> List[str]:
        payload = self.request(
            "GET", "/spots", params={"owner_id": owner_id}, operation="list_owner_spot_ids"
        )
        if payload is None:
            return []
        items = payload.get("items", []) if isinstance(payload, dict) else payload
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            logger.error("Malformed spot list payload for owner %s", owner_id)
            raise CollaboratorException(
                COLLABORATOR_NAME, "list_owner_spot_ids", "malformed spot list payload"
            )
        return [str(item.get("id") or item.get("_id")) for item in items]

    def get_vehicle_owner(self, vehicle_id: str) -> Optional[str]:
        payload = self.request("GET", f"/vehicles/{vehicle_id}", operation="get_vehicle_owner")
        if payload is None:
            return None
        vehicle = payload.get("vehicle", payload) if isinstance(payload, dict) else None
        if not isinstance(vehicle, dict):
            logger.error("Malformed vehicle payload for %s", vehicle_id)
            raise CollaboratorException(
                COLLABORATOR_NAME, "get_vehicle_owner", "malformed vehicle payload"
            )
        owner = vehicle.get("user_id") or vehicle.get("user")
        if not owner:
            raise CollaboratorException(
                COLLABORATOR_NAME, "get_vehicle_owner", "vehicle payload has no owner"
            )
        return str(owner)

    def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        params: Dict[str, Any] | None = None,
    ) -> Any:
        """Perform a request and return parsed JSON, or ``None`` on 404."""

        url = f"{self._base_url}{path}"
        with httpx.Client(
            timeout=self._timeout,
            transport=self._transport,
            headers=self._headers,
        ) as client:
            try:
                response = client.request(method, url, params=params)
            except httpx.TimeoutException as exc:
                logger.warning("Listing service timeout on %s %s: %s", method, path, exc)
                raise CollaboratorException(COLLABORATOR_NAME, operation, "timeout") from exc
            except httpx.HTTPError as exc:
                logger.warning("Listing service transport error on %s %s: %s", method, path, exc)
                raise CollaboratorException(COLLABORATOR_NAME, operation, "transport error") from exc

            if response.status_code == httpx.codes.NOT_FOUND:
                return None
            if response.is_error:
                logger.error(
                    "Listing service error %s for %s %s", response.status_code, method, path
                )
                raise CollaboratorException(
                    COLLABORATOR_NAME, operation, f"status {response.status_code}"
                )
            try:
                return response.json()
            except ValueError as exc:
                raise CollaboratorException(COLLABORATOR_NAME, operation, "invalid JSON") from exc
