"""
HTTP client for the commerce backend.

Serves the territory catalog, the day's committed bookings, and accepts
booking metadata onto a cart. Payloads are validated on the way in; a
backend that is down, slow or returns malformed data raises
DataUnavailableError (reads) or PersistenceError (writes).
"""

import logging
from datetime import date
from typing import Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from src.config import settings
from src.scheduling.errors import DataUnavailableError, PersistenceError
from src.schemas.booking_schema import BookingMetadata, ExistingBooking
from src.schemas.territory_schema import Territory

logger = logging.getLogger(__name__)

_territory_list = TypeAdapter(list[Territory])
_booking_list = TypeAdapter(list[ExistingBooking])


class BackendClient:
    """Bearer-authenticated JSON client for territories, bookings and carts."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_sec: Optional[float] = None,
    ) -> None:
        self.api_url = (api_url or settings.backend.api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.backend.api_key
        self.timeout_sec = timeout_sec or settings.backend.timeout_sec

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        data: Optional[dict] = None,
    ) -> httpx.Response:
        async with httpx.AsyncClient() as client:
            return await client.request(
                method=method,
                url=f"{self.api_url}{endpoint}",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                params=params,
                json=data,
                timeout=self.timeout_sec,
            )

    async def _read(self, endpoint: str, params: Optional[dict] = None) -> Optional[object]:
        """GET ``endpoint`` and return its JSON body, or None on 404."""
        try:
            response = await self._request("GET", endpoint, params=params)
        except httpx.HTTPError as exc:
            raise DataUnavailableError(f"Backend unreachable for {endpoint}: {exc}") from exc
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise DataUnavailableError(
                f"Backend returned {response.status_code} for {endpoint}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise DataUnavailableError(f"Backend sent invalid JSON for {endpoint}") from exc

    async def get_territory(self, name: str) -> Optional[Territory]:
        """Fetch one territory by name; None if the backend does not know it."""
        body = await self._read(f"/territories/{quote(name, safe='')}")
        if body is None:
            return None
        if isinstance(body, dict) and "territory" in body:
            body = body["territory"]
        try:
            return Territory.model_validate(body)
        except ValidationError as exc:
            raise DataUnavailableError(f"Malformed territory '{name}': {exc}") from exc

    async def list_territories(self) -> list[Territory]:
        body = await self._read("/territories")
        if isinstance(body, dict):
            body = body.get("territories", [])
        try:
            return _territory_list.validate_python(body or [])
        except ValidationError as exc:
            raise DataUnavailableError(f"Malformed territory catalog: {exc}") from exc

    async def list_bookings(self, day: date) -> list[ExistingBooking]:
        """Bookings already committed for ``day``."""
        body = await self._read("/bookings", params={"date": day.isoformat()})
        if isinstance(body, dict):
            body = body.get("bookings", [])
        try:
            return _booking_list.validate_python(body or [])
        except ValidationError as exc:
            raise DataUnavailableError(f"Malformed bookings for {day}: {exc}") from exc

    async def update_metadata(self, order_id: str, metadata: BookingMetadata) -> None:
        """Write booking metadata onto a cart."""
        try:
            response = await self._request(
                "POST", f"/carts/{order_id}", data={"metadata": metadata.to_payload()}
            )
        except httpx.HTTPError as exc:
            raise PersistenceError(f"Backend unreachable saving {order_id}: {exc}") from exc
        if not response.is_success:
            raise PersistenceError(
                f"Backend returned {response.status_code} saving {order_id}"
            )
        logger.info("Saved booking metadata on %s", order_id)
