"""
Route feasibility check against an external vehicle-routing optimizer.

Posts the day's visits and fleet shifts in one request and reads back
which visits, if any, could not be served. Any transport failure,
timeout, non-2xx reply or malformed body becomes a RoutingServiceError.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from src.config import settings
from src.scheduling.errors import RoutingServiceError
from src.schemas.routing_schema import (
    FeasibilityVerdict,
    FleetMember,
    RoutingRequest,
    RoutingResponse,
    Visit,
)

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Pull the optimizer's error text out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


class FeasibilityGateway:
    """Client for the routing optimizer's single-day feasibility endpoint."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout_sec: Optional[float] = None,
    ) -> None:
        self.api_url = api_url or settings.routing.api_url
        self.api_token = api_token if api_token is not None else settings.routing.api_token
        self.timeout_sec = timeout_sec or settings.routing.timeout_sec

    async def _post(self, payload: dict) -> httpx.Response:
        async with httpx.AsyncClient() as client:
            return await client.post(
                self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_token}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self.timeout_sec,
            )

    async def check(
        self,
        visits: dict[str, Visit],
        fleet: dict[str, FleetMember],
    ) -> FeasibilityVerdict:
        """
        Ask the optimizer whether ``visits`` fit into ``fleet``.

        Returns:
            A feasible verdict, or an infeasible one carrying unserved ids.

        Raises:
            RoutingServiceError: On timeout, network failure, non-2xx
                status or an unreadable response body.
        """
        payload = RoutingRequest(visits=visits, fleet=fleet).model_dump(mode="json")
        logger.debug(
            "Requesting feasibility for %d visits over %d shifts", len(visits), len(fleet)
        )
        try:
            response = await self._post(payload)
        except httpx.TimeoutException:
            raise RoutingServiceError(
                f"Routing optimizer timed out after {self.timeout_sec}s"
            ) from None
        except httpx.HTTPError as exc:
            raise RoutingServiceError(f"Routing optimizer unreachable: {exc}") from exc

        if not response.is_success:
            message = _error_message(response)
            logger.error("Routing optimizer returned %s: %s", response.status_code, message)
            raise RoutingServiceError(message, status_code=response.status_code)

        try:
            parsed = RoutingResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RoutingServiceError(f"Malformed routing response: {exc}") from exc

        verdict = FeasibilityVerdict.from_response(parsed)
        if verdict.feasible:
            logger.info("Routing verdict: feasible")
        else:
            logger.info("Routing verdict: infeasible, unserved %s", verdict.unserved)
        return verdict
