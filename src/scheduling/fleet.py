"""Derive each scheduled technician's shift for a date."""

import logging
from datetime import date
from typing import Mapping, Optional

from src.config import settings
from src.scheduling.availability import AvailabilityCalculator
from src.scheduling.errors import UnresolvedTerritoryError
from src.schemas.routing_schema import FleetMember, Location
from src.schemas.territory_schema import Territory
from src.utils import as_date, format_hhmm

logger = logging.getLogger(__name__)


def fleet_key(technician_email: str, territory_name: str) -> str:
    return f"{technician_email}_{territory_name}"


class FleetBuilder:
    """
    Builds the fleet for a routing call.

    Every technician with an open-hours rule on the date contributes one
    member per territory, shaped by that day's first matching window and
    starting and ending at the depot.
    """

    def __init__(
        self,
        depot: Optional[Location] = None,
        timezone: Optional[str] = None,
        strict: Optional[bool] = None,
    ) -> None:
        self.depot = depot or Location(
            name=settings.scheduling.depot_name,
            lat=settings.scheduling.depot_lat,
            lng=settings.scheduling.depot_lng,
        )
        self.strict = settings.scheduling.strict_fleet_resolution if strict is None else strict
        # Shift windows are converted the same way slot windows are
        self._windows = AvailabilityCalculator(buffer_minutes=0, timezone=timezone)

    def build(
        self,
        day: date,
        territory_names: list[str],
        territories: Mapping[str, Territory],
    ) -> dict[str, FleetMember]:
        """
        Build fleet members for ``territory_names`` on ``day``.

        Raises:
            UnresolvedTerritoryError: In strict mode, when a name is missing
                from ``territories``.
        """
        day = as_date(day)
        unresolved = [name for name in territory_names if name not in territories]
        if unresolved:
            if self.strict:
                raise UnresolvedTerritoryError(unresolved)
            logger.warning("Skipping unresolved territories: %s", unresolved)

        fleet: dict[str, FleetMember] = {}
        for name in territory_names:
            territory = territories.get(name)
            if territory is None:
                continue
            for technician in territory.technicians:
                window = None
                for rule in technician.rules_for(day):
                    window = self._windows.rule_window(rule, day)
                    if window is not None:
                        break
                if window is None:
                    continue
                fleet[fleet_key(technician.email, name)] = FleetMember(
                    start_location=self.depot,
                    end_location=self.depot,
                    shift_start=format_hhmm(window[0]),
                    shift_end=format_hhmm(window[1]),
                )

        logger.debug("Built fleet of %d shifts for %s", len(fleet), day)
        return fleet
