"""
In-memory territory catalog.

In production the catalog is served by the commerce backend
(see src.tools.backend.BackendClient). This stand-in backs the CLI demo
and tests with the same async interface.
"""

import logging
from datetime import time
from typing import Optional

from src.schemas.territory_schema import OpenHoursRule, Technician, Territory

logger = logging.getLogger(__name__)

WEEKDAYS = [0, 1, 2, 3, 4]

DEMO_TERRITORIES: list[Territory] = [
    Territory(
        id="1",
        name="north",
        technicians=[
            Technician(
                email="mike.t@example.com",
                name="Mike T.",
                open_hours=[
                    OpenHoursRule(start_time=time(9, 0), end_time=time(17, 0), weekdays=WEEKDAYS),
                ],
            ),
            Technician(
                email="sarah.l@example.com",
                name="Sarah L.",
                open_hours=[
                    OpenHoursRule(start_time=time(9, 0), end_time=time(12, 0), weekdays=WEEKDAYS),
                    OpenHoursRule(start_time=time(16, 0), end_time=time(20, 0), weekdays=[1, 3]),
                ],
            ),
        ],
    ),
    Territory(
        id="2",
        name="south",
        technicians=[
            Technician(
                email="dave.w@example.com",
                name="Dave W.",
                open_hours=[
                    OpenHoursRule(start_time=time(8, 0), end_time=time(14, 0), weekdays=[0, 2, 4, 5]),
                ],
            ),
        ],
    ),
]


class InMemoryTerritoryCatalog:
    """Territory catalog held in a dict keyed by territory name."""

    def __init__(self, territories: Optional[list[Territory]] = None) -> None:
        if territories is None:
            territories = DEMO_TERRITORIES
        self._territories: dict[str, Territory] = {t.name: t for t in territories}

    async def get_territory(self, name: str) -> Optional[Territory]:
        territory = self._territories.get(name)
        if territory is None:
            logger.debug("Territory '%s' not in catalog", name)
        return territory

    async def list_territories(self) -> list[Territory]:
        return list(self._territories.values())

    def add(self, territory: Territory) -> None:
        self._territories[territory.name] = territory
