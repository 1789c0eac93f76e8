"""Merge the candidate booking with the day's committed bookings into visits."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Union

from src.config import settings
from src.schemas.booking_schema import CandidateBooking, ExistingBooking
from src.schemas.routing_schema import Location, Visit
from src.utils import as_date, format_hhmm, from_timestamp, get_timezone, wall_minutes

logger = logging.getLogger(__name__)


@dataclass
class DayAggregate:
    """Visits for the routing call plus every territory they touch."""

    visits: dict[str, Visit] = field(default_factory=dict)
    territory_names: list[str] = field(default_factory=list)


class DayBookingAggregator:
    """Builds one Visit per booking on a date, candidate included."""

    def __init__(self, timezone: Optional[str] = None) -> None:
        self.tz = get_timezone(timezone or settings.scheduling.timezone)

    def _clock(self, timestamp: int, day: date) -> str:
        return format_hhmm(wall_minutes(from_timestamp(timestamp, self.tz), day, self.tz))

    def _visit(
        self,
        day: date,
        booking: Union[ExistingBooking, CandidateBooking],
        start_time: int,
        end_time: int,
    ) -> Visit:
        # Missing coordinates become 0.0; the optimizer decides what that means
        lat = booking.latitude if booking.latitude is not None else 0.0
        lng = booking.longitude if booking.longitude is not None else 0.0
        if booking.latitude is None and booking.longitude is None:
            logger.warning("Booking %s has no coordinates, using (0, 0)", booking.order_id)
        return Visit(
            location=Location(name=booking.address or booking.order_id, lat=lat, lng=lng),
            start=self._clock(start_time, day),
            end=self._clock(end_time, day),
            duration=booking.duration_minutes,
        )

    def aggregate(
        self,
        day: date,
        candidate: CandidateBooking,
        existing: list[ExistingBooking],
    ) -> DayAggregate:
        """
        Key every booking on ``day`` by its order identity.

        The candidate's territory always comes first in ``territory_names``.
        A candidate sharing an identity with an existing booking replaces it.
        """
        day = as_date(day)
        result = DayAggregate(territory_names=[candidate.territory_name])

        for booking in existing:
            result.visits[booking.order_id] = self._visit(
                day, booking, booking.start_time, booking.end_time
            )
            if booking.territory_name not in result.territory_names:
                result.territory_names.append(booking.territory_name)

        result.visits[candidate.order_id] = self._visit(
            day, candidate, candidate.selected.start_time, candidate.selected.end_time
        )

        logger.debug(
            "Aggregated %d visits across territories %s for %s",
            len(result.visits), result.territory_names, day,
        )
        return result
