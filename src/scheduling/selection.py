"""Resolve a picked slot into a concrete time range and technician."""

import logging
from datetime import date
from typing import Optional

from src.config import settings
from src.schemas.booking_schema import BookingKind, BookingSlot, SelectedBooking
from src.utils import as_date, get_timezone, to_timestamp

logger = logging.getLogger(__name__)


class SlotSelectionResolver:
    """Turns a user-picked slot on a date into a SelectedBooking."""

    def __init__(self, timezone: Optional[str] = None) -> None:
        self.tz = get_timezone(timezone or settings.scheduling.timezone)

    def resolve(
        self,
        day: date,
        duration: int,
        slot: BookingSlot,
        technician_priority: Optional[str] = None,
    ) -> SelectedBooking:
        """
        Resolve ``slot`` on ``day``.

        Flex slots end where their window ends; exact slots end
        ``duration`` minutes after they start. The preferred technician
        wins when they are a candidate, otherwise the first candidate does.
        """
        if duration <= 0:
            raise ValueError(f"duration must be > 0, got {duration}")
        day = as_date(day)

        start = to_timestamp(day, slot.start, self.tz)
        if slot.kind == BookingKind.FLEX and slot.end is not None:
            end = to_timestamp(day, slot.end, self.tz)
        else:
            end = start + duration * 60

        if technician_priority and technician_priority in slot.candidates:
            technician = technician_priority
        else:
            technician = slot.candidates[0]

        logger.debug(
            "Resolved %s slot %s on %s to technician %s",
            slot.kind.value, slot.label, day, technician,
        )
        return SelectedBooking(
            start_time=start,
            end_time=end,
            period=slot.period,
            kind=slot.kind,
            technician_email=technician,
        )
