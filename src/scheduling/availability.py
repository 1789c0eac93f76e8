"""
Slot generation from technician open hours.

Each open-hours window that applies on the requested date is split at the
Morning / Afternoon / Evening boundaries. Every resulting sub-window offers
one flex slot covering all of it, plus exact slots stepped through it by
``duration + buffer``. Identical slots from different technicians collapse
into one slot whose candidate list names every technician that produced it.

Usage:
    calculator = AvailabilityCalculator(buffer_minutes=30, timezone="UTC")
    groups = calculator.compute(date(2026, 10, 20), territory, duration=60)
    for group in groups:
        print(group.period.value, [slot.label for slot in group.slots])
"""

import logging
from datetime import date, datetime
from typing import Optional

from src.config import settings
from src.schemas.booking_schema import (
    PERIOD_BOUNDS,
    BookingKind,
    BookingSlot,
    Period,
    SlotGroup,
)
from src.schemas.territory_schema import OpenHoursRule, Territory
from src.utils import as_date, get_timezone, to_timestamp, wall_minutes

logger = logging.getLogger(__name__)

SlotKey = tuple[BookingKind, int, Optional[int], Period]


def split_into_periods(start: int, end: int) -> list[tuple[Period, int, int]]:
    """Clip a [start, end) minute window against each period it overlaps.

    Zero-width pieces (a window closing exactly on a boundary) are dropped.
    """
    pieces = []
    for period, (period_start, period_end) in PERIOD_BOUNDS.items():
        lo = max(start, period_start)
        hi = min(end, period_end)
        if hi > lo:
            pieces.append((period, lo, hi))
    return pieces


def exact_starts(start: int, end: int, duration: int, buffer_minutes: int) -> list[int]:
    """Start minutes of every exact slot that fits inside [start, end)."""
    starts = []
    cursor = start
    while cursor + duration <= end:
        starts.append(cursor)
        cursor += duration + buffer_minutes
    return starts


class AvailabilityCalculator:
    """Turns a territory roster, a date and a duration into grouped slots."""

    def __init__(
        self,
        buffer_minutes: Optional[int] = None,
        timezone: Optional[str] = None,
    ) -> None:
        if buffer_minutes is None:
            buffer_minutes = settings.scheduling.buffer_minutes
        if buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must be >= 0, got {buffer_minutes}")
        self.buffer_minutes = buffer_minutes
        self.tz = get_timezone(timezone or settings.scheduling.timezone)

    def rule_window(self, rule: OpenHoursRule, day: date) -> Optional[tuple[int, int]]:
        """The rule's open window on ``day`` as service-timezone minutes.

        The window is built in the rule's own timezone, converted, and
        clipped to the service day. Returns None when nothing remains.
        """
        opens = datetime.combine(day, rule.start_time, tzinfo=rule.tz)
        closes = datetime.combine(day, rule.end_time, tzinfo=rule.tz)
        start = wall_minutes(opens, day, self.tz)
        end = wall_minutes(closes, day, self.tz)
        if end <= start:
            return None
        return start, end

    def compute(
        self,
        day: date,
        territory: Optional[Territory],
        duration: int,
    ) -> list[SlotGroup]:
        """
        Compute bookable slots for ``day``.

        Args:
            day: Calendar date; only its weekday and exclusions matter.
            territory: Roster to draw from. None yields no slots.
            duration: Service duration in minutes.

        Returns:
            Non-empty period groups in Morning, Afternoon, Evening order,
            each sorted by absolute start time.

        Raises:
            ValueError: If duration is not positive.
        """
        day = as_date(day)
        if duration <= 0:
            raise ValueError(f"duration must be > 0, got {duration}")
        if territory is None or not territory.technicians:
            logger.debug("No technician roster available for %s", day)
            return []

        slots: dict[SlotKey, BookingSlot] = {}
        for technician in territory.technicians:
            for rule in technician.rules_for(day):
                window = self.rule_window(rule, day)
                if window is None:
                    continue
                for period, lo, hi in split_into_periods(*window):
                    self._offer(slots, BookingKind.FLEX, lo, hi, period, technician.email)
                    for start in exact_starts(lo, hi, duration, self.buffer_minutes):
                        self._offer(
                            slots, BookingKind.EXACT, start, None, period, technician.email
                        )

        groups = self._group(day, list(slots.values()))
        logger.debug(
            "Computed %d slots in %d periods for territory '%s' on %s",
            len(slots), len(groups), territory.name, day,
        )
        return groups

    @staticmethod
    def _offer(
        slots: dict[SlotKey, BookingSlot],
        kind: BookingKind,
        start: int,
        end: Optional[int],
        period: Period,
        email: str,
    ) -> None:
        key = (kind, start, end, period)
        existing = slots.get(key)
        if existing is None:
            slots[key] = BookingSlot(
                kind=kind, start=start, end=end, period=period, candidates=[email]
            )
        elif email not in existing.candidates:
            existing.candidates.append(email)

    def _group(self, day: date, slots: list[BookingSlot]) -> list[SlotGroup]:
        groups = []
        for period in PERIOD_BOUNDS:
            in_period = [slot for slot in slots if slot.period == period]
            if not in_period:
                continue
            # sorted() is stable, so equal starts keep discovery order
            in_period = sorted(
                in_period, key=lambda slot: to_timestamp(day, slot.start, self.tz)
            )
            groups.append(SlotGroup(period=period, slots=in_period))
        return groups
