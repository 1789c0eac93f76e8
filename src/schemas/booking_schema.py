"""Booking slot, selection and persisted booking data models."""

from datetime import date
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.utils import MINUTES_PER_DAY, format_hhmm, from_timestamp


class Period(str, Enum):
    """Fixed clock-time partitions of a day."""

    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"

    @property
    def start_minute(self) -> int:
        return PERIOD_BOUNDS[self][0]

    @property
    def end_minute(self) -> int:
        return PERIOD_BOUNDS[self][1]


# [start, end) in minutes from midnight, in chronological block order
PERIOD_BOUNDS: dict[Period, tuple[int, int]] = {
    Period.MORNING: (0, 12 * 60),
    Period.AFTERNOON: (12 * 60, 18 * 60),
    Period.EVENING: (18 * 60, MINUTES_PER_DAY),
}


class BookingKind(str, Enum):
    """Flex offers a whole window; exact offers a fixed start time."""

    FLEX = "flex"
    EXACT = "exact"


class BookingSlot(BaseModel):
    """A candidate offer.

    ``start`` and ``end`` are minutes from midnight in the service timezone.
    ``end`` is only set for flex slots. ``candidates`` holds technician
    emails in discovery order.
    """

    kind: BookingKind
    start: int = Field(ge=0, le=MINUTES_PER_DAY)
    end: Optional[int] = Field(default=None, ge=0, le=MINUTES_PER_DAY)
    period: Period
    candidates: list[str] = Field(min_length=1)

    @model_validator(mode="after")
    def _end_matches_kind(self) -> "BookingSlot":
        if self.kind == BookingKind.FLEX and self.end is None:
            raise ValueError("flex slots require an end time")
        if self.kind == BookingKind.EXACT and self.end is not None:
            raise ValueError("exact slots must not carry an end time")
        return self

    @property
    def key(self) -> tuple[BookingKind, int, Optional[int], Period]:
        return (self.kind, self.start, self.end, self.period)

    @property
    def label(self) -> str:
        if self.end is None:
            return format_hhmm(self.start)
        return f"{format_hhmm(self.start)} - {format_hhmm(self.end)}"


class SlotGroup(BaseModel):
    """All slots of one period, sorted by start."""

    period: Period
    slots: list[BookingSlot] = Field(default_factory=list)


class SelectedBooking(BaseModel):
    """Resolved outcome of a slot selection. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    start_time: int
    end_time: int
    period: Period
    kind: BookingKind
    technician_email: str

    def day(self, tz: ZoneInfo) -> date:
        return from_timestamp(self.start_time, tz).date()

    def label(self, tz: ZoneInfo) -> str:
        start = from_timestamp(self.start_time, tz)
        end = from_timestamp(self.end_time, tz)
        return f"{start:%H:%M} - {end:%H:%M}"


class BookingMetadata(BaseModel):
    """Booking fields written onto the hosting cart or order."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: int = Field(alias="startTime")
    end_time: int = Field(alias="endTime")
    technician_email: str = Field(alias="technicianEmail")
    period: Period
    booking_type: BookingKind = Field(alias="bookingType")

    @classmethod
    def from_selection(cls, selected: SelectedBooking) -> "BookingMetadata":
        return cls(
            start_time=selected.start_time,
            end_time=selected.end_time,
            technician_email=selected.technician_email,
            period=selected.period,
            booking_type=selected.kind,
        )

    def to_selection(self) -> SelectedBooking:
        return SelectedBooking(
            start_time=self.start_time,
            end_time=self.end_time,
            period=self.period,
            kind=self.booking_type,
            technician_email=self.technician_email,
        )

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ExistingBooking(BaseModel):
    """A booking already committed for the day, as read from the backend."""

    order_id: str
    territory_name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    start_time: int
    end_time: int
    duration_minutes: int = Field(gt=0)
    address: Optional[str] = None


class CandidateBooking(BaseModel):
    """The booking being validated, built from the session's selection."""

    order_id: str
    territory_name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    selected: SelectedBooking
    duration_minutes: int = Field(gt=0)
    address: Optional[str] = None
