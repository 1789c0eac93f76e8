"""Customer-facing messages for availability and submission outcomes."""

from zoneinfo import ZoneInfo

from src.schemas.booking_schema import SelectedBooking

NO_SLOTS_MESSAGE = "No time slots available for this date."
SELECTION_INVALID_MESSAGE = "Please select a date and time before continuing."
INFEASIBLE_MESSAGE = (
    "Sorry, we can't fit that time into our technicians' schedule. "
    "Please choose a different slot."
)
SERVICE_FAILURE_MESSAGE = "Something went wrong while checking availability. Please try again."


def build_confirmation_message(selected: SelectedBooking, tz: ZoneInfo) -> str:
    """Summarize a committed booking, e.g. 'Booked 20/10/2026 09:00 - 10:00.'"""
    return f"Booked {selected.day(tz):%d/%m/%Y} {selected.label(tz)}."
