"""
In-memory order and cart store.

In production, committed bookings are read from and written to the
commerce backend (see src.tools.backend.BackendClient). This stand-in
keeps orders in a dict so the demo and tests can exercise the full
submission flow.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from src.config import settings
from src.scheduling.errors import PersistenceError
from src.schemas.booking_schema import BookingMetadata, ExistingBooking
from src.utils import from_timestamp, get_timezone

logger = logging.getLogger(__name__)


@dataclass
class OrderRecord:
    """A cart or order as far as scheduling is concerned."""

    order_id: str
    territory_name: str
    duration_minutes: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    metadata: Optional[BookingMetadata] = None


class InMemoryOrderStore:
    """Orders keyed by id; the ones carrying booking metadata are bookings."""

    def __init__(self, timezone: Optional[str] = None) -> None:
        self.tz = get_timezone(timezone or settings.scheduling.timezone)
        self._orders: dict[str, OrderRecord] = {}

    def add_order(self, record: OrderRecord) -> None:
        self._orders[record.order_id] = record

    def get_order(self, order_id: str) -> Optional[OrderRecord]:
        return self._orders.get(order_id)

    async def list_bookings(self, day: date) -> list[ExistingBooking]:
        """Bookings whose start falls on ``day`` in the store's timezone."""
        bookings = []
        for record in self._orders.values():
            if record.metadata is None:
                continue
            if from_timestamp(record.metadata.start_time, self.tz).date() != day:
                continue
            bookings.append(ExistingBooking(
                order_id=record.order_id,
                territory_name=record.territory_name,
                latitude=record.latitude,
                longitude=record.longitude,
                start_time=record.metadata.start_time,
                end_time=record.metadata.end_time,
                duration_minutes=record.duration_minutes,
                address=record.address,
            ))
        return bookings

    async def update_metadata(self, order_id: str, metadata: BookingMetadata) -> None:
        record = self._orders.get(order_id)
        if record is None:
            raise PersistenceError(f"Order {order_id} not found")
        record.metadata = metadata
        logger.info("Booking metadata saved on %s", order_id)

    def reset(self) -> None:
        """Clear all orders. Used by test fixtures for isolation."""
        self._orders.clear()
