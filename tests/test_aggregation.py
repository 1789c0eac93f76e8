"""Tests for merging the candidate booking with the day's bookings."""

from datetime import datetime, timezone

import pytest

from src.scheduling.aggregation import DayBookingAggregator
from src.schemas.booking_schema import (
    BookingKind,
    CandidateBooking,
    ExistingBooking,
    Period,
    SelectedBooking,
)
from tests.conftest import MONDAY


def _ts(hour, minute=0):
    return int(datetime(2026, 10, 19, hour, minute, tzinfo=timezone.utc).timestamp())


def _existing(order_id, territory, start, end, lat=-37.8, lng=144.9, duration=60):
    return ExistingBooking(
        order_id=order_id, territory_name=territory, latitude=lat, longitude=lng,
        start_time=_ts(*start), end_time=_ts(*end), duration_minutes=duration,
    )


def _candidate(order_id="cart_1", territory="north", lat=-37.81, lng=144.96):
    return CandidateBooking(
        order_id=order_id,
        territory_name=territory,
        latitude=lat,
        longitude=lng,
        selected=SelectedBooking(
            start_time=_ts(9), end_time=_ts(12), period=Period.MORNING,
            kind=BookingKind.FLEX, technician_email="a@example.com",
        ),
        duration_minutes=60,
    )


@pytest.fixture
def aggregator():
    return DayBookingAggregator(timezone="UTC")


class TestVisits:
    def test_one_visit_per_booking_plus_candidate(self, aggregator):
        existing = [
            _existing("order_1", "north", (10, 0), (11, 0)),
            _existing("order_2", "south", (13, 30), (15, 0), duration=90),
        ]
        result = aggregator.aggregate(MONDAY, _candidate(), existing)
        assert set(result.visits) == {"order_1", "order_2", "cart_1"}

    def test_visit_times_are_clock_strings(self, aggregator):
        existing = [_existing("order_2", "south", (13, 30), (15, 0), duration=90)]
        result = aggregator.aggregate(MONDAY, _candidate(), existing)
        visit = result.visits["order_2"]
        assert (visit.start, visit.end, visit.duration) == ("13:30", "15:00", 90)

    def test_candidate_visit_uses_selection_window(self, aggregator):
        result = aggregator.aggregate(MONDAY, _candidate(), [])
        visit = result.visits["cart_1"]
        assert (visit.start, visit.end) == ("09:00", "12:00")
        assert (visit.location.lat, visit.location.lng) == (-37.81, 144.96)

    def test_missing_coordinates_become_origin(self, aggregator):
        existing = [_existing("order_1", "north", (10, 0), (11, 0), lat=None, lng=None)]
        result = aggregator.aggregate(MONDAY, _candidate(), existing)
        location = result.visits["order_1"].location
        assert (location.lat, location.lng) == (0.0, 0.0)

    def test_candidate_replaces_existing_with_same_identity(self, aggregator):
        existing = [_existing("cart_1", "north", (15, 0), (16, 0))]
        result = aggregator.aggregate(MONDAY, _candidate(), existing)
        assert len(result.visits) == 1
        assert result.visits["cart_1"].start == "09:00"


class TestTerritoryNames:
    def test_candidate_territory_included_without_other_bookings(self, aggregator):
        result = aggregator.aggregate(MONDAY, _candidate(territory="west"), [])
        assert result.territory_names == ["west"]

    def test_names_are_distinct_and_candidate_first(self, aggregator):
        existing = [
            _existing("order_1", "south", (10, 0), (11, 0)),
            _existing("order_2", "north", (12, 0), (13, 0)),
            _existing("order_3", "south", (14, 0), (15, 0)),
        ]
        result = aggregator.aggregate(MONDAY, _candidate(territory="north"), existing)
        assert result.territory_names == ["north", "south"]
