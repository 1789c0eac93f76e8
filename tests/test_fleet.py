"""Tests for building technician shifts for the routing call."""

from datetime import datetime

import pytest

from src.scheduling.errors import UnresolvedTerritoryError
from src.scheduling.fleet import FleetBuilder, fleet_key
from tests.conftest import DEPOT, MONDAY, make_rule, make_technician, make_territory


@pytest.fixture
def territories():
    north = make_territory(
        "north",
        make_technician("alice@example.com", make_rule("09:00", "17:00"), make_rule("18:00", "20:00")),
        make_technician("bob@example.com", make_rule("08:00", "12:00", weekdays=[2, 3])),
    )
    south = make_territory(
        "south",
        make_technician("alice@example.com", make_rule("10:00", "14:00")),
        make_technician("carol@example.com", make_rule("07:30", "15:30", excluded=[MONDAY])),
    )
    return {"north": north, "south": south}


@pytest.fixture
def builder():
    return FleetBuilder(depot=DEPOT, timezone="UTC", strict=True)


class TestFleetMembers:
    def test_keys_combine_technician_and_territory(self, builder, territories):
        fleet = builder.build(MONDAY, ["north", "south"], territories)
        assert set(fleet) == {
            fleet_key("alice@example.com", "north"),
            fleet_key("alice@example.com", "south"),
        }

    def test_shift_uses_first_matching_window(self, builder, territories):
        fleet = builder.build(MONDAY, ["north"], territories)
        member = fleet[fleet_key("alice@example.com", "north")]
        assert (member.shift_start, member.shift_end) == ("09:00", "17:00")

    def test_depot_is_start_and_end(self, builder, territories):
        fleet = builder.build(MONDAY, ["north"], territories)
        member = fleet[fleet_key("alice@example.com", "north")]
        assert member.start_location == DEPOT
        assert member.end_location == DEPOT

    def test_technician_off_that_weekday_is_omitted(self, builder, territories):
        fleet = builder.build(MONDAY, ["north"], territories)
        assert fleet_key("bob@example.com", "north") not in fleet

    def test_excluded_date_is_omitted(self, builder, territories):
        fleet = builder.build(MONDAY, ["south"], territories)
        assert fleet_key("carol@example.com", "south") not in fleet

    def test_time_of_day_on_date_is_ignored(self, builder, territories):
        fleet = builder.build(datetime(2026, 10, 19, 16, 45), ["south"], territories)
        assert set(fleet) == {fleet_key("alice@example.com", "south")}


class TestUnresolvedTerritories:
    def test_strict_mode_raises(self, builder, territories):
        with pytest.raises(UnresolvedTerritoryError) as exc_info:
            builder.build(MONDAY, ["north", "ghost"], territories)
        assert exc_info.value.names == ["ghost"]

    def test_lenient_mode_skips(self, territories):
        builder = FleetBuilder(depot=DEPOT, timezone="UTC", strict=False)
        fleet = builder.build(MONDAY, ["north", "ghost"], territories)
        assert set(fleet) == {fleet_key("alice@example.com", "north")}
