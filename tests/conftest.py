"""Shared test fixtures and helpers."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytest

from src.scheduling.availability import AvailabilityCalculator
from src.scheduling.fleet import FleetBuilder
from src.scheduling.orchestrator import SchedulingOrchestrator
from src.scheduling.state_machine import BookingStateMachine
from src.schemas.routing_schema import Location
from src.schemas.territory_schema import OpenHoursRule, Technician, Territory
from src.tools.orders import InMemoryOrderStore, OrderRecord
from src.tools.routing import FeasibilityGateway
from src.tools.territories import InMemoryTerritoryCatalog

MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
ALL_WEEK = [0, 1, 2, 3, 4, 5, 6]
ROUTING_URL = "https://routing.test/v1/vrp"
BACKEND_URL = "https://backend.test/store"
DEPOT = Location(name="Depot", lat=-37.8, lng=144.9)


def future_day(days: int = 7) -> date:
    """A date safely in the future in UTC."""
    return datetime.now(timezone.utc).date() + timedelta(days=days)


def make_rule(
    start: str = "09:00",
    end: str = "17:00",
    weekdays: Optional[list[int]] = None,
    excluded: Optional[list] = None,
    tz: str = "UTC",
) -> OpenHoursRule:
    """Helper to create an OpenHoursRule from 'HH:mm' strings."""
    return OpenHoursRule(
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        weekdays=ALL_WEEK if weekdays is None else weekdays,
        excluded_dates=excluded or [],
        timezone=tz,
    )


def make_technician(email: str, *rules: OpenHoursRule) -> Technician:
    return Technician(email=email, name=email.split("@")[0], open_hours=list(rules))


def make_territory(name: str = "north", *technicians: Technician) -> Territory:
    return Territory(id=f"t-{name}", name=name, technicians=list(technicians))


@pytest.fixture
def calculator():
    return AvailabilityCalculator(buffer_minutes=30, timezone="UTC")


@pytest.fixture
def state_machine():
    return BookingStateMachine()


@pytest.fixture
def north():
    return make_territory(
        "north",
        make_technician("alice@example.com", make_rule("09:00", "17:00")),
        make_technician("bob@example.com", make_rule("09:00", "12:00")),
    )


@pytest.fixture
def catalog(north):
    return InMemoryTerritoryCatalog([north])


@pytest.fixture
def order_store():
    store = InMemoryOrderStore(timezone="UTC")
    store.add_order(OrderRecord(
        order_id="order_42",
        territory_name="north",
        duration_minutes=60,
        latitude=-37.81,
        longitude=144.96,
    ))
    yield store
    store.reset()


@pytest.fixture
def gateway():
    return FeasibilityGateway(api_url=ROUTING_URL, api_token="test-token", timeout_sec=2.0)


@pytest.fixture
def orchestrator(catalog, order_store, gateway):
    return SchedulingOrchestrator(
        catalog,
        order_store,
        order_store,
        gateway,
        timezone="UTC",
        buffer_minutes=30,
        fleet_builder=FleetBuilder(depot=DEPOT, timezone="UTC", strict=True),
    )


@pytest.fixture
def session(orchestrator):
    return orchestrator.start_session(
        "order_42", "north", latitude=-37.81, longitude=144.96
    )
