"""
End-to-end "pick a slot -> confirm" flow.

The orchestrator owns one SchedulingSession per customer and sequences:
availability refresh, slot selection, and a strictly sequential,
fail-fast submission (territories -> day bookings -> visits -> fleet ->
routing verdict -> persist). Persistence only ever follows a feasible
verdict; every failure hands the session back to SlotChosen with the
selection intact.

Usage:
    orchestrator = SchedulingOrchestrator(catalog, orders, orders, gateway)
    session = orchestrator.start_session("cart_1", "north", latitude=.., longitude=..)
    groups = await orchestrator.refresh_availability(session, day, duration=60)
    orchestrator.select_slot(session, groups[0].slots[0])
    result = await orchestrator.submit(session)
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Protocol, Union

from pydantic import ValidationError

from src.config import settings
from src.logging_context import get_session_logger, set_session_id
from src.scheduling.aggregation import DayBookingAggregator
from src.scheduling.availability import AvailabilityCalculator
from src.scheduling.errors import (
    DataUnavailableError,
    PersistenceError,
    RoutingInfeasibleError,
    RoutingServiceError,
    SchedulingError,
    SelectionInvalidError,
)
from src.scheduling.fleet import FleetBuilder
from src.scheduling.messages import (
    INFEASIBLE_MESSAGE,
    NO_SLOTS_MESSAGE,
    SELECTION_INVALID_MESSAGE,
    SERVICE_FAILURE_MESSAGE,
    build_confirmation_message,
)
from src.scheduling.selection import SlotSelectionResolver
from src.scheduling.state_machine import (
    BookingState,
    BookingStateMachine,
    BookingTrigger,
    InvalidTransitionError,
)
from src.schemas.booking_schema import (
    BookingKind,
    BookingMetadata,
    BookingSlot,
    CandidateBooking,
    ExistingBooking,
    SelectedBooking,
    SlotGroup,
)
from src.schemas.routing_schema import FeasibilityVerdict, FleetMember, Visit
from src.schemas.territory_schema import Territory
from src.utils import as_date, get_timezone, today_in

logger = get_session_logger(__name__)


class TerritoryCatalog(Protocol):
    async def get_territory(self, name: str) -> Optional[Territory]: ...

    async def list_territories(self) -> list[Territory]: ...


class BookingsSource(Protocol):
    async def list_bookings(self, day: date) -> list[ExistingBooking]: ...


class BookingWriter(Protocol):
    async def update_metadata(self, order_id: str, metadata: BookingMetadata) -> None: ...


class RoutingChecker(Protocol):
    async def check(
        self, visits: dict[str, Visit], fleet: dict[str, FleetMember]
    ) -> FeasibilityVerdict: ...


@dataclass
class SchedulingSession:
    """
    Per-customer scheduling state.

    Replaces ambient UI state: every orchestrator step reads and writes
    this object. ``generation`` increments on each availability trigger
    so late fetch results can be recognized and dropped.
    """
    session_id: str
    order_id: str
    territory_name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    duration_minutes: int = settings.scheduling.default_duration_minutes
    technician_priority: Optional[str] = None
    selected_date: Optional[date] = None
    slot_groups: list[SlotGroup] = field(default_factory=list)
    selected_slot: Optional[BookingSlot] = None
    selected_booking: Optional[SelectedBooking] = None
    generation: int = 0
    state: BookingStateMachine = field(default_factory=BookingStateMachine)

    def all_slots(self) -> list[BookingSlot]:
        return [slot for group in self.slot_groups for slot in group.slots]

    def find_slot(self, label: str, kind: Optional[BookingKind] = None) -> Optional[BookingSlot]:
        """Look up an offered slot by its display label."""
        for slot in self.all_slots():
            if slot.label == label and (kind is None or slot.kind == kind):
                return slot
        return None


@dataclass
class SubmissionResult:
    """Outcome of one submit() call.

    ``failure_count`` counts the rejected or failed attempts made on the
    session so far, this one included.
    """
    outcome: BookingState
    message: str
    error: Optional[SchedulingError] = None
    verdict: Optional[FeasibilityVerdict] = None
    failure_count: int = 0

    @property
    def committed(self) -> bool:
        return self.outcome == BookingState.COMMITTED


class SchedulingOrchestrator:
    """Sequences availability, selection and feasibility-gated commit."""

    def __init__(
        self,
        catalog: TerritoryCatalog,
        bookings: BookingsSource,
        writer: BookingWriter,
        gateway: RoutingChecker,
        timezone: Optional[str] = None,
        buffer_minutes: Optional[int] = None,
        fleet_builder: Optional[FleetBuilder] = None,
    ) -> None:
        self.catalog = catalog
        self.bookings = bookings
        self.writer = writer
        self.gateway = gateway
        self.tz = get_timezone(timezone or settings.scheduling.timezone)
        self.calculator = AvailabilityCalculator(buffer_minutes=buffer_minutes, timezone=timezone)
        self.resolver = SlotSelectionResolver(timezone=timezone)
        self.aggregator = DayBookingAggregator(timezone=timezone)
        self.fleet_builder = fleet_builder or FleetBuilder(timezone=timezone)

    def start_session(
        self,
        order_id: str,
        territory_name: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        address: Optional[str] = None,
        technician_priority: Optional[str] = None,
    ) -> SchedulingSession:
        return SchedulingSession(
            session_id=order_id,
            order_id=order_id,
            territory_name=territory_name,
            latitude=latitude,
            longitude=longitude,
            address=address,
            technician_priority=technician_priority,
        )

    # ------------------------------------------------------------------ #
    # Availability
    # ------------------------------------------------------------------ #

    async def refresh_availability(
        self,
        session: SchedulingSession,
        day: date,
        duration: Optional[int] = None,
    ) -> Optional[list[SlotGroup]]:
        """
        Recompute slots after a date or duration change.

        Clears any prior selection. Returns the new groups, or None when a
        newer refresh was triggered while this one was still fetching; in
        that case the session is left to the newer refresh.

        Raises:
            InvalidTransitionError: While a submission is being validated,
                or once the booking has been committed.
        """
        set_session_id(session.session_id)
        self._ensure_editable(session)
        if duration is not None and duration <= 0:
            raise ValueError(f"duration must be > 0, got {duration}")

        day = as_date(day)
        session.generation += 1
        generation = session.generation
        self.clear_selection(session)
        session.selected_date = day
        if duration is not None:
            session.duration_minutes = duration
        session.slot_groups = []

        if day < today_in(self.tz):
            logger.debug("Requested date %s is in the past", day)
            return []

        try:
            territory = await self.catalog.get_territory(session.territory_name)
        except DataUnavailableError as exc:
            logger.warning("Territory '%s' unavailable: %s", session.territory_name, exc)
            territory = None

        if generation != session.generation:
            logger.debug(
                "Discarding stale availability for %s (generation %d, current %d)",
                day, generation, session.generation,
            )
            return None

        groups = self.calculator.compute(day, territory, session.duration_minutes)
        session.slot_groups = groups
        if not groups:
            logger.info("%s (%s, territory '%s')", NO_SLOTS_MESSAGE, day, session.territory_name)
        return groups

    # ------------------------------------------------------------------ #
    # Selection
    # ------------------------------------------------------------------ #

    def select_slot(
        self,
        session: SchedulingSession,
        slot: BookingSlot,
        technician_priority: Optional[str] = None,
    ) -> SelectedBooking:
        """Resolve ``slot`` for the session's date and move to SlotChosen."""
        if session.selected_date is None:
            raise SelectionInvalidError("No date selected")
        offered = {s.key: s for s in session.all_slots()}
        if slot.key not in offered:
            raise SelectionInvalidError(f"Slot {slot.label} is not offered on {session.selected_date}")

        offered_slot = offered[slot.key]
        selected = self.resolver.resolve(
            session.selected_date,
            session.duration_minutes,
            offered_slot,
            technician_priority or session.technician_priority,
        )
        session.state.transition(BookingTrigger.SLOT_SELECTED)
        session.selected_slot = offered_slot
        session.selected_booking = selected
        return selected

    @staticmethod
    def _ensure_editable(session: SchedulingSession) -> None:
        """Refuse to touch the date or selection once a submission holds it."""
        state = session.state.current_state
        if state == BookingState.COMMITTED:
            raise InvalidTransitionError("Booking already committed for this session")
        if state == BookingState.VALIDATING:
            raise InvalidTransitionError("Booking is being validated, wait for the verdict")

    def clear_selection(self, session: SchedulingSession) -> None:
        self._ensure_editable(session)
        session.selected_slot = None
        session.selected_booking = None
        if session.state.can_transition(BookingTrigger.SELECTION_CLEARED):
            session.state.transition(BookingTrigger.SELECTION_CLEARED)

    def restore_selection(
        self,
        session: SchedulingSession,
        metadata: Union[BookingMetadata, dict],
    ) -> SelectedBooking:
        """Rebuild the selection from booking metadata already on the cart."""
        try:
            parsed = (
                metadata if isinstance(metadata, BookingMetadata)
                else BookingMetadata.model_validate(metadata)
            )
        except ValidationError as exc:
            raise SelectionInvalidError(f"Stored booking metadata is invalid: {exc}") from exc

        selected = parsed.to_selection()
        session.state.transition(BookingTrigger.SLOT_SELECTED)
        session.selected_date = selected.day(self.tz)
        session.selected_slot = None
        session.selected_booking = selected
        logger.debug("Restored selection %s on %s", selected.label(self.tz), session.selected_date)
        return selected

    # ------------------------------------------------------------------ #
    # Submission
    # ------------------------------------------------------------------ #

    async def submit(self, session: SchedulingSession) -> SubmissionResult:
        """
        Validate the selection against the day's routing and commit it.

        Never raises for service problems: the result carries the final
        outcome, a customer-facing message, and the error if any.
        """
        set_session_id(session.session_id)
        selected = session.selected_booking
        day = session.selected_date
        if (
            selected is None
            or day is None
            or not session.state.can_transition(BookingTrigger.SUBMITTED)
        ):
            logger.info("Submit rejected: no slot chosen")
            return SubmissionResult(
                outcome=session.state.current_state,
                message=SELECTION_INVALID_MESSAGE,
                error=SelectionInvalidError("Submit requires a chosen date and slot"),
                failure_count=session.state.failure_count,
            )

        session.state.transition(BookingTrigger.SUBMITTED)
        try:
            territories = await self.catalog.list_territories()
            existing = await self.bookings.list_bookings(day)
            candidate = CandidateBooking(
                order_id=session.order_id,
                territory_name=session.territory_name,
                latitude=session.latitude,
                longitude=session.longitude,
                address=session.address,
                selected=selected,
                duration_minutes=session.duration_minutes,
            )
            aggregate = self.aggregator.aggregate(day, candidate, existing)
            fleet = self.fleet_builder.build(
                day, aggregate.territory_names, {t.name: t for t in territories}
            )
            verdict = await self.gateway.check(aggregate.visits, fleet)
        except (DataUnavailableError, RoutingServiceError) as exc:
            return self._fail(session, exc)

        if not verdict.feasible:
            session.state.transition(BookingTrigger.ROUTE_INFEASIBLE)
            session.state.transition(BookingTrigger.RETRY)
            logger.info(
                "Booking rejected (attempt failures: %d), unserved visits: %s",
                session.state.failure_count, verdict.unserved,
            )
            return SubmissionResult(
                outcome=BookingState.REJECTED,
                message=INFEASIBLE_MESSAGE,
                error=RoutingInfeasibleError(verdict.unserved),
                verdict=verdict,
                failure_count=session.state.failure_count,
            )

        try:
            await self.writer.update_metadata(
                session.order_id, BookingMetadata.from_selection(selected)
            )
        except PersistenceError as exc:
            return self._fail(session, exc)

        session.state.transition(BookingTrigger.ROUTE_FEASIBLE)
        logger.info(
            "Booking committed for %s with %s", session.order_id, selected.technician_email
        )
        return SubmissionResult(
            outcome=BookingState.COMMITTED,
            message=build_confirmation_message(selected, self.tz),
            verdict=verdict,
            failure_count=session.state.failure_count,
        )

    def _fail(self, session: SchedulingSession, exc: SchedulingError) -> SubmissionResult:
        session.state.transition(BookingTrigger.SERVICE_ERROR)
        logger.error(
            "Booking validation failed (attempt failures: %d): %s",
            session.state.failure_count, exc,
        )
        session.state.transition(BookingTrigger.RETRY)
        return SubmissionResult(
            outcome=BookingState.FAILED,
            message=SERVICE_FAILURE_MESSAGE,
            error=exc,
            failure_count=session.state.failure_count,
        )
