from src.scheduling.aggregation import DayAggregate, DayBookingAggregator
from src.scheduling.availability import AvailabilityCalculator
from src.scheduling.fleet import FleetBuilder
from src.scheduling.orchestrator import (
    SchedulingOrchestrator,
    SchedulingSession,
    SubmissionResult,
)
from src.scheduling.selection import SlotSelectionResolver
from src.scheduling.state_machine import (
    BookingState,
    BookingStateMachine,
    BookingTrigger,
)

__all__ = [
    "AvailabilityCalculator",
    "SlotSelectionResolver",
    "DayBookingAggregator",
    "DayAggregate",
    "FleetBuilder",
    "SchedulingOrchestrator",
    "SchedulingSession",
    "SubmissionResult",
    "BookingStateMachine",
    "BookingState",
    "BookingTrigger",
]
