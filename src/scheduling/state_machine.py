"""
Finite state machine for one booking submission attempt.

Idle -> SlotChosen -> Validating -> {Committed | Rejected | Failed}.
Rejected and Failed hand control back to SlotChosen so the customer can
retry or pick another slot. Committed is terminal.

Usage:
    sm = BookingStateMachine()
    sm.transition(BookingTrigger.SLOT_SELECTED)
    assert sm.current_state == BookingState.SLOT_CHOSEN
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class BookingState(str, Enum):
    """All states of a submission attempt."""
    IDLE = "idle"
    SLOT_CHOSEN = "slot_chosen"
    VALIDATING = "validating"
    COMMITTED = "committed"
    REJECTED = "rejected"
    FAILED = "failed"


class BookingTrigger(str, Enum):
    """Events that cause state transitions."""
    SLOT_SELECTED = "slot_selected"
    SELECTION_CLEARED = "selection_cleared"
    SUBMITTED = "submitted"
    ROUTE_FEASIBLE = "route_feasible"
    ROUTE_INFEASIBLE = "route_infeasible"
    SERVICE_ERROR = "service_error"
    RETRY = "retry"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: BookingState
    to_state: BookingState
    trigger: BookingTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: BookingState
    entered_at: datetime
    trigger: Optional[BookingTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class BookingStateMachine:
    """
    Deterministic state machine for the pick-a-slot -> confirm flow.

    Persistence is only reachable through Validating -> Committed, so no
    path commits a booking without a feasible routing verdict.
    """

    TRANSITIONS: list[Transition] = [
        # --- Selection ---
        Transition(BookingState.IDLE, BookingState.SLOT_CHOSEN,
                   BookingTrigger.SLOT_SELECTED),
        Transition(BookingState.SLOT_CHOSEN, BookingState.SLOT_CHOSEN,
                   BookingTrigger.SLOT_SELECTED),
        Transition(BookingState.SLOT_CHOSEN, BookingState.IDLE,
                   BookingTrigger.SELECTION_CLEARED),

        # --- Submission ---
        Transition(BookingState.SLOT_CHOSEN, BookingState.VALIDATING,
                   BookingTrigger.SUBMITTED),

        # --- Verdicts ---
        Transition(BookingState.VALIDATING, BookingState.COMMITTED,
                   BookingTrigger.ROUTE_FEASIBLE),
        Transition(BookingState.VALIDATING, BookingState.REJECTED,
                   BookingTrigger.ROUTE_INFEASIBLE),
        Transition(BookingState.VALIDATING, BookingState.FAILED,
                   BookingTrigger.SERVICE_ERROR),

        # --- Recovery ---
        Transition(BookingState.REJECTED, BookingState.SLOT_CHOSEN,
                   BookingTrigger.RETRY),
        Transition(BookingState.FAILED, BookingState.SLOT_CHOSEN,
                   BookingTrigger.RETRY),
    ]

    def __init__(self) -> None:
        self._current_state = BookingState.IDLE
        self._history: list[StateEntry] = [
            StateEntry(state=BookingState.IDLE, entered_at=datetime.now(timezone.utc))
        ]
        self._failure_count: int = 0

    @property
    def current_state(self) -> BookingState:
        return self._current_state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def transition(self, trigger: BookingTrigger) -> BookingState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state

                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                if t.to_state in (BookingState.REJECTED, BookingState.FAILED):
                    self._failure_count += 1

                logger.debug(
                    "State transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def can_transition(self, trigger: BookingTrigger) -> bool:
        return trigger in self.get_valid_triggers()

    def get_valid_triggers(self) -> list[BookingTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the attempt has committed."""
        return self._current_state == BookingState.COMMITTED
