"""Error taxonomy for availability lookup and booking submission.

None of these are fatal to the process; each is recoverable at the level
of one availability refresh or one submission attempt.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for scheduling failures."""


class DataUnavailableError(SchedulingError):
    """Territory or bookings data could not be read."""


class UnresolvedTerritoryError(DataUnavailableError):
    """A booking references a territory name the catalog does not know."""

    def __init__(self, names: list[str]) -> None:
        self.names = names
        super().__init__(f"Unknown territories: {', '.join(names)}")


class SelectionInvalidError(SchedulingError):
    """Submit attempted without a chosen date and slot."""


class RoutingServiceError(SchedulingError):
    """The routing optimizer could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RoutingInfeasibleError(SchedulingError):
    """The optimizer could not fit one or more visits into the fleet."""

    def __init__(self, unserved: list[str]) -> None:
        self.unserved = unserved
        super().__init__(f"Unserved visits: {', '.join(unserved)}")


class PersistenceError(SchedulingError):
    """The booking could not be written to the hosting cart or order."""
