"""Request and response models for the vehicle-routing optimizer."""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class Location(BaseModel):
    name: str
    lat: float
    lng: float


class Visit(BaseModel):
    """One stop the optimizer must fit into some technician's day."""

    location: Location
    start: str
    end: str
    duration: int


class FleetMember(BaseModel):
    """One technician's shift envelope for the day."""

    start_location: Location
    end_location: Location
    shift_start: str
    shift_end: str


class RoutingRequest(BaseModel):
    visits: dict[str, Visit]
    fleet: dict[str, FleetMember]


class RoutingResponse(BaseModel):
    """Optimizer reply.

    ``unserved`` arrives either as a list of visit ids or as an
    ``{id: reason}`` mapping; both normalize to a list of ids.
    """

    status: Optional[str] = None
    unserved: list[str] = Field(default_factory=list)
    solution: dict[str, Any] = Field(default_factory=dict)

    @field_validator("unserved", mode="before")
    @classmethod
    def _unserved_ids(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, dict):
            return list(value.keys())
        return value


class FeasibilityVerdict(BaseModel):
    feasible: bool
    unserved: list[str] = Field(default_factory=list)

    @classmethod
    def from_response(cls, response: RoutingResponse) -> "FeasibilityVerdict":
        if response.unserved:
            return cls(feasible=False, unserved=response.unserved)
        return cls(feasible=True)
