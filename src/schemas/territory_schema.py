"""Territory, technician and open-hours reference data models."""

from datetime import date, datetime, time
from typing import Annotated, Any
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator, model_validator

from src.utils import as_date, get_timezone

Weekday = Annotated[int, Field(ge=0, le=6)]


def _local_date(value: Any, tz: ZoneInfo) -> Any:
    """Normalize an exclusion entry to a calendar date in ``tz``.

    Dates pass through; datetimes (or ISO strings carrying a time) are
    converted into the rule's timezone before the date is taken.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


class OpenHoursRule(BaseModel):
    """A technician's recurring weekly window plus date exclusions.

    Weekdays follow ``date.weekday()``: Monday is 0, Sunday is 6.
    """

    start_time: time
    end_time: time
    weekdays: list[Weekday] = Field(default_factory=list)
    excluded_dates: list[date] = Field(default_factory=list)
    timezone: str = "UTC"

    @model_validator(mode="before")
    @classmethod
    def _normalize_excluded_dates(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("excluded_dates"):
            tz = get_timezone(data.get("timezone") or "UTC")
            data = {
                **data,
                "excluded_dates": [_local_date(v, tz) for v in data["excluded_dates"]],
            }
        return data

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        get_timezone(value)
        return value

    @model_validator(mode="after")
    def _start_before_end(self) -> "OpenHoursRule":
        if self.start_time >= self.end_time:
            raise ValueError(
                f"start_time {self.start_time} must be before end_time {self.end_time}"
            )
        return self

    @property
    def tz(self) -> ZoneInfo:
        return get_timezone(self.timezone)

    def applies_on(self, day: date) -> bool:
        """True if the rule is open on ``day`` (weekday match, not excluded)."""
        day = as_date(day)
        return day.weekday() in self.weekdays and day not in self.excluded_dates


class Technician(BaseModel):
    """A bookable technician. Identity is the email address."""

    email: str
    name: str = ""
    timezone: str = "UTC"
    open_hours: list[OpenHoursRule] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _inherit_rule_timezone(cls, data: Any) -> Any:
        # Rules that name no zone of their own run on the technician's clock
        if not isinstance(data, dict) or not data.get("timezone"):
            return data
        tz = data["timezone"]
        rules = []
        for rule in data.get("open_hours") or []:
            if isinstance(rule, OpenHoursRule) and "timezone" not in rule.model_fields_set:
                rule = OpenHoursRule.model_validate(
                    {**rule.model_dump(exclude={"timezone"}), "timezone": tz}
                )
            elif isinstance(rule, dict) and not rule.get("timezone"):
                rule = {**rule, "timezone": tz}
            rules.append(rule)
        return {**data, "open_hours": rules}

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        get_timezone(value)
        return value

    def rules_for(self, day: date) -> list[OpenHoursRule]:
        """Open-hours rules that apply on ``day``, in declared order."""
        return [rule for rule in self.open_hours if rule.applies_on(day)]


class Territory(BaseModel):
    """A named service area with its own technician roster."""

    id: str
    name: str
    technicians: list[Technician] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Backends hand out numeric ids
        if isinstance(value, int):
            return str(value)
        return value
