"""Recurrence rule models for studyhub.

A RecurrenceRule is the canonical, JSON-serializable description of a repeating
schedule event. Structural problems (interval < 1, empty weekdays, bad end date)
are NOT rejected at construction time; they are reported by
`studyhub.recurrence.validate.validate` so every problem can be shown at once.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum, IntEnum
from typing import List, Optional

from dateutil import parser as date_parser
from pydantic import BaseModel, Field, field_validator


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class WeekDay(IntEnum):
    """Weekday numbering used in persisted rules (Sunday=0 ... Saturday=6)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def of(cls, d: date) -> "WeekDay":
        # Python weekday: Monday=0 ... Sunday=6
        return cls((d.weekday() + 1) % 7)


class EndConditionType(str, Enum):
    NEVER = "never"
    AFTER_COUNT = "after_count"
    ON_DATE = "on_date"


def parse_date_value(value) -> Optional[date]:
    """Parse a date or ISO date/datetime string; None when malformed."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date_parser.isoparse(str(value)).date()
    except (ValueError, OverflowError):
        return None


class EndCondition(BaseModel):
    """When a series stops: never, after N instances, or on a date (inclusive)."""

    type: EndConditionType = EndConditionType.NEVER
    count: Optional[int] = Field(None, description="Instance count for after_count")
    until: Optional[str] = Field(None, description="ISO date for on_date (kept raw so it can be validated)")

    @field_validator("until", mode="before")
    @classmethod
    def _until_to_iso(cls, v):
        if isinstance(v, (date, datetime)):
            return v.isoformat()
        return v

    @property
    def until_date(self) -> Optional[date]:
        return parse_date_value(self.until)

    @classmethod
    def never(cls) -> "EndCondition":
        return cls(type=EndConditionType.NEVER)

    @classmethod
    def after_count(cls, count: int) -> "EndCondition":
        return cls(type=EndConditionType.AFTER_COUNT, count=count)

    @classmethod
    def on_date(cls, until) -> "EndCondition":
        return cls(type=EndConditionType.ON_DATE, until=until)


class RecurrenceRule(BaseModel):
    """Declarative recurrence rule.

    Notes:
    - `days_of_week` is only consulted for weekly/custom frequencies.
    - `exceptions` are calendar dates in the anchor event's timezone.
    """

    frequency: RecurrenceFrequency
    interval: int = Field(1, description="Every N units (days/weeks/months)")
    days_of_week: List[int] = Field(default_factory=list, description="Weekdays, Sunday=0 ... Saturday=6")
    end_condition: EndCondition = Field(default_factory=EndCondition.never)
    exceptions: List[date] = Field(default_factory=list, description="Dates whose instance is suppressed")

    @field_validator("days_of_week")
    @classmethod
    def _normalize_days_of_week(cls, v):
        # Deduplicate, sort, and drop values outside 0-6
        return sorted({int(d) for d in v if 0 <= int(d) <= 6})

    @field_validator("exceptions")
    @classmethod
    def _normalize_exceptions(cls, v):
        return sorted(set(v))

    @property
    def uses_weekdays(self) -> bool:
        return self.frequency in (RecurrenceFrequency.WEEKLY, RecurrenceFrequency.CUSTOM)

    def to_payload(self) -> dict:
        """JSON-compatible dict (the persisted encoding)."""
        return self.model_dump(mode="json")


class ValidationResult(BaseModel):
    """Outcome of rule validation; errors are collected, never raised."""

    valid: bool
    errors: List[str] = Field(default_factory=list)
