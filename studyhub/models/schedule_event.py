"""Schedule event models for studyhub."""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from studyhub.timezones import normalize_tz_name, resolve_timezone, to_local, to_utc


class AnchorEvent(BaseModel):
    """The user-authored first occurrence a recurring series is generated from.

    `start_time`/`end_time` may be naive (wall clock in `timezone`) or aware.
    """

    id: Optional[str] = Field(None, description="Anchor id (becomes EventInstance.anchor_id)")
    title: str = Field(..., description="Event title")
    description: Optional[str] = Field(None, description="Free-text description")
    timezone: str = Field("UTC", description="IANA timezone of the wall-clock times")
    start_time: datetime = Field(..., description="Event start")
    end_time: datetime = Field(..., description="Event end (must be after start)")
    extra: Dict[str, Any] = Field(default_factory=dict, description="Opaque fields copied to every instance")

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, v):
        name = normalize_tz_name(v)
        resolve_timezone(name)
        return name

    @field_validator("end_time")
    @classmethod
    def _validate_end_after_start(cls, v, info):
        start = info.data.get("start_time")
        tz_name = info.data.get("timezone")
        if start is not None and tz_name is not None:
            if to_utc(v, tz_name) <= to_utc(start, tz_name):
                raise ValueError("end_time must be after start_time")
        return v

    def local_start(self) -> datetime:
        return to_local(self.start_time, self.timezone)

    def local_end(self) -> datetime:
        return to_local(self.end_time, self.timezone)


class EventInstance(BaseModel):
    """One concrete occurrence derived from an anchor + rule."""

    id: Optional[str] = Field(None, description="Storage id once persisted")
    anchor_id: Optional[str] = Field(None, description="Back-reference to the anchor (non-owning)")
    occurrence_index: int = Field(0, description="0-based position in the expansion")
    title: str
    description: Optional[str] = None
    timezone: str = "UTC"
    start_time: datetime = Field(..., description="Aware start in the anchor timezone")
    end_time: datetime = Field(..., description="Aware end in the anchor timezone")
    extra: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        """Pydantic configuration."""
        frozen = True

    def start_utc(self) -> datetime:
        return to_utc(self.start_time, self.timezone)

    def end_utc(self) -> datetime:
        return to_utc(self.end_time, self.timezone)


class ExpansionWindow(BaseModel):
    """Inclusive bounds on instance start times."""

    start: datetime
    end: datetime


class ConflictTarget(BaseModel):
    """Time range checked against candidate instances."""

    start_time: datetime
    end_time: datetime
    timezone: str = "UTC"
    exclude_id: Optional[str] = None


class ScheduleEvent(BaseModel):
    """Stored schedule event record (one per instance)."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique event identifier (UUID v4)")
    user_id: str = Field(..., description="User ID who owns this event")
    title: str = Field(..., description="Event title")
    description: Optional[str] = Field(None, description="Description (may carry a legacy recurrence marker)")
    start_time: datetime = Field(..., description="Start instant")
    end_time: datetime = Field(..., description="End instant")
    timezone: str = Field("UTC", description="IANA timezone of the event")
    is_recurring: bool = Field(False, description="Whether this record belongs to a series")
    recurrence_rule: Optional[Dict[str, Any]] = Field(None, description="Serialized RecurrenceRule")
    series_id: Optional[str] = Field(None, description="Shared by all instances of one expansion")
    occurrence_index: Optional[int] = Field(None, description="Position within the series")
    is_primary: bool = Field(False, description="First instance of the series")
    extra: Dict[str, Any] = Field(default_factory=dict, description="Opaque pass-through fields")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_instance(self) -> EventInstance:
        return EventInstance(
            id=self.id,
            anchor_id=self.series_id,
            occurrence_index=self.occurrence_index or 0,
            title=self.title,
            description=self.description,
            timezone=self.timezone,
            start_time=to_local(self.start_time, self.timezone),
            end_time=to_local(self.end_time, self.timezone),
            extra=dict(self.extra or {}),
        )
