"""SQLAlchemy database models for studyhub."""

from datetime import datetime, timezone
from typing import Optional
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, ForeignKey, Text

from typing import Union, TypeVar, Type
from studyhub.database.database import Base
from studyhub.models.assignment import AssignmentStatus

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default."""
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Storage form of an instant: naive UTC (aware values are converted)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def from_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    # Primary key (identity-provider subject)
    id = Column(String, primary_key=True)

    # User profile
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)
    timezone = Column(String, nullable=False, default="UTC")

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from studyhub.models.user import User
        return User(
            id=self.id,
            email=self.email,
            name=self.name,
            timezone=self.timezone or "UTC",
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            timezone=user.timezone,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class ScheduleEventDB(Base):
    """Database model for ScheduleEvent (one row per instance).

    Instants are stored as naive UTC; `timezone` keeps the wall-clock zone.
    """

    __tablename__ = "schedule_events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    timezone = Column(String, nullable=False, default="UTC")

    # Recurrence linkage; the rule is also embedded in `description` for legacy readers.
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence_rule = Column(JSON, nullable=True)
    series_id = Column(String, nullable=True, index=True)
    occurrence_index = Column(Integer, nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)

    extra = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from studyhub.models.schedule_event import ScheduleEvent
        return ScheduleEvent(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            description=self.description,
            start_time=from_naive_utc(self.start_time),
            end_time=from_naive_utc(self.end_time),
            timezone=self.timezone or "UTC",
            is_recurring=bool(self.is_recurring),
            recurrence_rule=self.recurrence_rule,
            series_id=self.series_id,
            occurrence_index=self.occurrence_index,
            is_primary=bool(self.is_primary),
            extra=self.extra or {},
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, event):
        """Create database model from Pydantic model."""
        from studyhub.timezones import to_utc
        return cls(
            id=event.id,
            user_id=event.user_id,
            title=event.title,
            description=event.description,
            start_time=to_naive_utc(to_utc(event.start_time, event.timezone)),
            end_time=to_naive_utc(to_utc(event.end_time, event.timezone)),
            timezone=event.timezone,
            is_recurring=event.is_recurring,
            recurrence_rule=event.recurrence_rule,
            series_id=event.series_id,
            occurrence_index=event.occurrence_index,
            is_primary=event.is_primary,
            extra=event.extra or {},
            created_at=event.created_at or datetime.utcnow(),
            updated_at=event.updated_at or datetime.utcnow(),
        )


class NoteDB(Base):
    """Database model for Note."""

    __tablename__ = "notes"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)
    content = Column(Text, nullable=False, default="")
    document = Column(JSON, nullable=True)
    # Sidecar: [{"id", "commentary", "isExpanded"}, ...]
    highlights = Column(JSON, nullable=False, default=list)
    subject = Column(String, nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from studyhub.models.note import Note
        return Note(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            content=self.content or "",
            document=self.document,
            highlights=self.highlights or [],
            subject=self.subject,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, note):
        """Create database model from Pydantic model."""
        return cls(
            id=note.id,
            user_id=note.user_id,
            title=note.title,
            content=note.content,
            document=note.document,
            highlights=[h.model_dump() for h in note.highlights],
            subject=note.subject,
            created_at=note.created_at or datetime.utcnow(),
            updated_at=note.updated_at or datetime.utcnow(),
        )


class AssignmentDB(Base):
    """Database model for Assignment."""

    __tablename__ = "assignments"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    subject = Column(String, nullable=True, index=True)
    due_date = Column(DateTime, nullable=True, index=True)
    status = Column(String, nullable=False, default=AssignmentStatus.NOT_STARTED.value)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from studyhub.models.assignment import Assignment
        return Assignment(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            description=self.description,
            subject=self.subject,
            due_date=from_naive_utc(self.due_date),
            status=value_to_enum(self.status, AssignmentStatus, AssignmentStatus.NOT_STARTED),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, assignment):
        """Create database model from Pydantic model."""
        return cls(
            id=assignment.id,
            user_id=assignment.user_id,
            title=assignment.title,
            description=assignment.description,
            subject=assignment.subject,
            due_date=to_naive_utc(assignment.due_date),
            status=enum_to_value(assignment.status),
            created_at=assignment.created_at or datetime.utcnow(),
            updated_at=assignment.updated_at or datetime.utcnow(),
        )
