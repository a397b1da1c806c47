"""Data models for studyhub."""

from studyhub.models.recurrence import (
    EndCondition,
    EndConditionType,
    RecurrenceFrequency,
    RecurrenceRule,
    ValidationResult,
    WeekDay,
)
from studyhub.models.schedule_event import (
    AnchorEvent,
    ConflictTarget,
    EventInstance,
    ExpansionWindow,
    ScheduleEvent,
)
from studyhub.models.highlight import (
    DEFAULT_HIGHLIGHT_CATEGORIES,
    Highlight,
    HighlightCategories,
    HighlightCategory,
    HighlightSidecarEntry,
)
from studyhub.models.note import Note
from studyhub.models.assignment import Assignment, AssignmentStatus
from studyhub.models.user import User

__all__ = [
    "EndCondition",
    "EndConditionType",
    "RecurrenceFrequency",
    "RecurrenceRule",
    "ValidationResult",
    "WeekDay",
    "AnchorEvent",
    "ConflictTarget",
    "EventInstance",
    "ExpansionWindow",
    "ScheduleEvent",
    "DEFAULT_HIGHLIGHT_CATEGORIES",
    "Highlight",
    "HighlightCategories",
    "HighlightCategory",
    "HighlightSidecarEntry",
    "Note",
    "Assignment",
    "AssignmentStatus",
    "User",
]
