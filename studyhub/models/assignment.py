"""Assignment data model for studyhub."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AssignmentStatus(str, Enum):
    """Assignment status enumeration."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class Assignment(BaseModel):
    """Assignment record (opaque to the engines; stored as-is)."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique assignment identifier (UUID v4)")
    user_id: str = Field(..., description="User ID who owns this assignment")
    title: str = Field(..., description="Assignment title")
    description: Optional[str] = Field(None, description="Assignment details")
    subject: Optional[str] = Field(None, description="Subject/course label")
    due_date: Optional[datetime] = Field(None, description="Due date")
    status: AssignmentStatus = Field(AssignmentStatus.NOT_STARTED, description="Assignment status")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
