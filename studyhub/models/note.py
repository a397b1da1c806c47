"""Note data model for studyhub."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from studyhub.models.highlight import HighlightSidecarEntry


class Note(BaseModel):
    """Note with rich content and a highlight sidecar."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique note identifier (UUID v4)")
    user_id: str = Field(..., description="User ID who owns this note")
    title: str = Field(..., description="Note title")
    content: str = Field("", description="Rendered rich-text markup (HTML)")
    document: Optional[Dict[str, Any]] = Field(
        None, description="Structured editor document (JSON), when the editor saved one"
    )
    highlights: List[HighlightSidecarEntry] = Field(
        default_factory=list, description="User-authored highlight fields keyed by id"
    )
    subject: Optional[str] = Field(None, description="Subject/course label")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
