"""Repository for Note database operations."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from studyhub.database.models import NoteDB
from studyhub.models.highlight import HighlightSidecarEntry
from studyhub.models.note import Note

logger = logging.getLogger(__name__)


class NoteRepository:
    """Repository for Note database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, note: Note) -> Note:
        try:
            note_db = NoteDB.from_pydantic(note)
            self.db.add(note_db)
            self.db.commit()
            self.db.refresh(note_db)
            logger.debug(f"Created note {note.id}: {note.title[:50]}")
            return note_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create note {note.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str, note_id: str) -> Optional[Note]:
        note_db = self.db.query(NoteDB).filter(NoteDB.id == note_id, NoteDB.user_id == user_id).first()
        return note_db.to_pydantic() if note_db else None

    def get_all(self, user_id: str) -> List[Note]:
        """Notes for a user, most recently updated first."""
        rows = self.db.query(NoteDB).filter(NoteDB.user_id == user_id).order_by(desc(NoteDB.updated_at)).all()
        return [row.to_pydantic() for row in rows]

    def _get_row(self, user_id: str, note_id: str) -> NoteDB:
        note_db = self.db.query(NoteDB).filter(NoteDB.id == note_id, NoteDB.user_id == user_id).first()
        if not note_db:
            raise ValueError(f"Note {note_id} not found")
        return note_db

    def update(self, note: Note) -> Note:
        """Replace title/content/document; the sidecar is kept unless provided."""
        note_db = self._get_row(note.user_id, note.id)
        note_db.title = note.title
        note_db.content = note.content
        note_db.document = note.document
        note_db.subject = note.subject
        if note.highlights:
            note_db.highlights = [h.model_dump() for h in note.highlights]
        note_db.updated_at = datetime.utcnow()
        try:
            self.db.commit()
            self.db.refresh(note_db)
            logger.debug(f"Updated note {note.id}")
            return note_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update note {note.id}: {type(e).__name__}: {str(e)}")
            raise

    def update_sidecar(self, user_id: str, note_id: str, entries: List[HighlightSidecarEntry]) -> Note:
        """Persist the user-authored highlight fields only."""
        note_db = self._get_row(user_id, note_id)
        note_db.highlights = [e.model_dump() for e in entries]
        note_db.updated_at = datetime.utcnow()
        try:
            self.db.commit()
            self.db.refresh(note_db)
            logger.debug(f"Updated {len(entries)} highlight sidecar entries on note {note_id}")
            return note_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update highlights of note {note_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, user_id: str, note_id: str) -> bool:
        note_db = self.db.query(NoteDB).filter(NoteDB.id == note_id, NoteDB.user_id == user_id).first()
        if note_db is None:
            return False
        try:
            self.db.delete(note_db)
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete note {note_id}: {type(e).__name__}: {str(e)}")
            raise
