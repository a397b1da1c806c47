"""Repository for Assignment database operations."""

import logging
from typing import List, Optional

from sqlalchemy import asc
from sqlalchemy.orm import Session

from studyhub.database.models import AssignmentDB
from studyhub.models.assignment import Assignment

logger = logging.getLogger(__name__)


class AssignmentRepository:
    """Repository for Assignment database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, assignment: Assignment) -> Assignment:
        try:
            row = AssignmentDB.from_pydantic(assignment)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created assignment {assignment.id}: {assignment.title[:50]}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create assignment {assignment.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str, assignment_id: str) -> Optional[Assignment]:
        row = self.db.query(AssignmentDB).filter(
            AssignmentDB.id == assignment_id,
            AssignmentDB.user_id == user_id,
        ).first()
        return row.to_pydantic() if row else None

    def get_all(self, user_id: str) -> List[Assignment]:
        """Assignments for a user by due date (undated last)."""
        rows = self.db.query(AssignmentDB).filter(AssignmentDB.user_id == user_id).order_by(
            AssignmentDB.due_date.is_(None), asc(AssignmentDB.due_date), asc(AssignmentDB.created_at)
        ).all()
        return [row.to_pydantic() for row in rows]

    def delete(self, user_id: str, assignment_id: str) -> bool:
        row = self.db.query(AssignmentDB).filter(
            AssignmentDB.id == assignment_id,
            AssignmentDB.user_id == user_id,
        ).first()
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
            logger.debug(f"Deleted assignment {assignment_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete assignment {assignment_id}: {type(e).__name__}: {str(e)}")
            raise
