"""Repository for ScheduleEvent database operations."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import asc
from sqlalchemy.orm import Session

from studyhub.database.models import ScheduleEventDB, to_naive_utc
from studyhub.models.schedule_event import ScheduleEvent

logger = logging.getLogger(__name__)


class ScheduleEventRepository:
    """Repository for ScheduleEvent database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, event: ScheduleEvent) -> ScheduleEvent:
        """Create a single event."""
        try:
            event_db = ScheduleEventDB.from_pydantic(event)
            self.db.add(event_db)
            self.db.commit()
            self.db.refresh(event_db)
            logger.debug(f"Created event {event.id}: {event.title[:50]}")
            return event_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create event {event.id}: {type(e).__name__}: {str(e)}")
            raise

    def create_many(self, events: List[ScheduleEvent]) -> List[ScheduleEvent]:
        """Create several events in one transaction (all or nothing)."""
        if not events:
            return []
        try:
            rows = [ScheduleEventDB.from_pydantic(e) for e in events]
            self.db.add_all(rows)
            self.db.commit()
            for row in rows:
                self.db.refresh(row)
            logger.debug(f"Created {len(rows)} events for series {events[0].series_id}")
            return [row.to_pydantic() for row in rows]
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create {len(events)} events: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str, event_id: str) -> Optional[ScheduleEvent]:
        """Get event by ID for a specific user."""
        event_db = self.db.query(ScheduleEventDB).filter(
            ScheduleEventDB.id == event_id,
            ScheduleEventDB.user_id == user_id,
        ).first()
        return event_db.to_pydantic() if event_db else None

    def get_all(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[ScheduleEvent]:
        """Events for a user ordered by start; `start`/`end` bound overlapping events."""
        query = self.db.query(ScheduleEventDB).filter(ScheduleEventDB.user_id == user_id)
        if start is not None:
            query = query.filter(ScheduleEventDB.end_time > to_naive_utc(start))
        if end is not None:
            query = query.filter(ScheduleEventDB.start_time < to_naive_utc(end))
        rows = query.order_by(asc(ScheduleEventDB.start_time), asc(ScheduleEventDB.id)).all()
        return [row.to_pydantic() for row in rows]

    def list_series(self, user_id: str, series_id: str) -> List[ScheduleEvent]:
        """All stored instances of a series, in series order."""
        rows = self.db.query(ScheduleEventDB).filter(
            ScheduleEventDB.user_id == user_id,
            ScheduleEventDB.series_id == series_id,
        ).order_by(asc(ScheduleEventDB.start_time)).all()
        return [row.to_pydantic() for row in rows]

    def get_primary(self, user_id: str, series_id: str) -> Optional[ScheduleEvent]:
        event_db = self.db.query(ScheduleEventDB).filter(
            ScheduleEventDB.user_id == user_id,
            ScheduleEventDB.series_id == series_id,
            ScheduleEventDB.is_primary.is_(True),
        ).first()
        return event_db.to_pydantic() if event_db else None

    def update(self, event: ScheduleEvent) -> ScheduleEvent:
        """Update an existing event (last write wins)."""
        event_db = self.db.query(ScheduleEventDB).filter(
            ScheduleEventDB.id == event.id,
            ScheduleEventDB.user_id == event.user_id,
        ).first()
        if not event_db:
            raise ValueError(f"Event {event.id} not found")

        updated = ScheduleEventDB.from_pydantic(event)
        event_db.title = updated.title
        event_db.description = updated.description
        event_db.start_time = updated.start_time
        event_db.end_time = updated.end_time
        event_db.timezone = updated.timezone
        event_db.is_recurring = updated.is_recurring
        event_db.recurrence_rule = updated.recurrence_rule
        event_db.series_id = updated.series_id
        event_db.occurrence_index = updated.occurrence_index
        event_db.is_primary = updated.is_primary
        event_db.extra = updated.extra
        event_db.updated_at = datetime.utcnow()
        try:
            self.db.commit()
            self.db.refresh(event_db)
            logger.debug(f"Updated event {event.id}")
            return event_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update event {event.id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, user_id: str, event_id: str) -> bool:
        """Delete one event. Returns False when it does not exist."""
        event_db = self.db.query(ScheduleEventDB).filter(
            ScheduleEventDB.id == event_id,
            ScheduleEventDB.user_id == user_id,
        ).first()
        if event_db is None:
            return False
        try:
            self.db.delete(event_db)
            self.db.commit()
            logger.debug(f"Deleted event {event_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete event {event_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete_series(self, user_id: str, series_id: str) -> int:
        """Delete every instance of a series. Returns the number of rows removed."""
        try:
            count = self.db.query(ScheduleEventDB).filter(
                ScheduleEventDB.user_id == user_id,
                ScheduleEventDB.series_id == series_id,
            ).delete(synchronize_session=False)
            self.db.commit()
            logger.debug(f"Deleted {count} events of series {series_id}")
            return count
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete series {series_id}: {type(e).__name__}: {str(e)}")
            raise
