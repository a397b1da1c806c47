"""FastAPI web application for studyhub."""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from studyhub.auth.dependencies import get_current_user
from studyhub.database.assignment_repository import AssignmentRepository
from studyhub.database.database import get_db
from studyhub.database.note_repository import NoteRepository
from studyhub.database.schedule_event_repository import ScheduleEventRepository
from studyhub.highlights import HighlightWorkingSet, restore
from studyhub.models.assignment import Assignment, AssignmentStatus
from studyhub.models.highlight import DEFAULT_HIGHLIGHT_CATEGORIES, Highlight, HighlightSidecarEntry
from studyhub.models.note import Note
from studyhub.models.recurrence import RecurrenceRule, ValidationResult
from studyhub.models.schedule_event import (
    AnchorEvent,
    ConflictTarget,
    EventInstance,
    ExpansionWindow,
    ScheduleEvent,
)
from studyhub.models.user import User
from studyhub.recurrence import (
    RecurrenceRuleError,
    create_recurring_event,
    describe,
    find_conflicts,
    normalize_rule_payload,
    preview,
    reload_series,
    rule_for_record,
    rule_to_rrule,
    strip_marker,
    validate_payload,
)
from studyhub.timezones import to_utc

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="studyhub API",
    description="Notes, assignments and a recurring study schedule",
    version="0.1.0"
)


# Request models
class RuleRequest(BaseModel):
    """A raw rule payload, optionally with the anchor start it applies to."""
    rule: Dict[str, Any]
    anchor_start: Optional[datetime] = None


class AnchorRequest(BaseModel):
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    timezone: Optional[str] = Field(None, description="IANA timezone; defaults to the user's")
    extra: Dict[str, Any] = Field(default_factory=dict)


class PreviewRequest(BaseModel):
    anchor: AnchorRequest
    rule: Dict[str, Any]
    limit: int = Field(10, ge=1, le=100)


class EventCreateRequest(AnchorRequest):
    """Single event, or the anchor of a recurring series when `recurrence_rule` is set."""
    recurrence_rule: Optional[Dict[str, Any]] = None
    window_end: Optional[datetime] = Field(None, description="Expand up to here instead of the default horizon")


class ConflictRequest(BaseModel):
    start_time: datetime
    end_time: datetime
    timezone: Optional[str] = None
    exclude_id: Optional[str] = None


class NoteCreateRequest(BaseModel):
    title: str
    content: str = ""
    document: Optional[Dict[str, Any]] = None
    subject: Optional[str] = None


class NoteUpdateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    document: Optional[Dict[str, Any]] = None
    subject: Optional[str] = None


class SidecarUpdateRequest(BaseModel):
    highlights: List[HighlightSidecarEntry]


class AssignmentCreateRequest(BaseModel):
    title: str
    description: Optional[str] = None
    subject: Optional[str] = None
    due_date: Optional[datetime] = None
    status: AssignmentStatus = AssignmentStatus.NOT_STARTED


# Response models
class PreviewResponse(BaseModel):
    occurrences: List[EventInstance]
    total_count: Optional[int]
    end_date: Optional[date]
    description: str


class DescribeResponse(BaseModel):
    description: str
    rrule: str


class EventResponse(BaseModel):
    event: ScheduleEvent
    instances_created: int = 1


class EventListResponse(BaseModel):
    events: List[ScheduleEvent]


class SeriesResponse(BaseModel):
    series_id: Optional[str]
    rule: Optional[Dict[str, Any]]
    instances: List[EventInstance]


class ConflictResponse(BaseModel):
    conflicts: List[EventInstance]


class NoteResponse(BaseModel):
    note: Note
    highlights: List[Highlight]


class HighlightListResponse(BaseModel):
    highlights: List[Highlight]


class AssignmentResponse(BaseModel):
    assignment: Assignment


class AssignmentListResponse(BaseModel):
    assignments: List[Assignment]


def _parse_rule(payload: Dict[str, Any], anchor_start: Optional[datetime] = None) -> RecurrenceRule:
    result = validate_payload(payload, anchor_start)
    if not result.valid:
        raise RecurrenceRuleError(result.errors)
    return RecurrenceRule.model_validate(normalize_rule_payload(payload))


def _anchor(request: AnchorRequest, user: User, anchor_id: Optional[str] = None) -> AnchorEvent:
    return AnchorEvent(
        id=anchor_id,
        title=request.title,
        description=request.description,
        timezone=request.timezone or user.timezone,
        start_time=request.start_time,
        end_time=request.end_time,
        extra=request.extra,
    )


def _bad_request(e: Exception) -> HTTPException:
    if isinstance(e, RecurrenceRuleError):
        return HTTPException(status_code=400, detail={"errors": e.errors})
    return HTTPException(status_code=400, detail=str(e))


def _public(event: ScheduleEvent) -> ScheduleEvent:
    """Event as shown to clients: the recurrence marker never leaves the API."""
    return event.model_copy(update={"description": strip_marker(event.description)})


def _restored(note: Note) -> List[Highlight]:
    return restore(note, DEFAULT_HIGHLIGHT_CATEGORIES, sidecar=note.highlights)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


# Recurrence
@app.post("/recurrence/validate", response_model=ValidationResult)
async def validate_rule(request: RuleRequest):
    """Report every problem with a rule; never fails for a bad rule."""
    return validate_payload(request.rule, request.anchor_start)


@app.post("/recurrence/preview", response_model=PreviewResponse)
async def preview_rule(request: PreviewRequest, current_user: User = Depends(get_current_user)):
    """Upcoming occurrences of a rule without storing anything."""
    try:
        anchor = _anchor(request.anchor, current_user)
        rule = _parse_rule(request.rule, anchor.local_start())
    except ValueError as e:
        raise _bad_request(e)
    result = preview(anchor, rule, limit=request.limit)
    return PreviewResponse(
        occurrences=result.next_occurrences,
        total_count=result.total_count,
        end_date=result.end_date,
        description=describe(rule),
    )


@app.post("/recurrence/describe", response_model=DescribeResponse)
async def describe_rule(request: RuleRequest):
    """Human-readable summary plus an export-only RRULE."""
    try:
        rule = _parse_rule(request.rule, request.anchor_start)
    except ValueError as e:
        raise _bad_request(e)
    return DescribeResponse(description=describe(rule), rrule=rule_to_rrule(rule, request.anchor_start))


# Schedule events
@app.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: EventCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a single event, or a whole recurring series when a rule is given."""
    repo = ScheduleEventRepository(db)
    try:
        anchor = _anchor(request, current_user)
        if request.recurrence_rule is None:
            event = ScheduleEvent(
                user_id=current_user.id,
                title=anchor.title,
                description=anchor.description,
                start_time=anchor.local_start(),
                end_time=anchor.local_end(),
                timezone=anchor.timezone,
                extra=anchor.extra,
            )
            return EventResponse(event=repo.create(event))

        rule = _parse_rule(request.recurrence_rule, anchor.local_start())
        window = None
        if request.window_end is not None:
            window = ExpansionWindow(start=anchor.local_start(), end=request.window_end)
        primary = create_recurring_event(repo, user_id=current_user.id, anchor=anchor, rule=rule, window=window)
    except ValueError as e:
        raise _bad_request(e)

    created = len(repo.list_series(current_user.id, primary.series_id))
    return EventResponse(event=primary, instances_created=created)


@app.get("/events", response_model=EventListResponse)
async def list_events(
    start: Optional[datetime] = Query(None, description="Only events ending after this instant"),
    end: Optional[datetime] = Query(None, description="Only events starting before this instant"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = ScheduleEventRepository(db)
    start_utc = to_utc(start, current_user.timezone) if start is not None else None
    end_utc = to_utc(end, current_user.timezone) if end is not None else None
    events = repo.get_all(current_user.id, start=start_utc, end=end_utc)
    return EventListResponse(events=[_public(e) for e in events])


@app.get("/events/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    event = ScheduleEventRepository(db).get(current_user.id, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return EventResponse(event=_public(event))


@app.get("/events/{event_id}/series", response_model=SeriesResponse)
async def get_event_series(
    event_id: str,
    window_end: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Re-expand the series an event belongs to from its stored rule."""
    repo = ScheduleEventRepository(db)
    event = repo.get(current_user.id, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")

    primary = event
    if event.series_id and not event.is_primary:
        primary = repo.get_primary(current_user.id, event.series_id) or event

    window = None
    if window_end is not None:
        start = primary.to_instance().start_time
        window = ExpansionWindow(start=start, end=window_end)
    rule = rule_for_record(primary)
    return SeriesResponse(
        series_id=primary.series_id,
        rule=rule.to_payload() if rule is not None else None,
        instances=reload_series(primary, window),
    )


@app.delete("/events/{event_id}")
async def delete_event(
    event_id: str,
    series: bool = Query(False, description="Delete every instance of the event's series"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = ScheduleEventRepository(db)
    event = repo.get(current_user.id, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    if series and event.series_id:
        deleted = repo.delete_series(current_user.id, event.series_id)
    else:
        deleted = 1 if repo.delete(current_user.id, event_id) else 0
    return {"deleted": deleted}


@app.post("/events/conflicts", response_model=ConflictResponse)
async def check_conflicts(
    request: ConflictRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stored events overlapping a time range (compared as absolute instants)."""
    try:
        target = ConflictTarget(
            start_time=request.start_time,
            end_time=request.end_time,
            timezone=request.timezone or current_user.timezone,
            exclude_id=request.exclude_id,
        )
        start_utc = to_utc(target.start_time, target.timezone)
        end_utc = to_utc(target.end_time, target.timezone)
    except ValueError as e:
        raise _bad_request(e)
    candidates = ScheduleEventRepository(db).get_all(current_user.id, start=start_utc, end=end_utc)
    return ConflictResponse(conflicts=find_conflicts(target, [_public(c).to_instance() for c in candidates]))


# Notes
@app.post("/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    request: NoteCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    note = NoteRepository(db).create(
        Note(
            user_id=current_user.id,
            title=request.title,
            content=request.content,
            document=request.document,
            subject=request.subject,
        )
    )
    return NoteResponse(note=note, highlights=_restored(note))


@app.get("/notes/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    note = NoteRepository(db).get(current_user.id, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail=f"Note {note_id} not found")
    return NoteResponse(note=note, highlights=_restored(note))


@app.put("/notes/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: str,
    request: NoteUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = NoteRepository(db)
    note = repo.get(current_user.id, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail=f"Note {note_id} not found")
    changes = request.model_dump(exclude_unset=True)
    updated = repo.update(note.model_copy(update=changes))
    return NoteResponse(note=updated, highlights=_restored(updated))


@app.get("/notes/{note_id}/highlights", response_model=HighlightListResponse)
async def get_note_highlights(
    note_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    note = NoteRepository(db).get(current_user.id, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail=f"Note {note_id} not found")
    return HighlightListResponse(highlights=_restored(note))


@app.put("/notes/{note_id}/highlights", response_model=HighlightListResponse)
async def update_note_highlights(
    note_id: str,
    request: SidecarUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save commentary/expanded state; entries for ids not in the note are ignored."""
    repo = NoteRepository(db)
    note = repo.get(current_user.id, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail=f"Note {note_id} not found")

    working = HighlightWorkingSet(DEFAULT_HIGHLIGHT_CATEGORIES, _restored(note))
    for entry in request.highlights:
        current = working.get(entry.id)
        if current is None:
            logger.debug(f"Ignoring sidecar entry for unknown highlight {entry.id} on note {note_id}")
            continue
        working.update_commentary(entry.id, entry.commentary)
        if current.is_expanded != entry.isExpanded:
            working.toggle_expanded(entry.id)
    repo.update_sidecar(current_user.id, note_id, working.sidecar())
    return HighlightListResponse(highlights=working.highlights)


# Assignments
@app.post("/assignments", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    request: AssignmentCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    assignment = AssignmentRepository(db).create(
        Assignment(user_id=current_user.id, **request.model_dump())
    )
    return AssignmentResponse(assignment=assignment)


@app.get("/assignments", response_model=AssignmentListResponse)
async def list_assignments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return AssignmentListResponse(assignments=AssignmentRepository(db).get_all(current_user.id))


@app.delete("/assignments/{assignment_id}")
async def delete_assignment(
    assignment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not AssignmentRepository(db).delete(current_user.id, assignment_id):
        raise HTTPException(status_code=404, detail=f"Assignment {assignment_id} not found")
    return {"deleted": True}
