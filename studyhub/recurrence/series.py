"""Persist and reload recurring series.

Every expanded instance is stored as an independent ScheduleEvent row sharing
a `series_id`. The first stored instance is the primary; the rule travels
with every row in `recurrence_rule` and, for legacy readers, as a marker in
the description.
"""

import logging
import os
import uuid
from datetime import timedelta
from typing import List, Optional

from dotenv import load_dotenv

from studyhub.models.constants import DEFAULT_HORIZON_DAYS
from studyhub.models.recurrence import EndCondition, EndConditionType, RecurrenceRule
from studyhub.models.schedule_event import AnchorEvent, EventInstance, ExpansionWindow, ScheduleEvent
from studyhub.recurrence.expand import expand
from studyhub.recurrence.marker import embed_marker, extract_rule, rule_from_payload, strip_marker
from studyhub.recurrence.validate import validate
from studyhub.timezones import to_local

load_dotenv()

logger = logging.getLogger(__name__)

RECURRENCE_HORIZON_DAYS = int(os.getenv("RECURRENCE_HORIZON_DAYS", str(DEFAULT_HORIZON_DAYS)))
RECURRENCE_EMBED_MARKER = os.getenv("RECURRENCE_EMBED_MARKER", "True").lower() == "true"


class RecurrenceRuleError(ValueError):
    """A rule submitted for persistence is structurally invalid."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid recurrence rule")


def default_window(anchor: AnchorEvent) -> ExpansionWindow:
    start = anchor.local_start()
    return ExpansionWindow(start=start, end=start + timedelta(days=RECURRENCE_HORIZON_DAYS))


def create_recurring_event(
    repo,
    *,
    user_id: str,
    anchor: AnchorEvent,
    rule: RecurrenceRule,
    window: Optional[ExpansionWindow] = None,
) -> ScheduleEvent:
    """Expand `rule` from `anchor`, store every instance, return the primary.

    `repo` is a ScheduleEventRepository (anything with `create_many`). The
    returned primary has the marker stripped from its description.
    """
    result = validate(rule, anchor.local_start())
    if not result.valid:
        raise RecurrenceRuleError(result.errors)

    instances = expand(anchor, rule, window or default_window(anchor))
    if not instances:
        raise RecurrenceRuleError(["Recurrence rule produces no occurrences in the requested window"])

    series_id = anchor.id or str(uuid.uuid4())
    payload = rule.to_payload()
    description = embed_marker(anchor.description, rule) if RECURRENCE_EMBED_MARKER else anchor.description

    records = [
        ScheduleEvent(
            user_id=user_id,
            title=inst.title,
            description=description,
            start_time=inst.start_time,
            end_time=inst.end_time,
            timezone=inst.timezone,
            is_recurring=True,
            recurrence_rule=payload,
            series_id=series_id,
            occurrence_index=inst.occurrence_index,
            is_primary=(i == 0),
            extra=dict(inst.extra),
        )
        for i, inst in enumerate(instances)
    ]
    saved = repo.create_many(records)
    logger.info(f"Created recurring series {series_id} with {len(saved)} instances")
    primary = saved[0]
    return primary.model_copy(update={"description": strip_marker(primary.description)})


def rule_for_record(record: ScheduleEvent) -> Optional[RecurrenceRule]:
    """Recover the rule of a stored record: column first, description marker second."""
    if record.recurrence_rule:
        rule = rule_from_payload(record.recurrence_rule)
        if rule is not None:
            return rule
        logger.warning(f"Unparseable recurrence_rule on event {record.id}; falling back to description marker")
    return extract_rule(record.description)


def anchor_from_record(record: ScheduleEvent) -> AnchorEvent:
    return AnchorEvent(
        id=record.series_id or record.id,
        title=record.title,
        description=strip_marker(record.description),
        timezone=record.timezone,
        start_time=to_local(record.start_time, record.timezone),
        end_time=to_local(record.end_time, record.timezone),
        extra=dict(record.extra or {}),
    )


def _rule_from_primary(rule: RecurrenceRule, already_elapsed: int) -> RecurrenceRule:
    # A primary that is not the series' first occurrence has already used up part of the count.
    end = rule.end_condition
    if already_elapsed <= 0 or end.type != EndConditionType.AFTER_COUNT or end.count is None:
        return rule
    remaining = max(0, int(end.count) - already_elapsed)
    return rule.model_copy(update={"end_condition": EndCondition.after_count(remaining)})


def reload_series(primary: ScheduleEvent, window: Optional[ExpansionWindow] = None) -> List[EventInstance]:
    """Re-expand a stored series from its primary record.

    Records without a recoverable rule are treated as single events.
    """
    rule = rule_for_record(primary)
    if rule is None:
        return [primary.to_instance()]

    anchor = anchor_from_record(primary)
    offset = primary.occurrence_index or 0
    effective = _rule_from_primary(rule, offset)
    if effective.end_condition.type == EndConditionType.AFTER_COUNT and not effective.end_condition.count:
        return []

    instances = expand(anchor, effective, window or default_window(anchor))
    if offset:
        instances = [inst.model_copy(update={"occurrence_index": inst.occurrence_index + offset}) for inst in instances]
    logger.debug(f"Reloaded series {anchor.id}: {len(instances)} instances")
    return instances


def replace_series(
    repo,
    *,
    user_id: str,
    primary: ScheduleEvent,
    rule: Optional[RecurrenceRule] = None,
    window: Optional[ExpansionWindow] = None,
) -> ScheduleEvent:
    """Regenerate a series wholesale (same series_id), optionally with a new rule."""
    new_rule = rule or rule_for_record(primary)
    if new_rule is None:
        raise RecurrenceRuleError(["Event is not part of a recurring series"])
    anchor = anchor_from_record(primary)
    if primary.series_id:
        repo.delete_series(user_id, primary.series_id)
    else:
        repo.delete(user_id, primary.id)
    return create_recurring_event(repo, user_id=user_id, anchor=anchor, rule=new_rule, window=window)
