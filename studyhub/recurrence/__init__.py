"""Recurrence engine: expansion, conflicts, validation, and series persistence."""

from studyhub.recurrence.conflicts import conflicting_ids, find_conflicts, has_timezone_conflict, intervals_overlap
from studyhub.recurrence.describe import describe
from studyhub.recurrence.expand import SeriesPreview, candidate_dates, expand, next_occurrence, preview
from studyhub.recurrence.marker import (
    embed_marker,
    extract_rule,
    has_marker,
    normalize_rule_payload,
    rule_from_payload,
    strip_marker,
)
from studyhub.recurrence.rrule_export import exdates, rule_to_rrule
from studyhub.recurrence.series import (
    RecurrenceRuleError,
    anchor_from_record,
    create_recurring_event,
    reload_series,
    replace_series,
    rule_for_record,
)
from studyhub.recurrence.validate import validate, validate_payload

__all__ = [
    "conflicting_ids",
    "find_conflicts",
    "has_timezone_conflict",
    "intervals_overlap",
    "describe",
    "SeriesPreview",
    "candidate_dates",
    "expand",
    "next_occurrence",
    "preview",
    "embed_marker",
    "extract_rule",
    "has_marker",
    "normalize_rule_payload",
    "rule_from_payload",
    "strip_marker",
    "exdates",
    "rule_to_rrule",
    "RecurrenceRuleError",
    "anchor_from_record",
    "create_recurring_event",
    "reload_series",
    "replace_series",
    "rule_for_record",
    "validate",
    "validate_payload",
]
