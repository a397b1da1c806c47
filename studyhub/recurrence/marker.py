"""Recurrence rule codec and the legacy provenance marker.

Older schedule_events rows had no column for the rule, so the rule JSON was
appended to the free-text description:

    <description>\n\n__RECURRENCE_PATTERN__{...json...}__END_PATTERN__

The rule now lives in `schedule_events.recurrence_rule`; the marker is still
written for legacy readers and read back when the column is empty. A future
change to the embedded format must use a new prefix.

Payload parsing accepts the snake_case shape of RecurrenceRule, its camelCase
variant, and the pattern shape written by the earlier web client
(type/daysOfWeek/occurrences/endDate/workdaysOnly). Anything unparseable
degrades to "not recurring".
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError

from studyhub.models.constants import RECURRENCE_MARKER_PREFIX, RECURRENCE_MARKER_SUFFIX
from studyhub.models.recurrence import EndConditionType, RecurrenceRule, parse_date_value

logger = logging.getLogger(__name__)

MARKER_RE = re.compile(
    re.escape(RECURRENCE_MARKER_PREFIX) + r"(?P<payload>.*?)" + re.escape(RECURRENCE_MARKER_SUFFIX),
    re.DOTALL,
)

_END_TYPE_ALIASES: Dict[str, str] = {
    "never": EndConditionType.NEVER.value,
    "none": EndConditionType.NEVER.value,
    "after_count": EndConditionType.AFTER_COUNT.value,
    "aftercount": EndConditionType.AFTER_COUNT.value,
    "count": EndConditionType.AFTER_COUNT.value,
    "occurrences": EndConditionType.AFTER_COUNT.value,
    "on_date": EndConditionType.ON_DATE.value,
    "ondate": EndConditionType.ON_DATE.value,
    "date": EndConditionType.ON_DATE.value,
    "until": EndConditionType.ON_DATE.value,
}

_WORKDAYS = [1, 2, 3, 4, 5]


def _first_present(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _normalize_end_condition(data: Dict[str, Any]) -> Dict[str, Any]:
    end = _first_present(data, "end_condition", "endCondition")
    if end is None:
        occurrences = _first_present(data, "occurrences", "count")
        end_date = _first_present(data, "endDate", "end_date", "until")
        if occurrences is not None:
            return {"type": EndConditionType.AFTER_COUNT.value, "count": occurrences}
        if end_date is not None:
            return {"type": EndConditionType.ON_DATE.value, "until": end_date}
        return {"type": EndConditionType.NEVER.value}

    if isinstance(end, str):
        end = {"type": end}
    if not isinstance(end, dict):
        raise TypeError("end_condition must be an object")

    raw_type = str(end.get("type") or "never").strip().lower()
    end_type = _END_TYPE_ALIASES.get(raw_type, raw_type)
    out: Dict[str, Any] = {"type": end_type}
    count = _first_present(end, "count", "occurrences", "n")
    until = _first_present(end, "until", "date", "endDate", "end_date")
    if count is not None:
        out["count"] = count
    if until is not None:
        out["until"] = until
    return out


def normalize_rule_payload(data: Any) -> Dict[str, Any]:
    """Map any accepted payload shape onto the RecurrenceRule field names."""
    if not isinstance(data, dict):
        raise TypeError("Recurrence payload must be a JSON object")

    frequency = _first_present(data, "frequency", "type")
    interval = _first_present(data, "interval")
    interval = 1 if interval is None else interval
    days = _first_present(data, "days_of_week", "daysOfWeek") or []

    freq_key = str(frequency).strip().lower() if frequency is not None else None
    if freq_key == "yearly":
        # Same month/day every N years == same day-of-month every 12N months.
        freq_key = "monthly"
        interval = int(interval) * 12
    elif freq_key == "daily" and data.get("workdaysOnly"):
        freq_key = "custom"
        days = list(_WORKDAYS)

    exceptions = []
    for raw in data.get("exceptions") or []:
        parsed = parse_date_value(raw)
        exceptions.append(parsed if parsed is not None else raw)

    return {
        "frequency": freq_key,
        "interval": interval,
        "days_of_week": days,
        "end_condition": _normalize_end_condition(data),
        "exceptions": exceptions,
    }


def rule_from_payload(data: Any) -> Optional[RecurrenceRule]:
    try:
        return RecurrenceRule.model_validate(normalize_rule_payload(data))
    except (ValidationError, TypeError, ValueError) as e:
        logger.debug(f"Ignoring unparseable recurrence payload: {type(e).__name__}: {str(e)}")
        return None


def rule_to_json(rule: RecurrenceRule) -> str:
    return json.dumps(rule.to_payload(), sort_keys=True, separators=(",", ":"))


def has_marker(text: Optional[str]) -> bool:
    return bool(text) and MARKER_RE.search(text) is not None


def strip_marker(text: Optional[str]) -> Optional[str]:
    """Description with every marker removed (None stays None)."""
    if text is None:
        return None
    return MARKER_RE.sub("", text).rstrip()


def embed_marker(text: Optional[str], rule: RecurrenceRule) -> str:
    """Append the marker for `rule`, replacing any marker already present."""
    base = strip_marker(text) or ""
    separator = "\n\n" if base else ""
    return f"{base}{separator}{RECURRENCE_MARKER_PREFIX}{rule_to_json(rule)}{RECURRENCE_MARKER_SUFFIX}"


def extract_rule(text: Optional[str]) -> Optional[RecurrenceRule]:
    """Rule carried by the first marker in `text`, or None when absent/malformed."""
    if not text:
        return None
    match = MARKER_RE.search(text)
    if match is None:
        return None
    try:
        data = json.loads(match.group("payload"))
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning(f"Malformed recurrence marker treated as not recurring: {type(e).__name__}")
        return None
    return rule_from_payload(data)
