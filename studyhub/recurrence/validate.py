"""Recurrence rule validation.

Every violation is collected so the caller can report all problems at once;
nothing here raises.
"""

from datetime import date, datetime
from typing import Any, List, Optional, Union

from pydantic import ValidationError

from studyhub.models.recurrence import EndConditionType, RecurrenceFrequency, RecurrenceRule, ValidationResult
from studyhub.recurrence.marker import normalize_rule_payload


def validate(rule: RecurrenceRule, anchor_start: Optional[Union[date, datetime]] = None) -> ValidationResult:
    errors: List[str] = []

    if rule.interval is None or int(rule.interval) < 1:
        errors.append("Interval must be at least 1")

    if rule.uses_weekdays and not rule.days_of_week:
        label = "Weekly" if rule.frequency == RecurrenceFrequency.WEEKLY else "Custom"
        errors.append(f"{label} recurrence must specify at least one day of the week")

    end = rule.end_condition
    if end.type == EndConditionType.AFTER_COUNT:
        if end.count is None or int(end.count) < 1:
            errors.append("Occurrence count must be at least 1")
    elif end.type == EndConditionType.ON_DATE:
        until = end.until_date
        if until is None:
            errors.append("Invalid end date")
        elif anchor_start is not None:
            start_day = anchor_start.date() if isinstance(anchor_start, datetime) else anchor_start
            if until < start_day:
                errors.append("End date cannot be before the event start date")

    return ValidationResult(valid=not errors, errors=errors)


def validate_payload(data: Any, anchor_start: Optional[Union[date, datetime]] = None) -> ValidationResult:
    """Validate a raw rule payload, folding schema errors into the result."""
    try:
        rule = RecurrenceRule.model_validate(normalize_rule_payload(data))
    except ValidationError as e:
        errors = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()))
            errors.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
        return ValidationResult(valid=False, errors=errors)
    except (TypeError, ValueError) as e:
        return ValidationResult(valid=False, errors=[str(e)])
    return validate(rule, anchor_start)
