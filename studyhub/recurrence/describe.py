"""Human-readable summaries of recurrence rules."""

from typing import List

from studyhub.models.recurrence import EndConditionType, RecurrenceFrequency, RecurrenceRule, WeekDay

_DAY_NAMES = {
    WeekDay.SUNDAY: "Sun",
    WeekDay.MONDAY: "Mon",
    WeekDay.TUESDAY: "Tue",
    WeekDay.WEDNESDAY: "Wed",
    WeekDay.THURSDAY: "Thu",
    WeekDay.FRIDAY: "Fri",
    WeekDay.SATURDAY: "Sat",
}

_UNITS = {
    RecurrenceFrequency.DAILY: ("day", "days"),
    RecurrenceFrequency.WEEKLY: ("week", "weeks"),
    RecurrenceFrequency.MONTHLY: ("month", "months"),
    RecurrenceFrequency.CUSTOM: ("day", "days"),
}


def _every(rule: RecurrenceRule) -> str:
    singular, plural = _UNITS[RecurrenceFrequency(rule.frequency)]
    interval = int(rule.interval)
    if interval == 1:
        if rule.frequency == RecurrenceFrequency.DAILY:
            return "Daily"
        if rule.frequency == RecurrenceFrequency.WEEKLY:
            return "Weekly"
        if rule.frequency == RecurrenceFrequency.MONTHLY:
            return "Monthly"
        return f"Every {singular}"
    return f"Every {interval} {plural}"


def describe(rule: RecurrenceRule) -> str:
    """e.g. "Every 2 weeks on Mon, Wed, 5 times" or "Daily until 2024-03-01"."""
    parts: List[str] = [_every(rule)]

    if rule.uses_weekdays and rule.days_of_week:
        if rule.days_of_week == [1, 2, 3, 4, 5]:
            parts.append("on weekdays")
        else:
            parts.append("on " + ", ".join(_DAY_NAMES[WeekDay(d)] for d in rule.days_of_week))

    end = rule.end_condition
    text = " ".join(parts)
    if end.type == EndConditionType.AFTER_COUNT and end.count is not None:
        times = "time" if int(end.count) == 1 else "times"
        text += f", {int(end.count)} {times}"
    elif end.type == EndConditionType.ON_DATE and end.until_date is not None:
        text += f" until {end.until_date.isoformat()}"

    if rule.exceptions:
        skipped = len(rule.exceptions)
        text += f" ({skipped} skipped {'date' if skipped == 1 else 'dates'})"
    return text
