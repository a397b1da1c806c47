"""Export RecurrenceRule to iCalendar RRULE strings (export-only)."""

from __future__ import annotations

from datetime import date, datetime
from typing import List

from studyhub.models.recurrence import EndConditionType, RecurrenceFrequency, RecurrenceRule, WeekDay


_WD_MAP: dict[WeekDay, str] = {
    WeekDay.SUNDAY: "SU",
    WeekDay.MONDAY: "MO",
    WeekDay.TUESDAY: "TU",
    WeekDay.WEDNESDAY: "WE",
    WeekDay.THURSDAY: "TH",
    WeekDay.FRIDAY: "FR",
    WeekDay.SATURDAY: "SA",
}


def rule_to_rrule(rule: RecurrenceRule, anchor_start: datetime | None = None) -> str:
    """Convert a rule to an RRULE (without the leading 'RRULE:' prefix).

    Custom rules ("every N days, only on these weekdays") have no exact RRULE
    equivalent; they export as DAILY with BYDAY, which matches for interval 1.
    Weeks start on Sunday, hence WKST=SU for weekly rules with an interval.
    """
    parts: List[str] = []
    freq = {
        RecurrenceFrequency.DAILY: "DAILY",
        RecurrenceFrequency.WEEKLY: "WEEKLY",
        RecurrenceFrequency.MONTHLY: "MONTHLY",
        RecurrenceFrequency.CUSTOM: "DAILY",
    }[RecurrenceFrequency(rule.frequency)]
    parts.append(f"FREQ={freq}")
    if rule.interval and int(rule.interval) != 1:
        parts.append(f"INTERVAL={int(rule.interval)}")
    if rule.uses_weekdays and rule.days_of_week:
        parts.append("BYDAY=" + ",".join(_WD_MAP[WeekDay(d)] for d in rule.days_of_week))
        if rule.frequency == RecurrenceFrequency.WEEKLY and int(rule.interval) != 1:
            parts.append("WKST=SU")
    if rule.frequency == RecurrenceFrequency.MONTHLY and anchor_start is not None:
        parts.append(f"BYMONTHDAY={anchor_start.day}")

    end = rule.end_condition
    if end.type == EndConditionType.AFTER_COUNT and end.count is not None:
        parts.append(f"COUNT={int(end.count)}")
    # UNTIL: keep date-only to avoid timezone drift; calendars interpret it as end of day in UTC.
    elif end.type == EndConditionType.ON_DATE and end.until_date is not None:
        until: date = end.until_date
        parts.append(f"UNTIL={until.strftime('%Y%m%d')}T235959Z")
    return ";".join(parts)


def exdates(rule: RecurrenceRule, anchor_start: datetime) -> List[str]:
    """EXDATE values for the rule's exceptions at the anchor's wall-clock time."""
    stamp = anchor_start.strftime("T%H%M%S")
    return [f"{d.strftime('%Y%m%d')}{stamp}" for d in rule.exceptions]
