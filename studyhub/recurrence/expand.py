"""Expand a recurrence rule + anchor event into concrete event instances.

Expansion is pure and deterministic: the same (anchor, rule, window) always
yields the same instances. Instances keep the anchor's local wall-clock
time-of-day; only the calendar date advances, so DST transitions shift the
absolute instant but not the displayed time.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta, timezone
from itertools import takewhile
from typing import Iterator, List, Optional

from studyhub.models.constants import (
    MAX_EXPANSION_INSTANCES,
    NEXT_OCCURRENCE_LOOKAHEAD_DAYS,
    PREVIEW_INSTANCE_LIMIT,
)
from studyhub.models.recurrence import EndConditionType, RecurrenceFrequency, RecurrenceRule, WeekDay
from studyhub.models.schedule_event import AnchorEvent, EventInstance, ExpansionWindow
from studyhub.timezones import localize, resolve_timezone, to_utc

logger = logging.getLogger(__name__)


def _daily_dates(anchor_day: date, step_days: int, stop: Optional[date] = None) -> Iterator[date]:
    cur = anchor_day
    while stop is None or cur <= stop:
        yield cur
        try:
            cur = cur + timedelta(days=step_days)
        except OverflowError:
            return


def _weekly_dates(anchor_day: date, interval: int, days_of_week: List[int]) -> Iterator[date]:
    # Weeks start on Sunday (WeekDay.SUNDAY == 0); every `interval`-th week from the anchor's week is active.
    week_start = anchor_day - timedelta(days=int(WeekDay.of(anchor_day)))
    while True:
        for wd in days_of_week:
            d = week_start + timedelta(days=wd)
            if d >= anchor_day:
                yield d
        try:
            week_start = week_start + timedelta(weeks=interval)
        except OverflowError:
            return


def _custom_dates(
    anchor_day: date, interval: int, days_of_week: List[int], stop: Optional[date] = None
) -> Iterator[date]:
    """Every `interval` days from the anchor, kept only on the selected weekdays.

    `stop` bounds the unfiltered stream; a stride that never lands on a
    selected weekday would otherwise run to the end of the calendar.
    """
    allowed = set(days_of_week)
    for d in _daily_dates(anchor_day, interval, stop):
        if int(WeekDay.of(d)) in allowed:
            yield d


def _monthly_dates(anchor_day: date, interval: int) -> Iterator[date]:
    # Same day-of-month as the anchor; months without that day are skipped (no clamping).
    months = 0
    while True:
        total = anchor_day.month - 1 + months
        year = anchor_day.year + total // 12
        month = total % 12 + 1
        if year > 9999:
            return
        if anchor_day.day <= calendar.monthrange(year, month)[1]:
            yield date(year, month, anchor_day.day)
        months += interval


def candidate_dates(
    anchor_day: date, rule: RecurrenceRule, stop: Optional[date] = None
) -> Iterator[date]:
    """Strictly increasing candidate dates (before exceptions/end conditions).

    Unbounded unless `stop` is given, in which case no date after it is produced.
    """
    interval = max(1, int(rule.interval))
    if rule.frequency == RecurrenceFrequency.DAILY:
        return _daily_dates(anchor_day, interval, stop)
    if rule.frequency == RecurrenceFrequency.CUSTOM:
        return _custom_dates(anchor_day, interval, rule.days_of_week, stop)
    if rule.frequency == RecurrenceFrequency.WEEKLY:
        dates = _weekly_dates(anchor_day, interval, rule.days_of_week)
    elif rule.frequency == RecurrenceFrequency.MONTHLY:
        dates = _monthly_dates(anchor_day, interval)
    else:
        return iter(())
    if stop is None:
        return dates
    return takewhile(lambda d: d <= stop, dates)


def _count_limit(rule: RecurrenceRule) -> Optional[int]:
    end = rule.end_condition
    if end.type == EndConditionType.AFTER_COUNT and end.count is not None:
        return max(0, int(end.count))
    return None


def _until(rule: RecurrenceRule) -> Optional[date]:
    end = rule.end_condition
    if end.type == EndConditionType.ON_DATE:
        return end.until_date
    return None


def expand(anchor: AnchorEvent, rule: RecurrenceRule, window: ExpansionWindow) -> List[EventInstance]:
    """Generate the instances of `rule` whose start falls inside `window` (inclusive).

    `after_count` counts series occurrences from the anchor (exception dates do
    not count), so a window that starts later sees the same series tail.
    Naive window bounds are wall-clock times in the anchor timezone.
    """
    if rule.uses_weekdays and not rule.days_of_week:
        return []

    tz = resolve_timezone(anchor.timezone)
    local_start = anchor.local_start()
    duration = to_utc(anchor.end_time, anchor.timezone) - local_start.astimezone(timezone.utc)
    wall_time = local_start.time()

    window_start = to_utc(window.start, anchor.timezone)
    window_end = to_utc(window.end, anchor.timezone)
    if window_end < window_start:
        return []

    count_limit = _count_limit(rule)
    until = _until(rule)
    exceptions = set(rule.exceptions)

    # No local day after the window end's local date can start inside the window.
    try:
        stop = window_end.astimezone(tz).date()
    except OverflowError:
        stop = None
    if until is not None:
        stop = until if stop is None else min(stop, until)

    instances: List[EventInstance] = []
    series_index = 0
    for day in candidate_dates(local_start.date(), rule, stop):
        if until is not None and day > until:
            break
        if count_limit is not None and series_index >= count_limit:
            break
        if day in exceptions:
            continue

        start_local = localize(day, wall_time, tz)
        start_utc = start_local.astimezone(timezone.utc)
        if start_utc > window_end:
            break

        if start_utc >= window_start:
            instances.append(
                EventInstance(
                    anchor_id=anchor.id,
                    occurrence_index=series_index,
                    title=anchor.title,
                    description=anchor.description,
                    timezone=anchor.timezone,
                    start_time=start_local,
                    end_time=(start_utc + duration).astimezone(tz),
                    extra=dict(anchor.extra),
                )
            )
            if len(instances) >= MAX_EXPANSION_INSTANCES:
                logger.warning(
                    f"Expansion of '{anchor.title}' truncated at {MAX_EXPANSION_INSTANCES} instances"
                )
                break
        series_index += 1

    logger.debug(f"Expanded '{anchor.title}' ({rule.frequency.value}) into {len(instances)} instances")
    return instances


def next_occurrence(anchor: AnchorEvent, rule: RecurrenceRule, after: datetime) -> Optional[EventInstance]:
    """First instance starting strictly after `after` (one-year look-ahead)."""
    after_utc = to_utc(after, anchor.timezone)
    window = ExpansionWindow(
        start=after_utc,
        end=after_utc + timedelta(days=NEXT_OCCURRENCE_LOOKAHEAD_DAYS),
    )
    for inst in expand(anchor, rule, window):
        if inst.start_utc() > after_utc:
            return inst
    return None


class SeriesPreview:
    """Upcoming instances plus the series size when the end condition bounds it."""

    def __init__(self, next_occurrences: List[EventInstance], total_count: Optional[int], end_date: Optional[date]):
        self.next_occurrences = next_occurrences
        self.total_count = total_count
        self.end_date = end_date


def preview(anchor: AnchorEvent, rule: RecurrenceRule, limit: int = PREVIEW_INSTANCE_LIMIT) -> SeriesPreview:
    start = anchor.local_start()
    upcoming = expand(anchor, rule, ExpansionWindow(start=start, end=start + timedelta(days=365)))[:limit]

    total: Optional[int] = None
    until = _until(rule)
    count_limit = _count_limit(rule)
    if count_limit is not None:
        total = count_limit
    elif until is not None:
        end_of_until = localize(until, datetime.max.time(), resolve_timezone(anchor.timezone))
        total = len(expand(anchor, rule, ExpansionWindow(start=start, end=end_of_until)))
    return SeriesPreview(next_occurrences=upcoming, total_count=total, end_date=until)
