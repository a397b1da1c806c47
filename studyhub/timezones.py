"""Timezone helpers shared by the schedule models and the recurrence engine.

Wall-clock semantics: a naive datetime is a local time in the event's IANA
timezone; an aware datetime is an absolute instant. Everything that is compared
across events is first converted to UTC.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class InvalidTimezoneError(ValueError):
    """Raised for timezone names that cannot be resolved."""


def normalize_tz_name(name: Optional[str]) -> str:
    """Canonical timezone name ("" / None / "Z" / "GMT" -> "UTC")."""
    if name is None:
        return "UTC"
    s = str(name).strip()
    if not s or s.lower() in {"utc", "z", "gmt", "etc/utc"}:
        return "UTC"
    return s


@lru_cache(maxsize=128)
def resolve_timezone(name: Optional[str]) -> tzinfo:
    tz_name = normalize_tz_name(name)
    if tz_name == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as ex:
        raise InvalidTimezoneError(f"Invalid timezone identifier: {tz_name!r}") from ex


def is_valid_timezone(name: Optional[str]) -> bool:
    try:
        resolve_timezone(name)
        return True
    except InvalidTimezoneError:
        return False


def to_local(dt: datetime, tz_name: Optional[str]) -> datetime:
    """Interpret `dt` in the event timezone (naive = wall clock there)."""
    tz = resolve_timezone(tz_name)
    if dt.tzinfo is None:
        return localize(dt.date(), dt.time(), tz)
    return dt.astimezone(tz)


def to_utc(dt: datetime, tz_name: Optional[str]) -> datetime:
    return to_local(dt, tz_name).astimezone(timezone.utc)


def localize(day: date, wall_time: time, tz: tzinfo) -> datetime:
    """Attach `tz` to a wall-clock date/time, normalizing DST gaps.

    Nonexistent local times (spring-forward gap) are moved forward by the size
    of the gap; ambiguous times (fall-back) resolve to the first occurrence.
    """
    naive = datetime.combine(day, wall_time)
    aware = naive.replace(tzinfo=tz, fold=0)
    # Round-trip through UTC; a wall time inside a gap comes back shifted.
    return aware.astimezone(timezone.utc).astimezone(tz)
