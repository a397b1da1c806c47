"""Tests for timezone helpers."""

import pytest
from datetime import date, datetime, time, timezone

from studyhub.timezones import (
    InvalidTimezoneError,
    is_valid_timezone,
    localize,
    normalize_tz_name,
    resolve_timezone,
    to_local,
    to_utc,
)


class TestTimezoneNames:

    def test_utc_aliases(self):
        assert normalize_tz_name(None) == "UTC"
        assert normalize_tz_name(" z ") == "UTC"
        assert normalize_tz_name("GMT") == "UTC"
        assert normalize_tz_name("Europe/Paris") == "Europe/Paris"

    def test_unknown_zone(self):
        with pytest.raises(InvalidTimezoneError):
            resolve_timezone("Mars/Olympus_Mons")
        assert is_valid_timezone("Mars/Olympus_Mons") is False
        assert is_valid_timezone("America/New_York") is True


class TestConversions:

    def test_naive_is_wall_clock(self):
        local = to_local(datetime(2024, 7, 1, 9, 0), "America/New_York")
        assert local.utcoffset().total_seconds() == -4 * 3600
        assert to_utc(datetime(2024, 7, 1, 9, 0), "America/New_York") == datetime(
            2024, 7, 1, 13, 0, tzinfo=timezone.utc
        )

    def test_aware_is_instant(self):
        instant = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert to_local(instant, "Asia/Tokyo").hour == 21

    def test_gap_moves_forward(self):
        # 02:30 does not exist on 2024-03-10 in New York.
        shifted = localize(date(2024, 3, 10), time(2, 30), resolve_timezone("America/New_York"))
        assert (shifted.hour, shifted.minute) == (3, 30)

    def test_ambiguous_time_takes_first(self):
        first = localize(date(2024, 11, 3), time(1, 30), resolve_timezone("America/New_York"))
        assert first.utcoffset().total_seconds() == -4 * 3600
