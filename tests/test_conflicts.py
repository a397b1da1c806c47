"""Tests for conflict detection on the UTC axis."""

from datetime import datetime, timezone

from studyhub.models.schedule_event import ConflictTarget, EventInstance
from studyhub.recurrence.conflicts import (
    conflicting_ids,
    conflicts_for_instance,
    find_conflicts,
    has_timezone_conflict,
    intervals_overlap,
)


UTC = timezone.utc


def _instance(instance_id, start, end, tz="UTC"):
    return EventInstance(id=instance_id, title=instance_id, timezone=tz, start_time=start, end_time=end)


class TestOverlap:
    """Strict half-open overlap."""

    def test_touching_intervals_do_not_overlap(self):
        a = datetime(2024, 1, 1, 9, tzinfo=UTC)
        b = datetime(2024, 1, 1, 10, tzinfo=UTC)
        c = datetime(2024, 1, 1, 11, tzinfo=UTC)
        assert intervals_overlap(a, b, b, c) is False

    def test_nested_interval_overlaps(self):
        assert intervals_overlap(
            datetime(2024, 1, 1, 9, tzinfo=UTC),
            datetime(2024, 1, 1, 12, tzinfo=UTC),
            datetime(2024, 1, 1, 10, tzinfo=UTC),
            datetime(2024, 1, 1, 11, tzinfo=UTC),
        )

    def test_symmetry(self):
        a = _instance("a", datetime(2024, 1, 1, 9, tzinfo=UTC), datetime(2024, 1, 1, 10, 30, tzinfo=UTC))
        b = _instance("b", datetime(2024, 1, 1, 10, tzinfo=UTC), datetime(2024, 1, 1, 11, tzinfo=UTC))
        assert has_timezone_conflict(a, b) == has_timezone_conflict(b, a) is True


class TestFindConflicts:
    """find_conflicts compares absolute instants, never local wall-clock values."""

    def test_cross_timezone_overlap(self):
        # 09:00 New York (EST) == 14:00 UTC == 15:00 Berlin.
        ny = _instance("ny", datetime(2024, 1, 15, 9, 0), datetime(2024, 1, 15, 10, 0), tz="America/New_York")
        target = ConflictTarget(
            start_time=datetime(2024, 1, 15, 15, 30),
            end_time=datetime(2024, 1, 15, 16, 30),
            timezone="Europe/Berlin",
        )
        assert find_conflicts(target, [ny]) == [ny]

    def test_same_wall_clock_different_zones_do_not_conflict(self):
        ny = _instance("ny", datetime(2024, 1, 15, 9, 0), datetime(2024, 1, 15, 10, 0), tz="America/New_York")
        target = ConflictTarget(
            start_time=datetime(2024, 1, 15, 9, 0),
            end_time=datetime(2024, 1, 15, 10, 0),
            timezone="Europe/London",
        )
        assert find_conflicts(target, [ny]) == []

    def test_exclude_id_and_order_preserved(self):
        a = _instance("a", datetime(2024, 1, 1, 9, tzinfo=UTC), datetime(2024, 1, 1, 11, tzinfo=UTC))
        b = _instance("b", datetime(2024, 1, 1, 8, tzinfo=UTC), datetime(2024, 1, 1, 10, tzinfo=UTC))
        c = _instance("c", datetime(2024, 1, 1, 10, tzinfo=UTC), datetime(2024, 1, 1, 12, tzinfo=UTC))
        target = ConflictTarget(
            start_time=datetime(2024, 1, 1, 9, 30, tzinfo=UTC),
            end_time=datetime(2024, 1, 1, 10, 30, tzinfo=UTC),
            exclude_id="b",
        )
        assert [i.id for i in find_conflicts(target, [a, b, c])] == ["a", "c"]

    def test_instance_does_not_conflict_with_itself(self):
        a = _instance("a", datetime(2024, 1, 1, 9, tzinfo=UTC), datetime(2024, 1, 1, 10, tzinfo=UTC))
        b = _instance("b", datetime(2024, 1, 1, 9, 30, tzinfo=UTC), datetime(2024, 1, 1, 10, 30, tzinfo=UTC))
        assert conflicts_for_instance(a, [a, b]) == [b]

    def test_no_candidates(self):
        target = ConflictTarget(
            start_time=datetime(2024, 1, 1, 9, tzinfo=UTC),
            end_time=datetime(2024, 1, 1, 10, tzinfo=UTC),
        )
        assert find_conflicts(target, []) == []


class TestConflictingIds:

    def test_sweep_finds_all_overlapping_pairs(self):
        instances = [
            _instance("a", datetime(2024, 1, 1, 9, tzinfo=UTC), datetime(2024, 1, 1, 10, tzinfo=UTC)),
            _instance("b", datetime(2024, 1, 1, 9, 45, tzinfo=UTC), datetime(2024, 1, 1, 11, tzinfo=UTC)),
            _instance("c", datetime(2024, 1, 1, 11, tzinfo=UTC), datetime(2024, 1, 1, 12, tzinfo=UTC)),
            _instance("d", datetime(2024, 1, 1, 13, tzinfo=UTC), datetime(2024, 1, 1, 14, tzinfo=UTC)),
        ]
        assert conflicting_ids(instances) == {"a", "b"}
