"""Scheduling conflict detection between event instances.

All comparisons happen on the UTC axis; local wall-clock values from different
timezones are never compared directly.
"""

from datetime import datetime
from typing import Iterable, List, Set

from studyhub.models.schedule_event import ConflictTarget, EventInstance
from studyhub.timezones import to_utc


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Strict half-open overlap: touching intervals do not conflict."""
    return a_start < b_end and b_start < a_end


def has_timezone_conflict(a: EventInstance, b: EventInstance) -> bool:
    return intervals_overlap(a.start_utc(), a.end_utc(), b.start_utc(), b.end_utc())


def find_conflicts(target: ConflictTarget, candidates: Iterable[EventInstance]) -> List[EventInstance]:
    """Candidates overlapping `target`, in candidate order.

    `target.exclude_id` drops that candidate first (an instance being edited
    must not conflict with itself).
    """
    start = to_utc(target.start_time, target.timezone)
    end = to_utc(target.end_time, target.timezone)
    conflicts: List[EventInstance] = []
    for candidate in candidates:
        if target.exclude_id is not None and candidate.id == target.exclude_id:
            continue
        if intervals_overlap(start, end, candidate.start_utc(), candidate.end_utc()):
            conflicts.append(candidate)
    return conflicts


def conflicts_for_instance(instance: EventInstance, candidates: Iterable[EventInstance]) -> List[EventInstance]:
    target = ConflictTarget(
        start_time=instance.start_time,
        end_time=instance.end_time,
        timezone=instance.timezone,
        exclude_id=instance.id,
    )
    return find_conflicts(target, candidates)


def conflicting_ids(instances: List[EventInstance]) -> Set[str]:
    """Ids of every instance that overlaps at least one other instance."""
    ids: Set[str] = set()
    # Sweep in UTC start order; only instances still open can overlap the current one.
    ordered = sorted(
        (inst for inst in instances if inst.id is not None),
        key=lambda inst: (inst.start_utc(), inst.end_utc(), inst.id),
    )
    active: List[EventInstance] = []
    for inst in ordered:
        start = inst.start_utc()
        active = [other for other in active if other.end_utc() > start]
        for other in active:
            if intervals_overlap(start, inst.end_utc(), other.start_utc(), other.end_utc()):
                ids.add(inst.id)
                ids.add(other.id)
        active.append(inst)
    return ids
