"""Display-number compaction for highlights.

Numbers within a category must read 1..K with no gaps. Compaction is a pure
mapping; applying it (and syncing any rendered view) is the caller's job.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from studyhub.models.highlight import Highlight, HighlightCategories


def resequence_numbers(numbers: Iterable[int]) -> Dict[int, int]:
    """old number -> new number, compacting distinct numbers to 1..K in order."""
    return {old: index + 1 for index, old in enumerate(sorted(set(numbers)))}


def resequence_category(highlights: Sequence[Highlight], category: str) -> Dict[str, int]:
    """highlight id -> new number for one category.

    Ordered by current number, ties broken by list position, so duplicate
    numbers still end up distinct.
    """
    members = [(h.number, index, h.id) for index, h in enumerate(highlights) if h.category == category]
    members.sort()
    return {highlight_id: new for new, (_, _, highlight_id) in enumerate(members, start=1)}


def apply_numbering_to(highlights: Iterable[Highlight], numbering: Mapping[str, int]) -> List[Highlight]:
    out: List[Highlight] = []
    for h in highlights:
        new = numbering.get(h.id)
        out.append(h if new is None or new == h.number else h.model_copy(update={"number": new}))
    return out


def sort_highlights(
    highlights: Iterable[Highlight],
    categories: HighlightCategories,
    positions: Optional[Mapping[str, int]] = None,
) -> List[Highlight]:
    """Order by (category as configured, number, document position)."""
    order = {key: index for index, key in enumerate(categories.keys_in_order)}
    positions = positions or {}
    return sorted(
        highlights,
        key=lambda h: (order.get(h.category, len(order)), h.number, positions.get(h.id, 0)),
    )
