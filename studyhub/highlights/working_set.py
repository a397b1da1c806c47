"""Caller-owned, mutable list of a note's highlights."""

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set

from studyhub.highlights.ids import generate_highlight_id
from studyhub.highlights.resequence import apply_numbering_to, resequence_category
from studyhub.models.highlight import DEFAULT_HIGHLIGHT_CATEGORIES, Highlight, HighlightCategories, HighlightSidecarEntry

logger = logging.getLogger(__name__)


class HighlightWorkingSet:
    """Add / remove / renumber highlights while keeping numbers contiguous.

    Removals renumber the touched categories through `defer` (e.g.
    `loop.call_soon`) so a view can finish its own update first; without a
    hook the renumbering happens immediately. `on_renumber` receives
    `{highlight_id: new_number}` for every renumbered category so a rendered
    view can be synced (see `markup.apply_numbering`).
    """

    def __init__(
        self,
        categories: HighlightCategories = DEFAULT_HIGHLIGHT_CATEGORIES,
        highlights: Optional[Iterable[Highlight]] = None,
        *,
        defer: Optional[Callable[[Callable[[], None]], object]] = None,
        on_renumber: Optional[Callable[[Dict[str, int]], None]] = None,
    ):
        self.categories = categories
        self._highlights: List[Highlight] = list(highlights or [])
        self._defer = defer
        self._on_renumber = on_renumber
        self._pending: Set[str] = set()
        self._flush_scheduled = False

    def __len__(self) -> int:
        return len(self._highlights)

    def __iter__(self) -> Iterator[Highlight]:
        return iter(list(self._highlights))

    @property
    def highlights(self) -> List[Highlight]:
        return list(self._highlights)

    def get(self, highlight_id: str) -> Optional[Highlight]:
        for h in self._highlights:
            if h.id == highlight_id:
                return h
        return None

    def in_category(self, category: str) -> List[Highlight]:
        return sorted((h for h in self._highlights if h.category == category), key=lambda h: h.number)

    def add_highlight(self, category: str, text: str, *, highlight_id: Optional[str] = None) -> Highlight:
        if category not in self.categories:
            raise ValueError(f"Unknown highlight category: {category!r}")
        number = max((h.number for h in self._highlights if h.category == category), default=0) + 1
        highlight = Highlight(id=highlight_id or generate_highlight_id(), category=category, number=number, text=text)
        self._highlights.append(highlight)
        logger.debug(f"Added highlight {highlight.id} ({category} #{number})")
        return highlight

    def remove_highlight(self, highlight_id: str) -> Optional[Highlight]:
        """Remove by exact id; unknown ids are a no-op (returns None)."""
        target = self.get(highlight_id)
        if target is None:
            return None
        self._highlights = [h for h in self._highlights if h.id != highlight_id]
        self._schedule_resequence({target.category})
        return target

    def remove_by_text(self, match_text: str, exact: bool = False) -> List[Highlight]:
        """Remove highlights whose text matches `match_text` (trimmed, case-insensitive).

        Loose mode also matches when either text contains the other.
        """
        needle = (match_text or "").strip().lower()
        if not needle:
            return []

        def matches(h: Highlight) -> bool:
            text = h.text.strip().lower()
            if exact:
                return text == needle
            return bool(text) and (text == needle or needle in text or text in needle)

        removed = [h for h in self._highlights if matches(h)]
        if removed:
            self._highlights = [h for h in self._highlights if not matches(h)]
            self._schedule_resequence({h.category for h in removed})
        return removed

    def resequence(self, category: str) -> Dict[str, int]:
        """Renumber one category to 1..K and publish the new numbers."""
        numbering = resequence_category(self._highlights, category)
        self._highlights = apply_numbering_to(self._highlights, numbering)
        if numbering and self._on_renumber is not None:
            self._on_renumber(dict(numbering))
        return numbering

    def flush(self) -> None:
        """Run every pending renumbering now."""
        pending = sorted(self._pending)
        self._pending.clear()
        self._flush_scheduled = False
        for category in pending:
            self.resequence(category)

    def _schedule_resequence(self, categories: Set[str]) -> None:
        self._pending.update(categories)
        if self._defer is None:
            self.flush()
        elif not self._flush_scheduled:
            self._flush_scheduled = True
            self._defer(self.flush)

    def update_commentary(self, highlight_id: str, commentary: str) -> Highlight:
        return self._replace(highlight_id, commentary=commentary)

    def toggle_expanded(self, highlight_id: str) -> Highlight:
        current = self.get(highlight_id)
        if current is None:
            raise ValueError(f"Highlight {highlight_id} not found")
        return self._replace(highlight_id, is_expanded=not current.is_expanded)

    def _replace(self, highlight_id: str, **changes) -> Highlight:
        for index, h in enumerate(self._highlights):
            if h.id == highlight_id:
                updated = h.model_copy(update=changes)
                self._highlights[index] = updated
                return updated
        raise ValueError(f"Highlight {highlight_id} not found")

    def sidecar(self) -> List[HighlightSidecarEntry]:
        """User-authored fields to persist next to the note content."""
        return [
            HighlightSidecarEntry(id=h.id, commentary=h.commentary, isExpanded=h.is_expanded)
            for h in self._highlights
        ]
