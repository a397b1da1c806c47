"""Rebuild the canonical highlight list from stored note content.

Extraction runs on the structured editor document first. When that finds
nothing, the rendered HTML is scanned instead; in a live editor the HTML may
not be rendered yet, so `restore_with_retry` repeats that scan on a short
schedule (see FallbackExtraction). The result is always sorted by
(category, number) with each category renumbered 1..K, and the sidecar only
ever contributes `commentary` and `is_expanded`.
"""

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel

from studyhub.highlights.document import MalformedDocumentError, collect_mark_ranges, content_size, text_between
from studyhub.highlights.ids import parse_legacy_highlight_id
from studyhub.highlights.markup import collect_markup_fragments
from studyhub.highlights.resequence import apply_numbering_to, resequence_category, sort_highlights
from studyhub.models.constants import (
    FALLBACK_DELAY_STEP_SEC,
    FALLBACK_INITIAL_DELAY_SEC,
    FALLBACK_MAX_ATTEMPTS,
)
from studyhub.models.highlight import DEFAULT_HIGHLIGHT_CATEGORIES, Highlight, HighlightCategories, HighlightSidecarEntry

logger = logging.getLogger(__name__)


class NoteContent(BaseModel):
    """Serialized note content as handed to the restorer."""

    html: str = ""
    document: Optional[Dict[str, Any]] = None

    @classmethod
    def coerce(cls, value: Any) -> "NoteContent":
        """Accept a Note, a NoteContent, a document dict, or an HTML/JSON string."""
        if value is None:
            return cls()
        if isinstance(value, NoteContent):
            return value
        if hasattr(value, "content") and hasattr(value, "document"):
            return cls(html=value.content or "", document=value.document)
        if isinstance(value, dict):
            if value.get("type") == "doc":
                return cls(document=value)
            return cls(html=value.get("html") or "", document=value.get("document"))
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("{"):
                try:
                    parsed = json.loads(stripped)
                except json.JSONDecodeError:
                    parsed = None
                if isinstance(parsed, dict) and parsed.get("type") == "doc":
                    return cls(document=parsed)
            return cls(html=value)
        raise TypeError(f"Unsupported note content: {type(value).__name__}")

    @property
    def is_empty(self) -> bool:
        return content_size(self.document) == 0 and not self.html.strip()

    @property
    def has_empty_document(self) -> bool:
        """An editor document was supplied and it has no content."""
        return self.document is not None and content_size(self.document) == 0


@dataclass(frozen=True)
class ExtractedHighlight:
    id: str
    category: str
    number: int
    text: str
    position: int


def _parse_number(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if number != number or number < 1 or not number.is_integer():
        return None
    return int(number)


def _resolve_identity(
    highlight_id: str,
    category_attr: Optional[str],
    number_attr: Any,
    categories: HighlightCategories,
) -> Optional[Tuple[str, int]]:
    """(category, number) for an extracted id, or None when its category is unknown."""
    legacy = parse_legacy_highlight_id(highlight_id, categories)
    category = category_attr or (legacy[0] if legacy else None)
    if category not in categories:
        logger.debug(f"Dropping highlight {highlight_id}: unknown category {category!r}")
        return None
    number = _parse_number(number_attr)
    if legacy is not None and (number is None or legacy[0] != category):
        number = legacy[1]
    return category, number or 1


def extract_structural(document: Optional[Dict[str, Any]], categories: HighlightCategories) -> List[ExtractedHighlight]:
    if not document or content_size(document) == 0:
        return []
    found: List[ExtractedHighlight] = []
    for entry in collect_mark_ranges(document):
        identity = _resolve_identity(entry.id, entry.category, entry.number, categories)
        if identity is None:
            continue
        text = "".join(text_between(document, start, end) for start, end in entry.merged())
        if not text.strip():
            logger.debug(f"Skipping highlight {entry.id}: no text content")
            continue
        category, number = identity
        found.append(ExtractedHighlight(entry.id, category, number, text, entry.first_position))
    return found


def extract_from_markup(html: str, categories: HighlightCategories) -> List[ExtractedHighlight]:
    found: List[ExtractedHighlight] = []
    for entry in collect_markup_fragments(html):
        identity = _resolve_identity(entry.id, entry.category, entry.number, categories)
        if identity is None:
            continue
        text = entry.text
        if not text:
            continue
        category, number = identity
        found.append(ExtractedHighlight(entry.id, category, number, text, entry.position))
    return found


def _sidecar_map(sidecar: Optional[Iterable[Any]]) -> Dict[str, Tuple[str, bool]]:
    out: Dict[str, Tuple[str, bool]] = {}
    for entry in sidecar or []:
        if isinstance(entry, HighlightSidecarEntry):
            out[entry.id] = (entry.commentary or "", bool(entry.isExpanded))
        elif isinstance(entry, dict) and isinstance(entry.get("id"), str):
            expanded = entry.get("isExpanded", entry.get("is_expanded"))
            out[entry["id"]] = (entry.get("commentary") or "", bool(expanded))
    return out


def finalize(
    extracted: List[ExtractedHighlight],
    categories: HighlightCategories,
    sidecar: Optional[Iterable[Any]] = None,
) -> List[Highlight]:
    """Merge the sidecar, sort, and renumber every observed category to 1..K."""
    saved = _sidecar_map(sidecar)
    highlights = []
    for item in extracted:
        commentary, is_expanded = saved.get(item.id, ("", False))
        highlights.append(
            Highlight(
                id=item.id,
                category=item.category,
                number=item.number,
                text=item.text,
                commentary=commentary,
                is_expanded=is_expanded,
            )
        )
    ordered = sort_highlights(highlights, categories, {item.id: item.position for item in extracted})
    numbering: Dict[str, int] = {}
    for category in {h.category for h in ordered}:
        numbering.update(resequence_category(ordered, category))
    return apply_numbering_to(ordered, numbering)


def restore(
    content: Any,
    categories: HighlightCategories = DEFAULT_HIGHLIGHT_CATEGORIES,
    sidecar: Optional[Iterable[Any]] = None,
) -> List[Highlight]:
    """Canonical highlights of `content`; malformed input yields []."""
    try:
        note = NoteContent.coerce(content)
        if note.is_empty or note.has_empty_document:
            return []
        extracted = extract_structural(note.document, categories)
        if not extracted and note.html:
            logger.debug("No highlights in document structure, scanning rendered markup")
            extracted = extract_from_markup(note.html, categories)
        return finalize(extracted, categories, sidecar)
    except (MalformedDocumentError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Highlight restoration failed: {type(e).__name__}: {str(e)}")
        return []


class FallbackState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class FallbackExtraction:
    """Retry bookkeeping for markup extraction.

    The first attempt runs after `initial_delay`; after a failed attempt N the
    next one runs `N * delay_step` later. Exhaustion is terminal.
    """

    def __init__(
        self,
        max_attempts: int = FALLBACK_MAX_ATTEMPTS,
        initial_delay: float = FALLBACK_INITIAL_DELAY_SEC,
        delay_step: float = FALLBACK_DELAY_STEP_SEC,
    ):
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.delay_step = delay_step
        self.attempt = 0
        self.state = FallbackState.PENDING
        self.result: List[ExtractedHighlight] = []

    @property
    def done(self) -> bool:
        return self.state != FallbackState.PENDING

    def next_delay(self) -> Optional[float]:
        """Seconds to wait before the next attempt (None once finished)."""
        if self.done:
            return None
        if self.attempt == 0:
            return self.initial_delay
        return self.attempt * self.delay_step

    def record(self, found: List[ExtractedHighlight]) -> FallbackState:
        if self.done:
            return self.state
        self.attempt += 1
        if found:
            self.result = list(found)
            self.state = FallbackState.SUCCEEDED
        elif self.attempt >= self.max_attempts:
            self.state = FallbackState.EXHAUSTED
        return self.state


ContentSource = Callable[[], Union[Any, Awaitable[Any]]]


async def _read(content_source: ContentSource) -> NoteContent:
    value = content_source()
    if inspect.isawaitable(value):
        value = await value
    return NoteContent.coerce(value)


async def restore_with_retry(
    content_source: ContentSource,
    categories: HighlightCategories = DEFAULT_HIGHLIGHT_CATEGORIES,
    sidecar: Optional[Iterable[Any]] = None,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    machine: Optional[FallbackExtraction] = None,
) -> List[Highlight]:
    """`restore` for content that may still be rendering.

    `content_source` is called for every attempt (sync or async) and returns
    the current content. An empty editor document returns [] without any
    retry. Cancelling the task abandons the retries.
    """
    try:
        note = await _read(content_source)
        if note.has_empty_document:
            return []
        extracted = extract_structural(note.document, categories)
    except (MalformedDocumentError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Structural highlight extraction failed: {type(e).__name__}: {str(e)}")
        extracted = []
    if extracted:
        return finalize(extracted, categories, sidecar)

    machine = machine or FallbackExtraction()
    while not machine.done:
        await sleep(machine.next_delay())
        try:
            note = await _read(content_source)
            found = extract_from_markup(note.html, categories)
        except (TypeError, ValueError, AttributeError) as e:
            logger.debug(f"Markup extraction attempt {machine.attempt + 1} failed: {type(e).__name__}")
            found = []
        machine.record(found)

    if machine.state == FallbackState.EXHAUSTED:
        logger.info(f"No highlights found in markup after {machine.attempt} attempts")
        return []
    return finalize(machine.result, categories, sidecar)
