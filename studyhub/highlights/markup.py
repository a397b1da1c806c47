"""Flat-markup (rendered HTML) side of highlights.

Highlights render as `<span data-highlight-id=... data-highlight-category=...
data-highlight-number=...>`; one highlight may be split across several spans.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bs4 import BeautifulSoup

from studyhub.models.constants import (
    HIGHLIGHT_CATEGORY_ATTR,
    HIGHLIGHT_ID_ATTR,
    HIGHLIGHT_NUMBER_ATTR,
)
from studyhub.models.highlight import DEFAULT_HIGHLIGHT_CATEGORIES, Highlight, HighlightCategories

logger = logging.getLogger(__name__)

HIGHLIGHT_CLASS = "numbered-highlight"


@dataclass
class MarkupFragments:
    """All elements of one highlight id, in document order."""

    id: str
    category: Optional[str]
    number: Any
    texts: List[str]
    position: int

    @property
    def text(self) -> str:
        return "".join(self.texts).strip()


def _inside_same_id(element, highlight_id: str) -> bool:
    for parent in element.parents:
        if parent.get(HIGHLIGHT_ID_ATTR) == highlight_id:
            return True
    return False


def collect_markup_fragments(html: str) -> List[MarkupFragments]:
    """Group `[data-highlight-id]` elements by id, in order of first appearance."""
    if not html or not html.strip():
        return []
    soup = BeautifulSoup(html, "html.parser")
    by_id: Dict[str, MarkupFragments] = {}
    for position, element in enumerate(soup.select(f"[{HIGHLIGHT_ID_ATTR}]")):
        highlight_id = (element.get(HIGHLIGHT_ID_ATTR) or "").strip()
        if not highlight_id:
            continue
        # Nested same-id elements are already covered by their ancestor's text.
        if _inside_same_id(element, highlight_id):
            continue
        entry = by_id.get(highlight_id)
        if entry is None:
            entry = MarkupFragments(
                id=highlight_id,
                category=element.get(HIGHLIGHT_CATEGORY_ATTR),
                number=element.get(HIGHLIGHT_NUMBER_ATTR),
                texts=[],
                position=position,
            )
            by_id[highlight_id] = entry
        entry.texts.append(element.get_text())
    return list(by_id.values())


def apply_numbering(html: str, numbering: Mapping[str, int]) -> str:
    """Rewrite the number attributes of a detached HTML rendering."""
    if not html or not numbering:
        return html
    soup = BeautifulSoup(html, "html.parser")
    changed = 0
    for element in soup.select(f"[{HIGHLIGHT_ID_ATTR}]"):
        new_number = numbering.get(element.get(HIGHLIGHT_ID_ATTR))
        if new_number is None:
            continue
        element[HIGHLIGHT_NUMBER_ATTR] = str(new_number)
        element["data-number"] = str(new_number)
        changed += 1
    logger.debug(f"Renumbered {changed} highlight elements")
    return str(soup)


def render_markup(
    highlights: Iterable[Highlight],
    categories: HighlightCategories = DEFAULT_HIGHLIGHT_CATEGORIES,
) -> str:
    """HTML with one paragraph per highlight, readable by fallback extraction."""
    soup = BeautifulSoup("", "html.parser")
    for h in highlights:
        paragraph = soup.new_tag("p")
        span = soup.new_tag("span")
        span[HIGHLIGHT_ID_ATTR] = h.id
        span[HIGHLIGHT_CATEGORY_ATTR] = h.category
        span[HIGHLIGHT_NUMBER_ATTR] = str(h.number)
        span["data-number"] = str(h.number)
        span["class"] = HIGHLIGHT_CLASS
        category = categories.get(h.category)
        if category is not None:
            span["data-color"] = category.color
            span["style"] = f"background-color: {category.color};"
        span.string = h.text
        paragraph.append(span)
        soup.append(paragraph)
    return str(soup)
