"""ProseMirror/TipTap JSON document helpers.

Positions follow ProseMirror addressing: the document's content starts at 0,
a text node occupies one position per character, a leaf node occupies one
position, and any other node occupies its content plus an opening and a
closing token.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from studyhub.models.constants import HIGHLIGHT_MARK_NAME
from studyhub.models.highlight import DEFAULT_HIGHLIGHT_CATEGORIES, Highlight, HighlightCategories

LEAF_NODE_TYPES = frozenset(
    {"hardBreak", "hard_break", "image", "horizontalRule", "horizontal_rule", "mention", "emoji"}
)


class MalformedDocumentError(ValueError):
    """The JSON value is not a ProseMirror-style document."""


def _children(node: Dict[str, Any]) -> List[Dict[str, Any]]:
    content = node.get("content") or []
    if not isinstance(content, list):
        raise MalformedDocumentError(f"Node content must be a list, got {type(content).__name__}")
    return content


def node_size(node: Dict[str, Any]) -> int:
    if not isinstance(node, dict):
        raise MalformedDocumentError(f"Node must be an object, got {type(node).__name__}")
    node_type = node.get("type")
    if node_type == "text":
        return len(node.get("text") or "")
    if node_type in LEAF_NODE_TYPES:
        return 1
    return 2 + sum(node_size(child) for child in _children(node))


def content_size(doc: Optional[Dict[str, Any]]) -> int:
    """Size of the document's content (0 for empty/missing documents)."""
    if not doc:
        return 0
    return sum(node_size(child) for child in _children(doc))


def descendants(doc: Dict[str, Any]) -> Iterator[Tuple[Dict[str, Any], int]]:
    """Yield (node, pos) for every node below `doc`, in document order."""

    def walk(nodes: List[Dict[str, Any]], start: int) -> Iterator[Tuple[Dict[str, Any], int]]:
        pos = start
        for node in nodes:
            yield node, pos
            if node.get("type") != "text" and node.get("type") not in LEAF_NODE_TYPES:
                yield from walk(_children(node), pos + 1)
            pos += node_size(node)

    yield from walk(_children(doc), 0)


def text_between(doc: Dict[str, Any], start: int, end: int) -> str:
    """Text of the text nodes intersecting [start, end), clipped to the range."""
    parts: List[str] = []
    for node, pos in descendants(doc):
        if node.get("type") != "text":
            continue
        text = node.get("text") or ""
        node_end = pos + len(text)
        if node_end <= start or pos >= end:
            continue
        parts.append(text[max(start, pos) - pos:min(end, node_end) - pos])
    return "".join(parts)


@dataclass
class MarkRanges:
    """Every range one highlight id covers, plus the attrs seen first."""

    id: str
    category: Optional[str]
    number: Any
    ranges: List[Tuple[int, int]] = field(default_factory=list)

    def merged(self) -> List[Tuple[int, int]]:
        """Sorted ranges with overlapping/adjacent ones coalesced."""
        out: List[List[int]] = []
        for start, end in sorted(self.ranges):
            if out and start <= out[-1][1]:
                out[-1][1] = max(out[-1][1], end)
            else:
                out.append([start, end])
        return [(start, end) for start, end in out]

    @property
    def first_position(self) -> int:
        return min(start for start, _ in self.ranges) if self.ranges else 0


def collect_mark_ranges(doc: Dict[str, Any], mark_name: str = HIGHLIGHT_MARK_NAME) -> List[MarkRanges]:
    """Group the text ranges carrying `mark_name` by the mark's id attr.

    Returned in order of first appearance. Marks without an id are ignored.
    """
    by_id: Dict[str, MarkRanges] = {}
    for node, pos in descendants(doc):
        if node.get("type") != "text":
            continue
        for mark in node.get("marks") or []:
            if not isinstance(mark, dict) or mark.get("type") != mark_name:
                continue
            attrs = mark.get("attrs") or {}
            mark_id = attrs.get("id")
            if not mark_id:
                continue
            mark_id = str(mark_id)
            entry = by_id.get(mark_id)
            if entry is None:
                entry = MarkRanges(id=mark_id, category=attrs.get("category"), number=attrs.get("number"))
                by_id[mark_id] = entry
            entry.ranges.append((pos, pos + node_size(node)))
    return list(by_id.values())


def render_document(
    highlights: Iterable[Highlight],
    categories: HighlightCategories = DEFAULT_HIGHLIGHT_CATEGORIES,
) -> Dict[str, Any]:
    """Document with one paragraph per highlight, readable by structural extraction."""
    paragraphs: List[Dict[str, Any]] = []
    for h in highlights:
        category = categories.get(h.category)
        attrs = {
            "id": h.id,
            "category": h.category,
            "number": h.number,
            "color": category.color if category is not None else None,
        }
        paragraph: Dict[str, Any] = {"type": "paragraph"}
        if h.text:
            paragraph["content"] = [
                {"type": "text", "text": h.text, "marks": [{"type": HIGHLIGHT_MARK_NAME, "attrs": attrs}]}
            ]
        paragraphs.append(paragraph)
    return {"type": "doc", "content": paragraphs}
