"""Highlight restoration engine and working set."""

from studyhub.highlights.document import collect_mark_ranges, render_document, text_between
from studyhub.highlights.ids import (
    generate_highlight_id,
    is_legacy_highlight_id,
    is_valid_highlight_id,
    parse_legacy_highlight_id,
)
from studyhub.highlights.markup import apply_numbering, collect_markup_fragments, render_markup
from studyhub.highlights.restore import (
    FallbackExtraction,
    FallbackState,
    NoteContent,
    restore,
    restore_with_retry,
)
from studyhub.highlights.resequence import resequence_category, resequence_numbers, sort_highlights
from studyhub.highlights.working_set import HighlightWorkingSet

__all__ = [
    "collect_mark_ranges",
    "render_document",
    "text_between",
    "generate_highlight_id",
    "is_legacy_highlight_id",
    "is_valid_highlight_id",
    "parse_legacy_highlight_id",
    "apply_numbering",
    "collect_markup_fragments",
    "render_markup",
    "FallbackExtraction",
    "FallbackState",
    "NoteContent",
    "restore",
    "restore_with_retry",
    "resequence_category",
    "resequence_numbers",
    "sort_highlights",
    "HighlightWorkingSet",
]
