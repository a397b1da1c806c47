"""Tests for rebuilding highlights from stored note content."""

import json

from doc_builders import doc, mark, paragraph, text
from studyhub.highlights.document import collect_mark_ranges, render_document, text_between
from studyhub.highlights.markup import collect_markup_fragments, render_markup
from studyhub.highlights.restore import NoteContent, restore
from studyhub.highlights.working_set import HighlightWorkingSet
from studyhub.models.highlight import Highlight, HighlightSidecarEntry
from studyhub.models.note import Note


def _span(highlight_id, body, category=None, number=None):
    attrs = f'data-highlight-id="{highlight_id}"'
    if category is not None:
        attrs += f' data-highlight-category="{category}"'
    if number is not None:
        attrs += f' data-highlight-number="{number}"'
    return f"<span {attrs}>{body}</span>"


class TestDocumentPositions:

    def test_text_between_clips_to_range(self):
        document = doc(paragraph(text("Hello world")))
        # Paragraph opens at 0, its text starts at 1.
        assert text_between(document, 1, 6) == "Hello"
        assert text_between(document, 7, 12) == "world"

    def test_split_mark_ranges_merge(self):
        document = doc(
            paragraph(
                text("Photo", mark("h1", "red", 1)),
                text("synthesis", mark("h1", "red", 1)),
            )
        )
        entries = collect_mark_ranges(document)
        assert len(entries) == 1
        assert entries[0].merged() == [(1, 15)]


class TestStructuralExtraction:
    """Extraction from the structured editor document."""

    def test_split_text_nodes_join(self, categories):
        document = doc(
            paragraph(
                text("Photo", mark("h1", "red", 1)),
                text("synthesis", mark("h1", "red", 1)),
                text(" makes sugar."),
            )
        )
        result = restore(document, categories)
        assert len(result) == 1
        assert result[0].text == "Photosynthesis"
        assert result[0].category == "red"
        assert result[0].number == 1

    def test_highlight_across_paragraphs(self, categories):
        document = doc(
            paragraph(text("Cells divide", mark("h2", "yellow", 1))),
            paragraph(text("by mitosis", mark("h2", "yellow", 1))),
        )
        result = restore(document, categories)
        assert len(result) == 1
        assert result[0].text.startswith("Cells divide")
        assert result[0].text.endswith("by mitosis")

    def test_sorted_by_category_order_then_number(self, categories):
        document = doc(
            paragraph(text("review", mark("b1", "blue", 1))),
            paragraph(text("second def", mark("r2", "red", 2))),
            paragraph(text("first def", mark("r1", "red", 1))),
            paragraph(text("example", mark("g1", "green", 1))),
        )
        result = restore(document, categories)
        assert [h.id for h in result] == ["r1", "r2", "g1", "b1"]

    def test_numbers_compacted_per_category(self, categories):
        document = doc(
            paragraph(text("seven", mark("r7", "red", 7))),
            paragraph(text("three", mark("r3", "red", 3))),
            paragraph(text("yellow five", mark("y5", "yellow", 5))),
        )
        result = restore(document, categories)
        assert [(h.id, h.number) for h in result] == [("r3", 1), ("r7", 2), ("y5", 1)]

    def test_duplicate_numbers_become_distinct(self, categories):
        document = doc(
            paragraph(text("first", mark("a", "green", 1))),
            paragraph(text("second", mark("b", "green", 1))),
        )
        result = restore(document, categories)
        assert [(h.id, h.number) for h in result] == [("a", 1), ("b", 2)]

    def test_legacy_id_supplies_category_and_number(self, categories):
        document = doc(
            paragraph(text("old style", mark("red-2"))),
            paragraph(text("new style", mark("0b6f", "red", 1))),
        )
        result = restore(document, categories)
        assert [(h.id, h.category, h.number) for h in result] == [("0b6f", "red", 1), ("red-2", "red", 2)]

    def test_unknown_category_dropped(self, categories):
        document = doc(
            paragraph(text("purple text", mark("p1", "purple", 1))),
            paragraph(text("kept", mark("r1", "red", 1))),
        )
        result = restore(document, categories)
        assert [h.id for h in result] == ["r1"]

    def test_whitespace_only_highlight_skipped(self, categories):
        document = doc(paragraph(text("   ", mark("r1", "red", 1))))
        assert restore(document, categories) == []

    def test_empty_content(self, categories):
        assert restore(None, categories) == []
        assert restore(doc(), categories) == []
        assert restore("", categories) == []

    def test_empty_document_ignores_markup(self, categories):
        content = NoteContent(html=_span("r1", "stale", "red", 1), document=doc())
        assert restore(content, categories) == []


class TestMarkupFallback:
    """Extraction from rendered HTML when the document has no highlights."""

    def test_html_only_note(self, categories):
        html = "<p>" + _span("y1", " Energy is conserved ", "yellow", 1) + " always.</p>"
        result = restore(NoteContent(html=html), categories)
        assert len(result) == 1
        assert result[0].text == "Energy is conserved"
        assert result[0].category == "yellow"

    def test_split_spans_join(self, categories):
        html = "<p>" + _span("r1", "Mito", "red", 1) + "<em>" + _span("r1", "chondria", "red", 1) + "</em></p>"
        result = restore(html, categories)
        assert [h.text for h in result] == ["Mitochondria"]

    def test_nested_same_id_counted_once(self):
        html = _span("r1", "outer " + _span("r1", "inner"), "red", 1)
        fragments = collect_markup_fragments(html)
        assert len(fragments) == 1
        assert fragments[0].text == "outer inner"

    def test_legacy_markup_without_category(self, categories):
        html = _span("blue-3", "look this up")
        result = restore(html, categories)
        assert [(h.id, h.category, h.number) for h in result] == [("blue-3", "blue", 1)]

    def test_document_wins_over_markup(self, categories):
        content = NoteContent(
            html=_span("m1", "from markup", "red", 1),
            document=doc(paragraph(text("from document", mark("d1", "red", 1)))),
        )
        assert [h.id for h in restore(content, categories)] == ["d1"]


class TestIdStability:
    """Highlight ids come from the stored marks, never freshly minted on restore."""

    def _document(self, *entries):
        return doc(*(paragraph(text(body, mark(hid, category, number))) for hid, body, category, number in entries))

    def test_restoring_twice_gives_same_ids(self, categories):
        document = self._document(("r1", "alpha", "red", 1), ("r2", "beta", "red", 2), ("g1", "gamma", "green", 1))
        first = restore(document, categories)
        second = restore(document, categories)
        assert [h.id for h in first] == [h.id for h in second] == ["r1", "r2", "g1"]

    def test_survivors_keep_ids_after_removal(self, categories):
        entries = [("r1", "alpha", "red", 1), ("r2", "beta", "red", 2), ("r3", "gamma", "red", 3)]
        working = HighlightWorkingSet(categories, restore(self._document(*entries), categories))

        removed = working.remove_by_text("beta", exact=True)
        assert [h.id for h in removed] == ["r2"]

        # The saved document no longer carries the removed mark; numbers are the renumbered ones.
        saved = self._document(("r1", "alpha", "red", 1), ("r3", "gamma", "red", 2))
        reloaded = restore(saved, categories)

        assert [h.id for h in reloaded] == [h.id for h in working.in_category("red")] == ["r1", "r3"]
        assert [h.number for h in reloaded] == [h.number for h in working.in_category("red")] == [1, 2]


class TestSidecarMerge:

    def test_user_fields_merged_by_id(self, categories):
        document = doc(paragraph(text("term", mark("r1", "red", 1))))
        sidecar = [HighlightSidecarEntry(id="r1", commentary="my words", isExpanded=True)]
        result = restore(document, categories, sidecar)
        assert result[0].commentary == "my words"
        assert result[0].is_expanded is True

    def test_sidecar_cannot_override_markup_fields(self, categories):
        document = doc(paragraph(text("term", mark("r1", "red", 1))))
        sidecar = [{"id": "r1", "commentary": "c", "category": "blue", "text": "other", "number": 9}]
        result = restore(document, categories, sidecar)
        assert (result[0].category, result[0].text, result[0].number) == ("red", "term", 1)
        assert result[0].commentary == "c"

    def test_stale_sidecar_entries_ignored(self, categories):
        document = doc(paragraph(text("term", mark("r1", "red", 1))))
        result = restore(document, categories, [{"id": "gone", "commentary": "orphan"}])
        assert len(result) == 1
        assert result[0].commentary == ""


class TestMalformedContent:

    def test_bad_content_list(self, categories):
        assert restore({"type": "doc", "content": "nope"}, categories) == []

    def test_unsupported_type(self, categories):
        assert restore(42, categories) == []

    def test_invalid_json_string_treated_as_html(self, categories):
        assert restore("{not json", categories) == []


class TestContentCoercion:

    def test_json_document_string(self):
        document = doc(paragraph(text("x")))
        content = NoteContent.coerce(json.dumps(document))
        assert content.document == document
        assert content.html == ""

    def test_note_model(self, test_user_id):
        note = Note(user_id=test_user_id, title="Bio", content="<p>hi</p>")
        content = NoteContent.coerce(note)
        assert content.html == "<p>hi</p>"
        assert content.document is None


class TestRendering:
    """Rendered content restores to the same highlight list."""

    def _highlights(self):
        return [
            Highlight(id="r1", category="red", number=1, text="Osmosis"),
            Highlight(id="r2", category="red", number=2, text="Diffusion"),
            Highlight(id="g1", category="green", number=1, text="Salt on a slug"),
        ]

    def test_document_rendering(self, categories):
        highlights = self._highlights()
        assert restore(render_document(highlights, categories), categories) == highlights

    def test_markup_rendering(self, categories):
        highlights = self._highlights()
        html = render_markup(highlights, categories)
        assert 'class="numbered-highlight"' in html
        assert restore(html, categories) == highlights
