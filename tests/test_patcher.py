"""
Pytest tests for the document patcher.
Each edit is checked against the observable document state and, where the
edit is local, against the exact surrounding text.

Run: pytest tests/test_patcher.py -v
"""
from __future__ import annotations
import pytest

from bases import document as doc
from bases.extractor import Entities
from bases.patcher import apply_instruction, document_resolver, patch_document, set_filter_predicate
from bases.synthesizer import DEFAULT_ORDER

BARE_VIEW = "views:\n  - type: table\n    order:\n      - file.name\n"


# =============================================================================
# FILTERS
# =============================================================================

class TestFilterEdits:

    def test_tag_replaced_in_place(self, recipes_doc):
        text, applied = patch_document(recipes_doc, "switch to #desserts")
        assert applied == ["tag"]
        assert text == recipes_doc.replace('"recipes"', '"desserts"')

    def test_tag_inserted_when_missing(self, template_doc):
        text, applied = patch_document(template_doc("summary"), "only notes tagged #draft")
        assert applied == ["tag"]
        assert doc.filter_entries(text) == [
            'file.hasTag("draft")', 'file.inFolder("Projects")', 'file.ext == "md"',
        ]

    def test_filters_block_created(self):
        text, applied = patch_document(BARE_VIEW, "notes tagged #inbox")
        assert applied == ["tag"]
        assert text == "filters:\n  and:\n    - 'file.hasTag(\"inbox\")'\n\n" + BARE_VIEW

    def test_folder_inserted(self, recipes_doc):
        text, applied = patch_document(recipes_doc, "move it to folder Kitchen")
        assert applied == ["folder"]
        assert doc.filter_entries(text) == ['file.inFolder("Kitchen")', 'file.hasTag("recipes")']

    def test_folder_replaced(self, template_doc):
        text = apply_instruction(template_doc("summary"), "use folder Work")
        assert doc.filter_entries(text) == ['file.inFolder("Work")', 'file.ext == "md"']

    def test_or_filters(self, template_doc):
        reading = template_doc("reading")
        text = apply_instruction(reading, "tagged #magazine")
        assert doc.filter_entries(text) == ['file.hasTag("magazine")', 'file.hasTag("article")']

        text = apply_instruction(reading, "in folder Library")
        assert doc.filter_entries(text) == [
            'file.inFolder("Library")', 'file.hasTag("book")', 'file.hasTag("article")',
        ]

    def test_folder_with_quotes_escaped(self, template_doc):
        text = set_filter_predicate(template_doc("summary"), "inFolder", 'A "b"')
        assert doc.filter_entries(text)[0] == 'file.inFolder("A \\"b\\"")'
        text = set_filter_predicate(text, "inFolder", "C")
        assert doc.filter_entries(text) == ['file.inFolder("C")', 'file.ext == "md"']

    def test_single_quote_in_quoted_predicate(self, recipes_doc):
        text = set_filter_predicate(recipes_doc, "hasTag", "bob's")
        assert "    - 'file.hasTag(\"bob''s\")'\n" in text
        assert doc.filter_entries(text) == ['file.hasTag("bob\'s")']

    def test_tag_filter_phrase_is_not_a_tag(self, recipes_doc):
        assert patch_document(recipes_doc, "remove the tag filter") == (recipes_doc, [])

    def test_view_level_filters_untouched(self, template_doc):
        cleaner = template_doc("cleaner")
        text = apply_instruction(cleaner, "tagged #archive")
        assert doc.filter_entries(text)[0] == 'file.hasTag("archive")'
        assert text.count("'file.size < 500'") == 1
        assert text.count("hasTag") == 1


# =============================================================================
# VIEW
# =============================================================================

class TestViewEdits:

    def test_view_type_first_view_only(self, template_doc):
        text, applied = patch_document(template_doc("map"), "make it a list")
        assert applied == ["view_type"]
        assert doc.view_type(text) == "list"
        assert text.count("  - type: table") == 1

    def test_rename_replaces_name(self, recipes_doc):
        text, applied = patch_document(recipes_doc, 'rename it to "Cookbook"')
        assert applied == ["rename"]
        assert text == recipes_doc.replace('name: "Results"', 'name: "Cookbook"')

    def test_rename_inserts_name(self):
        text = apply_instruction(BARE_VIEW, 'call it "Inbox"')
        assert text == 'views:\n  - type: table\n    name: "Inbox"\n    order:\n      - file.name\n'

    def test_sort_inserted_after_order(self, recipes_doc):
        text, applied = patch_document(recipes_doc, "sort by file size descending")
        assert applied == ["sort"]
        assert text == (
            recipes_doc
            + "\n    sort:\n      - property: file.size\n        direction: DESC"
        )

    def test_sort_replaced(self, template_doc):
        text = apply_instruction(template_doc("birthday"), "sort by age descending")
        assert doc.view_sort(text) == [{"property": "formula.age", "direction": "DESC"}]
        assert text.count("sort:") == 1

    def test_group_replaced_keeps_summaries(self, template_doc):
        progress = template_doc("progress")
        text = apply_instruction(progress, "group by percent")
        assert doc.view_group_by(text) == {"property": "formula.percent", "direction": "ASC"}
        assert text.endswith("    summaries:\n      progress: Average")
        assert text.count("groupBy:") == 1

    def test_group_inserted(self, recipes_doc):
        text = apply_instruction(recipes_doc, "group by folder")
        assert doc.view_group_by(text) == {"property": "file.folder", "direction": "ASC"}
        assert doc.view_order(text) == list(DEFAULT_ORDER)

    @pytest.mark.parametrize("instruction", ["sort by year", "group by year", "add rating"])
    def test_missing_anchor_is_skipped(self, template_doc, instruction):
        trip_map = template_doc("map")
        text, applied = patch_document(trip_map, instruction)
        assert text == trip_map
        assert applied == []

    def test_views_listed_at_column_zero(self):
        flush = "views:\n- type: table\n  order:\n    - file.name"
        text, applied = patch_document(flush, "sort by size and add rating as cards")
        assert applied == ["view_type", "add", "sort"]
        assert text == (
            "views:\n- type: cards\n  order:\n    - file.name\n    - rating\n"
            "  sort:\n    - property: file.size\n      direction: ASC"
        )

    def test_block_ends_at_next_key_after_flush_list(self):
        text = "views:\n- type: table\n  name: \"A\"\nformulas:\n  x: \"1\""
        assert doc.top_level_block(text, "views") == (0, text.index("formulas:"))
        assert doc.view_name(text) == "A"

    def test_no_views(self):
        filters_only = "filters:\n  and:\n    - file.hasTag(x)\n"
        assert apply_instruction(filters_only, 'as cards, named "X"') == filters_only


# =============================================================================
# ORDER
# =============================================================================

class TestOrderEdits:

    def test_add_properties(self, recipes_doc):
        text, applied = patch_document(recipes_doc, "add rating and file size")
        assert applied == ["add"]
        assert doc.view_order(text) == list(DEFAULT_ORDER) + ["rating", "file.size"]

    def test_add_skips_present_and_noise(self, recipes_doc):
        text, applied = patch_document(recipes_doc, "also show file name")
        assert text == recipes_doc
        assert applied == []

    def test_remove_by_display_name(self, recipes_doc):
        text = apply_instruction(recipes_doc, "remove Updated")
        assert doc.view_order(text) == ["file.name", "formula.word_count"]
        assert text.endswith("      - formula.word_count")

    def test_remove_by_formula_name(self, recipes_doc):
        text = apply_instruction(recipes_doc, "hide word count")
        assert doc.view_order(text) == ["file.name", "formula.last_updated"]

    def test_add_then_remove_round_trip(self, recipes_doc):
        added = apply_instruction(recipes_doc, "add rating")
        assert added != recipes_doc
        assert apply_instruction(added, "remove rating") == recipes_doc

    def test_round_trip_with_trailing_newline(self):
        added = apply_instruction(BARE_VIEW, "add rating")
        assert added == BARE_VIEW + "      - rating\n"
        assert apply_instruction(added, "remove rating") == BARE_VIEW

    def test_remove_wins_over_add(self, recipes_doc):
        with_rating = apply_instruction(recipes_doc, "add rating")
        text, applied = patch_document(with_rating, "remove rating and add cuisine")
        assert applied == ["remove"]
        assert doc.view_order(text) == list(DEFAULT_ORDER)


# =============================================================================
# COMPOSITION
# =============================================================================

class TestComposition:

    def test_sequential_equals_combined(self, recipes_doc):
        step_by_step = apply_instruction(
            apply_instruction(recipes_doc, "use #desserts"), "sort by size descending"
        )
        combined = apply_instruction(recipes_doc, "use #desserts and sort by size descending")
        assert step_by_step == combined

    def test_no_trigger_leaves_text(self, recipes_doc):
        assert patch_document(recipes_doc, "make it nicer") == (recipes_doc, [])

    def test_explicit_entities(self, recipes_doc):
        text, applied = patch_document(recipes_doc, "", entities=Entities(tag="soup"))
        assert applied == ["tag"]
        assert 'file.hasTag("soup")' in doc.filter_entries(text)

    def test_document_resolver(self, template_doc):
        resolve = document_resolver(template_doc("birthday"))
        assert resolve("Days Until") == "formula.remaining_days"
        assert resolve("upcoming") == "formula.upcoming"
        assert resolve("file name") == "file.name"
        assert resolve("rating") == "rating"
