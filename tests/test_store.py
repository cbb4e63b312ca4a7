"""Tests for the localization store: shape invariant, mutations, lookups."""

from __future__ import annotations

import random

import pytest

from locgrid.errors import InvalidIndexError, ReorderError
from locgrid.models import MISSING, Language, LocalizationTable
from locgrid.snapshot_io import parse_snapshot
from locgrid.store import (
    CELL_CHANGED,
    LANGUAGE_REMOVED,
    TABLE_REPLACED,
    WORD_ADDED,
    WORDS_REMOVED,
    LocalizationStore,
)

from conftest import RecordingProvider, make_table


def assert_rectangular(store: LocalizationStore) -> None:
    table = store.table
    assert len(table.columns) == len(table.languages)
    assert len({len(col) for col in table.columns}) <= 1


class TestLanguages:
    def test_add_language_fills_missing(self, sample_store: LocalizationStore):
        index = sample_store.add_language("French")
        assert index == 4
        assert sample_store.language_names()[-1] == "French"
        assert sample_store.column(4) == (MISSING,) * 5
        assert_rectangular(sample_store)

    def test_add_blank_language_ignored(self, sample_store: LocalizationStore):
        assert sample_store.add_language("   ") == -1
        assert sample_store.add_language("") == -1
        assert sample_store.language_count == 4

    def test_duplicate_language_names_allowed(self, sample_store: LocalizationStore):
        sample_store.add_language("Turkish")
        assert sample_store.language_names().count("Turkish") == 2

    def test_remove_default_language_rejected(self, sample_store: LocalizationStore):
        before = sample_store.table.copy()
        with pytest.raises(InvalidIndexError):
            sample_store.remove_language(0)
        assert sample_store.table == before

    @pytest.mark.parametrize("index", [-1, 4, 17])
    def test_remove_out_of_range_rejected(self, sample_store: LocalizationStore, index: int):
        before = sample_store.table.copy()
        with pytest.raises(InvalidIndexError):
            sample_store.remove_language(index)
        assert sample_store.table == before

    def test_remove_language_drops_column(self, sample_store: LocalizationStore):
        sample_store.remove_language(2)
        assert sample_store.language_names() == ["English", "Turkish", "Japanese"]
        assert sample_store.column(2)[0] == "こんにちは"
        assert_rectangular(sample_store)

    def test_remove_selected_language_resets_to_default(self, sample_store: LocalizationStore):
        sample_store.select_language(2)
        sample_store.remove_language(2)
        assert sample_store.selected_language == 0

    def test_remove_before_selected_keeps_same_language(self, sample_store: LocalizationStore):
        sample_store.select_language(3)
        sample_store.remove_language(1)
        assert sample_store.selected_language == 2
        assert sample_store.language_name(sample_store.selected_language) == "Japanese"

    def test_remove_after_selected_keeps_index(self, sample_store: LocalizationStore):
        sample_store.select_language(1)
        sample_store.remove_language(3)
        assert sample_store.selected_language == 1

    def test_select_language_out_of_range_ignored(self, sample_store: LocalizationStore):
        sample_store.select_language(2)
        sample_store.select_language(9)
        sample_store.select_language(-1)
        assert sample_store.selected_language == 2

    def test_rename_language(self, sample_store: LocalizationStore):
        sample_store.rename_language(0, "British English")
        sample_store.rename_language(12, "Nobody")
        assert sample_store.language_names()[0] == "British English"
        assert sample_store.language_count == 4

    def test_invalid_selected_language_clamped_on_construction(self, sample_table: LocalizationTable):
        sample_table.selected_language = 42
        store = LocalizationStore(sample_table)
        assert store.selected_language == 0


class TestWords:
    def test_add_word_appends_to_every_column(self, sample_store: LocalizationStore):
        index = sample_store.add_word_to_default("X")
        assert index == 5
        assert sample_store.column(0)[5] == "X"
        for lang in range(1, sample_store.language_count):
            assert len(sample_store.column(lang)) == 6
            assert sample_store.column(lang)[5] == MISSING

    def test_add_word_is_rectangular_when_listeners_run(self, sample_store: LocalizationStore):
        seen = []

        def listener(event):
            lengths = {len(col) for col in sample_store.table.columns}
            seen.append((event.kind, event.index, lengths))

        sample_store.add_listener(listener)
        sample_store.add_word_to_default("X")
        assert seen == [(WORD_ADDED, 5, {6})]

    def test_add_word_to_empty_store_seeds_default_language(self):
        store = LocalizationStore(default_language_name="Deutsch")
        assert store.add_word_to_default("Hallo") == 0
        assert store.language_names() == ["Deutsch"]
        assert store.row_count == 1
        assert store.get("hallo") == "Hallo"

    def test_added_word_is_found_by_lookup(self, sample_store: LocalizationStore):
        sample_store.add_word_to_default("Options")
        sample_store.set_word_at(1, 5, "Seçenekler")
        sample_store.select_language(1)
        assert sample_store.get("  options ") == "Seçenekler"

    def test_remove_negative_row_is_noop(self, sample_store: LocalizationStore):
        before = sample_store.table.copy()
        sample_store.remove_word_at(-1)
        assert sample_store.table == before

    def test_remove_row_beyond_end_is_noop(self, sample_store: LocalizationStore):
        before = sample_store.table.copy()
        sample_store.remove_word_at(99)
        assert sample_store.table == before

    def test_remove_row_from_every_column(self, sample_store: LocalizationStore):
        sample_store.remove_word_at(1)
        assert sample_store.row_count == 4
        assert sample_store.column(1) == ("Merhaba", "Çıkış", "Ayarlar", "Oyna")
        assert_rectangular(sample_store)

    def test_remove_row_rebuilds_lookup(self, sample_store: LocalizationStore):
        sample_store.select_language(1)
        assert sample_store.get("Quit") == "Çıkış"  # cached at row 2
        sample_store.remove_word_at(0)
        assert sample_store.get("Quit") == "Çıkış"  # now row 1
        assert sample_store.get("Hello") == "Hello"  # gone: returned unchanged

    def test_remove_row_from_ragged_table_repairs_shape(self):
        table = LocalizationTable(
            languages=[Language("A"), Language("B")],
            columns=[["a", "b", "c"], ["x"]],
        )
        store = LocalizationStore(table)
        assert store.column(1) == ("x", MISSING, MISSING)
        store.remove_word_at(2)
        assert store.column(0) == ("a", "b")
        assert store.column(1) == ("x", MISSING)

    def test_remove_words_collects_then_removes(self, sample_store: LocalizationStore):
        events = []
        sample_store.add_listener(events.append)
        removed = sample_store.remove_words([0, 2, 2, -1, 99])
        assert removed == 2
        assert sample_store.column(0) == ("How are you", "Settings", "Play")
        assert sample_store.column(2) == ("Wie geht's", "Einstellungen", "Spielen")
        assert [e.kind for e in events] == [WORDS_REMOVED]

    def test_set_word_at(self, sample_store: LocalizationStore):
        sample_store.set_word_at(2, 4, "Los")
        assert sample_store.cell(2, 4) == "Los"

    def test_set_word_none_writes_empty(self, sample_store: LocalizationStore):
        sample_store.set_word_at(1, 0, None)
        assert sample_store.cell(1, 0) == ""

    @pytest.mark.parametrize("lang,row", [(-1, 0), (4, 0), (0, -1), (0, 5)])
    def test_set_word_out_of_range_ignored(self, sample_store: LocalizationStore, lang: int, row: int):
        before = sample_store.table.copy()
        sample_store.set_word_at(lang, row, "nope")
        assert sample_store.table == before

    def test_set_default_word_updates_lookup(self, sample_store: LocalizationStore):
        sample_store.select_language(1)
        assert sample_store.get("Hello") == "Merhaba"
        sample_store.set_word_at(0, 0, "Hi")
        assert sample_store.get("hi") == "Merhaba"
        assert sample_store.get("Hello") == "Hello"

    def test_set_word_notifies(self, sample_store: LocalizationStore):
        events = []
        sample_store.add_listener(events.append)
        sample_store.set_word_at(3, 2, "やめる")
        assert len(events) == 1
        assert events[0].kind == CELL_CHANGED
        assert (events[0].language, events[0].index) == (3, 2)


class TestNormalize:
    def test_pads_short_columns_at_end(self):
        store = LocalizationStore()
        store.table.languages.extend([Language("A"), Language("B"), Language("C")])
        store.table.columns.extend([["a", "b"], [], ["z"]])
        padded = store.normalize()
        assert padded == 3
        assert store.column(1) == (MISSING, MISSING)
        assert store.column(2) == ("z", MISSING)

    def test_idempotent(self):
        store = LocalizationStore()
        store.table.languages.extend([Language("A"), Language("B")])
        store.table.columns.extend([["a", "b", "c"], ["x"]])
        store.normalize()
        once = store.table.copy()
        assert store.normalize() == 0
        assert store.table == once

    def test_adds_columns_for_languages(self):
        table = LocalizationTable(
            languages=[Language("A"), Language("B"), Language("C")],
            columns=[["a", "b"]],
        )
        store = LocalizationStore(table)
        assert len(store.table.columns) == 3
        assert store.column(2) == (MISSING, MISSING)

    def test_drops_columns_without_language(self):
        table = LocalizationTable(
            languages=[Language("A")],
            columns=[["a"], ["orphan"]],
        )
        store = LocalizationStore(table)
        assert len(store.table.columns) == 1

    def test_empty_cells_are_not_rewritten(self):
        table = LocalizationTable(
            languages=[Language("A"), Language("B")],
            columns=[["a", "b"], [""]],
        )
        store = LocalizationStore(table)
        assert store.column(1) == ("", MISSING)

    def test_random_edits_stay_rectangular(self, sample_store: LocalizationStore):
        rng = random.Random(1234)
        for step in range(300):
            op = rng.randrange(5)
            if op == 0:
                sample_store.add_language(f"L{step}")
            elif op == 1 and sample_store.language_count > 1:
                sample_store.remove_language(rng.randrange(1, sample_store.language_count))
            elif op == 2:
                sample_store.add_word_to_default(f"w{step}")
            elif op == 3:
                sample_store.remove_word_at(rng.randrange(-1, sample_store.row_count + 2))
            else:
                sample_store.set_word_at(
                    rng.randrange(sample_store.language_count),
                    rng.randrange(max(1, sample_store.row_count)),
                    rng.choice(["", MISSING, "v"]),
                )
            assert_rectangular(sample_store)
            assert 0 <= sample_store.selected_language < sample_store.language_count


class TestLookup:
    def test_get_translates_case_insensitively(self, hello_store: LocalizationStore):
        assert hello_store.get("hello") == "Merhaba"

    def test_get_trims_and_falls_back_on_missing(self, hello_store: LocalizationStore):
        assert hello_store.get(" Quit ") == "Quit"

    def test_get_unknown_word_returned_unchanged(self, hello_store: LocalizationStore):
        assert hello_store.get("NoSuchWord") == "NoSuchWord"
        assert hello_store.get("  spaced  ") == "  spaced  "

    def test_get_empty_input(self, hello_store: LocalizationStore):
        assert hello_store.get("") == ""
        assert hello_store.get(None) == ""

    def test_get_by_index_empty_falls_back(self, hello_store: LocalizationStore):
        hello_store.set_word_at(1, 0, "")
        assert hello_store.get_by_index(0) == "Hello"

    def test_get_by_index_missing_falls_back(self, hello_store: LocalizationStore):
        assert hello_store.get_by_index(1) == "Quit"

    @pytest.mark.parametrize("row", [-1, 2, 100])
    def test_get_by_index_out_of_range(self, hello_store: LocalizationStore, row: int):
        assert hello_store.get_by_index(row) == ""

    def test_get_by_index_invalid_selected_language(self, hello_store: LocalizationStore):
        hello_store.table.selected_language = 7
        assert hello_store.get_by_index(0) == ""

    def test_get_by_index_default_language(self, hello_store: LocalizationStore):
        hello_store.select_language(0)
        assert hello_store.get_by_index(0) == "Hello"

    def test_duplicate_default_words_first_wins(self):
        store = LocalizationStore(make_table({"en": ["Hi", " hi "], "tr": ["A", "B"]}, selected=1))
        assert store.get("HI") == "A"
        assert store.find_index_in_default("hi") == 0

    def test_find_index_in_default(self, sample_store: LocalizationStore):
        assert sample_store.find_index_in_default("  settings") == 3
        assert sample_store.find_index_in_default("Nope") == -1
        assert LocalizationStore().find_index_in_default("x") == -1

    def test_search_in_default_case_insensitive(self, sample_store: LocalizationStore):
        assert sample_store.search_in_default("e") == [
            (0, "Hello"),
            (1, "How are you"),
            (3, "Settings"),
        ]

    def test_search_in_default_case_sensitive(self, sample_store: LocalizationStore):
        assert sample_store.search_in_default("H", case_sensitive=True) == [
            (0, "Hello"),
            (1, "How are you"),
        ]
        assert sample_store.search_in_default("h", case_sensitive=True) == []

    def test_search_in_empty_store(self):
        assert LocalizationStore().search_in_default("a") == []

    def test_missing_helpers(self, hello_store: LocalizationStore):
        assert hello_store.is_missing(1, 1)
        assert not hello_store.is_missing(1, 0)
        assert hello_store.missing_count(1) == 1
        assert hello_store.missing_count(9) == 0


class TestReorderRows:
    def test_reorder_rows(self, sample_store: LocalizationStore):
        sample_store.reorder_rows([4, 3, 2, 1, 0])
        assert sample_store.column(0) == ("Play", "Settings", "Quit", "How are you", "Hello")
        assert sample_store.column(1)[0] == "Oyna"

    @pytest.mark.parametrize("order", [[0, 1, 2, 3], [0, 0, 1, 2, 3], [0, 1, 2, 3, 5]])
    def test_reorder_rejects_non_permutation(self, sample_store: LocalizationStore, order):
        before = sample_store.table.copy()
        with pytest.raises(ReorderError):
            sample_store.reorder_rows(order)
        assert sample_store.table == before

    def test_replace_table_repairs_and_reindexes(self, sample_store: LocalizationStore):
        events = []
        sample_store.add_listener(events.append)
        sample_store.replace_table(
            make_table({"English": ["Yes", "No"], "Turkish": ["Evet"]}, selected=5)
        )
        assert sample_store.selected_language == 0
        assert sample_store.column(1) == ("Evet", MISSING)
        assert sample_store.find_index_in_default("no") == 1
        assert sample_store.get("Hello") == "Hello"
        assert [e.kind for e in events] == [TABLE_REPLACED]

    def test_reorder_rebuilds_lookup(self, sample_store: LocalizationStore):
        sample_store.select_language(2)
        assert sample_store.get("Play") == "Spielen"
        sample_store.reorder_rows([4, 0, 1, 2, 3])
        assert sample_store.get("Play") == "Spielen"
        assert sample_store.get("hello") == "Hallo"


class TestPersistence:
    def test_save_without_provider(self, sample_store: LocalizationStore):
        assert sample_store.save() is False

    def test_autosave_after_mutation(self, sample_table: LocalizationTable):
        provider = RecordingProvider()
        store = LocalizationStore(sample_table, provider=provider, autosave=True)
        store.add_word_to_default("Exit")
        store.remove_language(3)
        assert provider.saves == 2
        saved = parse_snapshot(provider.data)
        assert [lang.name for lang in saved.languages] == ["English", "Turkish", "Deutsch"]
        assert saved.columns[0][-1] == "Exit"

    def test_no_autosave_by_default(self, sample_table: LocalizationTable):
        provider = RecordingProvider()
        store = LocalizationStore(sample_table, provider=provider)
        store.add_word_to_default("Exit")
        assert provider.saves == 0
        assert store.save() is True
        assert provider.saves == 1

    def test_failed_save_keeps_state(self, sample_table: LocalizationTable):
        store = LocalizationStore(sample_table, provider=RecordingProvider(fail=True), autosave=True)
        store.add_word_to_default("Exit")
        assert store.row_count == 6
        assert store.save() is False


class TestListeners:
    def test_remove_language_event(self, sample_store: LocalizationStore):
        events = []
        sample_store.add_listener(events.append)
        sample_store.remove_language(1)
        assert events[0].kind == LANGUAGE_REMOVED
        assert events[0].language == 1

    def test_remove_listener(self, sample_store: LocalizationStore):
        events = []
        sample_store.add_listener(events.append)
        sample_store.remove_listener(events.append)
        sample_store.add_word_to_default("x")
        assert events == []
