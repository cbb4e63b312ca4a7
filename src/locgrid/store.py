"""The localization store.

Owns a :class:`~locgrid.models.LocalizationTable` and keeps it
rectangular: every public mutator leaves all columns the same length as
the default column, with ``__MISSING__`` standing in for absent
translations.  Runtime lookups go through :meth:`LocalizationStore.get`
(by default-language word) or :meth:`LocalizationStore.get_by_index`.

The store is a plain object handed to whoever needs it; nothing here is
global.  Observers registered with :meth:`LocalizationStore.add_listener`
are called only after a mutation has completed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable

from locgrid.errors import InvalidIndexError, ReorderError
from locgrid.models import MISSING, Language, LocalizationTable

if TYPE_CHECKING:
    from locgrid.snapshot_io import SnapshotProvider

logger = logging.getLogger(__name__)


# ── Change notifications ────────────────────────────────────────

LANGUAGE_ADDED = "language_added"
LANGUAGE_REMOVED = "language_removed"
LANGUAGE_RENAMED = "language_renamed"
LANGUAGE_SELECTED = "language_selected"
WORD_ADDED = "word_added"
WORDS_REMOVED = "words_removed"
CELL_CHANGED = "cell_changed"
ROWS_REORDERED = "rows_reordered"
TABLE_REPLACED = "table_replaced"


@dataclass(frozen=True)
class StoreEvent:
    """Describes a completed mutation.

    ``index`` is the language index for language events, the row index
    for word/cell events, and -1 when not applicable.
    """

    kind: str
    index: int = -1
    language: int = -1


StoreListener = Callable[[StoreEvent], None]


def _key(word: str | None) -> str:
    """Cache key for a default-language word: trimmed, case-folded."""
    return (word or "").strip().casefold()


class LocalizationStore:
    """Multi-language string table with fallback-to-default lookups."""

    DEFAULT_LANGUAGE_INDEX = 0

    def __init__(
        self,
        table: LocalizationTable | None = None,
        *,
        provider: SnapshotProvider | None = None,
        autosave: bool = False,
        default_language_name: str = "English",
    ) -> None:
        self._table = table if table is not None else LocalizationTable()
        self._provider = provider
        self.autosave = autosave
        self.default_language_name = default_language_name
        self._listeners: list[StoreListener] = []
        self._default_index: dict[str, int] = {}

        self._clamp_selected()
        self.normalize()
        self._rebuild_default_index()

    # ── Read accessors ──────────────────────────────────────────

    @property
    def table(self) -> LocalizationTable:
        return self._table

    @property
    def provider(self) -> SnapshotProvider | None:
        return self._provider

    @provider.setter
    def provider(self, provider: SnapshotProvider | None) -> None:
        self._provider = provider

    @property
    def languages(self) -> tuple[Language, ...]:
        return tuple(self._table.languages)

    @property
    def language_count(self) -> int:
        return len(self._table.languages)

    @property
    def row_count(self) -> int:
        return self._table.row_count()

    @property
    def selected_language(self) -> int:
        return self._table.selected_language

    def language_names(self) -> list[str]:
        return [lang.name for lang in self._table.languages]

    def language_name(self, index: int) -> str:
        """Return the name of language *index*, or empty string."""
        if 0 <= index < len(self._table.languages):
            return self._table.languages[index].name
        return ""

    def column(self, language_index: int) -> tuple[str, ...]:
        """Return a copy of one language column (empty if out of range)."""
        if 0 <= language_index < len(self._table.columns):
            return tuple(self._table.columns[language_index])
        return ()

    def cell(self, language_index: int, row_index: int) -> str:
        """Raw cell value, without fallback.  Empty string when out of range."""
        if not 0 <= language_index < len(self._table.columns):
            return ""
        col = self._table.columns[language_index]
        if not 0 <= row_index < len(col):
            return ""
        return col[row_index]

    def is_missing(self, language_index: int, row_index: int) -> bool:
        """True when the cell would fall back to the default language."""
        value = self.cell(language_index, row_index)
        return not value or value == MISSING

    def missing_count(self, language_index: int) -> int:
        if not 0 <= language_index < len(self._table.columns):
            return 0
        return sum(1 for value in self._table.columns[language_index] if not value or value == MISSING)

    # ── Listeners ───────────────────────────────────────────────

    def add_listener(self, callback: StoreListener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StoreListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _changed(self, kind: str, index: int = -1, language: int = -1) -> None:
        """Notify listeners, then persist when autosave is on."""
        event = StoreEvent(kind, index, language)
        for callback in list(self._listeners):
            callback(event)
        if self.autosave:
            self.save()

    # ── Shape invariant ─────────────────────────────────────────

    def normalize(self) -> int:
        """Make the table rectangular again.

        Appends empty columns until there is one per language, drops
        columns that have no language, then pads every column shorter
        than the longest one with ``__MISSING__`` at the end.  Existing
        cells are never touched, so empty strings stay empty.

        Returns the number of cells padded.  Calling it twice in a row
        pads nothing the second time.
        """
        table = self._table
        n_langs = len(table.languages)

        while len(table.columns) < n_langs:
            table.columns.append([])
        if len(table.columns) > n_langs:
            logger.warning(
                "Dropping %d word column(s) without a language",
                len(table.columns) - n_langs,
            )
            del table.columns[n_langs:]

        longest = max((len(col) for col in table.columns), default=0)
        padded = 0
        for col in table.columns:
            shortfall = longest - len(col)
            if shortfall > 0:
                col.extend([MISSING] * shortfall)
                padded += shortfall

        if padded:
            logger.debug("Normalized table: padded %d cell(s) to %d rows", padded, longest)
        return padded

    def _clamp_selected(self) -> None:
        sel = self._table.selected_language
        if not isinstance(sel, int) or sel < 0 or sel >= len(self._table.languages):
            self._table.selected_language = 0

    # ── Default-word index ──────────────────────────────────────

    def _rebuild_default_index(self) -> None:
        self._default_index = {}
        if not self._table.columns:
            return
        for i, raw in enumerate(self._table.columns[self.DEFAULT_LANGUAGE_INDEX]):
            key = _key(raw)
            if key and key not in self._default_index:
                self._default_index[key] = i

    # ── Language operations ─────────────────────────────────────

    def add_language(self, name: str) -> int:
        """Append a language whose column is all ``__MISSING__``.

        Blank names are ignored and -1 is returned.  Duplicate names are
        accepted; languages are addressed by index.
        """
        if not name or not name.strip():
            return -1
        rows = self._table.row_count()
        self._table.languages.append(Language(name))
        self._table.columns.append([MISSING] * rows)
        self.normalize()
        index = len(self._table.languages) - 1
        if index == self.DEFAULT_LANGUAGE_INDEX:
            self._rebuild_default_index()
        logger.info("Added language %r at index %d", name, index)
        self._changed(LANGUAGE_ADDED, language=index)
        return index

    def remove_language(self, index: int) -> None:
        """Remove a non-default language and its column.

        Raises:
            InvalidIndexError: if *index* is 0 (the default language) or
                not an existing language.  The table is left unchanged.
        """
        if index <= self.DEFAULT_LANGUAGE_INDEX:
            raise InvalidIndexError(index, "The default language cannot be removed")
        if index >= len(self._table.languages):
            raise InvalidIndexError(index, f"No language at index {index}")

        removed = self._table.languages.pop(index)
        if index < len(self._table.columns):
            del self._table.columns[index]

        sel = self._table.selected_language
        if sel == index:
            self._table.selected_language = 0
        elif sel > index:
            self._table.selected_language = sel - 1
        self._clamp_selected()
        self.normalize()

        logger.info("Removed language %r (index %d)", removed.name, index)
        self._changed(LANGUAGE_REMOVED, language=index)

    def rename_language(self, index: int, name: str) -> None:
        """Rename language *index*; ignored when out of range."""
        if not 0 <= index < len(self._table.languages):
            return
        self._table.languages[index].name = name or ""
        self._changed(LANGUAGE_RENAMED, language=index)

    def select_language(self, index: int) -> None:
        """Choose the column lookups read from; ignored when out of range."""
        if not 0 <= index < len(self._table.languages):
            return
        self._table.selected_language = index
        self._changed(LANGUAGE_SELECTED, language=index)

    # ── Word operations ─────────────────────────────────────────

    def add_word_to_default(self, word: str) -> int:
        """Append a row: *word* in the default column, ``__MISSING__``
        everywhere else.  Returns the new row index.

        A store without languages is seeded with the default language
        first.
        """
        if not self._table.languages:
            self._table.languages.append(Language(self.default_language_name))
            self._table.columns.append([])
        self.normalize()

        value = word or ""
        columns = self._table.columns
        columns[self.DEFAULT_LANGUAGE_INDEX].append(value)
        for col in columns[1:]:
            col.append(MISSING)
        index = len(columns[self.DEFAULT_LANGUAGE_INDEX]) - 1

        key = _key(value)
        if key and key not in self._default_index:
            self._default_index[key] = index

        self._changed(WORD_ADDED, index=index)
        return index

    def remove_word_at(self, row_index: int) -> None:
        """Remove one row from every column.  Negative indices are ignored."""
        if row_index < 0:
            return
        self.remove_words([row_index])

    def remove_words(self, row_indices: Iterable[int]) -> int:
        """Remove several rows at once and return how many were removed.

        The rows are collected first and then deleted from the highest
        index down, so earlier deletions never shift later targets.
        """
        doomed = sorted({r for r in row_indices if r >= 0}, reverse=True)
        removed = 0
        for row in doomed:
            hit = False
            for col in self._table.columns:
                if row < len(col):
                    del col[row]
                    hit = True
            removed += hit
        self.normalize()
        self._rebuild_default_index()
        if removed:
            logger.debug("Removed %d row(s)", removed)
            self._changed(WORDS_REMOVED, index=doomed[-1])
        return removed

    def set_word_at(self, language_index: int, row_index: int, value: str | None) -> None:
        """Write one cell; out-of-range indices are silently ignored."""
        if not 0 <= language_index < len(self._table.languages):
            return
        if language_index >= len(self._table.columns):
            return
        col = self._table.columns[language_index]
        if not 0 <= row_index < len(col):
            return
        new_value = value or ""
        if col[row_index] == new_value:
            return
        col[row_index] = new_value
        if language_index == self.DEFAULT_LANGUAGE_INDEX:
            self._rebuild_default_index()
        self._changed(CELL_CHANGED, index=row_index, language=language_index)

    def reorder_rows(self, permutation: Iterable[int]) -> None:
        """Rearrange rows so that new row ``i`` is old row ``permutation[i]``.

        Raises:
            ReorderError: if *permutation* is not a permutation of every
                row index.
        """
        order = list(permutation)
        if sorted(order) != list(range(self._table.row_count())):
            raise ReorderError(
                f"Row order must be a permutation of 0..{self._table.row_count() - 1}"
            )
        if order == sorted(order):
            return
        self._table.columns = [[col[r] for r in order] for col in self._table.columns]
        self._rebuild_default_index()
        self._changed(ROWS_REORDERED)

    def replace_table(self, table: LocalizationTable) -> None:
        """Swap in a freshly loaded table."""
        self._table = table
        self._clamp_selected()
        self.normalize()
        self._rebuild_default_index()
        self._changed(TABLE_REPLACED)

    # ── Lookup ──────────────────────────────────────────────────

    def get(self, word: str | None) -> str:
        """Translate a default-language word into the selected language.

        Unknown words come back unchanged so that untranslated literals
        still display.
        """
        if not word:
            return ""
        key = _key(word)
        index = self._default_index.get(key)
        if index is None:
            index = self.find_index_in_default(word)
            if index == -1:
                return word
            self._default_index[key] = index
        return self.get_by_index(index)

    def get_by_index(self, row_index: int) -> str:
        """Read the selected language at *row_index*.

        Empty and ``__MISSING__`` cells fall back to the default language;
        anything out of range reads as empty string.
        """
        lang = self._table.selected_language
        columns = self._table.columns
        if not 0 <= lang < len(self._table.languages) or lang >= len(columns):
            return ""
        selected = columns[lang]
        if not 0 <= row_index < len(selected):
            return ""

        value = selected[row_index]
        if not value or value == MISSING:
            default = columns[self.DEFAULT_LANGUAGE_INDEX]
            if row_index < len(default):
                return default[row_index]
            return ""
        return value

    def find_index_in_default(self, word: str | None) -> int:
        """First row whose trimmed default word equals *word*, ignoring case."""
        if not self._table.columns:
            return -1
        key = _key(word)
        for i, item in enumerate(self._table.columns[self.DEFAULT_LANGUAGE_INDEX]):
            if _key(item) == key:
                return i
        return -1

    def search_in_default(
        self, substring: str | None, case_sensitive: bool = False
    ) -> list[tuple[int, str]]:
        """All ``(row, word)`` pairs of the default column containing *substring*."""
        if not self._table.columns:
            return []
        needle = substring or ""
        if not case_sensitive:
            needle = needle.casefold()
        result: list[tuple[int, str]] = []
        for i, raw in enumerate(self._table.columns[self.DEFAULT_LANGUAGE_INDEX]):
            word = raw or ""
            haystack = word if case_sensitive else word.casefold()
            if needle in haystack:
                result.append((i, word))
        return result

    # ── Persistence ─────────────────────────────────────────────

    def save(self) -> bool:
        """Write the table through the provider.  Returns False on failure
        or when no provider is attached; in-memory state is unaffected."""
        if self._provider is None:
            return False
        from locgrid.snapshot_io import dump_snapshot

        return self._provider.save(dump_snapshot(self._table))
