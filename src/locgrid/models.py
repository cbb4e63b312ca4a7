"""Data models for the localization table."""

from __future__ import annotations

from dataclasses import dataclass, field

# Marker for "no translation provided".  Columns are padded with it,
# never with the empty string.
MISSING = "__MISSING__"


@dataclass
class Language:
    """One language of the table, addressed by its position."""

    name: str = ""


@dataclass
class LocalizationTable:
    """Languages plus one word column per language.

    ``columns[i]`` belongs to ``languages[i]``; index 0 is the default
    language.  All columns share one length once normalized.
    """

    languages: list[Language] = field(default_factory=list)
    columns: list[list[str]] = field(default_factory=list)
    selected_language: int = 0

    # ── Shape helpers ───────────────────────────────────────────

    def row_count(self) -> int:
        """Number of word rows, taken from the default column."""
        return len(self.columns[0]) if self.columns else 0

    def is_rectangular(self) -> bool:
        if len(self.columns) != len(self.languages):
            return False
        return len({len(col) for col in self.columns}) <= 1

    def copy(self) -> LocalizationTable:
        return LocalizationTable(
            languages=[Language(lang.name) for lang in self.languages],
            columns=[list(col) for col in self.columns],
            selected_language=self.selected_language,
        )
