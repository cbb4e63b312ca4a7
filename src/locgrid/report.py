"""Plain-text translation check: default key vs. selected-language value."""

from __future__ import annotations

from locgrid.store import LocalizationStore

EMPTY_MARK = "[EMPTY]"


def translation_check(store: LocalizationStore) -> list[str]:
    """Return report lines for the selected language of *store*."""
    if store.language_count == 0 or store.row_count == 0:
        return ["List is empty or could not be loaded."]

    selected = store.selected_language
    default = store.DEFAULT_LANGUAGE_INDEX
    keys = store.column(default)
    values = store.column(selected)

    lines = [
        "--- TRANSLATION CHECK ---",
        f"Key ({store.language_name(default)}) => Value ({store.language_name(selected)})",
        "-------------------------",
    ]
    for i in range(min(len(keys), len(values))):
        key = keys[i] or EMPTY_MARK
        value = values[i] or EMPTY_MARK
        lines.append(f"[{i}] {key}  =>  {value}")

    if len(keys) != len(values):
        lines.append("ERROR: Language lists are not of equal length!")

    missing = store.missing_count(selected)
    if selected != default and missing:
        lines.append(f"{missing} of {len(values)} entries fall back to {store.language_name(default)}")
    return lines
