"""JSON snapshot persistence for localization tables.

Snapshot shape::

    {
        "languages": [{"name": "English"}, ...],
        "words": [{"items": ["Hello", ...]}, ...],
        "selectedLanguageIndex": 0
    }

``words[i]`` aligns with ``languages[i]``.  Snapshots are always written
rectangular, but a ragged snapshot is valid input: the store pads it on
load.  Undecodable data is reported as :class:`MalformedSnapshotError`,
which :func:`load_store` absorbs by starting from an empty table.
"""

from __future__ import annotations

import importlib.resources
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Protocol

from locgrid.errors import MalformedSnapshotError
from locgrid.models import Language, LocalizationTable
from locgrid.store import LocalizationStore

logger = logging.getLogger(__name__)

BUNDLED_TABLE_RESOURCE = "default_table.json"


class SnapshotProvider(Protocol):
    """Where a store's snapshot lives."""

    def load(self) -> bytes | None:
        """Return the raw snapshot, or None if none exists yet."""

    def save(self, data: bytes) -> bool:
        """Persist *data*; return False on failure."""


# ── Codec ───────────────────────────────────────────────────────


def _as_text(value: object, what: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedSnapshotError(f"{what} must be a string, got {type(value).__name__}")
    return value


def _as_list(value: object) -> object:
    """Read an absent or null array as empty."""
    return [] if value is None else value


def parse_snapshot(data: bytes | str) -> LocalizationTable:
    """Decode a snapshot into a (possibly ragged) table.

    Missing keys default to empty; ``null`` strings become ``""``.

    Raises:
        MalformedSnapshotError: on invalid JSON or a wrongly shaped document.
    """
    try:
        doc = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedSnapshotError(f"Snapshot is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise MalformedSnapshotError("Snapshot is nested too deeply") from exc

    if not isinstance(doc, dict):
        raise MalformedSnapshotError("Snapshot root must be an object")

    raw_languages = _as_list(doc.get("languages"))
    raw_words = _as_list(doc.get("words"))
    if not isinstance(raw_languages, list) or not isinstance(raw_words, list):
        raise MalformedSnapshotError("'languages' and 'words' must be arrays")

    languages: list[Language] = []
    for entry in raw_languages:
        if not isinstance(entry, dict):
            raise MalformedSnapshotError("Language entries must be objects")
        languages.append(Language(_as_text(entry.get("name"), "Language name")))

    columns: list[list[str]] = []
    for entry in raw_words:
        if entry is None:
            columns.append([])
            continue
        if not isinstance(entry, dict):
            raise MalformedSnapshotError("Word columns must be objects")
        items = _as_list(entry.get("items"))
        if not isinstance(items, list):
            raise MalformedSnapshotError("Word column 'items' must be an array")
        columns.append([_as_text(item, "Word") for item in items])

    selected = doc.get("selectedLanguageIndex", 0)
    if not isinstance(selected, int) or isinstance(selected, bool):
        selected = 0

    return LocalizationTable(languages=languages, columns=columns, selected_language=selected)


def dump_snapshot(table: LocalizationTable) -> bytes:
    """Encode *table* as indented UTF-8 JSON."""
    doc = {
        "languages": [{"name": lang.name} for lang in table.languages],
        "words": [{"items": list(col)} for col in table.columns],
        "selectedLanguageIndex": table.selected_language,
    }
    return json.dumps(doc, indent=4, ensure_ascii=False).encode("utf-8")


# ── File I/O ────────────────────────────────────────────────────


def write_atomic(path: str | Path, data: bytes, *, backup: bool = False, suffix: str = ".tmp") -> None:
    """Write *data* to *path* atomically.

    1. Writes to a temporary file in the same directory.
    2. If *backup* is True and the target exists, copies it to ``.bak``.
    3. Uses os.replace() to swap the temporary file into place.
    """
    path = Path(path)
    target_dir = path.parent
    target_dir.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=str(target_dir), suffix=suffix)
    try:
        os.write(fd, data)
        os.close(fd)
        fd = -1  # mark as closed

        if backup and path.exists():
            bak_path = path.with_suffix(path.suffix + ".bak")
            shutil.copy2(str(path), str(bak_path))

        os.replace(tmp_path, str(path))
    except BaseException:
        if fd >= 0:
            os.close(fd)
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class FileSnapshotProvider:
    """Snapshot stored in a JSON file on disk."""

    def __init__(self, path: str | Path, *, backup: bool = False) -> None:
        self.path = Path(path)
        self.backup = backup

    def load(self) -> bytes | None:
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    def save(self, data: bytes) -> bool:
        try:
            write_atomic(self.path, data, backup=self.backup, suffix=".json.tmp")
        except OSError:
            logger.exception("Could not save localization table to %s", self.path)
            return False
        logger.debug("Saved localization table to %s", self.path)
        return True


class BundledSnapshotProvider:
    """Read-only starter table shipped inside the package.

    Works whether the package is run from source or installed as a wheel.
    """

    def __init__(self, package: str = "locgrid", resource: str = BUNDLED_TABLE_RESOURCE) -> None:
        self.package = package
        self.resource = resource

    def load(self) -> bytes | None:
        try:
            return importlib.resources.files(self.package).joinpath(self.resource).read_bytes()
        except (FileNotFoundError, ModuleNotFoundError, TypeError):
            return None

    def save(self, data: bytes) -> bool:
        return False


# ── Bootstrap ───────────────────────────────────────────────────


def load_store(
    provider: SnapshotProvider,
    *,
    fallback: SnapshotProvider | None = None,
    default_language_name: str = "English",
    autosave: bool = False,
) -> LocalizationStore:
    """Load or create the table behind *provider* and wrap it in a store.

    - Existing snapshot: decoded; if malformed or unreadable, an empty
      table is used instead and the bad file is left alone.
    - No snapshot yet: the *fallback* starter table if it has one,
      otherwise a table holding only the default language.  Either way
      the new table is saved through *provider*.

    A table without languages is seeded with *default_language_name*.
    The result is always usable.
    """
    table: LocalizationTable | None = None
    created = False

    try:
        raw = provider.load()
    except OSError as exc:
        logger.warning("Could not read localization snapshot: %s", exc)
        raw = None
        table = LocalizationTable()

    if table is None and raw is not None:
        try:
            table = parse_snapshot(raw)
        except MalformedSnapshotError as exc:
            logger.warning("Ignoring malformed localization snapshot: %s", exc)
            table = LocalizationTable()

    if table is None:
        created = True
        seed = fallback.load() if fallback is not None else None
        if seed is not None:
            try:
                table = parse_snapshot(seed)
                logger.info("Seeding localization table from bundled starter data")
            except MalformedSnapshotError as exc:
                logger.warning("Ignoring malformed starter table: %s", exc)
        if table is None:
            table = LocalizationTable()

    if not table.languages:
        table.languages.append(Language(default_language_name))

    store = LocalizationStore(
        table,
        provider=provider,
        autosave=autosave,
        default_language_name=default_language_name,
    )
    if created:
        store.save()
    return store
