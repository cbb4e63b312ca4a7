"""Application settings management.

Loads/saves the snapshot location, default language name, shortcuts and
display options from ``~/.locgrid/settings.json``, falling back to the
bundled ``default_settings.json``.
"""

from __future__ import annotations

import copy
import importlib.resources
import json
from pathlib import Path

_USER_CONFIG_DIR = Path.home() / ".locgrid"
_USER_SETTINGS_PATH = _USER_CONFIG_DIR / "settings.json"

_loaded: bool = False
_settings: dict[str, object] = {}
_shortcuts: dict[str, str] = {}
_display: dict[str, object] = {}  # "column_width", "log_level"

DEFAULT_COLUMN_WIDTH = 300
MIN_COLUMN_WIDTH = 80
MAX_COLUMN_WIDTH = 1200

# Top-level keys that are plain values (not nested mappings)
_SCALAR_KEYS = ("snapshot_path", "default_language_name", "use_bundled_seed", "backup_on_save")

# Human-readable labels for actions (used in Settings UI)
ACTION_LABELS: dict[str, str] = {
    "file_open": "Open Table",
    "file_save": "Save",
    "file_quit": "Quit",
    "edit_find": "Find in Default Language",
    "word_add": "Add Word",
    "word_delete": "Delete Selected Rows",
    "language_add": "Add Language",
    "language_delete": "Delete Language",
}


def _load_defaults() -> dict:
    """Load the bundled default settings using importlib.resources.

    Works whether the package is run from source or installed as a wheel.
    """
    try:
        ref = importlib.resources.files("locgrid").joinpath("default_settings.json")
        with importlib.resources.as_file(ref) as p:
            with open(p, encoding="utf-8") as f:
                return json.load(f)
    except (FileNotFoundError, TypeError):
        return {}


def _load_settings() -> dict:
    """Load the user settings file, if any."""
    if _USER_SETTINGS_PATH.exists():
        with open(_USER_SETTINGS_PATH, encoding="utf-8") as f:
            return json.load(f)
    return {}


def _load() -> None:
    """Load and merge default + user configs."""
    global _settings, _shortcuts, _display, _loaded
    defaults = _load_defaults()
    user = _load_settings()

    _settings = {
        "snapshot_path": "localization.json",
        "default_language_name": "English",
        "use_bundled_seed": True,
        "backup_on_save": True,
    }
    for source in (defaults, user):
        for key in _SCALAR_KEYS:
            if key in source:
                _settings[key] = source[key]

    # Shortcuts: defaults overlaid with user overrides
    _shortcuts = dict(defaults.get("shortcuts", {}))
    _shortcuts.update(user.get("shortcuts", {}))

    # Display settings
    _display = {"column_width": DEFAULT_COLUMN_WIDTH, "log_level": "INFO"}
    _display.update(defaults.get("display", {}))
    _display.update(user.get("display", {}))
    _display["column_width"] = _clamp_width(_display["column_width"])

    _loaded = True


def _ensure_loaded() -> None:
    if not _loaded:
        _load()


def _clamp_width(width) -> int:
    try:
        width = int(width)
    except (TypeError, ValueError):
        return DEFAULT_COLUMN_WIDTH
    return max(MIN_COLUMN_WIDTH, min(MAX_COLUMN_WIDTH, width))


def save_settings() -> None:
    """Persist current settings to disk."""
    _ensure_loaded()
    _USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    data = dict(_settings)
    data["shortcuts"] = _shortcuts
    data["display"] = _display
    with open(_USER_SETTINGS_PATH, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def reload() -> None:
    """Force re-read of config files."""
    _load()


# ── General settings ────────────────────────────────────────────


def get_setting(key: str, default=None):
    """Return a top-level setting value."""
    _ensure_loaded()
    return copy.copy(_settings.get(key, default))


def set_setting(key: str, value) -> None:
    """Set a top-level setting value in memory."""
    _ensure_loaded()
    _settings[key] = value


def snapshot_path() -> Path:
    """Absolute path of the localization table snapshot.

    Relative paths are resolved against the user config directory.
    """
    path = Path(str(get_setting("snapshot_path") or "localization.json")).expanduser()
    if not path.is_absolute():
        path = _USER_CONFIG_DIR / path
    return path


# ── Shortcuts ───────────────────────────────────────────────────


def get_shortcuts() -> dict[str, str]:
    """Return the full shortcut mapping (cached after first call)."""
    _ensure_loaded()
    return _shortcuts


def get_shortcut(action: str) -> str:
    """Return the key-sequence string for *action*, or empty string."""
    return get_shortcuts().get(action, "")


def set_shortcuts(mapping: dict[str, str]) -> None:
    """Update the shortcut mapping in memory."""
    _ensure_loaded()
    _shortcuts.update(mapping)


# ── Display ─────────────────────────────────────────────────────


def get_display(key: str, default=None):
    """Return a display setting value."""
    _ensure_loaded()
    return _display.get(key, default)


def set_display(key: str, value) -> None:
    """Set a display setting value."""
    _ensure_loaded()
    if key == "column_width":
        value = _clamp_width(value)
    _display[key] = value
