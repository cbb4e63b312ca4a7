"""Shared pytest fixtures for locgrid tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from locgrid import config
from locgrid.models import MISSING, Language, LocalizationTable
from locgrid.store import LocalizationStore


class RecordingProvider:
    """In-memory snapshot provider that remembers what was saved."""

    def __init__(self, data: bytes | None = None, *, fail: bool = False):
        self.data = data
        self.fail = fail
        self.saves = 0

    def load(self) -> bytes | None:
        return self.data

    def save(self, data: bytes) -> bool:
        if self.fail:
            return False
        self.data = data
        self.saves += 1
        return True


def make_table(columns: dict[str, list[str]], selected: int = 0) -> LocalizationTable:
    """Build a table from ``{language name: column}`` in insertion order."""
    return LocalizationTable(
        languages=[Language(name) for name in columns],
        columns=[list(col) for col in columns.values()],
        selected_language=selected,
    )


@pytest.fixture
def sample_table() -> LocalizationTable:
    """The starter table: four languages, five words."""
    return make_table(
        {
            "English": ["Hello", "How are you", "Quit", "Settings", "Play"],
            "Turkish": ["Merhaba", "Nasılsın", "Çıkış", "Ayarlar", "Oyna"],
            "Deutsch": ["Hallo", "Wie geht's", "Beenden", "Einstellungen", "Spielen"],
            "Japanese": ["こんにちは", "お元気ですか", "終了", "設定", "プレイ"],
        }
    )


@pytest.fixture
def sample_store(sample_table: LocalizationTable) -> LocalizationStore:
    """A simple in-memory store for unit tests (no file I/O)."""
    return LocalizationStore(sample_table)


@pytest.fixture
def hello_store() -> LocalizationStore:
    """Two rows, Turkish selected, second translation missing."""
    table = make_table(
        {
            "English": ["Hello", "Quit"],
            "Turkish": ["Merhaba", MISSING],
        },
        selected=1,
    )
    return LocalizationStore(table)


@pytest.fixture
def recording_provider() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch):
    """Point the settings module at a temporary user directory."""
    user_dir = tmp_path / "home"
    monkeypatch.setattr(config, "_USER_CONFIG_DIR", user_dir)
    monkeypatch.setattr(config, "_USER_SETTINGS_PATH", user_dir / "settings.json")
    config.reload()
    yield user_dir
    # Force a re-read from the real location on next access
    config._loaded = False
