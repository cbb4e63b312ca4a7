"""Exceptions raised by the localization store and its collaborators."""

from __future__ import annotations


class LocalizationError(Exception):
    """Base class for locgrid errors."""


class InvalidIndexError(LocalizationError, IndexError):
    """A mutation named a language or row that cannot be changed.

    Raised when removing the default language (index 0) or an index
    beyond the current language count.
    """

    def __init__(self, index: int, message: str | None = None) -> None:
        self.index = index
        super().__init__(message or f"Invalid index: {index}")


class MalformedSnapshotError(LocalizationError, ValueError):
    """Persisted table data could not be decoded."""


class ReorderError(LocalizationError, ValueError):
    """A row reorder is not a permutation of the visible rows, or the
    view is filtered and cannot be reordered."""
