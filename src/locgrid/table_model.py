"""Qt table model backed by a LocalizationStore.

One column per language (column 0 is the default language).  Rows are
the store's view order as produced by a :class:`ViewIndex`, so a filter
only hides rows and never changes storage.  Row drag-and-drop is
translated into a store reorder and is refused while a filter is active.
"""

from __future__ import annotations

import json
from typing import Any

from PySide6.QtCore import QAbstractTableModel, QMimeData, QModelIndex, Qt
from PySide6.QtGui import QColor

from locgrid.errors import ReorderError
from locgrid.models import MISSING
from locgrid.store import CELL_CHANGED, LocalizationStore, StoreEvent
from locgrid.view_index import ViewIndex

ROWS_MIME_TYPE = "application/x-locgrid-rows"

_MISSING_COLOR = QColor(160, 160, 160)


class LocalizationTableModel(QAbstractTableModel):
    """Grid of every language column, filtered through a ViewIndex."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._store: LocalizationStore | None = None
        self._view = ViewIndex()
        self._order: list[int] = []

    # ── Public API ──────────────────────────────────────────────

    @property
    def store(self) -> LocalizationStore | None:
        return self._store

    @property
    def view_index(self) -> ViewIndex:
        return self._view

    @property
    def view_order(self) -> list[int]:
        return list(self._order)

    def set_store(self, store: LocalizationStore | None) -> None:
        """Replace the underlying store and refresh the view."""
        self.beginResetModel()
        if self._store is not None:
            self._store.remove_listener(self._on_store_event)
            self._view.detach()
        self._store = store
        if store is not None:
            self._view.attach(store)
            store.add_listener(self._on_store_event)
        self._rebuild()
        self.endResetModel()

    def set_filter(self, text: str, language: int | None = None) -> None:
        """Filter rows by substring of the given language column."""
        self.beginResetModel()
        self._view.filter_text = text
        if language is not None:
            self._view.filter_language = language
            if self._store is not None:
                self._view.sync(self._store)
        self._rebuild()
        self.endResetModel()

    def underlying_row(self, view_row: int) -> int:
        """Store row shown at *view_row*, or -1."""
        if 0 <= view_row < len(self._order):
            return self._order[view_row]
        return -1

    def view_row_of(self, underlying_row: int) -> int:
        """Visible position of a store row, or -1 if filtered out."""
        try:
            return self._order.index(underlying_row)
        except ValueError:
            return -1

    def notify_data_changed(self) -> None:
        """Signal full refresh after structural edits."""
        self.beginResetModel()
        self._rebuild()
        self.endResetModel()

    def _rebuild(self) -> None:
        self._order = self._view.build(self._store) if self._store is not None else []

    def _on_store_event(self, event: StoreEvent) -> None:
        # Cell edits keep the current rows so an edited row never vanishes
        # under an active filter mid-edit.
        if event.kind == CELL_CHANGED:
            view_row = self.view_row_of(event.index)
            if view_row >= 0 and event.language >= 0:
                idx = self.index(view_row, event.language)
                self.dataChanged.emit(idx, idx)
            return
        self.notify_data_changed()

    # ── QAbstractTableModel overrides ───────────────────────────

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._order)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid() or self._store is None:
            return 0
        return self._store.language_count

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole) -> Any:
        if not index.isValid() or self._store is None:
            return None
        row = self.underlying_row(index.row())
        value = self._store.cell(index.column(), row)
        if role in (Qt.DisplayRole, Qt.EditRole):
            return value
        if role == Qt.ToolTipRole:
            if index.column() and self._store.is_missing(index.column(), row):
                return f"Falls back to: {self._store.cell(0, row)}"
            return value
        if role == Qt.ForegroundRole and value == MISSING:
            return _MISSING_COLOR
        return None

    def setData(self, index: QModelIndex, value: Any, role: int = Qt.EditRole) -> bool:
        if not index.isValid() or self._store is None or role != Qt.EditRole:
            return False
        row = self.underlying_row(index.row())
        if row < 0:
            return False
        self._store.set_word_at(index.column(), row, "" if value is None else str(value))
        return True

    def headerData(
        self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole
    ) -> Any:
        if role != Qt.DisplayRole or self._store is None:
            return None
        if orientation == Qt.Horizontal:
            name = self._store.language_name(section)
            if section == self._store.DEFAULT_LANGUAGE_INDEX:
                return f"Default [0] {name}"
            return f"[{section}] {name}"
        if orientation == Qt.Vertical:
            return str(self.underlying_row(section))
        return None

    def flags(self, index: QModelIndex) -> Qt.ItemFlags:
        if not index.isValid():
            # Drops land between rows
            if self._view.reorder_allowed:
                return Qt.ItemIsDropEnabled
            return Qt.NoItemFlags
        flags = Qt.ItemIsEnabled | Qt.ItemIsSelectable | Qt.ItemIsEditable
        if self._view.reorder_allowed:
            flags |= Qt.ItemIsDragEnabled
        return flags

    # ── Drag and drop ───────────────────────────────────────────

    def supportedDropActions(self) -> Qt.DropActions:
        return Qt.MoveAction

    def mimeTypes(self) -> list[str]:
        return [ROWS_MIME_TYPE]

    def mimeData(self, indexes) -> QMimeData:
        positions = sorted({idx.row() for idx in indexes if idx.isValid()})
        mime = QMimeData()
        mime.setData(ROWS_MIME_TYPE, json.dumps(positions).encode("utf-8"))
        return mime

    def canDropMimeData(self, data, action, row, column, parent) -> bool:
        return (
            self._view.reorder_allowed
            and action == Qt.MoveAction
            and data.hasFormat(ROWS_MIME_TYPE)
        )

    def dropMimeData(self, data, action, row, column, parent) -> bool:
        if not self.canDropMimeData(data, action, row, column, parent) or self._store is None:
            return False
        positions = json.loads(bytes(data.data(ROWS_MIME_TYPE)).decode("utf-8"))
        if row < 0:
            row = parent.row() if parent.isValid() else self.rowCount()
        try:
            self._view.move_rows(self._store, self._order, positions, row)
        except ReorderError:
            return False
        # Rows were already moved in the store; the view must not remove them.
        return False
