"""Custom QTableView for the localization grid.

Provides:
  - Row drag-and-drop reordering, switched off while a filter is active
  - Default column width from config
  - Navigation helpers used by the main window
"""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QAbstractItemView, QHeaderView, QTableView


class LocalizationTableView(QTableView):
    """Language grid: one column per language, rows in view order."""

    def __init__(self, parent=None):
        super().__init__(parent)

        # Appearance
        self.setAlternatingRowColors(True)
        self.setWordWrap(False)
        self.setSelectionMode(QAbstractItemView.ExtendedSelection)
        self.setSelectionBehavior(QAbstractItemView.SelectItems)
        self.setEditTriggers(
            QAbstractItemView.DoubleClicked
            | QAbstractItemView.EditKeyPressed
            | QAbstractItemView.AnyKeyPressed
        )

        # Drag and drop: rows are moved inside the grid only
        self.setDragDropMode(QAbstractItemView.InternalMove)
        self.setDefaultDropAction(Qt.MoveAction)
        self.setDragDropOverwriteMode(False)
        self.setDropIndicatorShown(True)

        header = self.horizontalHeader()
        header.setSectionResizeMode(QHeaderView.Interactive)
        header.setStretchLastSection(True)

        vheader = self.verticalHeader()
        vheader.setDefaultSectionSize(24)
        vheader.setSectionsClickable(True)

        self.apply_column_width()

    # ── Config helpers ──────────────────────────────────────────

    def apply_column_width(self) -> None:
        """Apply the column width setting from config."""
        from locgrid import config

        self.horizontalHeader().setDefaultSectionSize(
            int(config.get_display("column_width", config.DEFAULT_COLUMN_WIDTH))
        )

    def set_reorder_enabled(self, enabled: bool) -> None:
        """Allow or forbid dragging rows (forbidden while filtering)."""
        self.setDragEnabled(enabled)
        self.setAcceptDrops(enabled)
        self.viewport().setAcceptDrops(enabled)
        self.setDragDropMode(
            QAbstractItemView.InternalMove if enabled else QAbstractItemView.NoDragDrop
        )

    # ── Navigation helpers ──────────────────────────────────────

    def current_col(self) -> int:
        idx = self.currentIndex()
        return idx.column() if idx.isValid() else 0

    def selected_view_rows(self) -> list[int]:
        """Visible rows touched by the current selection, ascending."""
        return sorted({idx.row() for idx in self.selectionModel().selectedIndexes()})

    def select_cell(self, row: int, col: int) -> None:
        """Move selection to a specific cell and restore focus."""
        model = self.model()
        if model is None:
            return
        if 0 <= row < model.rowCount() and 0 <= col < model.columnCount():
            idx = model.index(row, col)
            self.setCurrentIndex(idx)
            self.scrollTo(idx)
            self.setFocus(Qt.OtherFocusReason)
