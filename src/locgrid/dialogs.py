"""Dialogs for finding words, the translation check, and settings."""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont, QKeySequence
from PySide6.QtWidgets import (
    QCheckBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QKeySequenceEdit,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QPushButton,
    QScrollArea,
    QSpinBox,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from locgrid.store import LocalizationStore


# ── Find Dialog ─────────────────────────────────────────────────


class FindDialog(QDialog):
    """Non-modal search over the default-language column.

    Emits ``row_chosen`` with the underlying row index when the user
    activates a result.
    """

    row_chosen = Signal(int)

    def __init__(self, store: LocalizationStore, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Find in Default Language")
        self.setMinimumSize(420, 360)
        self._store = store

        layout = QVBoxLayout(self)

        find_row = QHBoxLayout()
        find_row.addWidget(QLabel("Find:"))
        self.find_field = QLineEdit()
        self.find_field.textChanged.connect(self.refresh)
        find_row.addWidget(self.find_field)
        layout.addLayout(find_row)

        self.case_sensitive = QCheckBox("Case sensitive")
        self.case_sensitive.toggled.connect(self.refresh)
        layout.addWidget(self.case_sensitive)

        self.results = QListWidget()
        self.results.itemActivated.connect(self._on_activated)
        layout.addWidget(self.results)

        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.close)
        layout.addWidget(close_btn, alignment=Qt.AlignRight)

    def set_store(self, store: LocalizationStore) -> None:
        self._store = store
        self.refresh()

    def refresh(self) -> None:
        self.results.clear()
        text = self.find_field.text()
        if not text:
            return
        for row, word in self._store.search_in_default(text, self.case_sensitive.isChecked()):
            item = QListWidgetItem(f"[{row}] {word}")
            item.setData(Qt.UserRole, row)
            self.results.addItem(item)

    def _on_activated(self, item: QListWidgetItem) -> None:
        self.row_chosen.emit(int(item.data(Qt.UserRole)))


# ── Translation Check Dialog ────────────────────────────────────


class ReportDialog(QDialog):
    """Read-only text pane showing a translation-check report."""

    def __init__(self, lines: list[str], parent=None):
        super().__init__(parent)
        self.setWindowTitle("Translation Check")
        self.setMinimumSize(560, 420)

        layout = QVBoxLayout(self)
        text = QPlainTextEdit()
        text.setReadOnly(True)
        text.setFont(QFont("Menlo"))
        text.setPlainText("\n".join(lines))
        layout.addWidget(text)

        buttons = QDialogButtonBox(QDialogButtonBox.Close)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)


# ── Settings Dialog ────────────────────────────────────────────


class SettingsDialog(QDialog):
    """Settings pane with tabs for keyboard shortcuts and the table.

    Shortcuts use QKeySequenceEdit so the user just presses the
    desired key combination; no special syntax needed.
    """

    def __init__(self, parent=None):
        from locgrid import config  # deferred to avoid circular import

        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setMinimumSize(550, 480)

        self._config = config
        layout = QVBoxLayout(self)

        tabs = QTabWidget()
        layout.addWidget(tabs)

        # ── Tab 1: Keyboard Shortcuts ───────────────────
        shortcuts_tab = QWidget()
        shortcuts_layout = QVBoxLayout(shortcuts_tab)

        hint = QLabel(
            "Click a shortcut field, then press the key combination you want."
        )
        hint.setWordWrap(True)
        hint.setStyleSheet("color: #666; margin-bottom: 8px;")
        shortcuts_layout.addWidget(hint)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll_widget = QWidget()
        form = QFormLayout(scroll_widget)
        form.setFieldGrowthPolicy(QFormLayout.ExpandingFieldsGrow)

        self._shortcut_edits: dict[str, QKeySequenceEdit] = {}
        current_shortcuts = config.get_shortcuts()

        for action_id, label in config.ACTION_LABELS.items():
            edit = QKeySequenceEdit()
            current = current_shortcuts.get(action_id, "")
            if current:
                edit.setKeySequence(QKeySequence(current))
            self._shortcut_edits[action_id] = edit
            form.addRow(label + ":", edit)

        scroll.setWidget(scroll_widget)
        shortcuts_layout.addWidget(scroll)

        reset_btn = QPushButton("Reset All to Defaults")
        reset_btn.clicked.connect(self._reset_shortcuts)
        shortcuts_layout.addWidget(reset_btn, alignment=Qt.AlignLeft)

        tabs.addTab(shortcuts_tab, "Keyboard Shortcuts")

        # ── Tab 2: Table ────────────────────────────────
        table_tab = QWidget()
        table_layout = QVBoxLayout(table_tab)

        storage_group = QGroupBox("Storage")
        storage_form = QFormLayout(storage_group)

        self._snapshot_edit = QLineEdit(str(config.get_setting("snapshot_path", "")))
        storage_form.addRow("Table file:", self._snapshot_edit)

        self._default_name_edit = QLineEdit(str(config.get_setting("default_language_name", "")))
        storage_form.addRow("New table language:", self._default_name_edit)

        self._seed_check = QCheckBox("Start new tables from the bundled sample")
        self._seed_check.setChecked(bool(config.get_setting("use_bundled_seed", True)))
        storage_form.addRow(self._seed_check)

        self._backup_check = QCheckBox("Keep a .bak copy when saving")
        self._backup_check.setChecked(bool(config.get_setting("backup_on_save", True)))
        storage_form.addRow(self._backup_check)

        table_layout.addWidget(storage_group)

        display_group = QGroupBox("Display")
        display_form = QFormLayout(display_group)
        self._width_spin = QSpinBox()
        self._width_spin.setRange(config.MIN_COLUMN_WIDTH, config.MAX_COLUMN_WIDTH)
        self._width_spin.setValue(int(config.get_display("column_width", config.DEFAULT_COLUMN_WIDTH)))
        self._width_spin.setSuffix(" px")
        display_form.addRow("Column width:", self._width_spin)
        table_layout.addWidget(display_group)
        table_layout.addStretch()

        tabs.addTab(table_tab, "Table")

        # ── OK / Cancel ─────────────────────────────────
        buttons = QDialogButtonBox(
            QDialogButtonBox.Ok | QDialogButtonBox.Cancel
        )
        buttons.accepted.connect(self._accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _reset_shortcuts(self) -> None:
        """Reset all shortcut fields to built-in defaults."""
        defaults = self._config._load_defaults().get("shortcuts", {})
        for action_id, edit in self._shortcut_edits.items():
            default_seq = defaults.get(action_id, "")
            if default_seq:
                edit.setKeySequence(QKeySequence(default_seq))
            else:
                edit.clear()

    def _accept(self) -> None:
        new_shortcuts = {}
        for action_id, edit in self._shortcut_edits.items():
            seq = edit.keySequence()
            new_shortcuts[action_id] = seq.toString() if not seq.isEmpty() else ""
        self._config.set_shortcuts(new_shortcuts)

        self._config.set_setting("snapshot_path", self._snapshot_edit.text().strip() or "localization.json")
        name = self._default_name_edit.text().strip()
        if name:
            self._config.set_setting("default_language_name", name)
        self._config.set_setting("use_bundled_seed", self._seed_check.isChecked())
        self._config.set_setting("backup_on_save", self._backup_check.isChecked())
        self._config.set_display("column_width", self._width_spin.value())

        # Persist to disk
        self._config.save_settings()

        self.accept()
