"""Main application window: wires the store to the grid and dialogs."""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeySequence
from PySide6.QtWidgets import (
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from locgrid import config
from locgrid.dialogs import FindDialog, ReportDialog, SettingsDialog
from locgrid.errors import InvalidIndexError
from locgrid.report import translation_check
from locgrid.snapshot_io import BundledSnapshotProvider, FileSnapshotProvider, load_store
from locgrid.store import (
    LANGUAGE_ADDED,
    LANGUAGE_REMOVED,
    LANGUAGE_RENAMED,
    TABLE_REPLACED,
    LocalizationStore,
    StoreEvent,
)
from locgrid.table_model import LocalizationTableModel
from locgrid.table_view import LocalizationTableView
from locgrid.tmx_io import export_tmx, import_tmx

logger = logging.getLogger(__name__)

_LANGUAGE_EVENTS = (LANGUAGE_ADDED, LANGUAGE_REMOVED, LANGUAGE_RENAMED, TABLE_REPLACED)

NEW_WORD_PLACEHOLDER = "NewWord"


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.resize(1100, 700)

        # Core state
        self._store: LocalizationStore | None = None
        self._path: Path | None = None
        self._dirty = False
        self._find_dialog: FindDialog | None = None

        # Table model & view
        self._model = LocalizationTableModel(self)
        self._view = LocalizationTableView(self)
        self._view.setModel(self._model)

        self._build_controls()

        # Status bar
        self._status = QStatusBar(self)
        self.setStatusBar(self._status)

        self._build_menus()
        self._update_title()
        self._update_status()

    # ── Layout ──────────────────────────────────────────────────

    def _build_controls(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)

        # Selected language
        top = QHBoxLayout()
        top.addWidget(QLabel("Selected language:"))
        self._selected_combo = QComboBox()
        self._selected_combo.setMinimumWidth(220)
        self._selected_combo.currentIndexChanged.connect(self._on_selected_changed)
        top.addWidget(self._selected_combo)
        top.addStretch()
        layout.addLayout(top)

        # Default language name + new language
        langs = QHBoxLayout()
        langs.addWidget(QLabel("Default language name (index 0):"))
        self._default_name_edit = QLineEdit()
        self._default_name_edit.editingFinished.connect(self._on_default_name_edited)
        langs.addWidget(self._default_name_edit)
        langs.addSpacing(24)
        langs.addWidget(QLabel("New language:"))
        self._new_language_edit = QLineEdit()
        self._new_language_edit.returnPressed.connect(self._op_add_language)
        langs.addWidget(self._new_language_edit)
        add_lang_btn = QPushButton("Add Language")
        add_lang_btn.clicked.connect(self._op_add_language)
        langs.addWidget(add_lang_btn)
        layout.addLayout(langs)

        # Filter
        filt = QHBoxLayout()
        filt.addWidget(QLabel("Filter language:"))
        self._filter_combo = QComboBox()
        self._filter_combo.setMinimumWidth(200)
        self._filter_combo.currentIndexChanged.connect(self._on_filter_changed)
        filt.addWidget(self._filter_combo)
        self._filter_edit = QLineEdit()
        self._filter_edit.setPlaceholderText("Filter rows (reordering is disabled while filtering)")
        self._filter_edit.setClearButtonEnabled(True)
        self._filter_edit.textChanged.connect(self._on_filter_changed)
        filt.addWidget(self._filter_edit)
        layout.addLayout(filt)

        layout.addWidget(self._view)

        # Row / language actions
        bottom = QHBoxLayout()
        add_word_btn = QPushButton("Add Word")
        add_word_btn.clicked.connect(self._op_add_word)
        bottom.addWidget(add_word_btn)
        del_rows_btn = QPushButton("Delete Selected Rows")
        del_rows_btn.clicked.connect(self._op_delete_rows)
        bottom.addWidget(del_rows_btn)
        del_lang_btn = QPushButton("Delete Current Language")
        del_lang_btn.clicked.connect(self._op_delete_language)
        bottom.addWidget(del_lang_btn)
        bottom.addStretch()
        save_btn = QPushButton("Save")
        save_btn.clicked.connect(self._file_save)
        bottom.addWidget(save_btn)
        layout.addLayout(bottom)

        self.setCentralWidget(central)

    def _sc(self, action_name: str) -> str:
        """Shortcut helper."""
        return config.get_shortcut(action_name)

    def _build_menus(self) -> None:
        mb = self.menuBar()

        # File
        file_menu = mb.addMenu("&File")
        self._act_open = file_menu.addAction("&Open Table…", self._file_open)
        self._act_open.setShortcut(QKeySequence(self._sc("file_open")))

        self._act_save = file_menu.addAction("&Save", self._file_save)
        self._act_save.setShortcut(QKeySequence(self._sc("file_save")))

        file_menu.addSeparator()
        file_menu.addAction("&Import TMX…", self._file_import_tmx)
        file_menu.addAction("&Export TMX…", self._file_export_tmx)

        file_menu.addSeparator()
        self._act_quit = file_menu.addAction("&Quit", self.close)
        self._act_quit.setShortcut(QKeySequence(self._sc("file_quit")))

        # Edit
        edit_menu = mb.addMenu("&Edit")
        self._act_find = edit_menu.addAction("&Find in Default Language…", self._show_find)
        self._act_find.setShortcut(QKeySequence(self._sc("edit_find")))

        edit_menu.addSeparator()
        self._act_add_word = edit_menu.addAction("Add &Word", self._op_add_word)
        self._act_add_word.setShortcut(QKeySequence(self._sc("word_add")))

        self._act_delete_rows = edit_menu.addAction("&Delete Selected Rows", self._op_delete_rows)
        self._act_delete_rows.setShortcut(QKeySequence(self._sc("word_delete")))

        # Languages
        lang_menu = mb.addMenu("&Languages")
        self._act_add_language = lang_menu.addAction("&Add Language…", self._op_add_language_prompt)
        self._act_add_language.setShortcut(QKeySequence(self._sc("language_add")))

        self._act_delete_language = lang_menu.addAction("&Delete Current Language", self._op_delete_language)
        self._act_delete_language.setShortcut(QKeySequence(self._sc("language_delete")))

        # View
        view_menu = mb.addMenu("&View")
        view_menu.addAction("&Translation Check", self._show_report)
        view_menu.addSeparator()
        self._act_settings = view_menu.addAction("&Settings…", self._show_settings)
        self._act_settings.setShortcut(QKeySequence("Ctrl+,"))

    # ── Store wiring ────────────────────────────────────────────

    def set_store(self, store: LocalizationStore, path: Path | None = None) -> None:
        """Show *store* in the grid, replacing any previous one."""
        if self._store is not None:
            self._store.remove_listener(self._on_store_event)
        self._store = store
        self._path = path

        # The model and its view index react to an event before the window does
        self._model.set_store(store)
        store.add_listener(self._on_store_event)
        self._refresh_language_widgets()
        self._apply_filter()
        if self._find_dialog is not None:
            self._find_dialog.set_store(store)

        self._dirty = False
        self._update_title()
        self._update_status()
        if self._model.rowCount() > 0:
            self._view.select_cell(0, 0)

    def load_file(self, path: str | Path) -> bool:
        """Load (or create) a table file and return True on success."""
        path = Path(path)
        provider = FileSnapshotProvider(path, backup=bool(config.get_setting("backup_on_save", True)))
        fallback = BundledSnapshotProvider() if config.get_setting("use_bundled_seed", True) else None
        try:
            store = load_store(
                provider,
                fallback=fallback,
                default_language_name=str(config.get_setting("default_language_name", "English")),
            )
        except Exception as exc:
            QMessageBox.critical(self, "Open failed", f"Could not open table:\n{exc}")
            return False
        logger.info("Loaded %s (%d languages, %d rows)", path, store.language_count, store.row_count)
        self.set_store(store, path)
        return True

    def _on_store_event(self, event: StoreEvent) -> None:
        if event.kind in _LANGUAGE_EVENTS:
            self._refresh_language_widgets()
            self._apply_filter()
        self._dirty = True
        self._update_title()
        self._update_status()

    def _refresh_language_widgets(self) -> None:
        store = self._store
        names = [f"[{i}] {name}" for i, name in enumerate(store.language_names())] if store else []

        for combo, current in (
            (self._selected_combo, store.selected_language if store else 0),
            (self._filter_combo, self._model.view_index.filter_language),
        ):
            combo.blockSignals(True)
            combo.clear()
            combo.addItems(names)
            if names:
                combo.setCurrentIndex(max(0, min(current, len(names) - 1)))
            combo.blockSignals(False)

        if store is not None and not self._default_name_edit.hasFocus():
            self._default_name_edit.setText(store.language_name(store.DEFAULT_LANGUAGE_INDEX))

    # ── Title / status ──────────────────────────────────────────

    def _update_title(self) -> None:
        dirty = " *" if self._dirty else ""
        name = f" - {self._path.name}" if self._path else ""
        self.setWindowTitle(f"Localization Grid{dirty}{name}")

    def _update_status(self) -> None:
        if self._store is None:
            self._status.showMessage("No table loaded")
            return
        store = self._store
        shown = self._model.rowCount()
        drag = "drag to reorder" if self._model.view_index.reorder_allowed else "reordering off while filtered"
        unsaved = "  |  unsaved changes" if self._dirty else ""
        self._status.showMessage(
            f"{store.row_count} rows ({shown} shown)  |  {store.language_count} languages  |  {drag}{unsaved}"
        )

    # ── Filtering ───────────────────────────────────────────────

    def _apply_filter(self) -> None:
        language = max(0, self._filter_combo.currentIndex())
        self._model.set_filter(self._filter_edit.text(), language)
        self._view.set_reorder_enabled(self._model.view_index.reorder_allowed)

    def _on_filter_changed(self, *_args) -> None:
        self._apply_filter()
        self._update_status()

    def _on_selected_changed(self, index: int) -> None:
        if self._store is not None and index >= 0:
            self._store.select_language(index)

    def _on_default_name_edited(self) -> None:
        if self._store is None:
            return
        name = self._default_name_edit.text()
        if name != self._store.language_name(self._store.DEFAULT_LANGUAGE_INDEX):
            self._store.rename_language(self._store.DEFAULT_LANGUAGE_INDEX, name)

    # ── File operations ─────────────────────────────────────────

    def _confirm_discard(self) -> bool:
        """Return True if it's OK to discard unsaved changes."""
        if not self._dirty:
            return True
        ans = QMessageBox.question(
            self,
            "Unsaved changes",
            "You have unsaved changes. Discard them?",
            QMessageBox.Discard | QMessageBox.Cancel,
            QMessageBox.Cancel,
        )
        return ans == QMessageBox.Discard

    def _file_open(self) -> None:
        if not self._confirm_discard():
            return
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Table", "", "JSON files (*.json);;All files (*)"
        )
        if not path:
            return
        self.load_file(path)

    def _file_save(self) -> bool:
        if self._store is None:
            return False
        if not self._store.save():
            QMessageBox.critical(self, "Save failed", "The localization table could not be saved.")
            return False
        self._dirty = False
        self._update_title()
        self._update_status()
        return True

    def _file_import_tmx(self) -> None:
        if self._store is None or not self._confirm_discard():
            return
        path, _ = QFileDialog.getOpenFileName(
            self, "Import TMX", "", "TMX files (*.tmx);;All files (*)"
        )
        if not path:
            return
        try:
            table = import_tmx(path)
        except Exception as exc:
            QMessageBox.critical(self, "Import failed", f"Could not import file:\n{exc}")
            return
        if not table.languages:
            QMessageBox.information(self, "Import", "The file contains no languages.")
            return
        self._store.replace_table(table)

    def _file_export_tmx(self) -> None:
        if self._store is None:
            return
        path, _ = QFileDialog.getSaveFileName(
            self, "Export TMX", "", "TMX files (*.tmx);;All files (*)"
        )
        if not path:
            return
        try:
            export_tmx(self._store, path)
        except Exception as exc:
            QMessageBox.critical(self, "Export failed", str(exc))
            return
        self._status.showMessage(f"Exported {Path(path).name}", 3000)

    def closeEvent(self, event) -> None:
        if not self._dirty:
            event.accept()
            return
        ans = QMessageBox.question(
            self,
            "Unsaved changes",
            "You are about to close without saving. What would you like to do?",
            QMessageBox.Save | QMessageBox.Discard | QMessageBox.Cancel,
            QMessageBox.Save,
        )
        if ans == QMessageBox.Cancel or (ans == QMessageBox.Save and not self._file_save()):
            event.ignore()
            return
        event.accept()

    # ── Table operations ────────────────────────────────────────

    def _op_add_language(self) -> None:
        if self._store is None:
            return
        name = self._new_language_edit.text().strip()
        if not name:
            return
        self._store.add_language(name)
        self._new_language_edit.clear()

    def _op_add_language_prompt(self) -> None:
        if self._store is None:
            return
        name, ok = QInputDialog.getText(self, "Add Language", "Language name:")
        if ok and name.strip():
            self._store.add_language(name.strip())

    def _op_delete_language(self) -> None:
        if self._store is None:
            return
        col = self._view.current_col()
        if col == self._store.DEFAULT_LANGUAGE_INDEX:
            QMessageBox.information(self, "Delete language", "The default language cannot be deleted.")
            return
        name = self._store.language_name(col)
        ans = QMessageBox.question(
            self,
            "Delete language",
            f"Delete the language '{name}' and all of its translations?",
            QMessageBox.Yes | QMessageBox.Cancel,
            QMessageBox.Cancel,
        )
        if ans != QMessageBox.Yes:
            return
        try:
            self._store.remove_language(col)
        except InvalidIndexError as exc:
            QMessageBox.warning(self, "Delete language", str(exc))

    def _op_add_word(self) -> None:
        if self._store is None:
            return
        word, ok = QInputDialog.getText(
            self, "Add Word", "Word in the default language:", text=NEW_WORD_PLACEHOLDER
        )
        if not ok:
            return
        row = self._store.add_word_to_default(word)
        view_row = self._model.view_row_of(row)
        if view_row >= 0:
            self._view.select_cell(view_row, 0)

    def _op_delete_rows(self) -> None:
        if self._store is None:
            return
        rows = [self._model.underlying_row(r) for r in self._view.selected_view_rows()]
        rows = [r for r in rows if r >= 0]
        if not rows:
            return
        label = f"row {rows[0]}" if len(rows) == 1 else f"{len(rows)} rows"
        ans = QMessageBox.question(
            self,
            "Delete words",
            f"Delete {label} from every language?",
            QMessageBox.Yes | QMessageBox.Cancel,
            QMessageBox.Cancel,
        )
        if ans != QMessageBox.Yes:
            return
        self._store.remove_words(rows)

    # ── Dialogs ─────────────────────────────────────────────────

    def _show_find(self) -> None:
        if self._store is None:
            return
        if self._find_dialog is None:
            self._find_dialog = FindDialog(self._store, self)
            self._find_dialog.row_chosen.connect(self._go_to_row)
        self._find_dialog.show()
        self._find_dialog.raise_()
        self._find_dialog.find_field.setFocus(Qt.OtherFocusReason)

    def _go_to_row(self, row: int) -> None:
        view_row = self._model.view_row_of(row)
        if view_row < 0 and self._filter_edit.text():
            self._filter_edit.clear()
            view_row = self._model.view_row_of(row)
        if view_row >= 0:
            self._view.select_cell(view_row, 0)

    def _show_report(self) -> None:
        if self._store is None:
            return
        ReportDialog(translation_check(self._store), self).exec()

    def _show_settings(self) -> None:
        dlg = SettingsDialog(self)
        if dlg.exec() == SettingsDialog.Accepted:
            self._view.apply_column_width()
