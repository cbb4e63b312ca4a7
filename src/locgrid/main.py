"""Entry point for the Localization Grid editor.

Usage::

    locgrid [TABLE.json]           open the grid editor
    locgrid --check [TABLE.json]   print a translation check and exit
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _configure_logging() -> None:
    from locgrid import config

    level_name = str(config.get_display("log_level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)


def check(path: Path) -> int:
    """Print the translation check for the table at *path*."""
    from locgrid.report import translation_check
    from locgrid.snapshot_io import FileSnapshotProvider, load_store

    if not path.is_file():
        print(f"No localization table at {path}", file=sys.stderr)
        return 1
    store = load_store(FileSnapshotProvider(path))
    for line in translation_check(store):
        print(line)
    return 0


def main() -> None:
    from locgrid import config

    _configure_logging()

    args = sys.argv[1:]
    if args and args[0] == "--check":
        target = Path(args[1]) if len(args) > 1 else config.snapshot_path()
        sys.exit(check(target))

    from PySide6.QtWidgets import QApplication
    from locgrid.main_window import MainWindow

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("Localization Grid")
    app.setOrganizationName("locgrid")

    window = MainWindow()

    # Command line: first argument is the table file
    target = Path(args[0]) if args else config.snapshot_path()
    window.load_file(target)

    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
