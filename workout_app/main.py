"""
workout_app/main.py -- Application entry point and maintenance commands.

Loads the workout store from the user data directory and runs one
command against it.  Screens embed :class:`WorkoutStore` directly; this
module is for inspecting and maintaining the data from a terminal.

Usage::

    python -m workout_app.main summary
    python -m workout_app.main parts
    python -m workout_app.main export [--dir DIR]
    python -m workout_app.main import BACKUP.json
    python -m workout_app.main wipe --yes
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback

from workout_app.config import save_delay_ms
from workout_app.paths import get_backups_dir, get_storage_dir


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _global_exception_hook(exc_type, exc_value, exc_tb):
    """Last-resort handler for uncaught exceptions."""
    logging.getLogger("workout_app").critical(
        "Uncaught exception: %s",
        "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workout-tracker",
        description="Inspect and maintain the local workout tracker data.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("summary", help="Show counts for every collection")
    sub.add_parser("parts", help="List body parts with their video counts")

    export = sub.add_parser("export", help="Write a backup file")
    export.add_argument("--dir", default="", help="Target directory (default: user backups dir)")

    restore = sub.add_parser("import", help="Restore a backup file into the current data")
    restore.add_argument("path", help="Backup JSON file")

    wipe = sub.add_parser("wipe", help="Erase all stored data")
    wipe.add_argument("--yes", action="store_true", help="Confirm the erase")
    return parser


def _print_summary(store) -> None:
    print(f"Active part:     {store.part_name(store.active_part)} ({store.active_part})")
    print(f"Timer interval:  {store.timer_interval}s")
    print(f"Parts:           {len(store.parts)}")
    print(f"Videos:          {sum(len(v) for v in store.videos.values() if isinstance(v, list))}")
    print(f"Notes:           {len(store.notes)}")
    print(f"Training texts:  {len(store.train_text)}")
    print(f"Logs:            {len(store.logs)}")


def _print_parts(store) -> None:
    from workout_engine.parts import icon_for

    for part in store.parts:
        count = len(store.videos.get(part.id) or [])
        marker = "*" if part.id == store.active_part else " "
        print(f"{marker} {part.id:<20} {part.name:<20} {icon_for(part.name):<22} {count} videos")


def run(argv: list[str] | None = None) -> int:
    """Run one command and return the process exit code."""
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    logger = logging.getLogger("workout_app")
    sys.excepthook = _global_exception_hook

    # QTimer needs an application object even without a window.
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    from workout_app.services.workout_store import WorkoutStore
    from workout_engine.backup_codec import BackupFormatError, read_backup_file
    from workout_engine.storage import SlotStorage

    storage_dir = get_storage_dir()
    logger.info("Storage directory: %s", storage_dir)
    store = WorkoutStore(SlotStorage(storage_dir), save_delay_ms=save_delay_ms())
    store.load_error.connect(lambda msg: logger.warning("%s", msg))
    store.load()

    exit_code = 0
    if args.command == "summary":
        _print_summary(store)
    elif args.command == "parts":
        _print_parts(store)
    elif args.command == "export":
        try:
            path = store.export_backup_file(args.dir or get_backups_dir())
        except RuntimeError as exc:
            logger.error("%s", exc)
            exit_code = 1
        else:
            print(path)
    elif args.command == "import":
        try:
            text = read_backup_file(args.path)
        except BackupFormatError as exc:
            logger.error("%s", exc)
            exit_code = 1
        else:
            exit_code = 0 if store.import_backup(text) else 1
    elif args.command == "wipe":
        if not args.yes:
            logger.error("Refusing to erase data without --yes")
            exit_code = 2
        else:
            store.wipe()

    store.shutdown()
    if exit_code == 0 and store.is_dirty:
        exit_code = 1
    return exit_code


def main() -> int:
    return run()


if __name__ == "__main__":
    sys.exit(main())
