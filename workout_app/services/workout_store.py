"""
workout_app/services/workout_store.py -- The persisted workout store.

Owns the :class:`~workout_engine.state.TrackerState`, loads it from the
slot storage at startup, and writes it back after changes settle.  The
store is the only writer to device storage; screens read its collections
and call its mutation methods, then repaint on ``state_changed``.

Write-back is debounced with one single-shot QTimer: every mutation calls
:meth:`WorkoutStore.mark_dirty`, which restarts the timer, so the five
slots are written together once changes have stopped for the save delay.

Usage::

    from workout_app.services.workout_store import WorkoutStore
    from workout_engine.storage import SlotStorage

    store = WorkoutStore(SlotStorage(get_storage_dir()))
    store.load()
    store.state_changed.connect(refresh)
    store.add_custom_part("Calves")
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError
from PySide6.QtCore import QObject, QThread, QTimer, Signal, Slot

from workout_app.config import SAVE_DELAY_MS
from workout_engine import parts as part_registry
from workout_engine.backup_codec import (
    BackupFormatError,
    export_document,
    import_document,
    read_backup_file,
    write_backup_file,
)
from workout_engine.models import LogEntry, VideoEntry
from workout_engine.models.base import DEFAULT_LOG_TITLE
from workout_engine.state import TrackerState
from workout_engine.storage import SlotStorage, load_state
from workout_engine.utils import now_ms
from workout_engine.views import clean_text

logger = logging.getLogger(__name__)


class _BackupReadWorker(QThread):
    """Background thread that reads a backup file from disk."""

    loaded = Signal(str)
    failed = Signal(str)

    def __init__(self, path: str, parent: QObject | None = None):
        super().__init__(parent)
        self._path = path

    def run(self) -> None:
        try:
            text = read_backup_file(self._path)
        except BackupFormatError as exc:
            self.failed.emit(str(exc))
            return
        self.loaded.emit(text)


class WorkoutStore(QObject):
    """Reactive owner of the five persisted collections.

    Signals
    -------
    state_changed()
        Emitted after every mutation, load, import and wipe.
    state_loaded()
        Emitted after :meth:`load` finishes.
    state_saved()
        Emitted after all slots were written to storage.
    state_wiped()
        Emitted after :meth:`wipe` erased storage.
    load_error(str)
        Emitted once per slot that was unreadable and reset to defaults.
    save_failed(str)
        Emitted when writing storage fails; the store stays dirty.
    import_finished(bool, str)
        Emitted when a backup import succeeds or fails, with a message.
    """

    state_changed = Signal()
    state_loaded = Signal()
    state_saved = Signal()
    state_wiped = Signal()
    load_error = Signal(str)
    save_failed = Signal(str)
    import_finished = Signal(bool, str)

    def __init__(
        self,
        storage: SlotStorage,
        save_delay_ms: int = SAVE_DELAY_MS,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._storage = storage
        self._state = TrackerState()
        self._dirty = False
        self._import_worker: _BackupReadWorker | None = None

        self._save_timer = QTimer(self)
        self._save_timer.setSingleShot(True)
        self._save_timer.setInterval(save_delay_ms)
        self._save_timer.timeout.connect(self._flush)

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def prefs(self) -> dict[str, Any]:
        return self._state.prefs

    @property
    def videos(self) -> dict[str, list]:
        return self._state.videos

    @property
    def notes(self) -> dict[str, Any]:
        return self._state.notes

    @property
    def train_text(self) -> dict[str, Any]:
        return self._state.train_text

    @property
    def logs(self) -> list[dict[str, Any]]:
        return self._state.logs

    @property
    def active_part(self) -> str:
        return self._state.active_part

    @property
    def timer_interval(self) -> int:
        return self._state.prefs.get("interval", 60)

    @property
    def parts(self) -> list[part_registry.PartDescriptor]:
        return part_registry.all_parts(self._state.prefs)

    def part_name(self, part_id: str) -> str:
        return part_registry.resolve_name(self._state.prefs, part_id)

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def save_pending(self) -> bool:
        return self._save_timer.isActive()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> TrackerState:
        """Read every slot from storage, resetting unreadable ones."""
        self._save_timer.stop()
        loaded, errors = load_state(self._storage)
        self._state.replace_with(loaded)
        self._dirty = False
        for error in errors:
            self.load_error.emit(str(error))
        logger.info(
            "Loaded %d logs and %d custom parts",
            len(self._state.logs), len(part_registry.custom_part_names(self._state.prefs)),
        )
        self.state_loaded.emit()
        self.state_changed.emit()
        return self._state

    def mark_dirty(self) -> None:
        """Record a change and (re)arm the write-back timer."""
        self._dirty = True
        self._save_timer.start()
        self.state_changed.emit()

    def save(self) -> bool:
        """Write all five slots now.  Returns False if storage failed."""
        self._save_timer.stop()
        slots = self._state.to_slots()
        self._dirty = False
        try:
            self._storage.write_all(slots)
        except (RuntimeError, OSError) as exc:
            logger.exception("Failed to save workout state")
            self._dirty = True  # Retry on the next change or flush
            self.save_failed.emit(str(exc))
            return False
        self.state_saved.emit()
        return True

    @Slot()
    def _flush(self) -> None:
        if self._dirty:
            self.save()

    def shutdown(self) -> None:
        """Cancel the timer and flush any pending changes."""
        self._save_timer.stop()
        if self._dirty:
            self.save()

    def wipe(self) -> None:
        """Erase every slot and reset memory to defaults.  No confirmation."""
        self._save_timer.stop()
        try:
            self._storage.clear()
        except OSError as exc:
            logger.exception("Failed to erase stored state")
            self.save_failed.emit(str(exc))
        self._state.reset()
        self._dirty = False
        logger.info("Wiped all workout data")
        self.state_wiped.emit()
        self.state_changed.emit()

    # ------------------------------------------------------------------
    # Parts
    # ------------------------------------------------------------------

    def add_custom_part(self, name: str) -> str | None:
        part_id = part_registry.add_custom_part(self._state, name)
        if part_id is not None:
            self.mark_dirty()
        return part_id

    def remove_custom_part(self, index: int) -> str | None:
        removed = part_registry.remove_custom_part(self._state, index)
        if removed is not None:
            self.mark_dirty()
        return removed

    def set_active_part(self, part_id: str) -> bool:
        if not part_registry.is_known_part(self._state.prefs, part_id):
            return False
        if self._state.prefs.get("part") == part_id:
            return True
        self._state.prefs = {**self._state.prefs, "part": part_id}
        self.mark_dirty()
        return True

    def set_timer_interval(self, seconds: int) -> bool:
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0:
            return False
        self._state.prefs = {**self._state.prefs, "interval": seconds}
        self.mark_dirty()
        return True

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def set_train_text(self, part_id: str, text: str) -> None:
        """Store the training text of *part_id*, keeping other fields of its entry."""
        current = self._state.train_text.get(part_id)
        entry = dict(current) if isinstance(current, dict) else {}
        entry["all"] = text if isinstance(text, str) else ""
        self._state.train_text = {**self._state.train_text, part_id: entry}
        self.mark_dirty()

    def format_train_text(self, part_id: str | None = None) -> str:
        """Clean up pasted training text in place and return the result."""
        part_id = part_id or self.active_part
        current = self._state.train_text.get(part_id)
        text = current.get("all", "") if isinstance(current, dict) else ""
        cleaned = clean_text(text)
        self.set_train_text(part_id, cleaned)
        return cleaned

    def set_note(self, part_id: str, text: str) -> None:
        self._state.notes = {**self._state.notes, part_id: text}
        self.mark_dirty()

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    def _new_log_id(self) -> str:
        taken = {str(log.get("id")) for log in self._state.logs}
        candidate = now_ms()
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def save_log(self, entry: dict[str, Any]) -> str | None:
        """Create a log, or update the log whose ``id`` matches *entry*.

        An update only overwrites the fields present in *entry*.  Saving
        stamps the log with the current time.  Returns the log id, or
        ``None`` when *entry* names an id that does not exist.
        """
        log_id = entry.get("id")
        if log_id:
            patch = {key: entry[key] for key in ("title", "content", "part") if key in entry}
            if "title" in patch and not patch["title"]:
                patch["title"] = DEFAULT_LOG_TITLE
            patch["ts"] = now_ms()
            for index, log in enumerate(self._state.logs):
                if log.get("id") == log_id:
                    logs = list(self._state.logs)
                    logs[index] = {**log, **patch}
                    self._state.logs = logs
                    self.mark_dirty()
                    return log_id
            logger.debug("save_log: no log with id %r", log_id)
            return None

        payload = {
            "title": entry.get("title") or DEFAULT_LOG_TITLE,
            "content": entry.get("content") or "",
            "part": entry.get("part") or self.active_part,
            "ts": now_ms(),
        }
        try:
            log = LogEntry(id=self._new_log_id(), **payload)
        except ValidationError:
            logger.debug("save_log: rejected %r", entry)
            return None
        self._state.logs = self._state.logs + [log.model_dump()]
        self.mark_dirty()
        return log.id

    def delete_log(self, log_id: str) -> bool:
        logs = [log for log in self._state.logs if log.get("id") != log_id]
        if len(logs) == len(self._state.logs):
            return False
        self._state.logs = logs
        self.mark_dirty()
        return True

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    def save_video(self, part_id: str, entry: dict[str, Any], index: int | None = None) -> bool:
        """Append a video to *part_id*, or replace the one at *index*.

        An entry without a name or url is ignored, as is an *index* that
        is not an int in range.  ``None`` or ``-1`` appends.
        """
        if index is not None and (isinstance(index, bool) or not isinstance(index, int)):
            return False
        try:
            video = VideoEntry(name=entry.get("name") or "", url=entry.get("url") or "")
        except ValidationError:
            logger.debug("save_video: incomplete entry %r", entry)
            return False

        current = self._state.videos.get(part_id)
        entries = list(current) if isinstance(current, list) else []
        if index is None or index == -1:
            entries.append(video.model_dump())
        elif 0 <= index < len(entries):
            entries[index] = video.model_dump()
        else:
            return False

        self._state.videos = {**self._state.videos, part_id: entries}
        self.mark_dirty()
        return True

    def delete_video(self, part_id: str, index: int) -> bool:
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        current = self._state.videos.get(part_id)
        if not isinstance(current, list) or not 0 <= index < len(current):
            return False
        entries = list(current)
        del entries[index]
        self._state.videos = {**self._state.videos, part_id: entries}
        self.mark_dirty()
        return True

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def export_backup(self) -> dict[str, Any]:
        return export_document(self._state)

    def export_backup_file(self, directory: str) -> str:
        """Write a backup file into *directory* and return its path."""
        return write_backup_file(self._state, directory)

    def import_backup(self, document: str | bytes | dict[str, Any]) -> bool:
        """Restore a backup document.  The state is untouched on failure."""
        try:
            restored = import_document(document, self._state)
        except BackupFormatError as exc:
            logger.warning("Backup import rejected: %s", exc)
            self.import_finished.emit(False, str(exc))
            return False
        self.mark_dirty()
        self.import_finished.emit(True, f"Restored {', '.join(restored) or 'nothing'}.")
        return True

    def import_backup_file(self, path: str) -> bool:
        """Read *path* on a worker thread, then import it on this thread.

        Returns False while another backup file is still being read.  The
        outcome is reported through ``import_finished``.
        """
        if self._import_worker is not None:
            logger.warning("Backup import already running, ignoring %s", path)
            return False

        worker = _BackupReadWorker(path, self)
        worker.loaded.connect(self._on_backup_read)
        worker.failed.connect(self._on_backup_read_failed)
        worker.finished.connect(self._on_import_worker_finished)
        worker.finished.connect(worker.deleteLater)
        self._import_worker = worker
        worker.start()
        return True

    def _release_import_worker(self) -> None:
        # Only the worker that delivered the signal gives up the slot.
        if self.sender() is self._import_worker:
            self._import_worker = None

    @Slot(str)
    def _on_backup_read(self, text: str) -> None:
        self._release_import_worker()
        self.import_backup(text)

    @Slot(str)
    def _on_backup_read_failed(self, message: str) -> None:
        self._release_import_worker()
        logger.warning("Backup file unreadable: %s", message)
        self.import_finished.emit(False, message)

    @Slot()
    def _on_import_worker_finished(self) -> None:
        self._release_import_worker()
