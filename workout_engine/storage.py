"""
workout_engine/storage.py -- Device storage for the five state slots.

Each slot lives in its own JSON file inside one directory, so a corrupt
or half-written slot never takes the others down with it.  Writes are
atomic per file (see :func:`workout_engine.utils.safe_write_json`); there
is no rollback across files.

Usage::

    from workout_engine.storage import SlotStorage

    storage = SlotStorage("/home/me/.local/share/WorkoutTracker")
    prefs = storage.read("prefs")          # None when absent
    storage.write_all(state.to_slots())
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from workout_engine.parts import ensure_video_entries
from workout_engine.state import (
    MAPPING_SLOTS,
    SLOT_LOGS,
    SLOT_NOTES,
    SLOT_PREFS,
    SLOT_TRAIN_TEXT,
    SLOT_VIDEOS,
    SLOTS,
    TrackerState,
    apply_slot,
    slot_type_ok,
)
from workout_engine.utils import read_json_text, safe_write_json

logger = logging.getLogger(__name__)

# Storage key per slot.  Kept identical to the keys used by earlier
# releases so existing data is picked up.
SLOT_KEYS: dict[str, str] = {
    SLOT_PREFS: "gym_prefs",
    SLOT_VIDEOS: "gym_videos",
    SLOT_NOTES: "gym_notes",
    SLOT_TRAIN_TEXT: "gym_traintext",
    SLOT_LOGS: "gym_logs",
}


class CorruptSlotError(ValueError):
    """A slot exists on disk but cannot be read or parsed."""

    def __init__(self, slot: str, detail: str):
        super().__init__(f"The saved {slot} data could not be read and was reset. Detail: {detail}")
        self.slot = slot
        self.detail = detail


class SlotStorage:
    """One-JSON-file-per-slot storage rooted at *directory*.

    Parameters
    ----------
    directory : str or pathlib.Path
        Directory holding the slot files.  Created on first write.
    """

    def __init__(self, directory):
        self.directory = Path(directory)

    def path_for(self, slot: str) -> Path:
        return self.directory / f"{SLOT_KEYS[slot]}.json"

    def read(self, slot: str) -> Any:
        """Return the parsed value of *slot*, or ``None`` if it is absent.

        Raises
        ------
        CorruptSlotError
            If the file exists but is unreadable or not valid JSON.
        """
        path = self.path_for(slot)
        try:
            text = read_json_text(path)
        except OSError as exc:
            raise CorruptSlotError(slot, str(exc)) from exc
        if text is None or not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise CorruptSlotError(slot, str(exc)) from exc

    def write(self, slot: str, value: Any) -> None:
        safe_write_json(self.path_for(slot), value)

    def write_all(self, slots: dict[str, Any]) -> None:
        """Write every slot in *slots*, continuing past individual failures.

        Raises
        ------
        RuntimeError
            After all slots were attempted, if any of them failed.
        """
        failed: list[str] = []
        for slot in SLOTS:
            if slot not in slots:
                continue
            try:
                self.write(slot, slots[slot])
            except (OSError, TypeError, ValueError):
                logger.exception("Failed to write slot %s", slot)
                failed.append(slot)
        if failed:
            raise RuntimeError(
                f"Could not save {', '.join(failed)}. There may be a disk space "
                f"or permissions issue with {self.directory}."
            )

    def clear(self) -> None:
        """Delete every slot file.  Missing files are ignored."""
        for slot in SLOTS:
            try:
                os.remove(self.path_for(slot))
            except FileNotFoundError:
                continue
        logger.info("Cleared all slots in %s", self.directory)


def load_state(storage: SlotStorage) -> tuple[TrackerState, list[CorruptSlotError]]:
    """Load every slot independently, falling back to defaults per slot.

    Returns the loaded state and the errors for slots that were reset.
    A bad slot never stops the remaining slots from loading.
    """
    state = TrackerState()
    errors: list[CorruptSlotError] = []
    for slot in SLOTS:
        try:
            value = storage.read(slot)
            if value is None:
                continue
            if not slot_type_ok(slot, value):
                kind = "an object" if slot in MAPPING_SLOTS else "a list"
                raise CorruptSlotError(slot, f"expected {kind}, found {type(value).__name__}")
        except CorruptSlotError as exc:
            logger.warning("Resetting slot %s: %s", slot, exc.detail)
            errors.append(exc)
            continue
        apply_slot(state, slot, value)

    created = ensure_video_entries(state)
    if created:
        logger.info("Created missing video lists for %s", ", ".join(created))
    return state, errors
