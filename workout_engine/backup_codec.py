"""
workout_engine/backup_codec.py -- Backup export and restore.

A backup is one JSON object with the optional top-level fields ``prefs``,
``videos``, ``notes``, ``trainText`` and ``logs``.  Restoring merges the
map collections into the current state (incoming keys overwrite
same-named keys, everything else is kept) and replaces the logs wholesale
after repair.  A document that cannot be parsed, or has a slot of the
wrong shape, is rejected before anything is changed.

Usage::

    from workout_engine.backup_codec import dumps, import_document

    text = dumps(state)
    import_document(text, other_state)

    path = write_backup_file(state, backups_dir)
    import_document(read_backup_file(path), state)
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from workout_engine.models import BackupDocument
from workout_engine.parts import ensure_video_entries
from workout_engine.state import SLOTS, TrackerState, apply_slot
from workout_engine.utils import now_ms, safe_write_json

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "backup_"
BACKUP_SUFFIX = ".json"


class BackupFormatError(ValueError):
    """The backup document is not valid JSON or has the wrong shape."""


# ------------------------------------------------------------------
# Export
# ------------------------------------------------------------------

def export_document(state: TrackerState) -> dict[str, Any]:
    """Return a self-contained copy of every collection, keyed by slot."""
    return state.to_slots()


def dumps(state: TrackerState) -> str:
    return json.dumps(export_document(state), ensure_ascii=False)


# ------------------------------------------------------------------
# Import
# ------------------------------------------------------------------

def parse_document(document: str | bytes | Mapping[str, Any]) -> dict[str, Any]:
    """Parse and shape-check *document*; return only the slots it provides.

    Raises
    ------
    BackupFormatError
        If the text is not JSON, the top level is not an object, or a
        provided slot has the wrong type.
    """
    if isinstance(document, (str, bytes, bytearray)):
        try:
            data = json.loads(document)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise BackupFormatError(
                f"The backup file is not valid JSON. Detail: {exc}"
            ) from exc
    else:
        data = document

    if not isinstance(data, Mapping):
        raise BackupFormatError("The backup file must contain a JSON object at the top level.")

    try:
        parsed = BackupDocument.model_validate(dict(data))
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise BackupFormatError(
            f"The backup file has unexpected content in: {', '.join(fields) or 'unknown fields'}."
        ) from exc

    provided = parsed.model_dump(by_alias=True, exclude_none=True)
    return {slot: provided[slot] for slot in SLOTS if slot in provided}


def import_document(
    document: str | bytes | Mapping[str, Any],
    state: TrackerState,
) -> list[str]:
    """Restore *document* into *state*.

    Map slots are merged into the current collections; ``logs`` replaces
    the current logs after repair.  Slots missing from the document are
    left untouched.  The update is applied all at once, and not at all if
    the document is rejected.

    Returns
    -------
    list[str]
        The slot names that were restored.

    Raises
    ------
    BackupFormatError
        If the document is rejected.  *state* is unchanged.
    """
    slots = parse_document(document)

    staged = state.copy()
    for slot, value in slots.items():
        apply_slot(staged, slot, value)
    ensure_video_entries(staged)

    state.replace_with(staged)
    logger.info("Restored backup slots: %s", ", ".join(slots) or "(none)")
    return list(slots)


# ------------------------------------------------------------------
# Backup files
# ------------------------------------------------------------------

def backup_filename(timestamp_ms: int | None = None) -> str:
    stamp = now_ms() if timestamp_ms is None else timestamp_ms
    return f"{BACKUP_PREFIX}{stamp}{BACKUP_SUFFIX}"


def write_backup_file(state: TrackerState, directory) -> str:
    """Write a backup of *state* into *directory* and return its path.

    Raises
    ------
    RuntimeError
        If the file cannot be written.
    """
    path = Path(directory) / backup_filename()
    try:
        safe_write_json(path, export_document(state))
    except OSError as exc:
        raise RuntimeError(
            f"Could not create backup. There may be a disk space or "
            f"permissions issue. Technical detail: {exc}"
        ) from exc
    logger.info("Wrote backup %s", path)
    return str(path)


def read_backup_file(path) -> str:
    """Return the text of the backup at *path*.

    Raises
    ------
    BackupFormatError
        If the file is missing or unreadable.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except FileNotFoundError as exc:
        raise BackupFormatError(
            f"The backup file was not found at: {path}\n"
            f"It may have been moved or deleted."
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise BackupFormatError(f"The backup file could not be read. Detail: {exc}") from exc


def list_backup_files(directory) -> list[str]:
    """Return backup file paths in *directory*, newest first."""
    directory = Path(directory)
    if not directory.is_dir():
        return []

    found: list[tuple[int, str]] = []
    for entry in os.scandir(directory):
        name = entry.name
        if not (entry.is_file() and name.startswith(BACKUP_PREFIX) and name.endswith(BACKUP_SUFFIX)):
            continue
        stamp = name[len(BACKUP_PREFIX):-len(BACKUP_SUFFIX)]
        if stamp.isdigit():
            found.append((int(stamp), entry.path))

    found.sort(reverse=True)
    return [path for _, path in found]
