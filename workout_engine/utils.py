"""
Shared utility functions for the workout tracker engine.

All JSON writes use atomic temp-file-then-os.replace() so that a crash in
the middle of a write never leaves a half-written slot or backup on disk.
"""

import json
import logging
import math
import os
import tempfile
import time

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

def now_ms() -> int:
    """Return the current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def is_finite_number(value) -> bool:
    """Return True for int/float values that are finite (bools excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


# ---------------------------------------------------------------------------
# JSON I/O (atomic writes)
# ---------------------------------------------------------------------------

def read_json_text(path):
    """Return the text of *path*, or ``None`` when the file does not exist.

    Parameters
    ----------
    path : str or pathlib.Path
        Absolute path to the JSON file.

    Raises
    ------
    OSError
        If the file exists but cannot be read.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except FileNotFoundError:
        return None


def safe_write_json(path, data, *, indent=None):
    """Atomically write *data* as JSON to *path*.

    Uses a temporary file in the same directory followed by
    ``os.replace()`` so that readers never see a partially-written file.
    Parent directories are created if they do not exist.

    Parameters
    ----------
    path : str or pathlib.Path
        Absolute path to the target JSON file.
    data
        JSON-serialisable object to write.
    indent : int, optional
        JSON indentation level (default compact).
    """
    path = str(path)
    parent = os.path.dirname(path)
    os.makedirs(parent, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=indent, ensure_ascii=False)
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any failure.
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
