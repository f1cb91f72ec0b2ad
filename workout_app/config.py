"""
workout_app/config.py -- Application settings.

Values can be overridden with environment variables so tests and
portable installs can point the tracker at another data directory.
"""

from __future__ import annotations

import os

APP_NAME = "WorkoutTracker"
APP_AUTHOR = "WorkoutTracker"

# Milliseconds of quiet after the last change before state is written.
SAVE_DELAY_MS = 500

DATA_DIR_ENV = "WORKOUT_TRACKER_DATA_DIR"
SAVE_DELAY_ENV = "WORKOUT_TRACKER_SAVE_DELAY_MS"


def data_dir_override() -> str:
    """Return the data directory set in the environment, or ``""``."""
    return os.environ.get(DATA_DIR_ENV, "").strip()


def save_delay_ms() -> int:
    """Return the write-back delay, ignoring invalid overrides."""
    raw = os.environ.get(SAVE_DELAY_ENV, "").strip()
    if raw.isdigit() and int(raw) > 0:
        return int(raw)
    return SAVE_DELAY_MS
