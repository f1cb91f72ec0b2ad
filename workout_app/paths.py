"""
workout_app/paths.py -- Path resolution for the tracker's data files.

Uses platformdirs for the user data directory unless
``WORKOUT_TRACKER_DATA_DIR`` points somewhere else.
"""

from __future__ import annotations

import os

from platformdirs import user_data_dir

from workout_app.config import APP_AUTHOR, APP_NAME, data_dir_override


def get_user_data_dir() -> str:
    """Return the platform-appropriate user data directory."""
    path = data_dir_override() or user_data_dir(APP_NAME, APP_AUTHOR)
    os.makedirs(path, exist_ok=True)
    return path


def get_storage_dir() -> str:
    """Return the directory holding the five state slot files."""
    return os.path.join(get_user_data_dir(), "storage")


def get_backups_dir() -> str:
    """Return the directory backups are exported to by default."""
    path = os.path.join(get_user_data_dir(), "backups")
    os.makedirs(path, exist_ok=True)
    return path
