"""
workout_engine/models/ -- Pydantic v2 models for the workout tracker.

Submodules:
    base        Preferences, VideoEntry, LogEntry and the backup document shape.
"""

from workout_engine.models.base import (
    BackupDocument,
    LogEntry,
    Preferences,
    VideoEntry,
    coerce_preferences,
)

__all__ = [
    "BackupDocument",
    "LogEntry",
    "Preferences",
    "VideoEntry",
    "coerce_preferences",
]
