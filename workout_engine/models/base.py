"""
workout_engine/models/base.py -- Pydantic v2 models for persisted records.

Field names on the wire follow the storage layout already on users'
devices (``interval``, ``part``, ``customParts``, ``trainText``), so the
Python attribute names are mapped through aliases.  Every model allows
extra fields: unknown keys written by newer versions survive a
load/save cycle untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60
DEFAULT_PART_ID = "legs"
DEFAULT_LOG_TITLE = "Workout log"


class Preferences(BaseModel):
    """User preferences slot."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    interval: int = Field(DEFAULT_INTERVAL_SECONDS, gt=0)
    part: str = DEFAULT_PART_ID
    custom_parts: list[str] = Field(default_factory=list, alias="customParts")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class VideoEntry(BaseModel):
    """A reference video attached to a body part."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    url: str = Field(min_length=1)


class LogEntry(BaseModel):
    """A dated workout log.  ``id`` never changes once assigned."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str = DEFAULT_LOG_TITLE
    content: str = ""
    part: str = DEFAULT_PART_ID
    ts: int


class BackupDocument(BaseModel):
    """Shape check for an imported backup document.

    Every slot is optional; ``None`` is treated the same as absent.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    prefs: Optional[dict[str, Any]] = None
    videos: Optional[dict[str, Any]] = None
    notes: Optional[dict[str, Any]] = None
    train_text: Optional[dict[str, Any]] = Field(None, alias="trainText")
    logs: Optional[list[Any]] = None


def coerce_preferences(data: dict[str, Any]) -> dict[str, Any]:
    """Validate a preferences mapping, resetting only the fields that fail.

    A bad ``interval`` does not cost the user their custom part list:
    each invalid top-level field falls back to its default and the rest
    of the mapping is kept.  Non-text entries in ``customParts`` are
    dropped one by one; the valid names survive.
    """
    candidate = dict(data)
    names = candidate.get("customParts")
    if isinstance(names, list) and not all(isinstance(n, str) for n in names):
        logger.warning("Dropping non-text custom part names: %r", names)
        candidate["customParts"] = [n for n in names if isinstance(n, str)]
    for _ in range(2):
        try:
            return Preferences.model_validate(candidate).to_wire()
        except ValidationError as exc:
            for error in exc.errors():
                loc = error.get("loc") or ()
                if loc:
                    logger.warning(
                        "Resetting invalid preference %r: %s", loc[0], error.get("msg")
                    )
                    candidate.pop(loc[0], None)
    return Preferences().to_wire()
