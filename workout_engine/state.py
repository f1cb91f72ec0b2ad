"""
workout_engine/state.py -- The in-memory tracker state and its merge rules.

:class:`TrackerState` owns the five collections.  It is created by the
store at load time and passed by reference to every component that reads
or mutates it.  Collections are plain JSON-shaped dicts and lists so they
can be written to storage and backups without translation.

Merge rules used by load and restore are explicit per collection: an
incoming mapping overwrites same-named keys only (a shallow merge), never
a deep merge.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from workout_engine.models import Preferences, coerce_preferences
from workout_engine.parts import BASE_PART_IDS
from workout_engine.repair import repair_logs

logger = logging.getLogger(__name__)

# Slot names, in the order they are written.  These are also the
# top-level keys of a backup document.
SLOT_PREFS = "prefs"
SLOT_VIDEOS = "videos"
SLOT_NOTES = "notes"
SLOT_TRAIN_TEXT = "trainText"
SLOT_LOGS = "logs"

SLOTS: tuple[str, ...] = (SLOT_PREFS, SLOT_VIDEOS, SLOT_NOTES, SLOT_TRAIN_TEXT, SLOT_LOGS)

# Slots whose value is a JSON object; the logs slot is a JSON array.
MAPPING_SLOTS: frozenset[str] = frozenset({SLOT_PREFS, SLOT_VIDEOS, SLOT_NOTES, SLOT_TRAIN_TEXT})


def default_prefs() -> dict[str, Any]:
    return Preferences().to_wire()


def default_videos() -> dict[str, list]:
    return {part_id: [] for part_id in BASE_PART_IDS}


@dataclass
class TrackerState:
    """All persisted user data."""

    prefs: dict[str, Any] = field(default_factory=default_prefs)
    videos: dict[str, list] = field(default_factory=default_videos)
    notes: dict[str, Any] = field(default_factory=dict)
    train_text: dict[str, Any] = field(default_factory=dict)
    logs: list[dict[str, Any]] = field(default_factory=list)

    @property
    def active_part(self) -> str:
        return self.prefs.get("part", BASE_PART_IDS[0])

    def to_slots(self) -> dict[str, Any]:
        """Return a deep copy of every collection keyed by slot name."""
        return copy.deepcopy({
            SLOT_PREFS: self.prefs,
            SLOT_VIDEOS: self.videos,
            SLOT_NOTES: self.notes,
            SLOT_TRAIN_TEXT: self.train_text,
            SLOT_LOGS: self.logs,
        })

    def copy(self) -> TrackerState:
        return copy.deepcopy(self)

    def replace_with(self, other: TrackerState) -> None:
        """Adopt every collection of *other* in one step."""
        self.prefs = other.prefs
        self.videos = other.videos
        self.notes = other.notes
        self.train_text = other.train_text
        self.logs = other.logs

    def reset(self) -> None:
        self.replace_with(TrackerState())


# ------------------------------------------------------------------
# Per-collection merges
# ------------------------------------------------------------------

def merge_prefs(current: Mapping[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay *incoming* preference fields, then validate the result."""
    return coerce_preferences({**current, **incoming})


def merge_videos(current: Mapping[str, Any], incoming: Mapping[str, Any]) -> dict[str, list]:
    """Overlay incoming video lists part by part.

    A part whose incoming value is not a list is skipped; a video entry
    that is not an object is dropped.
    """
    merged = dict(current)
    for part_id, entries in incoming.items():
        if not isinstance(entries, list):
            logger.warning("Skipping videos for %r: expected a list", part_id)
            continue
        merged[part_id] = [dict(e) for e in entries if isinstance(e, Mapping)]
    return merged


def merge_text(current: Mapping[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay incoming text entries (notes and training text)."""
    return {**current, **copy.deepcopy(dict(incoming))}


def apply_slot(state: TrackerState, slot: str, value: Any) -> None:
    """Fold one loaded or imported slot value into *state*.

    Mapping slots are merged; the logs slot is repaired and replaces the
    current logs wholesale.  *value* must already have the right JSON
    type for *slot*.
    """
    if slot == SLOT_PREFS:
        state.prefs = merge_prefs(state.prefs, value)
    elif slot == SLOT_VIDEOS:
        state.videos = merge_videos(state.videos, value)
    elif slot == SLOT_NOTES:
        state.notes = merge_text(state.notes, value)
    elif slot == SLOT_TRAIN_TEXT:
        state.train_text = merge_text(state.train_text, value)
    elif slot == SLOT_LOGS:
        state.logs = repair_logs(value)
    else:
        raise KeyError(slot)


def slot_type_ok(slot: str, value: Any) -> bool:
    if slot in MAPPING_SLOTS:
        return isinstance(value, Mapping)
    return isinstance(value, list)
