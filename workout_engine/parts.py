"""
workout_engine/parts.py -- Body-part registry.

Merges the six built-in training categories with the user's custom parts
into one ordered lookup table, and keeps the video collection in step
with the custom part names.

Custom ids are derived from the name (``"c_" + name``), so two custom
parts with the same name share one id and one video list.  Removing a
custom part never deletes data that references its id; those references
resolve to :data:`UNKNOWN_PART_NAME` until the part is added again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from workout_engine.state import TrackerState

logger = logging.getLogger(__name__)

CUSTOM_PREFIX = "c_"
UNKNOWN_PART_NAME = "Unknown"


@dataclass(frozen=True)
class PartDescriptor:
    id: str
    name: str
    custom: bool = False


BASE_PARTS: tuple[PartDescriptor, ...] = (
    PartDescriptor("legs", "Legs"),
    PartDescriptor("chest", "Chest"),
    PartDescriptor("back", "Back"),
    PartDescriptor("shoulders", "Shoulders"),
    PartDescriptor("arms", "Arms"),
    PartDescriptor("core", "Core"),
)

BASE_PART_IDS: tuple[str, ...] = tuple(p.id for p in BASE_PARTS)


# ------------------------------------------------------------------
# Icons
# ------------------------------------------------------------------

ICON_UNKNOWN = "ri-question-line"
ICON_DEFAULT = "ri-star-smile-fill"

# Checked top to bottom; the first keyword found in the name wins.  The
# built-in categories come first so "Leg calves" is still a leg day.
_ICON_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("leg", "腿部"), "ri-walk-fill"),
    (("chest", "pec", "胸部"), "ri-t-shirt-air-fill"),
    (("back", "lats", "背部"), "ri-align-vertically"),
    (("shoulder", "delt", "肩部"), "ri-medal-fill"),
    (("arm", "手臂"), "ri-boxing-fill"),
    (("core", "abs", "核心"), "ri-shape-2-fill"),
    (("calf", "calves", "小腿"), "ri-footprint-fill"),
    (("thigh", "quad", "hamstring", "大腿"), "ri-run-fill"),
    (("bicep", "二头"), "ri-flashlight-fill"),
    (("glute", "butt", "hip", "屁股", "臀"), "ri-moon-fill"),
)

ICON_KEYS: frozenset[str] = frozenset(
    {ICON_UNKNOWN, ICON_DEFAULT} | {icon for _, icon in _ICON_RULES}
)


def icon_for(name: Any) -> str:
    """Classify a display name into one of :data:`ICON_KEYS`.  Never raises."""
    if not isinstance(name, str) or not name.strip():
        return ICON_UNKNOWN
    lowered = name.lower()
    for keywords, icon in _ICON_RULES:
        if any(keyword in lowered for keyword in keywords):
            return icon
    return ICON_DEFAULT


# ------------------------------------------------------------------
# Lookup
# ------------------------------------------------------------------

def custom_part_id(name: str) -> str:
    """Return the id derived from a custom part name."""
    return CUSTOM_PREFIX + name


def custom_part_names(prefs: dict[str, Any]) -> list[str]:
    names = prefs.get("customParts")
    if not isinstance(names, list):
        return []
    return [n for n in names if isinstance(n, str)]


def all_parts(prefs: dict[str, Any]) -> list[PartDescriptor]:
    """Return built-in parts followed by custom parts in append order.

    A name listed twice yields one descriptor, at its first position.
    """
    parts = list(BASE_PARTS)
    seen = set(BASE_PART_IDS)
    for name in custom_part_names(prefs):
        part_id = custom_part_id(name)
        if part_id not in seen:
            seen.add(part_id)
            parts.append(PartDescriptor(part_id, name, custom=True))
    return parts


def resolve_name(prefs: dict[str, Any], part_id: Any) -> str:
    """Return the display name for *part_id*, or ``"Unknown"``."""
    for part in all_parts(prefs):
        if part.id == part_id:
            return part.name
    return UNKNOWN_PART_NAME


def is_known_part(prefs: dict[str, Any], part_id: Any) -> bool:
    return any(part.id == part_id for part in all_parts(prefs))


# ------------------------------------------------------------------
# Mutations
# ------------------------------------------------------------------

def add_custom_part(state: TrackerState, name: Any) -> str | None:
    """Register a custom part and give it an empty video list.

    Returns the new part id, or ``None`` when *name* is blank.  An
    existing video list for the same id is kept, so re-adding a removed
    part brings its videos back.
    """
    if not isinstance(name, str) or not name.strip():
        return None
    name = name.strip()
    part_id = custom_part_id(name)

    names = custom_part_names(state.prefs)
    videos = dict(state.videos)
    if not isinstance(videos.get(part_id), list):
        videos[part_id] = []

    state.prefs = {**state.prefs, "customParts": names + [name]}
    state.videos = videos
    logger.info("Added custom part %r", name)
    return part_id


def remove_custom_part(state: TrackerState, index: int) -> str | None:
    """Remove the custom part name at *index*; its data is left in place.

    Returns the removed name, or ``None`` when *index* is out of range.
    """
    names = custom_part_names(state.prefs)
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(names):
        return None
    removed = names.pop(index)
    state.prefs = {**state.prefs, "customParts": names}
    logger.info("Removed custom part %r (data kept)", removed)
    return removed


def ensure_video_entries(state: TrackerState) -> list[str]:
    """Create empty video lists for registered parts that lack one.

    Returns the ids that were created.
    """
    missing = [
        part.id for part in all_parts(state.prefs)
        if not isinstance(state.videos.get(part.id), list)
    ]
    if missing:
        videos = dict(state.videos)
        for part_id in missing:
            videos[part_id] = []
        state.videos = videos
    return missing
