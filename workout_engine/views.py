"""
workout_engine/views.py -- Read-only views over the tracker state.

Everything here is a pure function of its arguments: nothing mutates the
state, and every function is total (bad input degrades to an empty or
pass-through result instead of raising).
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from workout_engine.repair import parse_timestamp
from workout_engine.state import TrackerState

# Matches the video id in the URL shapes YouTube hands out: watch?v=,
# &v=, /v/, /u/<x>/, /embed/, /shorts/ and youtu.be/.
_YOUTUBE_ID_RE = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=|shorts/)([^#&?]*).*")
_YOUTUBE_HOSTS = ("youtube.com", "youtu.be")
_YOUTUBE_ID_LENGTH = 11
EMBED_URL_TEMPLATE = "https://www.youtube.com/embed/{id}?rel=0&playsinline=1"

_MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")


# ------------------------------------------------------------------
# Videos
# ------------------------------------------------------------------

def current_videos(state: TrackerState) -> list[dict[str, Any]]:
    """Return the video list of the active part, or ``[]``."""
    videos = state.videos.get(state.active_part)
    return videos if isinstance(videos, list) else []


def selected_video(state: TrackerState, index: int | None = None) -> dict[str, Any] | None:
    """Return the selected video, falling back to the first one.

    *index* is honoured only when it is in range; otherwise the first
    video of the active part is returned, or ``None`` if there are none.
    """
    videos = current_videos(state)
    if isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(videos):
        return videos[index]
    return videos[0] if videos else None


def is_link(url: Any) -> bool:
    """True for external http(s) URLs; anything else is a literal reference."""
    return isinstance(url, str) and url.startswith("http")


def embed_url(url: Any) -> Any:
    """Turn a YouTube watch/short/share URL into an embeddable URL.

    Returns ``""`` for empty input and *url* unchanged for any other host
    or for URLs without an 11-character video id.
    """
    if not url:
        return ""
    if not isinstance(url, str):
        return url
    if not any(host in url for host in _YOUTUBE_HOSTS):
        return url
    match = _YOUTUBE_ID_RE.match(url)
    if match and len(match.group(2)) == _YOUTUBE_ID_LENGTH:
        return EMBED_URL_TEMPLATE.format(id=match.group(2))
    return url


# ------------------------------------------------------------------
# Text
# ------------------------------------------------------------------

def clean_text(text: Any) -> str:
    """Trim every line and drop blank ones."""
    if not isinstance(text, str) or not text:
        return ""
    return "\n".join(line.strip() for line in text.split("\n") if line.strip())


def train_text_for(state: TrackerState, part_id: str | None = None) -> str:
    """Return the training text of *part_id* (default: the active part)."""
    entry = state.train_text.get(part_id or state.active_part)
    if isinstance(entry, dict):
        text = entry.get("all", "")
        return text if isinstance(text, str) else ""
    return ""


# ------------------------------------------------------------------
# Logs
# ------------------------------------------------------------------

def sorted_logs(state: TrackerState) -> list[dict[str, Any]]:
    """Return the logs newest first.  The stored order is not changed."""
    def _key(log: dict[str, Any]) -> float:
        ts = parse_timestamp(log.get("ts"))
        return ts if ts is not None else float("-inf")

    return sorted(state.logs, key=_key, reverse=True)


def date_parts(ts: Any) -> dict[str, Any]:
    """Return ``{"month": "JAN", "day": 5}`` in local time for a log badge."""
    ms = parse_timestamp(ts)
    if ms is None:
        return {"month": "--", "day": "--"}
    try:
        moment = datetime.fromtimestamp(ms / 1000)
    except (OverflowError, OSError, ValueError):
        return {"month": "--", "day": "--"}
    return {"month": _MONTHS[moment.month - 1], "day": moment.day}
