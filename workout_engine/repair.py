"""
workout_engine/repair.py -- Load-time repair of workout log records.

Logs come from two untrusted places: the on-device logs slot and imported
backup files.  Both pass through :func:`repair_logs` before they are
accepted.  The only field actively guarded is ``ts``; a missing or
unparsable timestamp is replaced with the current time and the original
value is discarded.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from workout_engine.utils import is_finite_number, now_ms

logger = logging.getLogger(__name__)

# Largest magnitude a calendar date can have, in epoch milliseconds.
_MAX_EPOCH_MS = 8_640_000_000_000_000


def parse_timestamp(value: Any) -> float | None:
    """Return *value* as epoch milliseconds, or ``None`` if it is not a time.

    Accepts finite numbers and numeric strings (already epoch ms) and
    ISO-8601 date strings.  Naive ISO strings are read as local time.
    """
    if is_finite_number(value):
        try:
            return _in_range(float(value))
        except OverflowError:
            return None
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        number = float(text)
    except ValueError:
        pass
    else:
        return _in_range(number) if math.isfinite(number) else None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    try:
        return parsed.timestamp() * 1000
    except (OverflowError, OSError, ValueError):
        return None


def _in_range(ms: float) -> float | None:
    return ms if abs(ms) <= _MAX_EPOCH_MS else None


def is_valid_timestamp(value: Any) -> bool:
    """Return True if *value* parses to a finite point in time."""
    return parse_timestamp(value) is not None


def repair_logs(raw: Any, now: int | None = None) -> list[dict[str, Any]]:
    """Return *raw* as a list of log dicts with valid ``ts`` fields.

    Parameters
    ----------
    raw
        Anything deserialized from JSON.  Non-list input yields ``[]``.
    now : int, optional
        Epoch milliseconds used for repaired timestamps (defaults to the
        current time, read once per call).

    Returns
    -------
    list[dict]
        New dicts in the original order.  Valid entries are copied
        unchanged, so repairing twice gives the same result as once.
    """
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Ignoring logs of type %s; expected a list", type(raw).__name__)
        return []

    stamp = now_ms() if now is None else now
    repaired: list[dict[str, Any]] = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            logger.warning("Dropping log #%d: not an object", index)
            continue
        entry = dict(item)
        if not is_valid_timestamp(entry.get("ts")):
            logger.info("Repairing timestamp of log %r", entry.get("id"))
            entry["ts"] = stamp
        repaired.append(entry)
    return repaired
