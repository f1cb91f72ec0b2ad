"""
Shared pytest fixtures for the workout tracker test suite.

Provides:
    - qapp: a QCoreApplication so QTimer and QThread work
    - storage: a SlotStorage rooted in a temporary directory
    - sample_prefs / sample_videos / sample_logs: realistic slot contents
    - populated_storage: storage pre-filled with the sample slots
    - store: a loaded WorkoutStore over populated_storage
    - wait_until: drives the Qt event loop until a condition holds
"""

import json
import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Ensure the packages are importable regardless of where pytest is invoked
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from workout_engine.storage import SlotStorage


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def qapp():
    """Make sure a QCoreApplication exists for timers and signals."""
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def wait_until(qapp):
    """Return a helper that spins the event loop until *predicate* is true."""
    from PySide6.QtTest import QTest

    def _wait(predicate, timeout_ms=3000, step_ms=20):
        waited = 0
        while not predicate():
            if waited >= timeout_ms:
                return False
            QTest.qWait(step_ms)
            waited += step_ms
        return True

    return _wait


@pytest.fixture
def storage(tmp_path):
    """Return an empty SlotStorage in a temporary directory."""
    return SlotStorage(tmp_path / "storage")


@pytest.fixture
def sample_prefs():
    return {"interval": 90, "part": "chest", "customParts": ["Calves", "Glutes"]}


@pytest.fixture
def sample_videos():
    return {
        "legs": [{"name": "Squat form", "url": "https://youtu.be/dQw4w9WgXcQ"}],
        "chest": [
            {"name": "Bench press", "url": "https://www.youtube.com/watch?v=abcdefghijk"},
            {"name": "Push-ups", "url": "pushups.mp4"},
        ],
        "back": [],
        "shoulders": [],
        "arms": [],
        "core": [],
        "c_Calves": [{"name": "Calf raises", "url": "https://example.com/calves.mp4"}],
        "c_Glutes": [],
    }


@pytest.fixture
def sample_logs():
    return [
        {"id": "1700000000000", "title": "Leg day", "content": "5x5 squat",
         "part": "legs", "ts": 1700000000000},
        {"id": "1700100000000", "title": "Chest", "content": "bench 3x8",
         "part": "chest", "ts": 1700100000000},
        {"id": "1700200000000", "title": "Calves", "content": "raises",
         "part": "c_Calves", "ts": 1700200000000},
    ]


def _write_slot(storage, slot, value):
    """Write a raw slot file the way an earlier release would have."""
    path = storage.path_for(slot)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(str(path), "w", encoding="utf-8") as fh:
        if isinstance(value, str):
            fh.write(value)
        else:
            json.dump(value, fh)


@pytest.fixture
def write_slot():
    """Return a helper that writes raw slot files."""
    return _write_slot


@pytest.fixture
def populated_storage(storage, sample_prefs, sample_videos, sample_logs):
    """Return storage pre-filled with every slot."""
    _write_slot(storage, "prefs", sample_prefs)
    _write_slot(storage, "videos", sample_videos)
    _write_slot(storage, "notes", {"legs": "knees out"})
    _write_slot(storage, "trainText", {"legs": {"all": "Squat\nLunge"}})
    _write_slot(storage, "logs", sample_logs)
    return storage


@pytest.fixture
def store(qapp, populated_storage):
    """Return a loaded WorkoutStore with a short save delay."""
    from workout_app.services.workout_store import WorkoutStore

    s = WorkoutStore(populated_storage, save_delay_ms=100)
    s.load()
    yield s
    s.shutdown()
    s.deleteLater()
