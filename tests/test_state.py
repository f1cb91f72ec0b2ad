"""
Tests for workout_engine/state.py -- the state container and the
per-collection merges used by load and restore.
"""

import pytest

from workout_engine.state import (
    TrackerState,
    apply_slot,
    merge_prefs,
    merge_text,
    merge_videos,
    slot_type_ok,
)


class TestTrackerState:
    def test_defaults(self):
        state = TrackerState()
        assert state.prefs == {"interval": 60, "part": "legs", "customParts": []}
        assert list(state.videos) == ["legs", "chest", "back", "shoulders", "arms", "core"]
        assert state.active_part == "legs"
        assert state.logs == []

    def test_to_slots_is_a_deep_copy(self):
        state = TrackerState()
        slots = state.to_slots()
        slots["videos"]["legs"].append({"name": "a", "url": "b"})
        assert state.videos["legs"] == []
        assert set(slots) == {"prefs", "videos", "notes", "trainText", "logs"}

    def test_reset(self):
        state = TrackerState()
        state.notes = {"legs": "x"}
        state.logs = [{"id": "1", "ts": 1}]
        state.reset()
        assert state == TrackerState()


class TestMerges:
    def test_prefs_merge_is_shallow(self):
        merged = merge_prefs({"interval": 90, "part": "legs", "customParts": []}, {"part": "chest"})
        assert merged == {"interval": 90, "part": "chest", "customParts": []}

    def test_prefs_merge_resets_invalid_field_only(self):
        merged = merge_prefs({"interval": 90, "part": "legs", "customParts": ["Calves"]},
                             {"interval": -5})
        assert merged["interval"] == 60
        assert merged["customParts"] == ["Calves"]

    def test_videos_merge_replaces_per_part(self):
        current = {"legs": [{"name": "a", "url": "a"}], "chest": [{"name": "b", "url": "b"}]}
        merged = merge_videos(current, {"legs": [{"name": "c", "url": "c"}, "junk"], "back": "nope"})
        assert merged["legs"] == [{"name": "c", "url": "c"}]
        assert merged["chest"] == [{"name": "b", "url": "b"}]
        assert "back" not in merged

    def test_text_merge(self):
        assert merge_text({"legs": "a", "core": "b"}, {"legs": "c"}) == {"legs": "c", "core": "b"}


class TestApplySlot:
    def test_logs_replace_and_repair(self):
        state = TrackerState()
        state.logs = [{"id": "A", "ts": 1}, {"id": "B", "ts": 2}]
        apply_slot(state, "logs", [{"id": "C", "ts": 3}])
        assert state.logs == [{"id": "C", "ts": 3}]

    def test_unknown_slot(self):
        with pytest.raises(KeyError):
            apply_slot(TrackerState(), "settings", {})

    @pytest.mark.parametrize("slot,value,ok", [
        ("prefs", {}, True),
        ("prefs", [], False),
        ("trainText", {}, True),
        ("logs", [], True),
        ("logs", {}, False),
    ])
    def test_slot_type_ok(self, slot, value, ok):
        assert slot_type_ok(slot, value) is ok
