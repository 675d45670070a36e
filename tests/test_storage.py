"""Tests for goalkeeper/storage.py: default merging, corruption tolerance, best-effort saves."""

import json

from goalkeeper.models import AppState, DailyRecord, Goal, UserProfile
from goalkeeper.storage import (
    STORAGE_KEY,
    FileBlobStore,
    MemoryBlobStore,
    load_state,
    save_state,
)


class BrokenStore:
    def get(self, key):
        raise OSError("disk unavailable")

    def put(self, key, value):
        raise OSError("disk full")


def _sample_state() -> AppState:
    goals = [
        Goal(id="a", text="Write", completed=True, created_at=1770800000000),
        Goal(id="b", text="Run", completed=False, created_at=1770800001000),
    ]
    record = DailyRecord(
        id="r1",
        date="2026-02-10T21:00:00+00:00",
        goals=[Goal(id="x", text="Read", completed=False, created_at=1)],
        score=33,
        summary="You missed too many goals. You need to focus!",
        completion_rate=2 / 3,
    )
    return AppState(
        user=UserProfile(name="Ada", bio="Analytical", avatar_url="data:image/png;base64,AAAA", credits=133),
        current_goals=goals,
        history=[record],
    )


def test_load_missing_returns_defaults():
    state = load_state(MemoryBlobStore())
    assert state == AppState()
    assert state.user.name == "Student User"
    assert state.user.bio == "Aspiring Achiever"
    assert state.user.avatar_url == ""
    assert state.user.credits == 0
    assert state.current_goals == []
    assert state.history == []


def test_load_corrupt_returns_defaults(caplog):
    store = MemoryBlobStore({STORAGE_KEY: "{not json"})
    with caplog.at_level("WARNING", logger="goalkeeper.storage"):
        state = load_state(store)
    assert state == AppState()
    assert "not valid JSON" in caplog.text


def test_load_non_object_returns_defaults():
    assert load_state(MemoryBlobStore({STORAGE_KEY: "[1, 2]"})) == AppState()


def test_load_partial_user_merges_defaults():
    store = MemoryBlobStore({STORAGE_KEY: json.dumps({"user": {"name": "X"}})})
    state = load_state(store)
    assert state.user.name == "X"
    assert state.user.bio == "Aspiring Achiever"
    assert state.user.avatar_url == ""
    assert state.user.credits == 0
    assert state.current_goals == []
    assert state.history == []


def test_load_ignores_malformed_fields():
    blob = {
        "user": {"name": "Y", "credits": "lots"},
        "currentGoals": "nope",
        "history": [{"id": "r", "score": 50, "completionRate": 0.5}, 42],
        "extra": {"ignored": True},
    }
    state = load_state(MemoryBlobStore({STORAGE_KEY: json.dumps(blob)}))
    assert state.user.name == "Y"
    assert state.user.credits == 0
    assert state.current_goals == []
    assert len(state.history) == 1
    assert state.history[0].score == 50


def test_load_repairs_malformed_goals():
    blob = {
        "currentGoals": [
            {"id": None, "text": "Write", "completed": "false"},
            {"id": None, "text": "Run", "completed": True},
            {"id": "a", "text": "Read"},
            {"id": "a", "text": "Cook"},
            {"id": "b", "text": None},
            {"id": "c", "text": "   "},
        ],
    }
    state = load_state(MemoryBlobStore({STORAGE_KEY: json.dumps(blob)}))
    goals = state.current_goals
    assert [g.text for g in goals] == ["Write", "Run", "Read", "Cook"]
    assert [g.completed for g in goals] == [False, True, False, False]
    assert goals[2].id == "a"
    ids = [g.id for g in goals]
    assert len(set(ids)) == 4
    assert "None" not in ids
    assert all(ids)


def test_load_unreadable_store_returns_defaults():
    assert load_state(BrokenStore()) == AppState()


def test_round_trip_memory():
    store = MemoryBlobStore()
    state = _sample_state()
    assert save_state(store, state) is True
    assert load_state(store) == state


def test_round_trip_file(tmp_path):
    store = FileBlobStore(tmp_path / "data")
    state = _sample_state()
    assert save_state(store, state) is True
    assert (tmp_path / "data" / f"{STORAGE_KEY}.json").exists()
    assert load_state(store) == state


def test_save_overwrites(tmp_path):
    store = FileBlobStore(tmp_path)
    save_state(store, _sample_state())
    save_state(store, AppState())
    assert load_state(store) == AppState()


def test_save_failure_is_logged_not_raised(caplog):
    with caplog.at_level("ERROR", logger="goalkeeper.storage"):
        ok = save_state(BrokenStore(), _sample_state())
    assert ok is False
    assert "Failed to save state" in caplog.text


def test_file_store_missing_key(tmp_path):
    assert FileBlobStore(tmp_path).get("nothing") is None
