"""Shared test fixtures for GoalKeeper tests."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from goalkeeper.controller import GoalController
from goalkeeper.models import AppState, Goal
from goalkeeper.scoring import ScoringService
from goalkeeper.storage import MemoryBlobStore, persister


FIXED_NOW = datetime(2026, 2, 11, 21, 30, tzinfo=timezone.utc)


def make_goals(total: int, completed: int) -> list[Goal]:
    """Build *total* goals, the first *completed* of them done."""
    return [
        Goal(id=f"g{i}", text=f"Goal {i}", completed=i < completed, created_at=1_700_000_000_000 + i)
        for i in range(total)
    ]


class FakeGenerator:
    """Scripted stand-in for the remote generator; records every request."""

    def __init__(self, response=None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with an offline scoring config."""
    root = tmp_path / "workspace"
    (root / "data").mkdir(parents=True)

    config = {
        "timezone": "UTC",
        "scoring": {"provider": "offline", "model": "gemini-2.5-flash", "timeout_seconds": 5},
    }
    (root / "config.yaml").write_text(yaml.dump(config, default_flow_style=False), encoding="utf-8")

    state = {
        "user": {"name": "Ada Lovelace", "bio": "Analytical", "avatarUrl": "", "credits": 120},
        "currentGoals": [
            {"id": "a1", "text": "Write report", "completed": True, "createdAt": 1770800000000},
            {"id": "a2", "text": "Go running", "completed": False, "createdAt": 1770800001000},
        ],
        "history": [
            {
                "id": "r1",
                "date": "2026-02-10T21:00:00+00:00",
                "goals": [{"id": "x1", "text": "Read", "completed": True, "createdAt": 1770700000000}],
                "score": 100,
                "summary": "Great job today!",
                "completionRate": 1.0,
            },
        ],
    }
    (root / "data" / "goalkeeper_data_v1.json").write_text(json.dumps(state, indent=2), encoding="utf-8")

    os.environ["GOALKEEPER_ROOT"] = str(root)
    yield root
    if "GOALKEEPER_ROOT" in os.environ:
        del os.environ["GOALKEEPER_ROOT"]


@pytest.fixture
def store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator(response='{"score": 72, "message": "Solid effort.", "tone": "warning"}')


@pytest.fixture
def controller(store: MemoryBlobStore, generator: FakeGenerator) -> GoalController:
    """Controller over an empty document, persisting into *store*."""
    return GoalController(
        state=AppState(),
        scorer=ScoringService(generator),
        listeners=[persister(store)],
        now=lambda: FIXED_NOW,
    )
