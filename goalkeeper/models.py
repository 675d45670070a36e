"""Typed dataclasses for the GoalKeeper data model.

All models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing or malformed keys use defaults.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any


TONES = ("danger", "warning", "success")

DEFAULT_USER_NAME = "Student User"
DEFAULT_USER_BIO = "Aspiring Achiever"


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_str(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


def _as_bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _fresh_id() -> str:
    return uuid.uuid4().hex


# ── Goals ─────────────────────────────────────────────────────


@dataclass
class Goal:
    id: str = ""
    text: str = ""
    completed: bool = False
    created_at: int = 0  # epoch milliseconds

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Goal:
        return cls(
            id=_as_str(d.get("id"), ""),
            text=_as_str(d.get("text"), ""),
            completed=_as_bool(d.get("completed"), False),
            created_at=_as_int(d.get("createdAt"), 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "createdAt": self.created_at,
        }


def snapshot_goals(goals: list[Goal]) -> list[Goal]:
    """Copy a goal list so later toggles never reach the copy."""
    return [replace(g) for g in goals]


def _goals_from_list(raw: Any) -> list[Goal]:
    """Goals without text are dropped; missing or repeated ids are replaced."""
    if not isinstance(raw, list):
        return []
    goals: list[Goal] = []
    seen: set[str] = set()
    for item in raw:
        if not isinstance(item, dict):
            continue
        goal = Goal.from_dict(item)
        if not goal.text.strip():
            continue
        if not goal.id or goal.id in seen:
            goal.id = _fresh_id()
        seen.add(goal.id)
        goals.append(goal)
    return goals


# ── Profile ───────────────────────────────────────────────────


@dataclass
class UserProfile:
    name: str = DEFAULT_USER_NAME
    bio: str = DEFAULT_USER_BIO
    avatar_url: str = ""  # empty means "use default"
    credits: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> UserProfile:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            name=_as_str(d.get("name"), DEFAULT_USER_NAME),
            bio=_as_str(d.get("bio"), DEFAULT_USER_BIO),
            avatar_url=_as_str(d.get("avatarUrl"), ""),
            credits=_as_int(d.get("credits"), 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "bio": self.bio,
            "avatarUrl": self.avatar_url,
            "credits": self.credits,
        }

    @property
    def first_name(self) -> str:
        parts = self.name.split(" ")
        return parts[0] if parts else ""

    def avatar_src(self) -> str:
        """Avatar URL to display, falling back to a seeded placeholder."""
        if self.avatar_url:
            return self.avatar_url
        return f"https://picsum.photos/seed/{self.name}/200"


# ── History ───────────────────────────────────────────────────


@dataclass
class DailyRecord:
    id: str = ""
    date: str = ""  # ISO timestamp
    goals: list[Goal] = field(default_factory=list)
    score: int = 0
    summary: str = ""
    completion_rate: float = 0.0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DailyRecord:
        return cls(
            id=_as_str(d.get("id"), "") or _fresh_id(),
            date=_as_str(d.get("date"), ""),
            goals=_goals_from_list(d.get("goals")),
            score=_as_int(d.get("score"), 0),
            summary=_as_str(d.get("summary"), ""),
            completion_rate=_as_float(d.get("completionRate"), 0.0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "goals": [g.to_dict() for g in self.goals],
            "score": self.score,
            "summary": self.summary,
            "completionRate": self.completion_rate,
        }

    @property
    def completed_count(self) -> int:
        return sum(1 for g in self.goals if g.completed)


# ── Document ──────────────────────────────────────────────────


@dataclass
class AppState:
    user: UserProfile = field(default_factory=UserProfile)
    current_goals: list[Goal] = field(default_factory=list)
    history: list[DailyRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AppState:
        """Build a document, keeping each well-typed stored field over its default."""
        if not d or not isinstance(d, dict):
            return cls()
        raw_history = d.get("history")
        history = []
        if isinstance(raw_history, list):
            history = [DailyRecord.from_dict(r) for r in raw_history if isinstance(r, dict)]
        return cls(
            user=UserProfile.from_dict(d.get("user") or {}),
            current_goals=_goals_from_list(d.get("currentGoals")),
            history=history,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user.to_dict(),
            "currentGoals": [g.to_dict() for g in self.current_goals],
            "history": [r.to_dict() for r in self.history],
        }

    def find_goal(self, goal_id: str) -> Goal | None:
        for g in self.current_goals:
            if g.id == goal_id:
                return g
        return None


# ── Scoring ───────────────────────────────────────────────────


@dataclass
class Feedback:
    score: int = 0
    message: str = ""
    tone: str = "warning"  # danger, warning, success

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "message": self.message, "tone": self.tone}


@dataclass
class PendingDay:
    """A scored day waiting for the user to accept it."""

    record: DailyRecord
    tone: str = "warning"

    def to_dict(self) -> dict[str, Any]:
        return {"record": self.record.to_dict(), "tone": self.tone}


# ── Config ────────────────────────────────────────────────────


@dataclass
class ScoringConfig:
    provider: str = "gemini"  # gemini, offline
    model: str = "gemini-2.5-flash"
    timeout_seconds: float = 30.0
    api_key_env: str = "GEMINI_API_KEY"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ScoringConfig:
        if not d or not isinstance(d, dict):
            return cls()
        provider = str(d.get("provider", "gemini")).strip().lower() or "gemini"
        return cls(
            provider=provider,
            model=str(d.get("model", "gemini-2.5-flash")),
            timeout_seconds=_as_float(d.get("timeout_seconds"), 30.0),
            api_key_env=str(d.get("api_key_env", "GEMINI_API_KEY")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "timeout_seconds": self.timeout_seconds,
            "api_key_env": self.api_key_env,
        }


@dataclass
class Config:
    timezone: str = "UTC"
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Config:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            scoring=ScoringConfig.from_dict(d.get("scoring") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"timezone": self.timezone, "scoring": self.scoring.to_dict()}
