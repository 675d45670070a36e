"""Completion rate, fallback score and tone computation for GoalKeeper."""

from __future__ import annotations

import math

from goalkeeper.models import Feedback, Goal

DANGER_BELOW = 50
SUCCESS_FROM = 80

FALLBACK_MESSAGES = {
    "danger": "You missed too many goals. You need to focus!",
    "success": "Great job today!",
    "warning": "Daily summary saved.",
}


def completion_rate(goals: list[Goal]) -> float:
    """Fraction of goals completed; 0.0 for an empty list."""
    if not goals:
        return 0.0
    return sum(1 for g in goals if g.completed) / len(goals)


def fallback_score(completed_count: int, total_count: int) -> int:
    """Percentage of goals completed, rounded half-up. 0 when there are no goals."""
    if total_count <= 0:
        return 0
    return int(math.floor(100 * completed_count / total_count + 0.5))


def tone_for_score(score: int) -> str:
    """Map a score to a tone: danger below 50, success from 80, warning otherwise."""
    if score < DANGER_BELOW:
        return "danger"
    if score >= SUCCESS_FROM:
        return "success"
    return "warning"


def fallback_feedback(goals: list[Goal]) -> Feedback:
    """Deterministic local feedback used when the remote scorer is unavailable."""
    completed = sum(1 for g in goals if g.completed)
    score = fallback_score(completed, len(goals))
    tone = tone_for_score(score)
    return Feedback(score=score, message=FALLBACK_MESSAGES[tone], tone=tone)
