"""History analytics for GoalKeeper.

Summarizes archived days into the numbers shown on the profile and
history views: days tracked, average/best score, rolling average and
average completion rate.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from goalkeeper.models import DailyRecord


@dataclass
class HistorySummary:
    days_tracked: int = 0
    average_score: int = 0
    best_score: int = 0
    rolling_7day_avg: float = 0.0
    average_completion_rate: float = 0.0
    total_goals: int = 0
    total_completed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "daysTracked": self.days_tracked,
            "averageScore": self.average_score,
            "bestScore": self.best_score,
            "rolling7dayAvg": round(self.rolling_7day_avg, 1),
            "averageCompletionRate": round(self.average_completion_rate, 3),
            "totalGoals": self.total_goals,
            "totalCompleted": self.total_completed,
        }


def rolling_average(scores: list[int], window: int) -> float:
    """Mean of the last *window* scores (0.0 when empty)."""
    recent = scores[-window:]
    if not recent:
        return 0.0
    return sum(recent) / len(recent)


def summarize_history(history: list[DailyRecord]) -> HistorySummary:
    if not history:
        return HistorySummary()

    scores = [r.score for r in history]
    return HistorySummary(
        days_tracked=len(history),
        average_score=int(math.floor(sum(scores) / len(scores) + 0.5)),
        best_score=max(scores),
        rolling_7day_avg=rolling_average(scores, 7),
        average_completion_rate=sum(r.completion_rate for r in history) / len(history),
        total_goals=sum(len(r.goals) for r in history),
        total_completed=sum(r.completed_count for r in history),
    )
