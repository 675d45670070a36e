"""Scoring service adapter for GoalKeeper.

Builds a structured request from the day's goals, hands it to an injectable
remote generator and validates the structured response. Every failure path
(transport error, timeout, empty or malformed response, schema mismatch)
resolves to the deterministic local fallback, so evaluate() never raises.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from goalkeeper.models import TONES, Feedback, Goal
from goalkeeper.rating import fallback_feedback

logger = logging.getLogger("goalkeeper.scoring")


@dataclass
class ScoringRequest:
    user_display_name: str = ""
    total_goals: int = 0
    completed_goal_texts: list[str] = field(default_factory=list)
    missed_goal_texts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "userDisplayName": self.user_display_name,
            "totalGoals": self.total_goals,
            "completedGoalTexts": self.completed_goal_texts,
            "missedGoalTexts": self.missed_goal_texts,
        }

    def to_prompt(self) -> str:
        return "\n".join([
            f"Student Name: {self.user_display_name}",
            f"Total Goals Set: {self.total_goals}",
            f"Completed Goals: {', '.join(self.completed_goal_texts)}",
            f"Missed Goals: {', '.join(self.missed_goal_texts)}",
            "",
            "Task:",
            "1. Calculate a score out of 100 based on completion and difficulty "
            "(assume average difficulty).",
            "2. Provide a short feedback message (max 50 words).",
            '3. If the score is low (below 50), the tone should be strict and warning ("danger"). '
            'If medium (50-80), encouraging ("warning"). If high (80+), congratulatory ("success").',
            "",
            'Return JSON only: {"score": number, "message": string, '
            '"tone": "danger" | "warning" | "success"}',
        ])


GeneratorResponse = Union[str, dict, None]
ScoreGenerator = Callable[[ScoringRequest], GeneratorResponse]


class InvalidResponse(ValueError):
    """The remote response does not match the feedback contract."""


def build_request(goals: list[Goal], user_name: str) -> ScoringRequest:
    return ScoringRequest(
        user_display_name=user_name,
        total_goals=len(goals),
        completed_goal_texts=[g.text for g in goals if g.completed],
        missed_goal_texts=[g.text for g in goals if not g.completed],
    )


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_feedback(response: GeneratorResponse) -> Feedback:
    """Validate a remote response against the feedback contract.

    Accepts a JSON string (optionally fenced) or an already decoded dict.
    Raises InvalidResponse on anything else.
    """
    if response is None:
        raise InvalidResponse("empty response")
    if isinstance(response, str):
        text = _strip_fences(response)
        if not text:
            raise InvalidResponse("empty response")
        try:
            response = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidResponse(f"invalid JSON: {e}") from e
    if not isinstance(response, dict):
        raise InvalidResponse("response is not an object")

    score = response.get("score")
    message = response.get("message")
    tone = response.get("tone")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise InvalidResponse(f"score is not numeric: {score!r}")
    if isinstance(score, float):
        if not math.isfinite(score):
            raise InvalidResponse(f"score is not finite: {score!r}")
        score = round(score)
    if not isinstance(message, str):
        raise InvalidResponse("message is not a string")
    if tone not in TONES:
        raise InvalidResponse(f"unknown tone: {tone!r}")
    return Feedback(score=int(score), message=message, tone=tone)


class ScoringService:
    """End-of-day evaluator with a deterministic fallback.

    With no generator configured every evaluation uses the fallback.
    """

    def __init__(self, generator: Optional[ScoreGenerator] = None) -> None:
        self.generator = generator

    def evaluate(self, goals: list[Goal], user_name: str) -> Feedback:
        if self.generator is None:
            logger.info("No remote scorer configured, using fallback")
            return fallback_feedback(goals)

        request = build_request(goals, user_name)
        try:
            feedback = parse_feedback(self.generator(request))
        except Exception as e:
            logger.warning("Remote scoring failed, using fallback: %s", e)
            return fallback_feedback(goals)

        logger.info("Remote score %s (%s)", feedback.score, feedback.tone)
        return feedback
