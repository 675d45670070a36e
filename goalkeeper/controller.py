"""Application state controller for GoalKeeper.

Owns the in-memory document and exposes every mutation. Each change that
alters the document is followed by a call to the registered listeners
(persistence is one). Ending a day is two-phase:

1. end_day() scores the current goals and stages a PendingDay
2. commit_day() archives it: credits, history append, goal reset

Nothing from end_day() is retained unless commit_day() runs.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from goalkeeper.exceptions import DayPendingError, NoGoalsError, NoPendingDayError
from goalkeeper.models import AppState, DailyRecord, Goal, PendingDay, snapshot_goals
from goalkeeper.rating import completion_rate
from goalkeeper.scoring import ScoringService

logger = logging.getLogger("goalkeeper.controller")

StateListener = Callable[[AppState], None]
HookRunner = Callable[[str, dict], Any]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class GoalController:
    def __init__(
        self,
        state: AppState,
        scorer: ScoringService,
        listeners: Iterable[StateListener] = (),
        run_hook: Optional[HookRunner] = None,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.state = state
        self.scorer = scorer
        self.listeners = list(listeners)
        self.run_hook = run_hook
        self.now = now
        self._pending: PendingDay | None = None
        self._scoring = False
        self._lock = threading.Lock()

    # ── Observers ─────────────────────────────────────────────

    def add_listener(self, listener: StateListener) -> None:
        self.listeners.append(listener)

    def _changed(self) -> None:
        for listener in self.listeners:
            try:
                listener(self.state)
            except Exception as e:
                logger.error("State listener %r failed: %s", listener, e)

    def _hook(self, hook_point: str, context: dict[str, Any]) -> None:
        if self.run_hook is None:
            return
        try:
            self.run_hook(hook_point, context)
        except Exception as e:
            logger.warning("Hook %s failed: %s", hook_point, e)

    # ── Goals ─────────────────────────────────────────────────

    def add_goal(self, text: str) -> Goal | None:
        """Append a new goal. Blank text is ignored."""
        text = (text or "").strip()
        if not text:
            return None
        goal = Goal(
            id=new_id(),
            text=text,
            completed=False,
            created_at=int(self.now().timestamp() * 1000),
        )
        self.state.current_goals.append(goal)
        self._changed()
        self._hook("on_goal_added", goal.to_dict())
        return goal

    def toggle_goal(self, goal_id: str) -> Goal | None:
        goal = self.state.find_goal(goal_id)
        if goal is None:
            return None
        goal.completed = not goal.completed
        self._changed()
        if goal.completed:
            self._hook("on_goal_completed", goal.to_dict())
        return goal

    def delete_goal(self, goal_id: str) -> bool:
        goal = self.state.find_goal(goal_id)
        if goal is None:
            return False
        self.state.current_goals = [g for g in self.state.current_goals if g.id != goal_id]
        self._changed()
        return True

    # ── Profile ───────────────────────────────────────────────

    def update_profile(self, name: str, bio: str) -> None:
        self.state.user.name = name
        self.state.user.bio = bio
        self._changed()

    def set_avatar(self, image_data: str) -> None:
        """Replace the avatar with encoded image data, e.g. a data URI."""
        self.state.user.avatar_url = image_data
        self._changed()

    # ── Day transition ────────────────────────────────────────

    @property
    def pending(self) -> PendingDay | None:
        return self._pending

    @property
    def busy(self) -> bool:
        """True while a day is being scored or awaits acknowledgment."""
        return self._scoring or self._pending is not None

    def end_day(self) -> PendingDay:
        """Score today's goals and stage the result without touching the document.

        Raises NoGoalsError for an empty goal list and DayPendingError while
        another day is being scored or waits for commit_day()/cancel_day().
        """
        with self._lock:
            goals = self.state.current_goals
            if not goals:
                raise NoGoalsError()
            if self.busy:
                raise DayPendingError()
            snapshot = snapshot_goals(goals)
            self._scoring = True

        pending: PendingDay | None = None
        try:
            feedback = self.scorer.evaluate(snapshot, self.state.user.name)
            record = DailyRecord(
                id=new_id(),
                date=self.now().isoformat(),
                goals=snapshot,
                score=feedback.score,
                summary=feedback.message,
                completion_rate=completion_rate(snapshot),
            )
            pending = PendingDay(record=record, tone=feedback.tone)
        finally:
            with self._lock:
                if pending is not None:
                    self._pending = pending
                self._scoring = False

        logger.info("Day scored %d (%s), awaiting acknowledgment", record.score, feedback.tone)
        self._hook("post_end_day", {**pending.to_dict(), "user": self.state.user.name})
        return pending

    def commit_day(self) -> DailyRecord:
        """Archive the pending day: add credits, append history, reset goals."""
        with self._lock:
            if self._pending is None:
                raise NoPendingDayError()
            record = self._pending.record
            self._pending = None
            self.state.user.credits += record.score
            self.state.history.append(record)
            self.state.current_goals = []
        self._changed()
        logger.info("Day committed: score=%d credits=%d", record.score, self.state.user.credits)
        self._hook("post_commit", {
            "record": record.to_dict(),
            "credits": self.state.user.credits,
            "daysTracked": len(self.state.history),
        })
        return record

    def cancel_day(self) -> bool:
        """Discard the pending day. Returns False if nothing was pending."""
        with self._lock:
            if self._pending is None:
                return False
            self._pending = None
        return True
