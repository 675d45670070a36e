#!/usr/bin/env python3
"""GoalKeeper TUI: interactive terminal goal tracker powered by Textual."""

from __future__ import annotations

import sys

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.logging import TextualHandler
from textual.screen import ModalScreen, Screen
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Sparkline,
    Static,
)

from goalkeeper import (
    EMPTY_TREND,
    DayPendingError,
    GoalController,
    NoGoalsError,
    PendingDay,
    configure_logging,
    open_controller,
    summarize_history,
    trend_points,
    trend_scores,
    workspace_root,
)


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#hero {
    height: auto;
    padding: 1 2;
    background: $primary-background;
    color: $text;
    text-style: bold;
}

#new-goal {
    margin: 1 1 0 1;
}

#goal-list {
    height: 1fr;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

.goal-row {
    height: auto;
}

.goal-row Checkbox {
    width: 1fr;
}

.goal-row Button {
    min-width: 5;
    width: 5;
}

.goal-done Checkbox {
    text-style: strike;
    opacity: 60%;
}

#empty-goals {
    color: $text-muted;
    padding: 1 2;
}

#status-bar {
    dock: bottom;
    height: 1;
    background: $primary-background;
    color: $text-muted;
    padding: 0 2;
}

ResultScreen, ProfileScreen {
    align: center middle;
}

#result-box, #profile-box {
    width: 60;
    height: auto;
    padding: 1 2;
    border: thick $primary;
    background: $surface;
}

#result-box.danger { border: thick $error; }
#result-box.warning { border: thick $warning; }
#result-box.success { border: thick $success; }

#result-score {
    text-style: bold;
    content-align: center middle;
    width: 100%;
}

#result-buttons, #profile-buttons {
    height: auto;
    margin: 1 0 0 0;
}

#trend {
    height: 4;
    margin: 0 2;
}

#trend-empty {
    color: $text-muted;
    padding: 1 2;
}

#history-info {
    height: auto;
    padding: 1 2;
    margin: 0 0 1 0;
    border: tall $primary-background-darken-2;
}

#history-table {
    height: 1fr;
}
"""


# ── Custom widgets ─────────────────────────────────────────────


class GoalRow(Horizontal):
    """A single goal: checkbox + delete button."""

    def __init__(self, goal_id: str, text: str, completed: bool, **kwargs) -> None:
        super().__init__(**kwargs)
        self.goal_id = goal_id
        self.goal_text = text
        self.completed = completed

    def compose(self) -> ComposeResult:
        yield Checkbox(self.goal_text, value=self.completed, id=f"cb-{self.goal_id}")
        yield Button("✕", id=f"del-{self.goal_id}", variant="error")

    def on_mount(self) -> None:
        self.add_class("goal-row")
        if self.completed:
            self.add_class("goal-done")


# ── Screens ────────────────────────────────────────────────────


class ResultScreen(ModalScreen[bool]):
    """End-of-day result. Dismisses with True to archive the day."""

    BINDINGS = [
        Binding("escape", "discard", "Discard"),
    ]

    def __init__(self, pending: PendingDay) -> None:
        super().__init__()
        self.pending = pending

    def compose(self) -> ComposeResult:
        record = self.pending.record
        with Vertical(id="result-box", classes=self.pending.tone):
            yield Static(f"Score: {record.score}", id="result-score")
            yield Static(f'"{record.summary}"')
            if self.pending.tone == "danger":
                yield Label("DANGER: Performance Alert")
            yield Static(f"{record.completed_count} / {len(record.goals)} goals completed")
            with Horizontal(id="result-buttons"):
                yield Button("Accept & Continue", id="accept", variant="primary")
                yield Button("Discard", id="discard")

    @on(Button.Pressed, "#accept")
    def action_accept(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#discard")
    def action_discard(self) -> None:
        self.dismiss(False)


class ProfileScreen(ModalScreen[bool]):
    """Edit name and bio."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, controller: GoalController) -> None:
        super().__init__()
        self.controller = controller

    def compose(self) -> ComposeResult:
        user = self.controller.state.user
        summary = summarize_history(self.controller.state.history)
        with Vertical(id="profile-box"):
            yield Label("Full Name", classes="section-title")
            yield Input(value=user.name, id="profile-name")
            yield Label("Bio / Motto", classes="section-title")
            yield Input(value=user.bio, id="profile-bio")
            yield Static(
                f"Days tracked: {summary.days_tracked}   Avg score: {summary.average_score}   "
                f"Credits: {user.credits}"
            )
            with Horizontal(id="profile-buttons"):
                yield Button("Save Changes", id="save", variant="primary")
                yield Button("Cancel", id="cancel")

    @on(Button.Pressed, "#save")
    def _save(self) -> None:
        name = self.query_one("#profile-name", Input).value
        bio = self.query_one("#profile-bio", Input).value
        self.controller.update_profile(name, bio)
        self.dismiss(True)

    @on(Button.Pressed, "#cancel")
    def action_cancel(self) -> None:
        self.dismiss(False)


class HistoryScreen(Screen):
    """History view: trend sparkline + archived days table."""

    BINDINGS = [Binding("escape,h", "app.pop_screen", "Back")]

    def __init__(self, controller: GoalController) -> None:
        super().__init__()
        self.controller = controller

    def compose(self) -> ComposeResult:
        scores = trend_scores(trend_points(self.controller.state.history))
        yield Header()
        yield Label("Performance Trend (Last 7 Days)", classes="section-title")
        if scores:
            yield Sparkline(scores, summary_function=max, id="trend")
        else:
            yield Static(EMPTY_TREND, id="trend-empty")
        yield Static(id="history-info")
        yield DataTable(id="history-table")
        yield Footer()

    def on_mount(self) -> None:
        history = self.controller.state.history
        summary = summarize_history(history)
        self.query_one("#history-info", Static).update(
            f"Days tracked: {summary.days_tracked}   Avg score: {summary.average_score}   "
            f"Best: {summary.best_score}   7-day avg: {summary.rolling_7day_avg:.1f}"
        )

        table: DataTable = self.query_one("#history-table", DataTable)
        table.add_columns("Date", "Score", "Goals", "Completion", "Summary")
        for r in reversed(history):
            table.add_row(
                r.date[:10],
                f"{r.score}/100",
                f"{r.completed_count} / {len(r.goals)}",
                f"{round(r.completion_rate * 100)}%",
                r.summary,
            )


# ── Main app ───────────────────────────────────────────────────


class GoalKeeperApp(App):
    """GoalKeeper: daily goals, end-of-day score, history."""

    TITLE = "GoalKeeper"
    CSS = CSS
    AUTO_FOCUS = "#new-goal"

    BINDINGS = [
        Binding("f5", "end_day", "End Day"),
        Binding("f2", "show_history", "History"),
        Binding("f3", "edit_profile", "Profile"),
        Binding("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, controller: GoalController) -> None:
        super().__init__()
        self.controller = controller

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="hero")
        yield Input(placeholder="What is your main focus today?", id="new-goal")
        yield VerticalScroll(id="goal-list")
        yield Static(id="status-bar")
        yield Footer()

    async def on_mount(self) -> None:
        await self._refresh_goals()

    async def _refresh_goals(self) -> None:
        """(Re)build the goal list and header from the controller state."""
        state = self.controller.state
        self.query_one("#hero", Static).update(
            f"Hello, {state.user.first_name}! Ready to crush your goals today?"
        )
        self._update_status()

        goal_list = self.query_one("#goal-list", VerticalScroll)
        await goal_list.remove_children()
        if not state.current_goals:
            await goal_list.mount(Static("No goals set for today yet.", id="empty-goals"))
            return
        await goal_list.mount_all(
            GoalRow(goal_id=g.id, text=g.text, completed=g.completed) for g in state.current_goals
        )

    def _update_status(self, note: str = "") -> None:
        state = self.controller.state
        done = sum(1 for g in state.current_goals if g.completed)
        parts = [f"Credits: {state.user.credits}", f"Today: {done}/{len(state.current_goals)}"]
        if note:
            parts.append(note)
        self.query_one("#status-bar", Static).update("   ".join(parts))

    # ── Goal intents ───────────────────────────────────────────

    @on(Input.Submitted, "#new-goal")
    async def _on_new_goal(self, event: Input.Submitted) -> None:
        if self.controller.add_goal(event.value) is None:
            return
        event.input.value = ""
        await self._refresh_goals()

    @on(Checkbox.Changed)
    def _on_goal_toggle(self, event: Checkbox.Changed) -> None:
        goal_id = (event.checkbox.id or "").removeprefix("cb-")
        goal = self.controller.state.find_goal(goal_id)
        if goal is None or goal.completed == event.value:
            return
        self.controller.toggle_goal(goal_id)
        parent = event.checkbox.parent
        if isinstance(parent, GoalRow):
            parent.set_class(event.value, "goal-done")
        self._update_status()

    @on(Button.Pressed, ".goal-row Button")
    async def _on_goal_delete(self, event: Button.Pressed) -> None:
        goal_id = (event.button.id or "").removeprefix("del-")
        if self.controller.delete_goal(goal_id):
            await self._refresh_goals()

    # ── End of day ─────────────────────────────────────────────

    def action_end_day(self) -> None:
        if not self.controller.state.current_goals:
            self.notify("Add some goals before ending the day!", severity="warning")
            return
        if self.controller.busy:
            self.notify("A day result is already pending.", severity="warning")
            return
        self._update_status("Evaluating performance…")
        self._do_end_day()

    @work(thread=True, exclusive=True)
    def _do_end_day(self) -> None:
        """Score the day in a worker thread; the scoring call may block on the network."""
        try:
            pending = self.controller.end_day()
        except (NoGoalsError, DayPendingError) as e:
            self.call_from_thread(self.notify, str(e), severity="warning")
            self.call_from_thread(self._update_status)
            return
        self.call_from_thread(self._update_status, "Result pending")
        self.call_from_thread(self.push_screen, ResultScreen(pending), self._on_result)

    async def _on_result(self, accepted: bool | None) -> None:
        if accepted:
            record = self.controller.commit_day()
            self.notify(
                f"Day archived with score {record.score}. Credits: {self.controller.state.user.credits}",
                title="Day Committed",
            )
        else:
            self.controller.cancel_day()
            self.notify("Result discarded; today's goals are kept.", severity="information")
        await self._refresh_goals()

    # ── Views ──────────────────────────────────────────────────

    def action_show_history(self) -> None:
        self.push_screen(HistoryScreen(self.controller))

    def action_edit_profile(self) -> None:
        self.push_screen(ProfileScreen(self.controller), self._on_profile_closed)

    async def _on_profile_closed(self, saved: bool | None) -> None:
        if saved:
            self.notify("Profile updated!")
            await self._refresh_goals()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    configure_logging(handlers=[TextualHandler()])
    root = workspace_root()
    try:
        controller = open_controller(root)
    except OSError as e:
        print(f"Cannot open workspace {root}: {e}")
        print("Set GOALKEEPER_ROOT to a writable directory.")
        sys.exit(1)

    GoalKeeperApp(controller).run()


if __name__ == "__main__":
    main()
