from __future__ import annotations

import base64
import threading
from datetime import datetime
from typing import Any
from urllib.parse import quote

from fastapi import Body, Depends, FastAPI, File, Form, HTTPException, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse

from goalkeeper import (
    DayPendingError,
    GoalController,
    NoGoalsError,
    NoPendingDayError,
    configure_logging,
    open_controller,
    render_trend_html,
    summarize_history,
    trend_points,
)
from goalkeeper.rating import tone_for_score

ASSET_V = "20261019-01"

configure_logging()

app = FastAPI(title="GoalKeeper", version="0.1.0")

_controller: GoalController | None = None
_controller_lock = threading.Lock()


def get_controller() -> GoalController:
    global _controller
    with _controller_lock:
        if _controller is None:
            _controller = open_controller()
    return _controller


def _payload_str(payload: dict[str, Any], key: str, default: str = "") -> str:
    """String field from a JSON body; missing or non-string values give *default*."""
    value = payload.get(key)
    return value if isinstance(value, str) else default


# ── HTML helpers ──────────────────────────────────────────────

def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _redirect(path: str, msg: str = "") -> RedirectResponse:
    url = f"{path}?msg={quote(msg)}" if msg else path
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def _pretty_date(iso: str) -> str:
    try:
        return datetime.fromisoformat(iso).strftime("%A, %B %-d, %Y")
    except (TypeError, ValueError):
        return iso


TONE_COLORS = {"danger": "#dc2626", "warning": "#d97706", "success": "#16a34a"}

CSS = """
body { margin:0; font-family: system-ui, sans-serif; background:#f9fafb; color:#111827; }
.container { max-width: 720px; margin: 0 auto; padding: 16px; }
header.top { display:flex; justify-content:space-between; align-items:center; padding:12px 0; }
.pill { background:#eef2ff; color:#4338ca; border-radius:999px; padding:4px 12px; font-weight:600; }
nav a { margin-right:12px; color:#4f46e5; text-decoration:none; font-weight:600; }
nav a.active { text-decoration: underline; }
.card { background:#fff; border:1px solid #f3f4f6; border-radius:12px; padding:16px; margin:12px 0; }
.hero { background: linear-gradient(90deg,#4f46e5,#7c3aed); color:#fff; }
.goal { display:flex; align-items:center; gap:8px; padding:8px 0; border-bottom:1px solid #f3f4f6; }
.goal .text { flex:1; }
.goal.done .text { text-decoration: line-through; color:#9ca3af; }
.muted { color:#6b7280; } .small { font-size: 13px; }
.flash { background:#fef3c7; border-radius:8px; padding:8px 12px; }
.result { border-top: 8px solid; text-align:center; }
.trend-empty { padding:48px; text-align:center; color:#9ca3af; border:1px dashed #d1d5db; border-radius:8px; }
button { cursor:pointer; }
"""


def _page(ctrl: GoalController, view: str, body: str, msg: str = "") -> HTMLResponse:
    user = ctrl.state.user
    nav = "".join(
        f'<a href="{href}" class="{"active" if view == name else ""}">{label}</a>'
        for name, href, label in (("dashboard", "/", "Goals"), ("history", "/history", "History"),
                                  ("profile", "/profile", "Profile"))
    )
    flash = f'<div class="flash">{_escape(msg)}</div>' if msg else ""
    html = f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>GoalKeeper</title>
  <style>{CSS}</style>
</head>
<body>
  <div class="container">
    <header class="top">
      <h1>GoalKeeper</h1>
      <div class="pill">Credits <b>{user.credits}</b></div>
    </header>
    <nav>{nav}</nav>
    {flash}
    {body}
    <footer class="muted small">v{ASSET_V}</footer>
  </div>
</body>
</html>"""
    return HTMLResponse(html)


def _pending_panel(ctrl: GoalController) -> str:
    pending = ctrl.pending
    if pending is None:
        return ""
    color = TONE_COLORS.get(pending.tone, TONE_COLORS["warning"])
    alert = ""
    if pending.tone == "danger":
        alert = f'<p style="color:{color}; font-weight:600">DANGER: Performance Alert</p>'
    return f"""
    <section class="card result" style="border-color:{color}">
      <h2>Score: {pending.record.score}</h2>
      <p><i>"{_escape(pending.record.summary)}"</i></p>
      {alert}
      <form method="post" action="/commit_day" style="display:inline"><button type="submit">Accept &amp; Continue</button></form>
      <form method="post" action="/cancel_day" style="display:inline"><button type="submit">Discard</button></form>
    </section>"""


# ── HTML views ────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/", response_class=HTMLResponse)
def index(msg: str = "", ctrl: GoalController = Depends(get_controller)) -> HTMLResponse:
    state = ctrl.state
    rows = []
    for g in state.current_goals:
        rows.append(f"""
        <div class="goal {'done' if g.completed else ''}">
          <form method="post" action="/goals/{_escape(g.id)}/toggle"><button type="submit">{'&#10003;' if g.completed else '&#9675;'}</button></form>
          <span class="text">{_escape(g.text)}</span>
          <form method="post" action="/goals/{_escape(g.id)}/delete"><button type="submit" title="Delete">&#10005;</button></form>
        </div>""")
    goals_html = "".join(rows) if rows else '<p class="muted">No goals set for today yet.</p>'

    end_day = ""
    if state.current_goals and ctrl.pending is None:
        end_day = '<form method="post" action="/end_day"><button type="submit">End Day &amp; Get Results</button></form>'

    body = f"""
    {_pending_panel(ctrl)}
    <section class="card hero">
      <h2>Hello, {_escape(state.user.first_name)}!</h2>
      <div>Ready to crush your goals today?</div>
    </section>
    <section class="card">
      <form method="post" action="/goals">
        <input name="text" placeholder="What is your main focus today?" style="width:80%" />
        <button type="submit">Add</button>
      </form>
      {goals_html}
      <div style="margin-top:12px">{end_day}</div>
    </section>"""
    return _page(ctrl, "dashboard", body, msg)


@app.get("/history", response_class=HTMLResponse)
def history_view(msg: str = "", ctrl: GoalController = Depends(get_controller)) -> HTMLResponse:
    history = ctrl.state.history
    cards = []
    for r in reversed(history):
        color = TONE_COLORS[tone_for_score(r.score)]
        cards.append(f"""
        <div class="card">
          <div class="muted small">{_escape(_pretty_date(r.date))}</div>
          <div style="color:{color}; font-weight:700">Score: {r.score}/100</div>
          <p><i>"{_escape(r.summary)}"</i></p>
          <div class="muted small">{r.completed_count} / {len(r.goals)} Goals &middot; {round(r.completion_rate * 100)}% Completion</div>
        </div>""")
    records = "".join(cards) if cards else '<p class="muted">No records yet. Complete a day to see history!</p>'
    body = f"""
    <h2>History</h2>
    <section class="card">
      <h3 class="muted small">Performance Trend (Last 7 Days)</h3>
      {render_trend_html(trend_points(history))}
    </section>
    {records}"""
    return _page(ctrl, "history", body, msg)


@app.get("/profile", response_class=HTMLResponse)
def profile_view(msg: str = "", ctrl: GoalController = Depends(get_controller)) -> HTMLResponse:
    user = ctrl.state.user
    summary = summarize_history(ctrl.state.history)
    body = f"""
    <h2>Profile</h2>
    <section class="card" style="text-align:center">
      <img src="{_escape(user.avatar_src())}" alt="Profile" width="96" height="96" style="border-radius:50%; object-fit:cover" />
      <form method="post" action="/profile/avatar" enctype="multipart/form-data">
        <input type="file" name="file" accept="image/*" />
        <button type="submit">Change avatar</button>
      </form>
      <form method="post" action="/profile" style="text-align:left">
        <label class="muted small">Full Name</label><br />
        <input name="name" value="{_escape(user.name)}" style="width:100%" /><br />
        <label class="muted small">Bio / Motto</label><br />
        <textarea name="bio" rows="3" style="width:100%">{_escape(user.bio)}</textarea><br />
        <button type="submit">Save Changes</button>
      </form>
    </section>
    <section class="card" style="display:flex; justify-content:space-around; text-align:center">
      <div><div style="font-size:28px; font-weight:700">{summary.days_tracked}</div><div class="muted small">Days Tracked</div></div>
      <div><div style="font-size:28px; font-weight:700">{summary.average_score}</div><div class="muted small">Avg Score</div></div>
    </section>"""
    return _page(ctrl, "profile", body, msg)


# ── Form actions ──────────────────────────────────────────────

@app.post("/goals")
def add_goal_form(text: str = Form(""), ctrl: GoalController = Depends(get_controller)) -> RedirectResponse:
    ctrl.add_goal(text)
    return _redirect("/")


@app.post("/goals/{goal_id}/toggle")
def toggle_goal_form(goal_id: str, ctrl: GoalController = Depends(get_controller)) -> RedirectResponse:
    ctrl.toggle_goal(goal_id)
    return _redirect("/")


@app.post("/goals/{goal_id}/delete")
def delete_goal_form(goal_id: str, ctrl: GoalController = Depends(get_controller)) -> RedirectResponse:
    ctrl.delete_goal(goal_id)
    return _redirect("/")


@app.post("/end_day")
def end_day_form(ctrl: GoalController = Depends(get_controller)) -> RedirectResponse:
    try:
        ctrl.end_day()
    except (NoGoalsError, DayPendingError) as e:
        return _redirect("/", str(e))
    return _redirect("/")


@app.post("/commit_day")
def commit_day_form(ctrl: GoalController = Depends(get_controller)) -> RedirectResponse:
    try:
        ctrl.commit_day()
    except NoPendingDayError as e:
        return _redirect("/", str(e))
    return _redirect("/history")


@app.post("/cancel_day")
def cancel_day_form(ctrl: GoalController = Depends(get_controller)) -> RedirectResponse:
    ctrl.cancel_day()
    return _redirect("/")


@app.post("/profile")
def profile_form(
    name: str = Form(""),
    bio: str = Form(""),
    ctrl: GoalController = Depends(get_controller),
) -> RedirectResponse:
    ctrl.update_profile(name, bio)
    return _redirect("/profile", "Profile updated!")


@app.post("/profile/avatar")
async def avatar_form(
    file: UploadFile = File(...),
    ctrl: GoalController = Depends(get_controller),
) -> RedirectResponse:
    data = await file.read()
    if not data:
        return _redirect("/profile", "No image selected.")
    mime = file.content_type or "application/octet-stream"
    ctrl.set_avatar(f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}")
    return _redirect("/profile")


# ── JSON API ──────────────────────────────────────────────────

@app.get("/api/state")
def api_get_state(ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    """Full document dump."""
    return ctrl.state.to_dict()


@app.post("/api/goals")
def api_add_goal(payload: dict[str, Any] = Body(...), ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    goal = ctrl.add_goal(_payload_str(payload, "text"))
    if goal is None:
        return {"ok": False, "reason": "empty-text"}
    return {"ok": True, "goal": goal.to_dict()}


@app.post("/api/goals/{goal_id}/toggle")
def api_toggle_goal(goal_id: str, ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    goal = ctrl.toggle_goal(goal_id)
    if goal is None:
        raise HTTPException(status_code=404, detail=f"Goal {goal_id} not found")
    return {"ok": True, "goal": goal.to_dict()}


@app.delete("/api/goals/{goal_id}")
def api_delete_goal(goal_id: str, ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    if not ctrl.delete_goal(goal_id):
        raise HTTPException(status_code=404, detail=f"Goal {goal_id} not found")
    return {"ok": True}


@app.put("/api/profile")
def api_update_profile(payload: dict[str, Any] = Body(...), ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    user = ctrl.state.user
    ctrl.update_profile(_payload_str(payload, "name", user.name), _payload_str(payload, "bio", user.bio))
    return {"ok": True, "user": ctrl.state.user.to_dict()}


@app.put("/api/profile/avatar")
def api_set_avatar(payload: dict[str, Any] = Body(...), ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    ctrl.set_avatar(_payload_str(payload, "imageData", ctrl.state.user.avatar_url))
    return {"ok": True}


@app.post("/api/end_day")
def api_end_day(ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    """Score the day; the result stays pending until /api/commit_day."""
    try:
        pending = ctrl.end_day()
    except (NoGoalsError, DayPendingError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return {"ok": True, "pending": pending.to_dict()}


@app.get("/api/pending")
def api_pending(ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    pending = ctrl.pending
    return {"pending": pending.to_dict() if pending else None}


@app.post("/api/commit_day")
def api_commit_day(ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    try:
        record = ctrl.commit_day()
    except NoPendingDayError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return {"ok": True, "record": record.to_dict(), "credits": ctrl.state.user.credits}


@app.post("/api/cancel_day")
def api_cancel_day(ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    return {"ok": True, "discarded": ctrl.cancel_day()}


@app.get("/api/stats")
def api_stats(ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    return summarize_history(ctrl.state.history).to_dict()


@app.get("/api/trend")
def api_trend(days: int = 7, ctrl: GoalController = Depends(get_controller)) -> dict[str, Any]:
    points = trend_points(ctrl.state.history, days)
    return {"points": [{"label": p.label, "score": p.score} for p in points]}
