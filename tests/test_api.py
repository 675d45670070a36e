"""Tests for ui/app.py: JSON API and HTML views via FastAPI's TestClient."""

import threading
import time

import pytest
from fastapi.testclient import TestClient

import ui.app as web
from ui.app import app, get_controller


@pytest.fixture
def client(controller):
    app.dependency_overrides[get_controller] = lambda: controller
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": "true"}


def test_state_defaults(client):
    state = client.get("/api/state").json()
    assert state["user"]["name"] == "Student User"
    assert state["currentGoals"] == []
    assert state["history"] == []


def test_goal_crud(client):
    r = client.post("/api/goals", json={"text": "Write report"}).json()
    assert r["ok"] is True
    goal_id = r["goal"]["id"]

    assert client.post("/api/goals", json={"text": "   "}).json() == {"ok": False, "reason": "empty-text"}

    toggled = client.post(f"/api/goals/{goal_id}/toggle").json()
    assert toggled["goal"]["completed"] is True
    assert client.post("/api/goals/missing/toggle").status_code == 404

    assert client.delete(f"/api/goals/{goal_id}").json() == {"ok": True}
    assert client.delete(f"/api/goals/{goal_id}").status_code == 404
    assert client.get("/api/state").json()["currentGoals"] == []


def test_end_day_without_goals_conflicts(client):
    r = client.post("/api/end_day")
    assert r.status_code == 409
    assert "Add some goals" in r.json()["detail"]


def test_end_day_commit_flow(client):
    client.post("/api/goals", json={"text": "a"})
    client.post("/api/goals", json={"text": "b"})

    pending = client.post("/api/end_day").json()["pending"]
    assert pending["tone"] == "warning"
    assert pending["record"]["score"] == 72
    assert len(pending["record"]["goals"]) == 2
    assert client.get("/api/pending").json()["pending"]["record"]["id"] == pending["record"]["id"]
    assert client.post("/api/end_day").status_code == 409

    state = client.get("/api/state").json()
    assert state["history"] == []
    assert len(state["currentGoals"]) == 2

    committed = client.post("/api/commit_day").json()
    assert committed["credits"] == 72
    state = client.get("/api/state").json()
    assert len(state["history"]) == 1
    assert state["currentGoals"] == []
    assert client.get("/api/pending").json() == {"pending": None}
    assert client.post("/api/commit_day").status_code == 409


def test_cancel_day(client):
    client.post("/api/goals", json={"text": "a"})
    client.post("/api/end_day")
    assert client.post("/api/cancel_day").json() == {"ok": True, "discarded": True}
    assert len(client.get("/api/state").json()["currentGoals"]) == 1
    assert client.post("/api/cancel_day").json()["discarded"] is False


def test_profile_and_avatar(client):
    r = client.put("/api/profile", json={"name": "Ada", "bio": "Analytical"}).json()
    assert r["user"]["name"] == "Ada"
    assert r["user"]["bio"] == "Analytical"
    client.put("/api/profile/avatar", json={"imageData": "data:image/png;base64,AAAA"})
    assert client.get("/api/state").json()["user"]["avatarUrl"] == "data:image/png;base64,AAAA"


def test_stats_and_trend(client):
    for text in ("a", "b"):
        client.post("/api/goals", json={"text": text})
        client.post("/api/end_day")
        client.post("/api/commit_day")
    stats = client.get("/api/stats").json()
    assert stats["daysTracked"] == 2
    assert stats["averageScore"] == 72
    points = client.get("/api/trend").json()["points"]
    assert [p["score"] for p in points] == [72, 72]


def test_html_dashboard_flow(client, controller):
    r = client.post("/goals", data={"text": "Read a <book>"})
    assert r.status_code == 200
    page = client.get("/").text
    assert "Hello, Student!" in page
    assert "Read a &lt;book&gt;" in page
    assert "End Day" in page

    client.post("/end_day")
    page = client.get("/").text
    assert "Score: 72" in page
    assert "Accept &amp; Continue" in page

    r = client.post("/commit_day")
    assert r.url.path == "/history"
    assert "Score: 72/100" in r.text
    assert controller.state.current_goals == []


def test_html_end_day_without_goals_flashes(client):
    r = client.post("/end_day")
    assert "Add some goals before ending the day!" in r.text


def test_html_profile_and_avatar_upload(client, controller):
    r = client.post("/profile", data={"name": "Grace Hopper", "bio": "Debugging"})
    assert "Profile updated!" in r.text
    assert controller.state.user.name == "Grace Hopper"

    client.post("/profile/avatar", files={"file": ("me.png", b"\x89PNG", "image/png")})
    assert controller.state.user.avatar_url == "data:image/png;base64,iVBORw=="


def test_html_history_empty(client):
    page = client.get("/history").text
    assert "No records yet" in page
    assert "No history data available yet." in page


def test_non_string_payload_fields(client, controller):
    assert client.post("/api/goals", json={"text": None}).json() == {"ok": False, "reason": "empty-text"}
    assert client.post("/api/goals", json={"text": 42}).json() == {"ok": False, "reason": "empty-text"}
    assert controller.state.current_goals == []

    client.put("/api/profile", json={"name": "Ada", "bio": "Analytical"})
    user = client.put("/api/profile", json={"name": None, "bio": ["x"]}).json()["user"]
    assert user["name"] == "Ada"
    assert user["bio"] == "Analytical"

    client.put("/api/profile/avatar", json={"imageData": "data:image/png;base64,AAAA"})
    client.put("/api/profile/avatar", json={"imageData": None})
    assert controller.state.user.avatar_url == "data:image/png;base64,AAAA"


def test_get_controller_built_once_across_threads(monkeypatch):
    built = []

    def slow_open():
        time.sleep(0.05)
        built.append(object())
        return built[-1]

    monkeypatch.setattr(web, "_controller", None)
    monkeypatch.setattr(web, "open_controller", slow_open)

    results = []
    threads = [threading.Thread(target=lambda: results.append(web.get_controller())) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert len(built) == 1
    assert len(results) == 4
    assert all(r is built[0] for r in results)
