"""Tests for goalkeeper/hooks.py: hook system."""

import json

import yaml

from goalkeeper.hooks import HookSpec, day_outcome, load_hooks, run_hooks


def _write_hooks(workspace, config):
    (workspace / "hooks.yaml").write_text(yaml.dump(config), encoding="utf-8")


def _day(score, tone=None):
    ctx = {"record": {"id": "r1", "score": score, "summary": "x"}}
    if tone is not None:
        ctx["tone"] = tone
    return ctx


def test_run_hooks_no_config(workspace):
    """No hooks.yaml -> no hooks run."""
    assert load_hooks(workspace) == {}
    assert run_hooks("post_commit", _day(80), workspace) == []


def test_run_hooks_with_cat(workspace):
    """Hook receives context JSON on stdin, tagged with the hook point."""
    _write_hooks(workspace, {"on_goal_added": ["cat"]})

    results = run_hooks("on_goal_added", {"id": "g1", "text": "Run"}, workspace)
    assert len(results) == 1
    assert results[0].ok
    payload = json.loads(results[0].stdout)
    assert payload == {"hook": "on_goal_added", "id": "g1", "text": "Run"}


def test_day_hooks_get_score_and_tone_env(workspace):
    _write_hooks(workspace, {"post_end_day": ['echo "$GOALKEEPER_HOOK $GOALKEEPER_SCORE $GOALKEEPER_TONE"']})
    results = run_hooks("post_end_day", _day(42, "danger"), workspace)
    assert results[0].stdout.strip() == "post_end_day 42 danger"


def test_commit_hook_derives_tone_from_score(workspace):
    _write_hooks(workspace, {"post_commit": ['echo "$GOALKEEPER_TONE"']})
    results = run_hooks("post_commit", {**_day(85), "credits": 185, "daysTracked": 2}, workspace)
    assert results[0].stdout.strip() == "success"


def test_tone_filter(workspace):
    _write_hooks(workspace, {"post_end_day": [{"command": "echo nag", "tones": ["danger"]}, "echo always"]})
    assert [r.stdout.strip() for r in run_hooks("post_end_day", _day(30, "danger"), workspace)] == ["nag", "always"]
    assert [r.stdout.strip() for r in run_hooks("post_end_day", _day(90, "success"), workspace)] == ["always"]


def test_score_range_filter(workspace):
    _write_hooks(workspace, {"post_commit": [{"command": "echo great", "min_score": 80, "max_score": 100}]})
    assert len(run_hooks("post_commit", _day(80), workspace)) == 1
    assert run_hooks("post_commit", _day(79), workspace) == []


def test_filtered_hook_skipped_without_day_outcome(workspace):
    _write_hooks(workspace, {"on_goal_completed": [{"command": "echo x", "tones": ["success"]}]})
    assert run_hooks("on_goal_completed", {"id": "g1"}, workspace) == []


def test_unknown_hook_point_is_ignored(workspace):
    _write_hooks(workspace, {"post_finalize": ["cat"], "post_commit": "echo single"})
    hooks = load_hooks(workspace)
    assert set(hooks) == {"post_commit"}
    assert hooks["post_commit"] == [HookSpec(command="echo single")]
    assert run_hooks("post_finalize", {}, workspace) == []


def test_hook_spec_from_entry():
    assert HookSpec.from_entry("  ") is None
    assert HookSpec.from_entry(42) is None
    assert HookSpec.from_entry({"command": None}) is None
    spec = HookSpec.from_entry({"command": "x", "timeout": "slow", "tones": ["danger", "bogus"], "min_score": True})
    assert spec == HookSpec(command="x", tones=("danger",))
    assert HookSpec.from_entry({"command": "x", "tones": "success"}).tones == ("success",)


def test_day_outcome():
    assert day_outcome("post_end_day", _day(72, "warning")) == (72, "warning")
    assert day_outcome("post_commit", _day(49)) == (49, "danger")
    assert day_outcome("on_goal_added", _day(72)) is None
    assert day_outcome("post_commit", {"record": {"score": "high"}}) is None


def test_run_hooks_nonzero_exit(workspace):
    _write_hooks(workspace, {"on_goal_added": [{"command": "exit 3"}]})
    results = run_hooks("on_goal_added", {}, workspace)
    assert results[0].exit_code == 3
    assert not results[0].ok


def test_run_hooks_timeout(workspace):
    """Hook timeout protection."""
    _write_hooks(workspace, {"post_end_day": [{"command": "sleep 10", "timeout": 1}]})

    results = run_hooks("post_end_day", _day(10), workspace)
    assert len(results) == 1
    assert results[0].exit_code == -1
    assert "timed out" in results[0].error.lower()


def test_bad_hooks_yaml_is_ignored(workspace):
    (workspace / "hooks.yaml").write_text("post_commit: [unclosed", encoding="utf-8")
    assert run_hooks("post_commit", _day(50), workspace) == []
