"""Lifecycle hooks for GoalKeeper.

Hooks run shell commands when goals change and when a day is scored or
archived. Configured via hooks.yaml in the workspace root:

    on_goal_completed:
      - notify-send "Goal done"
    post_end_day:
      - command: ./nag.sh
        tones: [danger]
    post_commit:
      - command: ./sync.sh
        min_score: 80
        timeout: 10

Hook points:
- on_goal_added, on_goal_completed   (context: the goal)
- post_end_day                       (context: the pending record + tone)
- post_commit                        (context: the record, credits, daysTracked)

Day hooks may be filtered by `tones`, `min_score` and `max_score`. Every
hook gets the context as JSON on stdin plus GOALKEEPER_HOOK; day hooks also
get GOALKEEPER_SCORE and GOALKEEPER_TONE in the environment.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from goalkeeper.fileio import read_yaml
from goalkeeper.models import TONES
from goalkeeper.rating import tone_for_score
from goalkeeper.workspace import hooks_config_path, workspace_root

logger = logging.getLogger("goalkeeper.hooks")

GOAL_HOOK_POINTS = {"on_goal_added", "on_goal_completed"}
DAY_HOOK_POINTS = {"post_end_day", "post_commit"}
VALID_HOOK_POINTS = GOAL_HOOK_POINTS | DAY_HOOK_POINTS

DEFAULT_TIMEOUT = 30
OUTPUT_CAP = 4096


@dataclass
class HookSpec:
    command: str
    timeout: float = DEFAULT_TIMEOUT
    tones: tuple[str, ...] = ()
    min_score: Optional[int] = None
    max_score: Optional[int] = None

    @classmethod
    def from_entry(cls, entry: Any) -> Optional[HookSpec]:
        """Parse a hooks.yaml entry: a bare command string or a mapping."""
        if isinstance(entry, str):
            return cls(command=entry) if entry.strip() else None
        if not isinstance(entry, dict):
            return None
        command = entry.get("command")
        if not isinstance(command, str) or not command.strip():
            return None
        timeout = entry.get("timeout", DEFAULT_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            timeout = DEFAULT_TIMEOUT
        tones = entry.get("tones") or ()
        if isinstance(tones, str):
            tones = (tones,)
        elif not isinstance(tones, (list, tuple)):
            tones = ()
        return cls(
            command=command,
            timeout=timeout,
            tones=tuple(t for t in tones if t in TONES),
            min_score=_opt_int(entry.get("min_score")),
            max_score=_opt_int(entry.get("max_score")),
        )

    @property
    def filtered(self) -> bool:
        return bool(self.tones) or self.min_score is not None or self.max_score is not None

    def accepts(self, outcome: Optional[tuple[int, str]]) -> bool:
        """Whether a day outcome (score, tone) passes this hook's filters."""
        if not self.filtered:
            return True
        if outcome is None:
            return False
        score, tone = outcome
        if self.tones and tone not in self.tones:
            return False
        if self.min_score is not None and score < self.min_score:
            return False
        if self.max_score is not None and score > self.max_score:
            return False
        return True


@dataclass
class HookResult:
    command: str
    hook_point: str
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.error


def _opt_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def day_outcome(hook_point: str, context: dict[str, Any]) -> Optional[tuple[int, str]]:
    """(score, tone) of the day a day hook fires for, or None."""
    if hook_point not in DAY_HOOK_POINTS:
        return None
    record = context.get("record")
    if not isinstance(record, dict):
        return None
    score = record.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return None
    tone = context.get("tone")
    if tone not in TONES:
        tone = tone_for_score(score)
    return int(score), tone


def load_hooks(root: Path | None = None) -> dict[str, list[HookSpec]]:
    """Load hooks.yaml into HookSpecs per hook point. Unknown points are dropped."""
    path = hooks_config_path(root)
    if not path.exists():
        return {}
    try:
        raw = read_yaml(path)
    except Exception as e:
        logger.warning("Could not parse %s: %s", path, e)
        return {}

    hooks: dict[str, list[HookSpec]] = {}
    for hook_point, entries in raw.items():
        if hook_point not in VALID_HOOK_POINTS:
            logger.warning("Ignoring unknown hook point %r in %s", hook_point, path)
            continue
        if not isinstance(entries, list):
            entries = [entries]
        specs = [s for s in (HookSpec.from_entry(e) for e in entries) if s is not None]
        if specs:
            hooks[hook_point] = specs
    return hooks


def _hook_env(hook_point: str, root: Path, outcome: Optional[tuple[int, str]]) -> dict[str, str]:
    env = dict(os.environ)
    env["GOALKEEPER_HOOK"] = hook_point
    env["GOALKEEPER_ROOT"] = str(root)
    if outcome is not None:
        env["GOALKEEPER_SCORE"] = str(outcome[0])
        env["GOALKEEPER_TONE"] = outcome[1]
    return env


def _run_one(spec: HookSpec, hook_point: str, payload: str, env: dict[str, str], root: Path) -> HookResult:
    result = HookResult(command=spec.command, hook_point=hook_point)
    try:
        proc = subprocess.run(
            spec.command,
            shell=True,
            input=payload,
            capture_output=True,
            text=True,
            timeout=spec.timeout,
            cwd=str(root),
            env=env,
        )
        result.exit_code = proc.returncode
        result.stdout = proc.stdout[:OUTPUT_CAP]
        result.stderr = proc.stderr[:OUTPUT_CAP]
        if proc.returncode != 0:
            logger.warning("Hook %r (%s) exited with %d", spec.command, hook_point, proc.returncode)
    except subprocess.TimeoutExpired:
        result.exit_code = -1
        result.error = f"Hook timed out after {spec.timeout}s"
        logger.warning("Hook %r (%s) timed out after %ss", spec.command, hook_point, spec.timeout)
    except Exception as e:
        result.exit_code = -1
        result.error = str(e)
        logger.warning("Hook %r (%s) failed: %s", spec.command, hook_point, e)
    return result


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[HookResult]:
    """Run the hooks registered for *hook_point* whose filters accept the context.

    Never raises; failures are recorded on the returned HookResults.
    """
    if hook_point not in VALID_HOOK_POINTS:
        return []
    if root is None:
        root = workspace_root()

    specs = load_hooks(root).get(hook_point, [])
    if not specs:
        return []

    outcome = day_outcome(hook_point, context)
    env = _hook_env(hook_point, root, outcome)
    payload = json.dumps({"hook": hook_point, **context}, ensure_ascii=False)

    results = []
    for spec in specs:
        if not spec.accepts(outcome):
            logger.debug("Hook %r (%s) filtered out", spec.command, hook_point)
            continue
        results.append(_run_one(spec, hook_point, payload, env, root))
    return results
