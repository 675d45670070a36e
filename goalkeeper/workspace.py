"""Workspace root, configuration, timezone and path helpers for GoalKeeper."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from goalkeeper.fileio import read_yaml, write_yaml_atomic
from goalkeeper.models import Config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("goalkeeper.workspace")


def workspace_root() -> Path:
    """Get the workspace root directory (contains config.yaml and data/)."""
    return Path(
        os.environ.get("GOALKEEPER_ROOT", str(Path.home() / "goalkeeper"))
    ).expanduser().resolve()


def configure_logging(handlers: list[logging.Handler] | None = None) -> None:
    """Configure root logging for the entry points."""
    level = os.environ.get("GOALKEEPER_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


# ── Path helpers ──────────────────────────────────────────────

def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "config.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"


def data_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data"


# ── Config ────────────────────────────────────────────────────

def load_config(root: Path | None = None) -> Config:
    """Load config.yaml, defaulting every missing setting."""
    try:
        return Config.from_dict(read_yaml(config_path(root)))
    except Exception as e:
        logger.warning("Could not read config.yaml, using defaults: %s", e)
        return Config()


def ensure_workspace(root: Path | None = None) -> Path:
    """Create the workspace directories and a default config.yaml if missing."""
    if root is None:
        root = workspace_root()
    data_dir(root).mkdir(parents=True, exist_ok=True)
    cp = config_path(root)
    if not cp.exists():
        write_yaml_atomic(cp, Config().to_dict())
        logger.info("Wrote default config to %s", cp)
    return root


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from config.yaml, defaulting to UTC."""
    tz_name = load_config(root).timezone
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", tz_name)
        return ZoneInfo("UTC")

