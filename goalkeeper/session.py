"""Wire a GoalController to a workspace: file store, scorer, hooks, clock."""

from __future__ import annotations

from datetime import datetime
from functools import partial
from pathlib import Path

from goalkeeper.controller import GoalController
from goalkeeper.gemini import build_scoring_service
from goalkeeper.hooks import run_hooks
from goalkeeper.storage import FileBlobStore, load_state, persister
from goalkeeper.workspace import (
    data_dir,
    ensure_workspace,
    get_user_timezone,
    load_config,
    workspace_root,
)


def open_controller(root: Path | None = None) -> GoalController:
    """Load the workspace document and return a controller that persists every change."""
    if root is None:
        root = workspace_root()
    ensure_workspace(root)

    config = load_config(root)
    store = FileBlobStore(data_dir(root))
    tz = get_user_timezone(root)

    return GoalController(
        state=load_state(store),
        scorer=build_scoring_service(config.scoring),
        listeners=[persister(store)],
        run_hook=partial(run_hooks, root=root),
        now=lambda: datetime.now(tz),
    )
