"""Persistence adapter: one JSON document under a fixed key in a blob store.

Loading never raises: missing, corrupt or partially valid blobs are merged
with defaults field by field. Saving is best-effort: write errors are
logged and reported through the return value.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from goalkeeper.fileio import read_text, write_text_atomic
from goalkeeper.models import AppState

STORAGE_KEY = "goalkeeper_data_v1"

logger = logging.getLogger("goalkeeper.storage")


class BlobStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...


class FileBlobStore:
    """Blob store keeping each key as <directory>/<key>.json."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return read_text(path)

    def put(self, key: str, value: str) -> None:
        write_text_atomic(self.path_for(key), value, suffix=".json")


class MemoryBlobStore:
    """In-process blob store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.blobs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.blobs.get(key)

    def put(self, key: str, value: str) -> None:
        self.blobs[key] = value


def load_state(store: BlobStore, key: str = STORAGE_KEY) -> AppState:
    """Load the document, falling back to defaults for anything missing or invalid."""
    try:
        raw = store.get(key)
    except Exception as e:
        logger.warning("Failed to read stored state: %s", e)
        return AppState()
    if not raw or not raw.strip():
        return AppState()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Stored state is not valid JSON, using defaults: %s", e)
        return AppState()
    if not isinstance(data, dict):
        logger.warning("Stored state is not an object, using defaults")
        return AppState()
    return AppState.from_dict(data)


def save_state(store: BlobStore, state: AppState, key: str = STORAGE_KEY) -> bool:
    """Serialize and overwrite the stored document. Returns False on failure."""
    try:
        store.put(key, json.dumps(state.to_dict(), indent=2, ensure_ascii=False) + "\n")
    except Exception as e:
        logger.error("Failed to save state: %s", e)
        return False
    return True


def persister(store: BlobStore, key: str = STORAGE_KEY):
    """Build a state listener that snapshots the document into *store*."""

    def _persist(state: AppState) -> None:
        save_state(store, state, key)

    return _persist
