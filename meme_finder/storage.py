"""Whole-blob key/value persistence for the tracker.

Every mutation in the tracker is read-entire-blob, modify in memory,
write-entire-blob. Two logical keys are used: one for the prediction log
and one for the algorithm weights record.

Backends:
- JsonFileStore: one JSON file per key, fcntl-locked, atomic tmp+rename
- MemoryStore:   in-process dict, for tests and throwaway sessions
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from meme_finder.config import state_dir
from meme_finder.utils.file_lock import safe_delete_json, safe_read_json, safe_write_json

PREDICTIONS_KEY = "meme-finder-predictions"
WEIGHTS_KEY = "meme-finder-algorithm-weights"


class BlobStore(Protocol):
    """load() returns None for a missing key and may raise on corrupt data."""

    def load(self, key: str) -> Any | None: ...

    def save(self, key: str, blob: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class JsonFileStore:
    """Blobs as <directory>/<key>.json."""

    def __init__(self, directory: Path | None = None):
        self.directory = directory or state_dir()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> Any | None:
        return safe_read_json(self._path(key))

    def save(self, key: str, blob: Any) -> None:
        safe_write_json(self._path(key), blob)

    def delete(self, key: str) -> None:
        safe_delete_json(self._path(key))


class MemoryStore:
    """Blobs held as serialized JSON text so callers never share objects."""

    def __init__(self) -> None:
        self._blobs: dict[str, str] = {}

    def load(self, key: str) -> Any | None:
        raw = self._blobs.get(key)
        return json.loads(raw) if raw is not None else None

    def save(self, key: str, blob: Any) -> None:
        self._blobs[key] = json.dumps(blob)

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)
