"""File locking utilities for safe whole-blob JSON updates."""
from __future__ import annotations

import fcntl
import json
import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

log = logging.getLogger("utils.file_lock")


@contextmanager
def exclusive_file_lock(path: Path) -> Generator[None, None, None]:
    """Context manager for exclusive file locking.

    Usage:
        with exclusive_file_lock(Path("state/meme-finder-predictions.json")):
            # Read, modify, write
            pass
    """
    lock_path = path.with_suffix(path.suffix + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    with open(lock_path, "w") as lock_file:
        try:
            # Blocks while another process holds the lock
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


def safe_read_json(path: Path) -> Any:
    """Read JSON with file locking and recovery from backup on corruption.

    Returns None if the file does not exist. If the file is corrupted,
    restores it from the .bak backup; with no backup the decode error
    propagates.
    """
    with exclusive_file_lock(path):
        if not path.exists():
            return None

        try:
            with open(path, "r") as f:
                return json.load(f)
        except json.JSONDecodeError:
            backup_path = path.with_suffix(path.suffix + ".bak")
            if not backup_path.exists():
                raise
            log.warning("Corrupted blob %s, restoring from %s", path, backup_path)
            shutil.copy(backup_path, path)
            with open(path, "r") as f:
                return json.load(f)


def safe_write_json(path: Path, data: Any, indent: int = 2) -> None:
    """Write JSON with file locking and atomic tmp+rename.

    Copies the existing file to .bak before overwriting it.
    """
    with exclusive_file_lock(path):
        path.parent.mkdir(parents=True, exist_ok=True)

        backup_path = path.with_suffix(path.suffix + ".bak")
        if path.exists():
            shutil.copy(path, backup_path)

        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=indent)

        tmp_path.rename(path)


def safe_delete_json(path: Path) -> None:
    """Remove a JSON blob and its backup under the lock."""
    with exclusive_file_lock(path):
        for p in (path, path.with_suffix(path.suffix + ".bak")):
            if p.exists():
                p.unlink()
