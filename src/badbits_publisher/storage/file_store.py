"""
Directory-backed segment store.

Each key is one file under the store root. Writes go to a temp file in the
same directory, are fsynced and then renamed over the target, so a single
key is never observed half written. This is what makes the pointer swap
atomic when publishing to local disk.
"""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Set
from urllib.parse import quote, unquote

from ..errors import ValueTooLargeError
from .base import DEFAULT_MAX_VALUE_SIZE, SegmentStore

__all__ = ["FileSegmentStore"]

logger = logging.getLogger(__name__)

_TEMP_PREFIX = ".tmp."


def _filename_for(key: str) -> str:
    # Percent-encoding keeps ':' and '/' out of file names; a leading dot is
    # encoded too so no key collides with temp files, "." or ".."
    name = quote(key, safe="")
    if name.startswith("."):
        name = "%2E" + name[1:]
    return name


class FileSegmentStore(SegmentStore):
    """SegmentStore persisting one file per key under a root directory."""

    def __init__(self, root: str | Path, *, max_value_size: int = DEFAULT_MAX_VALUE_SIZE) -> None:
        if max_value_size <= 0:
            raise ValueError(f"max_value_size must be positive, got {max_value_size}")
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.max_value_size = max_value_size
        logger.debug(f"File segment store at {self.root}, max value size {max_value_size} bytes")

    def _path(self, key: str) -> Path:
        if not key:
            raise ValueError("Store key must not be empty")
        return self.root / _filename_for(key)

    def get(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def put(self, key: str, value: str) -> None:
        data = value.encode("utf-8")
        if len(data) > self.max_value_size:
            raise ValueTooLargeError(key, len(data), self.max_value_size)

        target_path = self._path(key)
        fd, temp_name = tempfile.mkstemp(prefix=_TEMP_PREFIX, dir=self.root)
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as out:
                out.write(data)
                out.flush()
                os.fsync(out.fileno())
            os.replace(temp_path, target_path)
        except Exception:
            # Clean up temp file on any error
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass
            raise

    def list_keys(self, prefix: str) -> Set[str]:
        keys = set()
        for entry in self.root.iterdir():
            if entry.name.startswith(_TEMP_PREFIX) or not entry.is_file():
                continue
            key = unquote(entry.name)
            if key.startswith(prefix):
                keys.add(key)
        return keys

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
