"""
In-memory segment store.

Used for local runs and as the baseline store in tests. Enforces the same
per-value ceiling as real stores so segmentation bugs surface early.
"""
from __future__ import annotations

import threading
from typing import Dict, Optional, Set

from ..errors import ValueTooLargeError
from .base import DEFAULT_MAX_VALUE_SIZE, SegmentStore

__all__ = ["MemorySegmentStore"]


class MemorySegmentStore(SegmentStore):
    """
    Dict-backed SegmentStore, safe to share between threads.

    Values are checked against max_value_size in UTF-8 bytes.
    """

    def __init__(self, max_value_size: int = DEFAULT_MAX_VALUE_SIZE) -> None:
        if max_value_size <= 0:
            raise ValueError(f"max_value_size must be positive, got {max_value_size}")
        self.max_value_size = max_value_size
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        size = len(value.encode("utf-8"))
        if size > self.max_value_size:
            raise ValueTooLargeError(key, size, self.max_value_size)
        with self._lock:
            self._data[key] = value

    def list_keys(self, prefix: str) -> Set[str]:
        with self._lock:
            return {key for key in self._data if key.startswith(prefix)}

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        """Copy of all stored data (test utility)."""
        with self._lock:
            return dict(self._data)

    def clear(self) -> None:
        """Clear all stored data (test utility)."""
        with self._lock:
            self._data.clear()
