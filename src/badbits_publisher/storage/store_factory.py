"""
Segment store factory with backend switching.

Provides a single factory function that creates the configured SegmentStore
implementation, so call sites never branch on the backend themselves.
"""
from __future__ import annotations

from ..settings import Settings
from .base import SegmentStore


def make_store(settings: Settings) -> SegmentStore:
    """
    Create a segment store based on settings.store_backend.

    Backends:
        - "memory": MemorySegmentStore (process-local, lost on exit)
        - "file": FileSegmentStore rooted at settings.store_path
        - "azure": AzureSegmentStore on settings.az_container

    Raises:
        ValueError: If the backend is unknown or misconfigured
    """
    backend = settings.store_backend

    if backend == "memory":
        from .memory import MemorySegmentStore
        return MemorySegmentStore(max_value_size=settings.max_value_size)
    elif backend == "file":
        from .file_store import FileSegmentStore
        return FileSegmentStore(settings.store_path, max_value_size=settings.max_value_size)
    elif backend == "azure":
        from .azure_store import AzureSegmentStore
        return AzureSegmentStore(settings=settings)
    else:
        raise ValueError(
            f"Unknown store backend: {backend}. "
            f"Supported values: memory, file, azure"
        )


__all__ = ["make_store"]
