"""
Storage interfaces for the bad bits publisher.

This protocol defines the boundary between the publisher/reader and key-value
store implementations, enabling clean dependency injection and testing with fakes.
"""
from __future__ import annotations

from typing import Optional, Protocol, Set, runtime_checkable

__all__ = ["SegmentStore", "DEFAULT_MAX_VALUE_SIZE"]

# Per-value ceiling of the KV namespace the denylist was originally published to
DEFAULT_MAX_VALUE_SIZE = 26_214_400


@runtime_checkable
class SegmentStore(Protocol):
    """Protocol for key-value storage of denylist segments."""

    max_value_size: int

    def get(self, key: str) -> Optional[str]:
        """
        Retrieve a value.

        Args:
            key: Store key

        Returns:
            Stored value, or None if the key does not exist

        Raises:
            OSError: For I/O errors
        """
        ...

    def put(self, key: str, value: str) -> None:
        """
        Store a value durably.

        Once put() returns, subsequent get() calls from any process observe
        the value. A single put() never leaves a partially written value.

        Args:
            key: Store key
            value: Value to store

        Raises:
            ValueTooLargeError: If value exceeds max_value_size
            OSError: For I/O errors
        """
        ...

    def list_keys(self, prefix: str) -> Set[str]:
        """
        List all keys starting with prefix.

        Raises:
            OSError: For I/O errors
        """
        ...

    def delete(self, key: str) -> None:
        """
        Delete a key. Deleting a missing key is a no-op.

        Raises:
            OSError: For I/O errors
        """
        ...
