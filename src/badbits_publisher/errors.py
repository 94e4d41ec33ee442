"""
Bad bits publisher error classes.

Provides a clear taxonomy of errors that can occur while fetching, segmenting,
publishing and reading the denylist. None of these errors imply that the
currently published denylist was modified: failed runs are invisible to readers.
"""
from __future__ import annotations

from typing import Optional, Sequence


class BadBitsError(Exception):
    """Base class for all bad bits publisher errors."""
    pass


class FetchFailure(BadBitsError):
    """
    The external denylist could not be retrieved.

    Raised when:
    - The source is unreachable or keeps answering 5xx after retries
    - The source answers with an unexpected HTTP status
    - The body contains malformed entries
    """
    pass


class OversizedHashError(BadBitsError):
    """
    A single hash token cannot fit into one segment.

    Indicates a misconfigured size ceiling or a corrupt source; the token is
    surfaced, never silently skipped.
    """

    def __init__(self, token: str, size_limit: int):
        super().__init__(
            f"Hash token of {len(token.encode('utf-8'))} bytes exceeds segment size limit "
            f"of {size_limit} bytes: {token[:64]}"
        )
        self.token = token
        self.size_limit = size_limit


class SegmentWriteFailure(BadBitsError):
    """
    A segment write failed while publishing a new version.

    The run is aborted before the pointer swap; already written segments are
    orphans that a later successful run reclaims.
    """

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class IncompleteDenylistError(BadBitsError):
    """
    Some segment of the current version could not be read.

    Callers must treat this as "cannot determine safety" and apply their own
    fail-safe policy instead of using a partial list.
    """

    def __init__(self, message: str, version: Optional[str] = None,
                 missing_keys: Sequence[str] = ()):
        super().__init__(message)
        self.version = version
        self.missing_keys = tuple(missing_keys)


class ValueTooLargeError(BadBitsError):
    """
    A value exceeds the store's per-value size ceiling.

    Raised by segment stores on put().
    """

    def __init__(self, key: str, size: int, limit: int):
        super().__init__(f"Value for {key} is {size} bytes, store limit is {limit} bytes")
        self.key = key
        self.size = size
        self.limit = limit


class PublishFailed(BadBitsError):
    """
    A publish run failed and was aborted.

    Carries the phase in which the run failed and the underlying error.
    """

    def __init__(self, phase: str, cause: BaseException):
        super().__init__(f"Publish failed during {phase}: {cause}")
        self.phase = phase
        self.cause = cause


__all__ = [
    "BadBitsError",
    "FetchFailure",
    "OversizedHashError",
    "SegmentWriteFailure",
    "IncompleteDenylistError",
    "ValueTooLargeError",
    "PublishFailed",
]
