"""
Key layout for the segment store.

All persisted keys live under a configurable prefix:

    {prefix}:segments:{version}:{index}   segment bodies
    {prefix}:current-version              current-version pointer
    {prefix}:latest-etag                  ETag of the source that produced it
    {prefix}:superseded:{version}         time the pointer moved off a version
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

__all__ = [
    "SegmentKey",
    "segment_key",
    "segments_prefix",
    "pointer_key",
    "etag_key",
    "superseded_key",
    "superseded_prefix",
    "parse_superseded_key",
    "parse_segment_key",
    "format_version",
    "parse_version",
    "next_version",
]

_PREFIX_RE = re.compile(r"^[A-Za-z0-9._-]+$")
_VERSION_FORMAT = "%Y%m%dT%H%M%S%fZ"
_VERSION_RE = re.compile(r"^\d{8}T\d{12}Z$")


@dataclass(frozen=True)
class SegmentKey:
    """Parsed segment key."""
    version: str
    index: int


def _check_prefix(prefix: str) -> str:
    if not _PREFIX_RE.match(prefix):
        raise ValueError(f"Invalid key prefix: {prefix!r}")
    return prefix


def _check_version(version: str) -> str:
    if not version or ":" in version:
        raise ValueError(f"Invalid version: {version!r}")
    return version


def segments_prefix(prefix: str, version: Optional[str] = None) -> str:
    """
    Prefix shared by segment keys, optionally narrowed to one version.

    The trailing colon keeps version "2024" from matching "20240".
    """
    base = f"{_check_prefix(prefix)}:segments:"
    if version is None:
        return base
    return f"{base}{_check_version(version)}:"


def segment_key(prefix: str, version: str, index: int) -> str:
    if index < 0:
        raise ValueError(f"Segment index must be non-negative, got {index}")
    return f"{segments_prefix(prefix, version)}{index}"


def pointer_key(prefix: str) -> str:
    return f"{_check_prefix(prefix)}:current-version"


def etag_key(prefix: str) -> str:
    return f"{_check_prefix(prefix)}:latest-etag"


def superseded_prefix(prefix: str) -> str:
    return f"{_check_prefix(prefix)}:superseded:"


def superseded_key(prefix: str, version: str) -> str:
    return f"{superseded_prefix(prefix)}{_check_version(version)}"


def parse_superseded_key(prefix: str, key: str) -> Optional[str]:
    """Return the version a supersession marker belongs to, or None."""
    base = superseded_prefix(prefix)
    if not key.startswith(base):
        return None
    version = key[len(base):]
    if not version or ":" in version:
        return None
    return version


def parse_segment_key(prefix: str, key: str) -> Optional[SegmentKey]:
    """
    Parse a segment key back into version and index.

    Returns:
        SegmentKey, or None if the key is not a well-formed segment key
    """
    base = segments_prefix(prefix)
    if not key.startswith(base):
        return None
    rest = key[len(base):]
    version, sep, index = rest.rpartition(":")
    if not sep or not version or ":" in version or not index.isdigit():
        return None
    return SegmentKey(version=version, index=int(index))


def format_version(moment: datetime) -> str:
    """Format a timezone-aware moment as a fixed-width, sortable version id."""
    if moment.tzinfo is None:
        raise ValueError("Version timestamps must be timezone-aware")
    return moment.astimezone(timezone.utc).strftime(_VERSION_FORMAT)


def parse_version(version: str) -> Optional[datetime]:
    """Parse a version id minted by format_version(); None for foreign ids."""
    if not _VERSION_RE.match(version):
        return None
    return datetime.strptime(version, _VERSION_FORMAT).replace(tzinfo=timezone.utc)


def next_version(now: datetime, current: Optional[str]) -> str:
    """
    Mint a version strictly greater than the current one.

    Clocks can repeat or step backwards between runs; in that case the new
    version is one microsecond after the current version.

    `current` must be an id minted by format_version(), or None. A foreign id
    that sorts at or after the clock cannot be ordered against and raises
    ValueError; callers pass the newest parseable id instead.
    """
    candidate = format_version(now)
    if current is None or candidate > current:
        return candidate
    current_moment = parse_version(current)
    if current_moment is None:
        raise ValueError(f"Cannot order new version after foreign version id {current!r}")
    return format_version(current_moment + timedelta(microseconds=1))
