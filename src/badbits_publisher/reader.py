"""
Denylist reader.

Resolves the current-version pointer and concatenates that version's segments.
Readers never block or coordinate with the publisher: segments are immutable
once referenced, so a read sees one complete version or fails loudly.
"""
from __future__ import annotations

import logging
import threading
from typing import FrozenSet, List, Optional

from .entries import bad_bits_entry
from .errors import IncompleteDenylistError
from .segmenter import split_segment
from .storage.base import SegmentStore
from .storage.keys import parse_segment_key, pointer_key, segments_prefix

__all__ = ["DenylistReader", "DenylistCache"]

logger = logging.getLogger(__name__)


class DenylistReader:
    """
    Reads the currently published denylist from a segment store.

    No caching across calls; see DenylistCache for a version-aware cache.
    """

    def __init__(self, store: SegmentStore, prefix: str = "bad-bits") -> None:
        self.store = store
        self.prefix = prefix

    def current_version(self) -> Optional[str]:
        """Return the version the pointer references, or None before the first publish."""
        return self.store.get(pointer_key(self.prefix))

    def read_all(self) -> List[str]:
        """
        Read every hash of the current version.

        Returns:
            Hashes in segment order; empty list if nothing was published yet

        Raises:
            IncompleteDenylistError: If any segment of the version cannot be read
        """
        version = self.current_version()
        if version is None:
            return []
        return self.read_version(version)

    # Boundary name used by content-filtering services
    get_all_hashes = read_all

    def read_version(self, version: str) -> List[str]:
        """
        Read every hash of one specific version.

        Segment indexes are dense from 0; a gap means a segment is missing.

        Raises:
            IncompleteDenylistError: If listing or any segment read fails
        """
        try:
            keys = self.store.list_keys(segments_prefix(self.prefix, version))
        except Exception as e:
            raise IncompleteDenylistError(
                f"Could not list segments of version {version}: {e}", version=version
            ) from e

        indexed = {}
        for key in keys:
            parsed = parse_segment_key(self.prefix, key)
            if parsed is not None and parsed.version == version:
                indexed[parsed.index] = key

        missing = [str(index) for index in range(len(indexed)) if index not in indexed]
        if missing:
            raise IncompleteDenylistError(
                f"Version {version} is missing segment indexes {', '.join(missing)}",
                version=version,
                missing_keys=missing,
            )

        hashes: List[str] = []
        for index in range(len(indexed)):
            key = indexed[index]
            try:
                content = self.store.get(key)
            except Exception as e:
                raise IncompleteDenylistError(
                    f"Could not read segment {key}: {e}", version=version, missing_keys=[key]
                ) from e
            if content is None:
                raise IncompleteDenylistError(
                    f"Segment {key} of version {version} disappeared", version=version, missing_keys=[key]
                )
            hashes.extend(split_segment(content))

        logger.debug(f"Read {len(hashes)} hashes from {len(indexed)} segments of version {version}")
        return hashes


class DenylistCache:
    """
    Version-keyed cache over a DenylistReader.

    Every lookup re-resolves the pointer (one small read) and reloads the
    segments only when the version changed.
    """

    def __init__(self, reader: DenylistReader) -> None:
        self.reader = reader
        self._version: Optional[str] = None
        self._hashes: FrozenSet[str] = frozenset()
        self._lock = threading.Lock()

    @property
    def version(self) -> Optional[str]:
        return self._version

    def hashes(self) -> FrozenSet[str]:
        """
        Return the current hash set, reloading on version change.

        Raises:
            IncompleteDenylistError: If the new version cannot be read; the
                cached set is kept but not returned
        """
        version = self.reader.current_version()
        with self._lock:
            if version == self._version:
                return self._hashes
        if version is None:
            hashes: FrozenSet[str] = frozenset()
        else:
            hashes = frozenset(self.reader.read_version(version))
        with self._lock:
            self._version = version
            self._hashes = hashes
        logger.debug(f"Denylist cache loaded version {version} ({len(hashes)} hashes)")
        return hashes

    def is_denied(self, entry: str) -> bool:
        """Check a raw denylist entry (already double-hashed)."""
        return entry in self.hashes()

    def is_cid_denied(self, cid: str) -> bool:
        """Check a CID by computing its legacy double-hash entry."""
        return self.is_denied(bad_bits_entry(cid))
