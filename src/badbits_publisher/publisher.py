"""
Denylist publishing.

Main entry point for republishing the external denylist into a segment store.
One run walks the phases

    IDLE -> FETCHING -> SEGMENTING -> WRITING -> SWAPPING -> RECLAIMING -> IDLE

and any failure before the swap moves it to FAILED without touching the
current-version pointer, so the previously published denylist stays live.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import FetchFailure, PublishFailed, SegmentWriteFailure
from .fetcher import Fetcher, FetchResult
from .models import PublishPhase, PublishReport, PublishStatus
from .segmenter import segment
from .settings import Settings
from .storage.base import SegmentStore
from .storage.keys import (
    etag_key,
    format_version,
    next_version,
    parse_segment_key,
    parse_superseded_key,
    parse_version,
    pointer_key,
    segment_key,
    segments_prefix,
    superseded_key,
    superseded_prefix,
)

__all__ = ["Publisher", "SEGMENT_OVERHEAD_BYTES"]

logger = logging.getLogger(__name__)

# Headroom below the store ceiling for key and metadata overhead
SEGMENT_OVERHEAD_BYTES = 1024


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Publisher:
    """
    Single-writer publisher of denylist versions.

    Segments of a new version are written under a fresh version id; only when
    every write has returned is the pointer key overwritten. That single put()
    is the commit point readers observe. Stale versions are deleted afterwards,
    once they have been superseded for longer than the grace period. The
    version a run replaces is always kept until a later run, and its grace
    period starts at the swap.

    A Publisher is not reentrant; the Scheduler serializes runs.
    """

    def __init__(self, *, store: SegmentStore, fetcher: Fetcher, prefix: str = "bad-bits",
                 grace_period_s: float = 300.0, write_concurrency: int = 1,
                 segment_size_limit: Optional[int] = None,
                 clock: Callable[[], datetime] = _utcnow):
        """
        Initialize publisher.

        Args:
            store: Segment store to publish into
            fetcher: Source of the full denylist
            prefix: Key prefix for all published keys
            grace_period_s: Seconds a superseded version stays readable
            write_concurrency: Segment writes issued in parallel
            segment_size_limit: Max segment size in bytes; defaults to the store
                ceiling minus SEGMENT_OVERHEAD_BYTES
            clock: Returns the current timezone-aware time (tests inject fakes)

        Raises:
            ValueError: If the size limit or concurrency is invalid
        """
        if segment_size_limit is None:
            segment_size_limit = store.max_value_size - SEGMENT_OVERHEAD_BYTES
        if segment_size_limit <= 0:
            raise ValueError(
                f"Segment size limit must be positive, got {segment_size_limit} "
                f"(store ceiling {store.max_value_size} bytes)"
            )
        if segment_size_limit > store.max_value_size:
            raise ValueError(
                f"Segment size limit {segment_size_limit} exceeds store ceiling {store.max_value_size}"
            )
        if write_concurrency < 1:
            raise ValueError(f"write_concurrency must be at least 1, got {write_concurrency}")
        if grace_period_s < 0:
            raise ValueError(f"grace_period_s must be non-negative, got {grace_period_s}")

        self.store = store
        self.fetcher = fetcher
        self.prefix = prefix
        self.grace_period = timedelta(seconds=grace_period_s)
        self.write_concurrency = write_concurrency
        self.segment_size_limit = segment_size_limit
        self._clock = clock
        self.phase = PublishPhase.IDLE

    @classmethod
    def from_settings(cls, settings: Settings, *, store: SegmentStore, fetcher: Fetcher) -> Publisher:
        return cls(
            store=store,
            fetcher=fetcher,
            prefix=settings.kv_prefix,
            grace_period_s=settings.grace_period_s,
            write_concurrency=settings.write_concurrency,
        )

    def run(self) -> PublishReport:
        """
        Run one publish cycle to completion.

        Returns:
            PublishReport describing the published (or unchanged) version

        Raises:
            PublishFailed: If any phase up to and including the swap fails;
                carries the failing phase and the underlying error
        """
        started_at = self._clock()

        with self._phase(PublishPhase.FETCHING):
            previous_version = self.store.get(pointer_key(self.prefix))
            known_etag = self.store.get(etag_key(self.prefix)) if previous_version else None
            result = self.fetcher.fetch_denylist(etag=known_etag)
            if result.not_modified and previous_version is None:
                raise FetchFailure("Source reported not modified but no version is published")

        if result.not_modified:
            logger.info(f"Denylist unchanged, keeping version {previous_version}")
            self.phase = PublishPhase.IDLE
            return PublishReport(
                status=PublishStatus.UNCHANGED,
                version=previous_version,
                previous_version=previous_version,
                etag=known_etag,
                started_at=started_at,
                finished_at=self._clock(),
            )

        with self._phase(PublishPhase.SEGMENTING):
            segments = segment(result.hashes, self.segment_size_limit)
            hash_count = len(set(result.hashes))

        with self._phase(PublishPhase.WRITING):
            version = next_version(self._clock(), self._newest_stored_version(previous_version))
            self._write_segments(version, segments)

        with self._phase(PublishPhase.SWAPPING):
            self._swap(version, previous_version, result)

        logger.info(
            f"Published denylist version {version}: {hash_count} hashes in "
            f"{len(segments)} segments (previous: {previous_version})"
        )

        self.phase = PublishPhase.RECLAIMING
        reclaimed, reclaim_errors = self._reclaim(version, previous_version)

        self.phase = PublishPhase.IDLE
        return PublishReport(
            status=PublishStatus.PUBLISHED,
            version=version,
            previous_version=previous_version,
            hash_count=hash_count,
            segment_count=len(segments),
            reclaimed_keys=reclaimed,
            reclaim_errors=reclaim_errors,
            etag=result.etag,
            started_at=started_at,
            finished_at=self._clock(),
        )

    @contextmanager
    def _phase(self, phase: PublishPhase) -> Iterator[None]:
        """Enter a phase; any error inside aborts the run as FAILED."""
        self.phase = phase
        logger.debug(f"Publisher entering {phase.value}")
        try:
            yield
        except Exception as e:
            self.phase = PublishPhase.FAILED
            logger.error(f"Publish run failed during {phase.value}: {type(e).__name__}: {e}")
            raise PublishFailed(phase.value, e) from e

    def _newest_stored_version(self, previous_version: Optional[str]) -> Optional[str]:
        """
        Newest version id present in the store, current or orphaned.

        A new version must sort after orphans of failed runs too, otherwise it
        could reuse their id and inherit their leftover segments. Ids that
        format_version() did not mint are skipped, so a foreign pointer value
        never blocks publishing.
        """
        versions = set()
        if previous_version and parse_version(previous_version) is not None:
            versions.add(previous_version)
        for key in self.store.list_keys(segments_prefix(self.prefix)):
            parsed = parse_segment_key(self.prefix, key)
            if parsed is not None and parse_version(parsed.version) is not None:
                versions.add(parsed.version)
        return max(versions) if versions else None

    def _write_segments(self, version: str, segments: List[str]) -> None:
        """Write every segment of a version; returns only when all are confirmed."""
        jobs = [(segment_key(self.prefix, version, index), content)
                for index, content in enumerate(segments)]

        if self.write_concurrency == 1 or len(jobs) <= 1:
            for key, content in jobs:
                self._write_one(key, content)
            return

        # Leaving the executor waits for in-flight writes even when one failed
        with ThreadPoolExecutor(max_workers=self.write_concurrency,
                                thread_name_prefix="segment-writer") as pool:
            futures = [pool.submit(self._write_one, key, content) for key, content in jobs]
            for future in futures:
                future.result()

    def _write_one(self, key: str, content: str) -> None:
        try:
            self.store.put(key, content)
        except Exception as e:
            raise SegmentWriteFailure(f"Failed to write segment {key}: {e}", key=key) from e

    def _swap(self, version: str, previous_version: Optional[str], result: FetchResult) -> None:
        """
        Commit the new version by overwriting the pointer key.

        The time the previous version stops being live is recorded before the
        pointer moves; reclaim dates the grace period from it. The stored ETag
        describes the live version, so it is cleared before the pointer moves
        and rewritten after; a crash in between only costs the next run a full
        download.
        """
        self.store.delete(etag_key(self.prefix))

        # A pointer value with a separator cannot own segment keys, so it needs no marker
        if previous_version is not None and ":" not in previous_version:
            self.store.put(superseded_key(self.prefix, previous_version), format_version(self._clock()))

        self.store.put(pointer_key(self.prefix), version)

        if result.etag:
            try:
                self.store.put(etag_key(self.prefix), result.etag)
            except Exception as e:
                logger.warning(f"Version {version} is live but its ETag could not be stored: {e}")

    def _reclaim(self, current_version: str, previous_version: Optional[str]) -> Tuple[int, int]:
        """
        Delete segments of stale versions, then their supersession markers.

        A marker is only deleted once every segment of its version is gone,
        so a partially reclaimed version keeps its grace period on retry.

        Returns:
            (deleted segment key count, failed deletion count)
        """
        try:
            segment_keys = self.store.list_keys(segments_prefix(self.prefix))
            marker_keys = self.store.list_keys(superseded_prefix(self.prefix))
        except Exception as e:
            logger.warning(f"Skipping reclaim, could not list stored versions: {e}")
            return 0, 1

        errors = 0
        keys_by_version: Dict[str, List[str]] = {}
        for key in segment_keys:
            parsed = parse_segment_key(self.prefix, key)
            if parsed is not None:
                keys_by_version.setdefault(parsed.version, []).append(key)

        markers: Dict[str, str] = {}
        superseded_at: Dict[str, Optional[datetime]] = {}
        for key in marker_keys:
            version = parse_superseded_key(self.prefix, key)
            if version is None:
                continue
            try:
                value = self.store.get(key)
            except Exception as e:
                errors += 1
                logger.warning(f"Keeping version {version}, could not read its supersession marker: {e}")
                keys_by_version.pop(version, None)
                continue
            markers[version] = key
            superseded_at[version] = parse_version(value) if value else None
            keys_by_version.setdefault(version, [])

        stale = self._stale_versions(
            keys_by_version, superseded_at, current_version, previous_version, self._clock()
        )

        deleted = 0
        for version in stale:
            failed = 0
            for key in sorted(keys_by_version[version]):
                try:
                    self.store.delete(key)
                    deleted += 1
                except Exception as e:
                    failed += 1
                    logger.warning(f"Failed to delete stale segment {key}: {e}")
            errors += failed
            if failed or version not in markers:
                continue
            try:
                self.store.delete(markers[version])
            except Exception as e:
                errors += 1
                logger.warning(f"Failed to delete supersession marker of version {version}: {e}")
            logger.debug(f"Reclaimed version {version}")

        if deleted:
            logger.info(f"Reclaimed {deleted} segment keys from {len(stale)} stale versions")
        return deleted, errors

    def _stale_versions(self, versions: Iterable[str], superseded_at: Dict[str, Optional[datetime]],
                        current_version: str, previous_version: Optional[str],
                        now: datetime) -> List[str]:
        """
        Pick versions whose keys may be deleted.

        Retained:
        - the current version and the version this run replaced; the latter
          only starts its grace period now
        - versions minted after the current one
        - versions superseded less than the grace period ago, dated by the
          marker written when the pointer moved off them

        A version older than current with no marker was never referenced by the
        pointer (a failed run's orphan), so no reader can be using it.
        """
        stale = []
        for version in sorted(versions):
            if version == current_version or version == previous_version:
                continue
            if version > current_version and parse_version(version) is not None:
                logger.warning(f"Found segments of version {version} newer than current {current_version}")
                continue
            if version not in superseded_at:
                stale.append(version)
                continue
            moment = superseded_at[version]
            if moment is None or now - moment >= self.grace_period:
                stale.append(version)
        return stale
