"""
Operations Facade - Application service layer.

Provides a clean interface between the CLI and the publisher/reader,
centralizing command orchestration while keeping CLI commands thin and testable.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..entries import bad_bits_entry, parse_denylist
from ..fetcher import StaticFetcher
from ..models import PublishReport
from ..publisher import Publisher
from ..reader import DenylistReader
from ..scheduler import Scheduler
from ..storage.keys import etag_key, parse_segment_key, segments_prefix
from ..cli_context import CLIContext


@dataclass(frozen=True)
class DenylistStatus:
    """Snapshot of what the store currently serves."""
    prefix: str
    version: Optional[str]
    segment_count: int
    etag: Optional[str]
    stored_versions: int


class Operations:
    """
    Application service facade for CLI operations.

    One method per CLI verb. Exceptions bubble up unchanged for central
    mapping to exit codes.
    """

    def __init__(self, context: CLIContext):
        self.context = context
        self.settings = context.settings

    def _publisher(self) -> Publisher:
        return Publisher.from_settings(
            self.settings, store=self.context.store, fetcher=self.context.fetcher
        )

    def _reader(self) -> DenylistReader:
        return DenylistReader(self.context.store, prefix=self.settings.kv_prefix)

    def use_source_file(self, path: str | Path) -> int:
        """
        Publish from a local denylist file instead of the configured URL.

        Returns:
            Number of entries parsed from the file
        """
        hashes = parse_denylist(Path(path).read_text(encoding="utf-8"))
        self.context.use_fetcher(StaticFetcher(hashes))
        return len(hashes)

    def publish(self) -> PublishReport:
        """Run exactly one publish cycle through the scheduler."""
        scheduler = Scheduler(self._publisher(), interval_s=self.settings.interval_s)
        return scheduler.tick()

    def run(self, *, interval_s: Optional[float] = None, max_cycles: Optional[int] = None) -> int:
        """
        Publish on a fixed interval until interrupted.

        Returns:
            Number of failed cycles
        """
        scheduler = Scheduler(self._publisher(), interval_s=interval_s or self.settings.interval_s)
        return scheduler.run_forever(max_cycles=max_cycles)

    def status(self) -> DenylistStatus:
        store = self.context.store
        prefix = self.settings.kv_prefix
        reader = self._reader()
        version = reader.current_version()

        segment_count = 0
        if version is not None:
            segment_count = len(store.list_keys(segments_prefix(prefix, version)))

        versions = set()
        for key in store.list_keys(segments_prefix(prefix)):
            parsed = parse_segment_key(prefix, key)
            if parsed is not None:
                versions.add(parsed.version)

        return DenylistStatus(
            prefix=prefix,
            version=version,
            segment_count=segment_count,
            etag=store.get(etag_key(prefix)),
            stored_versions=len(versions),
        )

    def dump(self) -> List[str]:
        return self._reader().get_all_hashes()

    def check(self, value: str, *, raw_entry: bool = False) -> bool:
        """
        Check whether a CID (or a raw double-hash entry) is denylisted.

        Reads the full current version; raises IncompleteDenylistError rather
        than answering from a partial list.
        """
        entry = value if raw_entry else bad_bits_entry(value)
        return entry in set(self._reader().read_all())
