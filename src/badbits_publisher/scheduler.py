"""
Timer-driven publish scheduling.

The scheduler is the only caller of Publisher.run(). It guarantees cycles
never overlap, so two versions can never race to swap the pointer.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from .errors import PublishFailed
from .models import PublishReport
from .publisher import Publisher

__all__ = ["Scheduler"]

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Runs publisher cycles on a fixed interval, one at a time.

    tick() is what a host timer (cron trigger, systemd timer, CLI loop) calls.
    A tick arriving while a cycle is still running is skipped, not queued.
    """

    def __init__(self, publisher: Publisher, interval_s: float = 3600.0) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        self.publisher = publisher
        self.interval_s = interval_s
        self._cycle_lock = threading.Lock()

    @property
    def running(self) -> bool:
        """True while a cycle is in progress."""
        return self._cycle_lock.locked()

    def tick(self) -> Optional[PublishReport]:
        """
        Run one publish cycle unless one is already in progress.

        Returns:
            PublishReport of the cycle, or None if the tick was skipped

        Raises:
            PublishFailed: If the cycle failed; the previous version stays live
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Skipping publish tick: previous cycle still running")
            return None
        try:
            logger.info("Running scheduled bad bits update...")
            try:
                report = self.publisher.run()
            except PublishFailed as e:
                logger.error(
                    f"Failed to update bad bits denylist in phase {e.phase}: "
                    f"{type(e.cause).__name__}: {e.cause}"
                )
                raise
            logger.info(
                f"Updated bad bits denylist: {report.status.value} version {report.version} "
                f"in {report.duration_ms}ms"
            )
            return report
        finally:
            self._cycle_lock.release()

    def run_forever(self, stop_event: Optional[threading.Event] = None,
                    max_cycles: Optional[int] = None) -> int:
        """
        Tick every interval_s seconds until stopped.

        Failed cycles were already logged by tick() and do not stop the loop.
        The interval is measured from the start of each cycle.

        Args:
            stop_event: Set to stop the loop between cycles
            max_cycles: Stop after this many ticks (None runs until stopped)

        Returns:
            Number of failed cycles
        """
        stop_event = stop_event or threading.Event()
        failures = 0
        cycles = 0
        while not stop_event.is_set():
            started = time.monotonic()
            try:
                self.tick()
            except PublishFailed:
                failures += 1
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            remaining = self.interval_s - (time.monotonic() - started)
            if remaining > 0:
                stop_event.wait(remaining)
        return failures
