# Test doubles for the publisher's collaborators

from .fake_clock import FakeClock
from .fake_fetcher import FailingFetcher, SequenceFetcher

__all__ = ["FakeClock", "FailingFetcher", "SequenceFetcher"]
