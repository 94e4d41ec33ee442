# Fake implementations for testing

from .flaky_store import FlakyStore

__all__ = ["FlakyStore"]
