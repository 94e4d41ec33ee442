"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings, the
segment store and the fetcher, avoiding global state and enabling proper
dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .fetcher import Fetcher, HttpDenylistFetcher
from .settings import Settings, create_settings_from_env
from .storage.base import SegmentStore
from .storage.store_factory import make_store


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Store and fetcher are created on first access and reused for the rest of
    the command, so one invocation talks to one store instance.
    """
    settings: Settings
    _store: Optional[SegmentStore] = None
    _fetcher: Optional[Fetcher] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """
        Create CLI context from environment variables.

        Returns:
            CLIContext with settings loaded from environment
        """
        return cls(settings=create_settings_from_env())

    @property
    def store(self) -> SegmentStore:
        if self._store is None:
            self._store = make_store(self.settings)
        return self._store

    @property
    def fetcher(self) -> Fetcher:
        if self._fetcher is None:
            self._fetcher = HttpDenylistFetcher.from_settings(self.settings)
        return self._fetcher

    def use_fetcher(self, fetcher: Fetcher) -> None:
        """Replace the HTTP fetcher (e.g. with a local file source)."""
        self._fetcher = fetcher

    def close(self) -> None:
        """Release network clients held by the context."""
        if isinstance(self._fetcher, HttpDenylistFetcher):
            self._fetcher.close()
