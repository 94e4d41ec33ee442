"""
Denylist fetchers.

The publisher only depends on the Fetcher protocol. HttpDenylistFetcher is the
production implementation: a conditional GET of the bad bits document with
retries on server and transport errors.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Tuple, runtime_checkable

import httpx
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from .entries import parse_denylist
from .errors import FetchFailure
from .settings import Settings

__all__ = ["FetchResult", "Fetcher", "StaticFetcher", "HttpDenylistFetcher"]

logger = logging.getLogger(__name__)

USER_AGENT = "badbits-publisher/0.1.0"


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of one denylist fetch.

    Invariants:
    - not_modified=True means the source still matches the ETag passed in;
      hashes is empty and carries no meaning
    - etag is the validator to send on the next fetch, if the source sent one
    """
    hashes: Tuple[str, ...]
    etag: Optional[str] = None
    not_modified: bool = False


@runtime_checkable
class Fetcher(Protocol):
    """Protocol for retrieving the full current denylist."""

    def fetch_denylist(self, *, etag: Optional[str] = None) -> FetchResult:
        """
        Retrieve the full denylist.

        Args:
            etag: Validator of the last published source document, if any

        Returns:
            FetchResult with hashes in source order

        Raises:
            FetchFailure: If the source is unreachable or returns malformed data
        """
        ...


class StaticFetcher(Fetcher):
    """Fetcher returning a fixed list; for seeding stores and tests."""

    def __init__(self, hashes: Iterable[str], etag: Optional[str] = None) -> None:
        self._hashes = tuple(hashes)
        self._etag = etag

    def fetch_denylist(self, *, etag: Optional[str] = None) -> FetchResult:
        if etag is not None and etag == self._etag:
            return FetchResult(hashes=(), etag=etag, not_modified=True)
        return FetchResult(hashes=self._hashes, etag=self._etag)


def _is_retryable(exc: BaseException) -> bool:
    """Retry 5xx answers and transport-level failures, never 4xx."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


class HttpDenylistFetcher(Fetcher):
    """
    HTTP fetcher for the bad bits denylist document.

    Sends If-None-Match when an ETag is known and reports 304 as not_modified.
    Server errors and transport failures are retried with exponential backoff.
    """

    def __init__(self, url: str, *, timeout_s: float = 30.0, retries: int = 3,
                 retry_wait_s: float = 1.0, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize denylist fetcher.

        Args:
            url: Denylist document URL
            timeout_s: Read/write timeout in seconds
            retries: Extra attempts after the first failed one
            retry_wait_s: Base of the exponential backoff (0 disables waiting)
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.url = url
        self.retries = retries
        self.client = httpx.Client(
            timeout=httpx.Timeout(timeout_s, connect=min(timeout_s, 10.0)),
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )
        self._retrying = Retrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(multiplier=retry_wait_s, max=30),
            retry=retry_if_exception(_is_retryable),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpDenylistFetcher:
        return cls(settings.denylist_url, timeout_s=settings.http_timeout_s, retries=settings.http_retry)

    def fetch_denylist(self, *, etag: Optional[str] = None) -> FetchResult:
        headers = {"Accept": "text/plain"}
        if etag:
            headers["If-None-Match"] = etag

        try:
            response = self._retrying(self._request, headers)
        except httpx.HTTPStatusError as e:
            raise FetchFailure(
                f"Denylist source {self.url} answered {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise FetchFailure(f"Network error fetching denylist from {self.url}: {e}") from e

        if response.status_code == 304:
            if not etag:
                raise FetchFailure(f"Denylist source {self.url} answered 304 to an unconditional request")
            logger.info(f"Denylist at {self.url} not modified since ETag {etag}")
            return FetchResult(hashes=(), etag=etag, not_modified=True)

        hashes = parse_denylist(response.text)
        new_etag = response.headers.get("ETag")
        logger.info(f"Fetched {len(hashes)} denylist entries from {self.url}")
        return FetchResult(hashes=tuple(hashes), etag=new_etag)

    def _request(self, headers: dict) -> httpx.Response:
        response = self.client.get(self.url, headers=headers)
        if response.status_code == 304:
            return response
        response.raise_for_status()
        return response

    def _log_retry(self, retry_state) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"Denylist fetch attempt {retry_state.attempt_number}/{self.retries + 1} failed: {exc}"
        )

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
