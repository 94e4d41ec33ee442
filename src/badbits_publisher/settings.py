"""
Settings and configuration for the bad bits publisher.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at construction time.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

from .storage.base import DEFAULT_MAX_VALUE_SIZE

__all__ = ["Settings", "create_settings_from_env", "DEFAULT_DENYLIST_URL", "STORE_BACKENDS"]

DEFAULT_DENYLIST_URL = "https://badbits.dwebops.pub/badbits.deny"
STORE_BACKENDS = ("memory", "file", "azure")


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the bad bits publisher.

    Source Settings:
        denylist_url: URL of the external denylist document
        http_timeout_s: HTTP request timeout in seconds
        http_retry: Number of retries for 5xx/transport failures (0=no retry)

    Publication Settings:
        kv_prefix: Prefix for every key written to the store
        max_value_size: Store per-value ceiling in bytes
        grace_period_s: How long superseded versions stay readable
        interval_s: Seconds between scheduled publish cycles
        write_concurrency: Number of segment writes issued in parallel

    Store Settings:
        store_backend: One of "memory", "file", "azure"
        store_path: Root directory for the file backend
        az_connection_string: Azure storage connection string
        az_account: Azure storage account name
        az_key: Azure storage account key
        az_container: Azure blob container holding the keys
        az_blob_endpoint: Custom Azure blob endpoint (for Azurite/private endpoints)
    """
    denylist_url: str = DEFAULT_DENYLIST_URL
    http_timeout_s: float = 30.0
    http_retry: int = 3

    kv_prefix: str = "bad-bits"
    max_value_size: int = DEFAULT_MAX_VALUE_SIZE
    grace_period_s: float = 300.0
    interval_s: float = 3600.0
    write_concurrency: int = 1

    store_backend: str = "file"
    store_path: str = ".badbits-store"
    az_connection_string: Optional[str] = None
    az_account: Optional[str] = None
    az_key: Optional[str] = None
    az_container: str = "bad-bits"
    az_blob_endpoint: Optional[str] = None

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.denylist_url:
            raise ValueError("denylist_url is required")
        if not re.match(r"^https?://[^\s/]+", self.denylist_url):
            raise ValueError(f"Invalid denylist_url format: {self.denylist_url}")

        if not self.kv_prefix or not re.match(r"^[A-Za-z0-9._-]+$", self.kv_prefix):
            raise ValueError(
                f"Invalid kv_prefix: {self.kv_prefix!r}. Use letters, digits, '.', '_' or '-'."
            )

        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")
        if self.http_retry < 0:
            raise ValueError(f"http_retry must be non-negative, got {self.http_retry}")
        if self.max_value_size <= 0:
            raise ValueError(f"max_value_size must be positive, got {self.max_value_size}")
        if self.grace_period_s < 0:
            raise ValueError(f"grace_period_s must be non-negative, got {self.grace_period_s}")
        if self.interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {self.interval_s}")
        if self.write_concurrency < 1:
            raise ValueError(f"write_concurrency must be at least 1, got {self.write_concurrency}")

        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(
                f"Unknown store_backend {self.store_backend!r}. Expected one of: {', '.join(STORE_BACKENDS)}"
            )
        if self.store_backend == "file" and not self.store_path:
            raise ValueError("store_path is required for the file store backend")

        # Azure auth: either connection string OR (account + key), never both
        has_conn_str = bool(self.az_connection_string)
        has_account_key = bool(self.az_account and self.az_key)
        if has_conn_str and has_account_key:
            raise ValueError("Specify either az_connection_string OR (az_account + az_key), not both")
        if self.az_account and not self.az_key:
            raise ValueError("az_account specified but az_key is missing")
        if self.az_key and not self.az_account:
            raise ValueError("az_key specified but az_account is missing")
        if self.store_backend == "azure" and not (has_conn_str or has_account_key):
            raise ValueError(
                "Azure store backend requires AZURE_STORAGE_CONNECTION_STRING "
                "or (AZURE_STORAGE_ACCOUNT + AZURE_STORAGE_KEY)"
            )


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        Source:
        - BADBITS_DENYLIST_URL (default: https://badbits.dwebops.pub/badbits.deny)
        - BADBITS_HTTP_TIMEOUT (default: 30.0)
        - BADBITS_HTTP_RETRY (default: 3)

        Publication:
        - BADBITS_KV_PREFIX (default: bad-bits)
        - BADBITS_MAX_VALUE_SIZE (default: 26214400)
        - BADBITS_GRACE_PERIOD (default: 300)
        - BADBITS_INTERVAL (default: 3600)
        - BADBITS_WRITE_CONCURRENCY (default: 1)

        Store:
        - BADBITS_STORE (default: file)
        - BADBITS_STORE_PATH (default: .badbits-store)
        - AZURE_STORAGE_CONNECTION_STRING (optional)
        - AZURE_STORAGE_ACCOUNT (optional)
        - AZURE_STORAGE_KEY (optional)
        - BADBITS_AZURE_CONTAINER (default: bad-bits)
        - BADBITS_AZURE_BLOB_ENDPOINT (optional, for Azurite/custom endpoints)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        try:
            return float(value) if value else default
        except ValueError:
            raise ValueError(f"{key} must be a number, got {value!r}") from None

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        try:
            return int(value) if value else default
        except ValueError:
            raise ValueError(f"{key} must be an integer, got {value!r}") from None

    return Settings(
        denylist_url=os.getenv("BADBITS_DENYLIST_URL") or DEFAULT_DENYLIST_URL,
        http_timeout_s=get_float("BADBITS_HTTP_TIMEOUT", 30.0),
        http_retry=get_int("BADBITS_HTTP_RETRY", 3),
        kv_prefix=os.getenv("BADBITS_KV_PREFIX") or "bad-bits",
        max_value_size=get_int("BADBITS_MAX_VALUE_SIZE", DEFAULT_MAX_VALUE_SIZE),
        grace_period_s=get_float("BADBITS_GRACE_PERIOD", 300.0),
        interval_s=get_float("BADBITS_INTERVAL", 3600.0),
        write_concurrency=get_int("BADBITS_WRITE_CONCURRENCY", 1),
        store_backend=os.getenv("BADBITS_STORE") or "file",
        store_path=os.getenv("BADBITS_STORE_PATH") or ".badbits-store",
        az_connection_string=os.getenv("AZURE_STORAGE_CONNECTION_STRING"),
        az_account=os.getenv("AZURE_STORAGE_ACCOUNT"),
        az_key=os.getenv("AZURE_STORAGE_KEY"),
        az_container=os.getenv("BADBITS_AZURE_CONTAINER") or "bad-bits",
        az_blob_endpoint=os.getenv("BADBITS_AZURE_BLOB_ENDPOINT"),
    )
