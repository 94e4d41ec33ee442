"""
Azure Blob Storage segment store.

Uses one blob per key inside a single container. Blob uploads of this size
are single-shot PUTs, so a reader never sees a partially written key.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Optional, Set

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from ..errors import ValueTooLargeError
from ..settings import Settings
from .base import SegmentStore

__all__ = ["AzureSegmentStore"]

logger = logging.getLogger(__name__)

_RETRY_TOTAL = 5
_RETRY_BACKOFF = 0.4


class AzureSegmentStore(SegmentStore):
    """
    SegmentStore adapter for Azure Blob Storage.

    Supports connection string or account+key authentication and custom
    endpoints for Azurite and private Azure clouds. SDK errors are re-raised
    as OSError so callers handle every backend the same way.
    """

    def __init__(self, *, settings: Settings, container_client: Optional[Any] = None) -> None:
        """
        Initialize Azure store with settings.

        Args:
            settings: Settings containing Azure authentication and container name
            container_client: Pre-built ContainerClient (tests, custom auth)

        Raises:
            ValueError: If Azure authentication is not configured and no client given
        """
        self._settings = settings
        self.max_value_size = settings.max_value_size
        if container_client is None:
            container_client = self._create_container_client()
        self._container = container_client
        logger.debug(f"Azure segment store using container {settings.az_container}")

    def _create_container_client(self) -> Any:
        """
        Build a ContainerClient from settings.

        Connection patterns:
        1. Connection string, standard Azure cloud endpoints
        2. Connection string + custom endpoint (Azurite/private cloud)
        3. Account+key, https://{account}.blob.core.windows.net
        4. Account+key + custom endpoint: {endpoint}/{account}
        """
        settings = self._settings
        options = {
            "connection_timeout": settings.http_timeout_s,
            "retry_total": _RETRY_TOTAL,
            "retry_backoff_factor": _RETRY_BACKOFF,
        }

        if settings.az_connection_string:
            account_match = re.search(r"AccountName=([^;]+)", settings.az_connection_string)
            if settings.az_blob_endpoint and account_match:
                endpoint_url = f"{settings.az_blob_endpoint.rstrip('/')}/{account_match.group(1)}"
                service_client = BlobServiceClient(account_url=endpoint_url, credential=None, **options)
            else:
                service_client = BlobServiceClient.from_connection_string(
                    settings.az_connection_string, **options
                )
        elif settings.az_account and settings.az_key:
            if settings.az_blob_endpoint:
                account_url = f"{settings.az_blob_endpoint.rstrip('/')}/{settings.az_account}"
            else:
                account_url = f"https://{settings.az_account}.blob.core.windows.net"
            service_client = BlobServiceClient(account_url=account_url, credential=settings.az_key, **options)
        else:
            raise ValueError(
                "Azure authentication not configured: need AZURE_STORAGE_CONNECTION_STRING "
                "or (AZURE_STORAGE_ACCOUNT + AZURE_STORAGE_KEY)"
            )

        return service_client.get_container_client(settings.az_container)

    def get(self, key: str) -> Optional[str]:
        try:
            downloader = self._container.get_blob_client(key).download_blob(encoding="utf-8")
            return downloader.readall()
        except ResourceNotFoundError:
            return None
        except AzureError as e:
            raise OSError(f"Azure blob download error for {key}: {e}") from e

    def put(self, key: str, value: str) -> None:
        data = value.encode("utf-8")
        if len(data) > self.max_value_size:
            raise ValueTooLargeError(key, len(data), self.max_value_size)
        try:
            self._container.get_blob_client(key).upload_blob(data, overwrite=True)
        except AzureError as e:
            raise OSError(f"Azure blob upload error for {key}: {e}") from e

    def list_keys(self, prefix: str) -> Set[str]:
        try:
            return {blob.name for blob in self._container.list_blobs(name_starts_with=prefix)}
        except AzureError as e:
            raise OSError(f"Azure blob listing error for prefix {prefix}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._container.delete_blob(key)
        except ResourceNotFoundError:
            pass
        except AzureError as e:
            raise OSError(f"Azure blob delete error for {key}: {e}") from e
