# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

from dataclasses import dataclass

import httpx
from loguru import logger

from coreason_ingest.exceptions import FetchFailure
from coreason_ingest.models import UploadHandle
from coreason_ingest.store import RemoteStore


@dataclass(frozen=True)
class FetchedResource:
    content: bytes
    mime_type: str


class RemoteUploader:
    """Fetches resources by URL and hands their bytes to the remote store.

    No retries here: failures propagate to the caller, which decides what a
    lost file costs.
    """

    def __init__(
        self,
        store: RemoteStore,
        client: httpx.AsyncClient | None = None,
        default_mime_type: str = "application/octet-stream",
        timeout: float = 60.0,
    ):
        """Initializes the RemoteUploader.

        Args:
            store: The remote store receiving the uploads.
            client: Optional httpx.AsyncClient for connection pooling.
            default_mime_type: MIME type used when the response declares none.
            timeout: Fetch timeout in seconds, used for an internally created client.
        """
        self.store = store
        self.default_mime_type = default_mime_type
        self._internal_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def __aenter__(self) -> "RemoteUploader":
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Closes the HTTP client if this uploader created it."""
        if self._internal_client:
            await self._client.aclose()

    async def fetch(self, locator: str) -> FetchedResource:
        """GET the resource and determine its MIME type.

        Args:
            locator: The URL to fetch.

        Returns:
            FetchedResource: The raw bytes and the declared (or default) MIME type.

        Raises:
            FetchFailure: On a transport error or a non-success status.
        """
        try:
            response = await self._client.get(locator)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchFailure(
                f"Failed to fetch file from URL: {locator}, Status: {e.response.status_code} {e.response.reason_phrase}",
                locator,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchFailure(f"Failed to fetch file from URL: {locator}: {e}", locator) from e

        declared = response.headers.get("content-type", "")
        mime_type = declared.split(";", 1)[0].strip() or self.default_mime_type
        return FetchedResource(content=response.content, mime_type=mime_type)

    async def upload(self, locator: str) -> UploadHandle:
        """Fetch a resource and upload it to the remote store.

        Args:
            locator: The URL of the resource.

        Returns:
            UploadHandle: The new handle, typically still processing.

        Raises:
            FetchFailure: If the resource cannot be fetched.
            UploadFailure: If the store rejects the upload.
            UploadProtocolFailure: If the store's response is malformed.
        """
        resource = await self.fetch(locator)
        logger.info(
            f"Uploading file to remote store: URL={locator}, MimeType={resource.mime_type}, "
            f"Size={len(resource.content)} bytes"
        )
        return await self.store.upload(resource.content, resource.mime_type, display_name=locator)
