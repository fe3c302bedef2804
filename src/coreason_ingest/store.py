# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

import io
from typing import Any, Protocol, runtime_checkable

from google import genai
from google.genai import errors, types
from loguru import logger

from coreason_ingest.config import GEMINI_FILES_PREFIX
from coreason_ingest.exceptions import ResourceNotFound, UploadFailure, UploadProtocolFailure
from coreason_ingest.models import FileState, UploadHandle

NOT_FOUND_CODES = frozenset({404})

_STATES = {
    types.FileState.ACTIVE: FileState.ACTIVE,
    types.FileState.FAILED: FileState.FAILED,
}


@runtime_checkable
class RemoteStore(Protocol):
    """Protocol for the asynchronous file-processing service."""

    async def upload(self, content: bytes, mime_type: str, *, display_name: str | None = None) -> UploadHandle:
        """Submit raw bytes and return a handle, normally still processing.

        Raises:
            UploadFailure: If the store rejects the upload.
            UploadProtocolFailure: If the response lacks an identifier or URI.
        """
        ...

    async def get(self, handle_id: str) -> UploadHandle:
        """Fetch the current state of a handle.

        Raises:
            ResourceNotFound: If the store no longer knows the handle.
        """
        ...

    def handle_id_for(self, uri: str) -> str:
        """Derive the status-lookup identifier from a remote URI."""
        ...


class GeminiFileStore:
    """Gemini File API implementation of the RemoteStore protocol.

    The upload call is expected to return a bare ``types.File``; any other
    shape is a protocol failure rather than something to guess around.
    """

    def __init__(
        self,
        client: genai.Client | None = None,
        api_key: str | None = None,
        uri_prefix: str = GEMINI_FILES_PREFIX,
    ):
        """Initializes the GeminiFileStore.

        Args:
            client: Optional pre-built genai client.
            api_key: API key used when no client is given.
            uri_prefix: Prefix of URIs hosted by the File API.
        """
        self.client = client or genai.Client(api_key=api_key)
        self.uri_prefix = uri_prefix

    async def upload(self, content: bytes, mime_type: str, *, display_name: str | None = None) -> UploadHandle:
        config = types.UploadFileConfig(mime_type=mime_type, display_name=_display_name(display_name))
        try:
            uploaded = await self.client.aio.files.upload(file=io.BytesIO(content), config=config)
        except errors.APIError as e:
            raise UploadFailure(f"Remote store rejected upload: {e}", display_name) from e
        except Exception as e:
            # The SDK lets transport errors such as httpx.ConnectError through unwrapped
            raise UploadFailure(f"Upload to remote store failed: {e}", display_name) from e

        handle = _to_handle(uploaded, mime_type, display_name)
        logger.info("File uploaded to remote store", uri=handle.uri, handle_id=handle.id, mime_type=handle.mime_type)
        return handle

    async def get(self, handle_id: str) -> UploadHandle:
        try:
            current = await self.client.aio.files.get(name=handle_id)
        except errors.ClientError as e:
            if e.code in NOT_FOUND_CODES:
                raise ResourceNotFound(handle_id) from e
            raise
        return _to_handle(current, None, handle_id)

    def handle_id_for(self, uri: str) -> str:
        if not uri.startswith(self.uri_prefix):
            raise ValueError(f"Not a remote store URI: {uri}")
        suffix = uri[len(self.uri_prefix) :].split("?", 1)[0].strip("/")
        return f"files/{suffix}"


def _display_name(locator: str | None) -> str | None:
    if not locator:
        return None
    # The File API caps display names at 512 characters
    return locator[-512:]


def _to_handle(response: Any, fallback_mime_type: str | None, locator: str | None) -> UploadHandle:
    if not isinstance(response, types.File):
        raise UploadProtocolFailure(
            f"Unexpected remote store response type: {type(response).__name__}", locator
        )
    if not response.name or not response.uri:
        raise UploadProtocolFailure("Remote store response is missing a file name or URI", locator)

    mime_type = response.mime_type or fallback_mime_type or "application/octet-stream"
    state = _STATES.get(response.state, FileState.PROCESSING) if response.state else FileState.PROCESSING
    return UploadHandle(id=response.name, uri=response.uri, mime_type=mime_type, state=state)
