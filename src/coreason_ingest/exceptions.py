# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

"""Error taxonomy for the ingestion pipeline."""

from typing import Any


class IngestError(Exception):
    """Base class for all ingestion errors."""


class FileIngestError(IngestError):
    """A failure confined to a single file.

    The orchestrator drops the file and continues with its siblings.
    """

    def __init__(self, message: str, locator: str | None = None):
        super().__init__(message)
        self.locator = locator


class FetchFailure(FileIngestError):
    """The remote resource could not be fetched."""


class UploadFailure(FileIngestError):
    """The remote store rejected the upload."""


class UploadProtocolFailure(UploadFailure):
    """The remote store answered the upload with an unexpected shape."""


class ActivationFailed(FileIngestError):
    """The remote store reported a terminal failure, or the handle vanished."""


class ActivationTimedOut(FileIngestError):
    """The handle was still processing when the poll budget or deadline ran out."""


class ResourceNotFound(IngestError):
    """The remote store no longer knows the requested handle."""

    def __init__(self, handle_id: str):
        super().__init__(f"Remote resource not found: {handle_id}")
        self.handle_id = handle_id


class MalformedInputItem(IngestError):
    """A history entry or file descriptor has an unusable shape."""

    def __init__(self, reason: str, item: Any = None):
        super().__init__(reason)
        self.reason = reason
        self.item = item


class NoContent(IngestError):
    """Ingestion produced no content blocks at all."""

    def __init__(self, message: str = "No valid content found to send.", diagnostics: list[Any] | None = None):
        super().__init__(message)
        self.diagnostics = diagnostics or []
