# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

"""Data models for file references, remote handles and upload records."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FileOrigin(str, Enum):
    """Where a file locator points."""

    ALREADY_REMOTE = "already_remote"
    NEEDS_UPLOAD = "needs_upload"


class FileState(str, Enum):
    """Processing state reported by the remote store."""

    PROCESSING = "processing"
    ACTIVE = "active"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not FileState.PROCESSING


class FileReference(BaseModel):
    """A classified file locator.

    Attributes:
        origin: Whether the locator is already hosted by the remote store.
        locator: The URI or URL as supplied by the caller.
        mime_type: The caller-declared MIME type, if any.
    """

    model_config = ConfigDict(frozen=True)

    origin: FileOrigin
    locator: str
    mime_type: str | None = None


class UploadHandle(BaseModel):
    """A file known to the remote store.

    Attributes:
        id: The store's identifier, used for status lookups.
        uri: The URI under which the file is referenced in content.
        mime_type: The MIME type recorded by the store.
        state: The last observed processing state.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    uri: str = Field(min_length=1)
    mime_type: str
    state: FileState = FileState.PROCESSING


class UploadRecord(BaseModel):
    """Bookkeeping entry for a file uploaded and activated during one call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uri: str
    mime_type: str = Field(serialization_alias="mimeType")
