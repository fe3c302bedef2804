# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

"""Data models for inbound conversation turns."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr, field_validator


class FileDescriptor(BaseModel):
    """A file attached to a history entry."""

    model_config = ConfigDict(extra="ignore")

    uri: StrictStr = Field(min_length=1)
    mime_type: StrictStr = Field(min_length=1, validation_alias=AliasChoices("mimeType", "mime_type"))

    @field_validator("uri", "mime_type", mode="after")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class HistoryItem(BaseModel):
    """A prior turn as supplied by the caller.

    ``file_data`` stays raw here: it may be a JSON string or a list, and is
    decoded separately so that a bad payload only costs the files, not the item.
    """

    model_config = ConfigDict(extra="ignore")

    role: StrictStr
    text: str | None = None
    file_data: Any = Field(default=None, validation_alias=AliasChoices("filedata", "fileData", "file_data"))

    @field_validator("text", mode="before")
    @classmethod
    def _ignore_non_string_text(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None
