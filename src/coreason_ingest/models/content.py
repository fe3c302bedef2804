# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

"""Data models for assembled conversation content."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class TextPart(BaseModel):
    """A plain text part."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str


class FileRefPart(BaseModel):
    """A part pointing at an activated remote file."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    uri: str
    mime_type: str


ContentPart = Annotated[Union[TextPart, FileRefPart], Field(discriminator="kind")]


class ContentBlock(BaseModel):
    """One role-tagged turn. Never empty."""

    model_config = ConfigDict(frozen=True)

    role: str
    parts: list[ContentPart] = Field(min_length=1)


class ConversationContext(BaseModel):
    """Ordered content blocks: history first, then the current turn."""

    blocks: list[ContentBlock] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.blocks)

    @property
    def is_empty(self) -> bool:
        return not self.blocks
