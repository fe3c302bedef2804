# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from coreason_ingest.generation import GenerationService, to_genai_contents
from coreason_ingest.models import ContentBlock, ConversationContext, FileRefPart, TextPart
from google.genai import types


@pytest.fixture
def context() -> ConversationContext:
    return ConversationContext(
        blocks=[
            ContentBlock(role="model", parts=[TextPart(text="earlier")]),
            ContentBlock(
                role="user",
                parts=[TextPart(text="what is this?"), FileRefPart(uri="https://x/files/1", mime_type="image/png")],
            ),
        ]
    )


@pytest.fixture
def mock_client() -> Any:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    return client


def _response(text: str | None) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)]))]
    )


def test_to_genai_contents_preserves_order(context: ConversationContext) -> None:
    contents = to_genai_contents(context)

    assert [content.role for content in contents] == ["model", "user"]
    parts = contents[1].parts
    assert parts is not None
    assert parts[0].text == "what is this?"
    assert parts[1].file_data is not None
    assert parts[1].file_data.file_uri == "https://x/files/1"
    assert parts[1].file_data.mime_type == "image/png"


@pytest.mark.asyncio
async def test_generate_returns_first_text(mock_client: Any, context: ConversationContext) -> None:
    mock_client.aio.models.generate_content.return_value = _response("a cat")

    text = await GenerationService(mock_client).generate(context, "gemini-test", "be brief", temperature=0.3)

    assert text == "a cat"
    kwargs = mock_client.aio.models.generate_content.await_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert len(kwargs["contents"]) == 2
    assert kwargs["config"].system_instruction == "be brief"
    assert kwargs["config"].temperature == 0.3


@pytest.mark.asyncio
async def test_temperature_omitted_when_not_given(mock_client: Any, context: ConversationContext) -> None:
    mock_client.aio.models.generate_content.return_value = _response("ok")
    await GenerationService(mock_client).generate(context, "m", "s")
    assert mock_client.aio.models.generate_content.await_args.kwargs["config"].temperature is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        types.GenerateContentResponse(candidates=[]),
        types.GenerateContentResponse(),
        types.GenerateContentResponse(candidates=[types.Candidate()]),
        types.GenerateContentResponse(candidates=[types.Candidate(content=types.Content(parts=[]))]),
    ],
)
async def test_missing_text_yields_empty_string(
    mock_client: Any, context: ConversationContext, response: types.GenerateContentResponse
) -> None:
    mock_client.aio.models.generate_content.return_value = response
    assert await GenerationService(mock_client).generate(context, "m", "s") == ""
