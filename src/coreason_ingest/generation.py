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

from google import genai
from google.genai import types
from loguru import logger

from coreason_ingest.models import ContentBlock, ConversationContext, FileRefPart, TextPart


def to_genai_content(block: ContentBlock) -> types.Content:
    parts: list[types.Part] = []
    for part in block.parts:
        if isinstance(part, TextPart):
            parts.append(types.Part.from_text(text=part.text))
        elif isinstance(part, FileRefPart):
            parts.append(types.Part.from_uri(file_uri=part.uri, mime_type=part.mime_type))
    return types.Content(role=block.role, parts=parts)


def to_genai_contents(context: ConversationContext) -> list[types.Content]:
    """Convert an assembled context into the SDK's content objects, order preserved."""
    return [to_genai_content(block) for block in context.blocks]


class GenerationService:
    """Sends an assembled conversation to the generation model."""

    def __init__(self, client: genai.Client):
        self.client = client

    async def generate(
        self,
        context: ConversationContext,
        model: str,
        system_instruction: str,
        temperature: float | None = None,
    ) -> str:
        """Generate a reply for the conversation.

        Args:
            context: The assembled conversation.
            model: Model name.
            system_instruction: System instruction sent with the request.
            temperature: Sampling temperature; omitted from the request when None.

        Returns:
            str: The first candidate's first text part, or "" if there is none.
        """
        options: dict[str, Any] = {"system_instruction": system_instruction}
        if temperature is not None:
            options["temperature"] = temperature
        config = types.GenerateContentConfig(**options)

        logger.info(f"Sending {len(context.blocks)} content blocks to {model}")
        response = await self.client.aio.models.generate_content(
            model=model,
            contents=to_genai_contents(context),
            config=config,
        )

        text = _first_text(response)
        logger.info(f"Generated text: {text[:100]}...")
        return text


def _first_text(response: types.GenerateContentResponse) -> str:
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return ""
    parts = candidates[0].content.parts or []
    if not parts:
        return ""
    return parts[0].text or ""
