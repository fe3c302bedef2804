# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

from collections.abc import Sequence

from loguru import logger

from coreason_ingest.models import ContentBlock, FileRefPart, TextPart

CURRENT_TURN_ROLE = "user"


def assemble(role: str, text: str | None, files: Sequence[FileRefPart]) -> ContentBlock | None:
    """Build one content block from a turn's text and activated files.

    Text comes first when it is non-blank, then one part per file in the
    order given. Returns None when there is nothing to send; callers skip
    the turn silently in that case.

    Args:
        role: Role tag for the block.
        text: The turn's text, if any.
        files: File parts that reached Active, in caller order.

    Returns:
        ContentBlock | None: The block, or None if it would be empty.
    """
    parts: list[TextPart | FileRefPart] = []
    if isinstance(text, str) and text.strip():
        parts.append(TextPart(text=text))
        logger.debug(f"Added text for role '{role}': {text[:50]}...")
    parts.extend(files)

    if not parts:
        return None
    return ContentBlock(role=role, parts=parts)
