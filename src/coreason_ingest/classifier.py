# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

from coreason_ingest.config import GEMINI_FILES_PREFIX
from coreason_ingest.models import FileOrigin, FileReference


def classify(locator: str, mime_type: str | None = None, *, prefix: str = GEMINI_FILES_PREFIX) -> FileReference:
    """Decide whether a locator is already hosted by the remote store.

    Pure: no I/O and no failure mode. Locators under ``prefix`` are used
    verbatim and never re-uploaded.

    Args:
        locator: The URI or URL as supplied by the caller.
        mime_type: The caller-declared MIME type, if any.
        prefix: The remote store's canonical URI prefix.

    Returns:
        FileReference: The classified reference.
    """
    origin = FileOrigin.ALREADY_REMOTE if locator.startswith(prefix) else FileOrigin.NEEDS_UPLOAD
    return FileReference(origin=origin, locator=locator, mime_type=mime_type)
