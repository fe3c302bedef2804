# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

"""
coreason-ingest
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .assembler import assemble
from .classifier import classify
from .config import IngestConfig
from .exceptions import (
    ActivationFailed,
    ActivationTimedOut,
    FetchFailure,
    FileIngestError,
    IngestError,
    MalformedInputItem,
    NoContent,
    UploadFailure,
    UploadProtocolFailure,
)
from .models import ContentBlock, ConversationContext, FileRefPart, TextPart, UploadHandle, UploadRecord
from .orchestrator import IngestionOrchestrator, IngestResult
from .parsing import parse_file_locators
from .service import Chat, ChatRequest, ChatResponse, ChatService
from .store import GeminiFileStore, RemoteStore
from .uploader import RemoteUploader
from .waiter import ActivationState, ActivationWaiter

__all__ = [
    "ActivationFailed",
    "ActivationState",
    "ActivationTimedOut",
    "ActivationWaiter",
    "Chat",
    "ChatRequest",
    "ChatResponse",
    "ChatService",
    "ContentBlock",
    "ConversationContext",
    "FetchFailure",
    "FileIngestError",
    "FileRefPart",
    "GeminiFileStore",
    "IngestConfig",
    "IngestError",
    "IngestResult",
    "IngestionOrchestrator",
    "MalformedInputItem",
    "NoContent",
    "RemoteStore",
    "RemoteUploader",
    "TextPart",
    "UploadFailure",
    "UploadHandle",
    "UploadProtocolFailure",
    "UploadRecord",
    "assemble",
    "classify",
    "parse_file_locators",
]
