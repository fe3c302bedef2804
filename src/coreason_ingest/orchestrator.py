# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx
from loguru import logger

from coreason_ingest.assembler import CURRENT_TURN_ROLE, assemble
from coreason_ingest.classifier import classify
from coreason_ingest.config import GEMINI_FILES_PREFIX, IngestConfig
from coreason_ingest.diagnostics import Diagnostic, DiagnosticKind, DiagnosticLog
from coreason_ingest.exceptions import (
    ActivationFailed,
    ActivationTimedOut,
    FetchFailure,
    NoContent,
    UploadFailure,
)
from coreason_ingest.models import (
    ContentBlock,
    ConversationContext,
    FileOrigin,
    FileReference,
    FileRefPart,
    UploadHandle,
    UploadRecord,
)
from coreason_ingest.parsing import (
    Invalid,
    parse_file_data,
    parse_file_descriptor,
    parse_file_locators,
    parse_history_item,
)
from coreason_ingest.store import RemoteStore
from coreason_ingest.uploader import RemoteUploader
from coreason_ingest.waiter import ActivationWaiter


@dataclass
class IngestResult:
    """Everything one ingestion call produced.

    Attributes:
        context: Ordered content blocks, history first.
        uploads: Files uploaded and activated during this call, in block order.
        diagnostics: Non-fatal observations, in block order.
    """

    context: ConversationContext
    uploads: list[UploadRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


@dataclass
class _TurnOutcome:
    block: ContentBlock | None = None
    uploads: list[UploadRecord] = field(default_factory=list)
    log: DiagnosticLog = field(default_factory=DiagnosticLog)


class IngestionOrchestrator:
    """Resolves every file in a conversation and assembles the context.

    Turns are processed concurrently; files within a turn are resolved one at
    a time so their order is preserved. A lost file or a malformed item is
    recorded and skipped. Only an empty result is an error.
    """

    def __init__(
        self,
        uploader: RemoteUploader,
        waiter: ActivationWaiter,
        remote_uri_prefix: str = GEMINI_FILES_PREFIX,
        timeout: float | None = None,
    ):
        """Initializes the IngestionOrchestrator.

        Args:
            uploader: Fetches and uploads files that are not yet remote.
            waiter: Polls handles until they are active.
            remote_uri_prefix: Prefix identifying already-remote URIs.
            timeout: Default deadline, in seconds, for a whole ingestion call.
        """
        self.uploader = uploader
        self.waiter = waiter
        self.store: RemoteStore = uploader.store
        self.remote_uri_prefix = remote_uri_prefix
        self.timeout = timeout

    @classmethod
    def from_config(
        cls,
        config: IngestConfig,
        store: RemoteStore,
        client: httpx.AsyncClient | None = None,
    ) -> "IngestionOrchestrator":
        """Wire an orchestrator from configuration.

        Args:
            config: Ingestion settings.
            store: The remote store.
            client: Optional httpx.AsyncClient for remote fetches.
        """
        uploader = RemoteUploader(
            store,
            client=client,
            default_mime_type=config.default_mime_type,
            timeout=config.fetch_timeout,
        )
        waiter = ActivationWaiter(
            store,
            poll_interval=config.poll_interval,
            max_attempts=config.max_poll_attempts,
        )
        return cls(uploader, waiter, remote_uri_prefix=config.remote_uri_prefix, timeout=config.request_timeout)

    async def __aenter__(self) -> "IngestionOrchestrator":
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.uploader.aclose()

    async def ingest(
        self,
        history: Any = None,
        current_text: str | None = None,
        current_file_locators: Any = None,
        *,
        timeout: float | None = None,
    ) -> IngestResult:
        """Assemble the full conversation context.

        Args:
            history: Ordered prior turns; anything other than a list is ignored.
            current_text: The current user input.
            current_file_locators: One locator, a list, a JSON-encoded list or a
                comma-separated string.
            timeout: Deadline in seconds for all activation polling; defaults to
                the orchestrator's configured timeout.

        Returns:
            IngestResult: The context, upload records and diagnostics.

        Raises:
            NoContent: If no turn produced a content block.
        """
        deadline = self.waiter.deadline_after(timeout if timeout is not None else self.timeout)

        if isinstance(history, (list, tuple)):
            items = list(history)
            logger.info(f"Processing message history: {len(items)} items")
        else:
            if history is not None:
                logger.warning(f"Ignoring message history of type {type(history).__name__}")
            items = []

        outcomes = await asyncio.gather(
            *(self._ingest_history_item(index, raw, deadline) for index, raw in enumerate(items)),
            self._ingest_current_turn(current_text, current_file_locators, deadline),
        )

        blocks: list[ContentBlock] = []
        uploads: list[UploadRecord] = []
        log = DiagnosticLog()
        for outcome in outcomes:
            if outcome.block is not None:
                blocks.append(outcome.block)
            uploads.extend(outcome.uploads)
            log.extend(outcome.log)

        if not blocks:
            log.record(
                DiagnosticKind.NO_CONTENT,
                "request",
                "No valid content found in input, file locators or message history.",
                severity="error",
            )
            raise NoContent(diagnostics=log.entries)

        logger.info(f"Assembled {len(blocks)} content blocks with {len(uploads)} new uploads")
        return IngestResult(context=ConversationContext(blocks=blocks), uploads=uploads, diagnostics=log.entries)

    async def _ingest_history_item(self, index: int, raw: Any, deadline: float | None) -> _TurnOutcome:
        label = f"history[{index}]"
        outcome = _TurnOutcome()

        parsed = parse_history_item(raw)
        if isinstance(parsed, Invalid):
            outcome.log.record(
                DiagnosticKind.MALFORMED_HISTORY_ITEM,
                label,
                f"Skipping malformed history item: {parsed.reason}",
            )
            return outcome
        item = parsed.value

        references: list[FileReference] = []
        file_data = parse_file_data(item.file_data)
        if isinstance(file_data, Invalid):
            outcome.log.record(
                DiagnosticKind.MALFORMED_FILE_DATA,
                label,
                f"Treating file data for role '{item.role}' as empty: {file_data.reason}",
            )
        else:
            for position, raw_descriptor in enumerate(file_data.value):
                descriptor = parse_file_descriptor(raw_descriptor)
                if isinstance(descriptor, Invalid):
                    outcome.log.record(
                        DiagnosticKind.MALFORMED_FILE_DESCRIPTOR,
                        label,
                        f"Skipping malformed file descriptor #{position}: {descriptor.reason}",
                    )
                    continue
                references.append(
                    classify(descriptor.value.uri, descriptor.value.mime_type, prefix=self.remote_uri_prefix)
                )

        files = await self._resolve_all(references, label, outcome, deadline)
        outcome.block = assemble(item.role, item.text, files)
        if outcome.block is None:
            outcome.log.record(
                DiagnosticKind.EMPTY_ITEM,
                label,
                f"History item for role '{item.role}' has no valid parts, skipping.",
                severity="info",
            )
        return outcome

    async def _ingest_current_turn(self, text: str | None, raw_locators: Any, deadline: float | None) -> _TurnOutcome:
        label = "current"
        outcome = _TurnOutcome()

        locators = parse_file_locators(raw_locators)
        references = [classify(locator, prefix=self.remote_uri_prefix) for locator in locators]
        files = await self._resolve_all(references, label, outcome, deadline)

        outcome.block = assemble(CURRENT_TURN_ROLE, text, files)
        if outcome.block is None:
            outcome.log.record(
                DiagnosticKind.EMPTY_ITEM,
                label,
                "Current user input has no text and no usable files.",
                severity="info",
            )
        return outcome

    async def _resolve_all(
        self,
        references: Sequence[FileReference],
        label: str,
        outcome: _TurnOutcome,
        deadline: float | None,
    ) -> list[FileRefPart]:
        # Sequential on purpose: part order must follow caller order.
        files: list[FileRefPart] = []
        for reference in references:
            resolved = await self._resolve(reference, label, outcome.log, deadline)
            if resolved is None:
                continue
            part, record = resolved
            files.append(part)
            if record is not None:
                outcome.uploads.append(record)
        return files

    async def _resolve(
        self,
        reference: FileReference,
        label: str,
        log: DiagnosticLog,
        deadline: float | None,
    ) -> tuple[FileRefPart, UploadRecord | None] | None:
        locator = reference.locator
        try:
            if reference.origin is FileOrigin.ALREADY_REMOTE:
                return await self._resolve_remote(reference, deadline), None

            handle = await self.uploader.upload(locator)
            active = await self.waiter.await_active(handle, deadline)
        except FetchFailure as e:
            log.record(DiagnosticKind.FETCH_FAILED, label, str(e), locator=locator)
        except UploadFailure as e:
            log.record(DiagnosticKind.UPLOAD_FAILED, label, str(e), locator=locator)
        except ActivationFailed as e:
            log.record(DiagnosticKind.ACTIVATION_FAILED, label, str(e), locator=locator)
        except ActivationTimedOut as e:
            log.record(DiagnosticKind.ACTIVATION_TIMED_OUT, label, str(e), locator=locator)
        else:
            logger.info(f"Uploaded and added new file from {label}: {active.uri}")
            part = FileRefPart(uri=active.uri, mime_type=active.mime_type)
            return part, UploadRecord(uri=active.uri, mime_type=active.mime_type)
        return None

    async def _resolve_remote(self, reference: FileReference, deadline: float | None) -> FileRefPart:
        if reference.mime_type:
            logger.info(f"Using existing file URI: {reference.locator}")
            return FileRefPart(uri=reference.locator, mime_type=reference.mime_type)

        # No declared MIME type: one status lookup supplies it and confirms the file is usable.
        try:
            handle_id = self.store.handle_id_for(reference.locator)
        except ValueError as e:
            raise ActivationFailed(str(e), reference.locator) from e
        pending = UploadHandle(id=handle_id, uri=reference.locator, mime_type=self.uploader.default_mime_type)
        active = await self.waiter.await_active(pending, deadline)
        return FileRefPart(uri=reference.locator, mime_type=active.mime_type)
