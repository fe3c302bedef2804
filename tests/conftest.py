# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

from typing import Any, Callable
from unittest.mock import AsyncMock

import httpx
import pytest
from coreason_ingest.config import GEMINI_FILES_PREFIX
from coreason_ingest.models import FileState, UploadHandle
from coreason_ingest.orchestrator import IngestionOrchestrator
from coreason_ingest.uploader import RemoteUploader
from coreason_ingest.waiter import ActivationWaiter


class FakeStore:
    """In-memory RemoteStore.

    Uploaded files become active on the first poll unless their locator is
    listed in ``failing`` (FAILED) or ``stuck`` (never leaves PROCESSING).
    ``scripts`` overrides the answers for a handle id, one per poll; the last
    answer repeats. An answer may be an exception to raise.
    """

    def __init__(self) -> None:
        self.uploads: list[tuple[bytes, str, str | None]] = []
        self.get_calls: list[str] = []
        self.failing: set[str] = set()
        self.stuck: set[str] = set()
        self.upload_errors: dict[str, Exception] = {}
        self.scripts: dict[str, list[Any]] = {}
        self.mime_types: dict[str, str] = {}
        self.locators: dict[str, str] = {}
        self._counter = 0

    async def upload(self, content: bytes, mime_type: str, *, display_name: str | None = None) -> UploadHandle:
        self.uploads.append((content, mime_type, display_name))
        if display_name in self.upload_errors:
            raise self.upload_errors[display_name]
        self._counter += 1
        handle_id = f"files/f{self._counter}"
        self.mime_types[handle_id] = mime_type
        self.locators[handle_id] = display_name or ""
        return UploadHandle(id=handle_id, uri=self.uri_for(handle_id), mime_type=mime_type)

    async def get(self, handle_id: str) -> UploadHandle:
        self.get_calls.append(handle_id)
        answer = self._next_answer(handle_id)
        if isinstance(answer, Exception):
            raise answer
        return UploadHandle(
            id=handle_id,
            uri=self.uri_for(handle_id),
            mime_type=self.mime_types.get(handle_id, "application/pdf"),
            state=answer,
        )

    def handle_id_for(self, uri: str) -> str:
        return "files/" + uri[len(GEMINI_FILES_PREFIX) :]

    @staticmethod
    def uri_for(handle_id: str) -> str:
        return GEMINI_FILES_PREFIX + handle_id.split("/", 1)[1]

    def _next_answer(self, handle_id: str) -> Any:
        script = self.scripts.get(handle_id)
        if script:
            return script.pop(0) if len(script) > 1 else script[0]
        locator = self.locators.get(handle_id)
        if locator in self.failing:
            return FileState.FAILED
        if locator in self.stuck:
            return FileState.PROCESSING
        return FileState.ACTIVE


def serve_files(request: httpx.Request) -> httpx.Response:
    """MockTransport handler: /missing* is 404, /boom* is 500, anything else is served."""
    path = request.url.path
    if path.startswith("/missing"):
        return httpx.Response(404)
    if path.startswith("/boom"):
        return httpx.Response(500)
    content_type = "image/png" if path.endswith(".png") else "application/pdf"
    return httpx.Response(200, content=f"bytes of {path}".encode(), headers={"content-type": content_type})


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(serve_files))


@pytest.fixture
def instant_sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def make_orchestrator(
    fake_store: FakeStore, http_client: httpx.AsyncClient, instant_sleep: AsyncMock
) -> Callable[..., IngestionOrchestrator]:
    def _make(max_attempts: int = 3, **kwargs: Any) -> IngestionOrchestrator:
        uploader = RemoteUploader(fake_store, client=http_client)
        waiter = ActivationWaiter(fake_store, poll_interval=0.01, max_attempts=max_attempts, sleep=instant_sleep)
        return IngestionOrchestrator(uploader, waiter, **kwargs)

    return _make
