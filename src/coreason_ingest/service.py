# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

import traceback
from typing import Any

import anyio
import httpx
from google import genai
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from coreason_ingest.config import IngestConfig
from coreason_ingest.exceptions import NoContent
from coreason_ingest.generation import GenerationService
from coreason_ingest.models import UploadRecord
from coreason_ingest.orchestrator import IngestionOrchestrator
from coreason_ingest.store import GeminiFileStore


class ChatRequest(BaseModel):
    """An inbound chat request, accepting the wire names callers already send."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", protected_namespaces=())

    apikey: str | None = None
    temperature: float | None = None
    system_instruction: str | None = Field(default=None, alias="systemInstruction")
    model_name: str | None = Field(default=None, alias="modelName")
    input: str | None = None
    file_url: Any = Field(default=None, alias="fileURL")
    message_history: Any = Field(default=None, alias="MessageHistory")

    @field_validator("temperature", mode="before")
    @classmethod
    def _numeric_temperature(cls, value: Any) -> float | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)

    @field_validator("apikey", "system_instruction", "model_name", "input", mode="before")
    @classmethod
    def _strings_only(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


class ChatResponse(BaseModel):
    """The outcome of a chat request."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    response: str
    file_datas: list[UploadRecord] = Field(default_factory=list, alias="fileDatas")
    details: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ChatService:
    """Async-native chat service.

    Ingests the conversation, then hands the assembled context to the
    generation model. Failures are reported in the response rather than raised.
    """

    def __init__(
        self,
        config: IngestConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initializes the ChatService.

        Args:
            config: Ingestion and generation settings.
            client: Optional httpx.AsyncClient for remote fetches.
        """
        self.config = config or IngestConfig()
        self._internal_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.config.fetch_timeout, follow_redirects=True)

    async def __aenter__(self) -> "ChatService":
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        if self._internal_client:
            await self._client.aclose()

    def _genai_client(self, api_key: str) -> genai.Client:
        return genai.Client(api_key=api_key)

    async def process(self, request: ChatRequest) -> ChatResponse:
        """Handle one chat request end to end.

        Args:
            request: The validated request.

        Returns:
            ChatResponse: Generated text and newly uploaded files on success;
            an explanation otherwise.
        """
        api_key = request.apikey or self.config.gemini_api_key
        if not api_key:
            return ChatResponse(success=False, response="apikey is missing in the request payload.")

        try:
            client = self._genai_client(api_key)
            store = GeminiFileStore(client=client, uri_prefix=self.config.remote_uri_prefix)
            orchestrator = IngestionOrchestrator.from_config(self.config, store, client=self._client)

            try:
                result = await orchestrator.ingest(request.message_history, request.input, request.file_url)
            except NoContent as e:
                logger.warning(f"Nothing to send: {e}")
                return ChatResponse(success=False, response=str(e))

            model = (request.model_name or "").strip() or self.config.default_model
            system_instruction = (request.system_instruction or "").strip() or self.config.default_system_instruction
            logger.info(f"Using model: {model}, temperature: {request.temperature}")

            text = await GenerationService(client).generate(
                result.context,
                model=model,
                system_instruction=system_instruction,
                temperature=request.temperature,
            )
            return ChatResponse(success=True, response=text, file_datas=result.uploads)

        except Exception as e:
            logger.exception("Error processing chat request")
            return ChatResponse(
                success=False,
                response=f"Internal server error: {e}",
                details=traceback.format_exc(),
            )

    async def process_payload(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Validate a raw payload, process it, and return the wire response."""
        response = await self.process(ChatRequest.model_validate(payload))
        return response.to_payload()


class Chat:
    """Sync Facade for ChatService.

    Each call runs a fresh ChatService in its own event loop via anyio.run.
    """

    def __init__(self, config: IngestConfig | None = None):
        self.config = config or IngestConfig()

    def process(self, request: ChatRequest) -> ChatResponse:
        """Handle one chat request synchronously."""

        async def _run() -> ChatResponse:
            async with ChatService(self.config) as service:
                return await service.process(request)

        return anyio.run(_run)
