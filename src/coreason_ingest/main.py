# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from mcp.server.fastmcp import Context, FastMCP

from coreason_ingest.config import IngestConfig
from coreason_ingest.service import ChatRequest, ChatResponse, ChatService
from coreason_ingest.utils.logger import configure_logging

config = IngestConfig()


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[ChatService]:
    """Own one ChatService, and its HTTP client, for the life of the server."""
    async with ChatService(config) as service:
        yield service


# Initialize MCP Server
mcp = FastMCP("coreason-ingest", lifespan=lifespan)


@mcp.tool()  # type: ignore[misc]
async def chat(
    ctx: Context,
    input: str | None = None,
    file_url: str | list[str] | None = None,
    message_history: list[dict[str, Any]] | None = None,
    model_name: str | None = None,
    temperature: float | None = None,
    system_instruction: str | None = None,
) -> dict[str, Any]:
    """
    Send a conversational turn, with optional file URLs and prior history, to the model.
    Returns the generated text and the files uploaded for this call.
    """
    service: ChatService = ctx.request_context.lifespan_context
    request = ChatRequest(
        input=input,
        file_url=file_url,
        message_history=message_history,
        model_name=model_name,
        temperature=temperature,
        system_instruction=system_instruction,
    )
    response: ChatResponse = await service.process(request)
    return response.to_payload()


def main() -> None:
    """Entry point for the MCP server."""
    configure_logging(config.log_level, config.log_dir)
    mcp.run()


if __name__ == "__main__":  # pragma: no cover
    main()
