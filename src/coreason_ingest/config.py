# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

import os
from typing import Any

from loguru import logger
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

GEMINI_FILES_PREFIX = "https://generativelanguage.googleapis.com/v1beta/files/"
DEFAULT_SYSTEM_INSTRUCTION = "你是智能助手，你一直用中文回复解决问题。"


class SecretsSettingsSource(PydanticBaseSettingsSource):
    """
    Custom Pydantic Settings Source that reads provider secrets from their
    conventional, un-prefixed environment variables.
    """

    # Config Field -> candidate environment variables, first hit wins
    mapping: dict[str, tuple[str, ...]] = {
        "gemini_api_key": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    }

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        # Unused since __call__ returns the full dict, but required by the ABC.
        return None, field_name, False  # pragma: no cover

    def __call__(self) -> dict[str, Any]:
        secrets: dict[str, Any] = {}
        for field, keys in self.mapping.items():
            for key in keys:
                val = os.getenv(key)
                if val:
                    secrets[field] = val
                    break
            else:
                logger.debug(f"Secret for {field} not found in environment.")
        return secrets


class IngestConfig(BaseSettings):
    """
    Configuration for remote-resource ingestion and conversation assembly.
    """

    gemini_api_key: str | None = None

    # Remote store
    remote_uri_prefix: str = GEMINI_FILES_PREFIX
    poll_interval: float = 2.5
    max_poll_attempts: int = 20

    # Remote fetch
    fetch_timeout: float = 60.0
    default_mime_type: str = "application/octet-stream"

    # Whole-call deadline in seconds, None for no deadline
    request_timeout: float | None = None

    # Generation
    default_model: str = "gemini-2.5-flash-preview-05-20"
    default_system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION

    log_level: str = "INFO"
    log_dir: str | None = "logs"

    model_config = SettingsConfigDict(
        env_prefix="COREASON_INGEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            SecretsSettingsSource(settings_cls),
            file_secret_settings,
        )
