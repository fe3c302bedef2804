# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

"""Structured, leveled diagnostics collected during one ingestion call."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from loguru import logger

Severity = Literal["info", "warning", "error"]


class DiagnosticKind(str, Enum):
    MALFORMED_HISTORY_ITEM = "malformed_history_item"
    MALFORMED_FILE_DATA = "malformed_file_data"
    MALFORMED_FILE_DESCRIPTOR = "malformed_file_descriptor"
    FETCH_FAILED = "fetch_failed"
    UPLOAD_FAILED = "upload_failed"
    ACTIVATION_FAILED = "activation_failed"
    ACTIVATION_TIMED_OUT = "activation_timed_out"
    EMPTY_ITEM = "empty_item"
    NO_CONTENT = "no_content"


@dataclass(frozen=True)
class Diagnostic:
    """A single non-fatal (or, for NO_CONTENT, fatal) observation.

    Attributes:
        kind: What went wrong.
        severity: info, warning or error.
        item: Which turn it concerns, e.g. ``history[2]`` or ``current``.
        detail: Human-readable explanation.
        locator: The file locator involved, if any.
    """

    kind: DiagnosticKind
    severity: Severity
    item: str
    detail: str
    locator: str | None = None


@dataclass
class DiagnosticLog:
    """Collects diagnostics for one turn and mirrors them to the logger."""

    entries: list[Diagnostic] = field(default_factory=list)

    def record(
        self,
        kind: DiagnosticKind,
        item: str,
        detail: str,
        *,
        locator: str | None = None,
        severity: Severity = "warning",
    ) -> Diagnostic:
        diagnostic = Diagnostic(kind=kind, severity=severity, item=item, detail=detail, locator=locator)
        self.entries.append(diagnostic)
        # bind() rather than kwargs: detail may hold raw JSON with braces
        logger.bind(kind=kind.value, locator=locator).log(severity.upper(), f"[{item}] {detail}")
        return diagnostic

    def extend(self, other: "DiagnosticLog") -> None:
        self.entries.extend(other.entries)

    def kinds(self) -> list[DiagnosticKind]:
        return [entry.kind for entry in self.entries]
