# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

"""Schema-validated parsing of caller-supplied turns and file locators.

Every parser returns a tagged result instead of raising, so the orchestrator
decides in one place what a malformed item costs.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from coreason_ingest.exceptions import MalformedInputItem
from coreason_ingest.models import FileDescriptor, HistoryItem

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Invalid:
    reason: str
    raw: Any = None

    def unwrap(self) -> Any:
        raise MalformedInputItem(self.reason, self.raw)


ParseResult = Valid[T] | Invalid


def _describe(error: ValidationError) -> str:
    problems = []
    for err in error.errors():
        where = ".".join(str(part) for part in err["loc"]) or "item"
        problems.append(f"{where}: {err['msg']}")
    return "; ".join(problems)


def _validate(model: type[M], raw: Any) -> ParseResult[M]:
    try:
        return Valid(model.model_validate(raw))
    except ValidationError as e:
        return Invalid(_describe(e), raw)


def parse_history_item(raw: Any) -> ParseResult[HistoryItem]:
    """Validate one history entry; it must be a mapping with a string role."""
    return _validate(HistoryItem, raw)


def parse_file_descriptor(raw: Any) -> ParseResult[FileDescriptor]:
    """Validate one ``{uri, mimeType}`` descriptor from a history entry."""
    return _validate(FileDescriptor, raw)


def parse_file_data(raw: Any) -> ParseResult[list[Any]]:
    """Decode a history entry's file data into a list of raw descriptors.

    Accepts a list as-is, or a JSON-encoded list in a string. Missing or blank
    values mean "no files". Anything else is Invalid; the caller treats that
    as "no files" too, but reports it.
    """
    if raw is None:
        return Valid([])
    if isinstance(raw, list):
        return Valid(raw)
    if isinstance(raw, str):
        if not raw.strip():
            return Valid([])
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as e:
            return Invalid(f"file data is not valid JSON ({e.msg})", raw)
        if not isinstance(decoded, list):
            return Invalid(f"file data decoded to {type(decoded).__name__}, expected a list", raw)
        return Valid(decoded)
    return Invalid(f"unsupported file data type: {type(raw).__name__}", raw)


# File locator lists. Each parser returns None when its form does not apply,
# handing the raw value to the next parser in LOCATOR_PARSERS.


def _clean(values: list[Any]) -> list[str]:
    return [value.strip() for value in values if isinstance(value, str) and value.strip()]


def locators_from_array(raw: Any) -> list[str] | None:
    if isinstance(raw, (list, tuple)):
        return _clean(list(raw))
    return None


def locators_from_json_array(raw: Any) -> list[str] | None:
    if not isinstance(raw, str):
        return None
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(decoded, list):
        return None
    return _clean(decoded)


def locators_from_comma_separated(raw: Any) -> list[str] | None:
    if isinstance(raw, str) and "," in raw:
        return _clean(raw.split(","))
    return None


def locators_from_literal(raw: Any) -> list[str] | None:
    if isinstance(raw, str):
        return _clean([raw])
    return None


LOCATOR_PARSERS: tuple[Callable[[Any], list[str] | None], ...] = (
    locators_from_array,
    locators_from_json_array,
    locators_from_comma_separated,
    locators_from_literal,
)


def parse_file_locators(raw: Any) -> list[str]:
    """Normalize the current turn's file locators into an ordered list.

    Precedence: native array, JSON-encoded array, comma-separated string,
    single literal locator.

    Args:
        raw: None, a string, or a list of strings.

    Returns:
        list[str]: The non-blank locators in caller order.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return []
    for parser in LOCATOR_PARSERS:
        parsed = parser(raw)
        if parsed is not None:
            return parsed
    return []
