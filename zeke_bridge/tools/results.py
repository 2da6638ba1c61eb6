"""Tool results and upstream body formatting."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ..exceptions import DecodeError


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a tool invocation.

    Error results never carry a structured payload.
    """

    is_error: bool
    text: str
    structured: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.is_error and self.structured:
            raise ValueError("error results cannot carry a structured payload")

    @classmethod
    def error(cls, text: str) -> ToolResult:
        return cls(is_error=True, text=text)

    @classmethod
    def ok(cls, text: str, structured: dict[str, Any] | None = None) -> ToolResult:
        return cls(is_error=False, text=text, structured=structured)


@dataclass(frozen=True)
class Decoded:
    """A successfully decoded JSON value (which may itself be None)."""

    value: Any


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def decode_json(body: bytes | str, allow_nan: bool = True) -> Any:
    """Decode a JSON document.

    Args:
        body: Raw document.
        allow_nan: Accept the non-standard NaN, Infinity and -Infinity
            constants Python's json module allows by default.

    Raises:
        DecodeError: If ``body`` is not valid JSON.
    """
    try:
        if allow_nan:
            return json.loads(body)
        return json.loads(body, parse_constant=_reject_constant)
    except ValueError as e:
        raise DecodeError("body is not valid JSON", details={"error": e}) from e


def try_decode(body: bytes | str) -> Decoded | None:
    """Decode ``body`` as JSON, or return None if it is not JSON."""
    try:
        return Decoded(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def format_body(body: bytes, label: str) -> str:
    """Render an upstream body as tool display text.

    JSON bodies are pretty-printed after ``label``; anything else is
    returned verbatim.
    """
    decoded = try_decode(body)
    if decoded is None:
        return body.decode("utf-8", errors="replace")
    return label + json.dumps(decoded.value, indent=2, sort_keys=True, ensure_ascii=False)
