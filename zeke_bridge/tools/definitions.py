"""Tool definitions exposed by the bridge.

Each tool maps structured arguments onto one JSON POST to a Z.AI endpoint.
Tool names are ``<prefix>_<suffix>``: the bridge uses the "zeke" prefix, the
standalone MCP adapter uses "zai".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ToolField:
    name: str
    description: str
    required: bool = False


@dataclass(frozen=True)
class ToolDefinition:
    """Static description of a tool and how it translates to an upstream body."""

    suffix: str
    description: str
    display_name: str  # Used in diagnostics, e.g. "web search upstream failed"
    label: str  # Prefix for pretty-printed JSON results
    result_key: str  # Key of the structured payload on success
    fields: tuple[ToolField, ...] = field(default_factory=tuple)

    def name(self, prefix: str) -> str:
        return f"{prefix}_{self.suffix}" if prefix else self.suffix

    @property
    def required(self) -> list[str]:
        return [f.name for f in self.fields if f.required]

    def input_schema(self) -> dict[str, Any]:
        """JSON schema for the tool's arguments."""
        return {
            "type": "object",
            "properties": {
                f.name: {"type": "string", "description": f.description} for f in self.fields
            },
            "required": self.required,
        }

    def missing_argument(self, arguments: dict[str, Any]) -> str | None:
        """Name of the first required argument that is absent or empty."""
        for name in self.required:
            value = arguments.get(name)
            if value is None or value == "":
                return name
        return None

    def build_body(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Upstream request body. Optional arguments are sent only when set."""
        body: dict[str, Any] = {}
        for f in self.fields:
            value = arguments.get(f.name)
            if value is None or value == "":
                continue
            body[f.name] = value
        return body


SEARCH_TOOL = ToolDefinition(
    suffix="search",
    description="High-reliability web search via Z.AI devpack.",
    display_name="web search",
    label="Search results:\n",
    result_key="results",
    fields=(
        ToolField("query", "Search query", required=True),
        ToolField("lang", "Language code (optional)"),
    ),
)

READER_TOOL = ToolDefinition(
    suffix="reader",
    description="High-reliability web reader via Z.AI devpack.",
    display_name="web reader",
    label="Reader results:\n",
    result_key="content",
    fields=(ToolField("url", "URL to read", required=True),),
)

BUILTIN_TOOLS: tuple[ToolDefinition, ...] = (SEARCH_TOOL, READER_TOOL)
