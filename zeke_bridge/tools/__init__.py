"""Tool definitions, the tool adapter and the MCP server that exposes them."""

from .adapter import ToolAdapter, invoke_tool, upstream_headers
from .definitions import BUILTIN_TOOLS, READER_TOOL, SEARCH_TOOL, ToolDefinition, ToolField
from .results import Decoded, ToolResult, decode_json, format_body, try_decode

__all__ = [
    "BUILTIN_TOOLS",
    "Decoded",
    "READER_TOOL",
    "SEARCH_TOOL",
    "ToolAdapter",
    "ToolDefinition",
    "ToolField",
    "ToolResult",
    "decode_json",
    "format_body",
    "invoke_tool",
    "try_decode",
    "upstream_headers",
]
