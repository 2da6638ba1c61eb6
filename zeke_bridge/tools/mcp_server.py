"""MCP server exposing the bridge's tools.

Wraps the MCP SDK's low-level Server the same way for both transports:
streamable HTTP (mounted at /mcp by the gateway app) and stdio.

Usage:
    # Streamable HTTP, as part of the gateway
    zeke-bridge serve

    # Stdio, e.g. in an MCP client config:
    {
        "mcpServers": {
            "zeke": {"command": "zeke-bridge", "args": ["mcp", "serve"]}
        }
    }
"""

from __future__ import annotations

import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from mcp.types import TextContent, Tool

from .. import __version__
from ..config import BridgeConfig
from ..upstream import RetryingClient, create_http_client
from .adapter import ToolAdapter

logger = logging.getLogger("zeke_bridge.mcp")


class ToolCallError(Exception):
    """Raised inside the MCP handler so the SDK reports ``isError: true``."""


class BridgeMCPServer:
    """MCP server backed by a ToolAdapter."""

    def __init__(self, adapter: ToolAdapter, name: str = "zeke-bridge"):
        """Initialize the server.

        Args:
            adapter: Adapter that performs the tool calls.
            name: Implementation name reported to MCP clients.
        """
        self.adapter = adapter
        self.server = Server(name, version=__version__)
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Register MCP tool handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return self.list_tools()

        @self.server.call_tool()
        async def call_tool(
            name: str, arguments: dict[str, Any]
        ) -> tuple[list[TextContent], dict[str, Any]]:
            return await self.call_tool(name, arguments)

    def list_tools(self) -> list[Tool]:
        return [
            Tool(name=name, description=tool.description, inputSchema=tool.input_schema())
            for name, tool in self.adapter.tools
        ]

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None
    ) -> tuple[list[TextContent], dict[str, Any]]:
        """Invoke a tool.

        Returns:
            Text content plus the structured payload.

        Raises:
            ToolCallError: When the tool result is an error.
        """
        result = await self.adapter.invoke(name, arguments)
        if result.is_error:
            logger.debug(f"Tool {name} returned error: {result.text}")
            raise ToolCallError(result.text)
        return [TextContent(type="text", text=result.text)], result.structured or {}

    def session_manager(self, stateless: bool = True) -> StreamableHTTPSessionManager:
        """Session manager for the streamable HTTP transport."""
        return StreamableHTTPSessionManager(app=self.server, stateless=stateless)

    async def run_stdio(self) -> None:
        """Run the server with stdio transport."""
        async with stdio_server() as (read_stream, write_stream):
            logger.info(f"MCP server starting on stdio ({len(self.adapter.tools)} tools)")
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


class StreamableHTTPEndpoint:
    """ASGI app forwarding requests to a StreamableHTTPSessionManager."""

    def __init__(self, session_manager: StreamableHTTPSessionManager):
        self.session_manager = session_manager

    async def __call__(self, scope, receive, send) -> None:
        await self.session_manager.handle_request(scope, receive, send)


async def run_stdio_server(config: BridgeConfig) -> None:
    """Build the tool stack from ``config`` and serve it over stdio."""
    http_client = create_http_client(
        timeout_seconds=config.request_timeout_seconds,
        max_connections=config.max_connections,
        max_keepalive_connections=config.max_keepalive_connections,
    )
    client = RetryingClient(
        http_client,
        max_attempts=config.retry_max_attempts,
        base_delay=config.retry_base_delay_seconds,
        attempt_timeout=config.request_timeout_seconds,
    )
    adapter = ToolAdapter(
        client,
        api_key=config.api_key,
        endpoints={"search": config.search_url, "reader": config.reader_url},
        prefix=config.tool_prefix,
    )
    server = BridgeMCPServer(adapter, name=config.server_name)
    try:
        await server.run_stdio()
    finally:
        await http_client.aclose()
