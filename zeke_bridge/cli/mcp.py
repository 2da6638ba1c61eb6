"""MCP stdio CLI commands.

Runs the bridge's tools over the stdio MCP transport, for clients that
launch their MCP servers as subprocesses.
"""

import asyncio

import click

from ._options import load_config, upstream_options


@click.group()
def mcp() -> None:
    """MCP server commands.

    \b
    Example client config:
        {"mcpServers": {"zeke": {"command": "zeke-bridge", "args": ["mcp", "serve"]}}}
    """
    pass


@mcp.command("serve")
@upstream_options
def mcp_serve(
    tool_prefix: str | None,
    max_attempts: int | None,
    base_delay_ms: int | None,
    log_level: str | None,
) -> None:
    """Serve the tools over stdio.

    Requires Z_AI_API_KEY in the environment. Logs go to stderr.
    """
    config = load_config(tool_prefix, max_attempts, base_delay_ms, log_level)

    from zeke_bridge.telemetry import configure_logging
    from zeke_bridge.tools.mcp_server import run_stdio_server

    configure_logging(config.log_level)
    try:
        asyncio.run(run_stdio_server(config))
    except KeyboardInterrupt:
        pass
