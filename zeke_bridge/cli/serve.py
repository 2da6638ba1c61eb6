"""Gateway server CLI command."""

import click

from ._options import load_config, upstream_options


@click.command()
@click.option("--host", default=None, help="Host to bind to (default: 127.0.0.1)")
@click.option("--port", "-p", default=None, type=int, help="Port to bind to (default: $PORT or 8081)")
@click.option("--no-chat-proxy", is_flag=True, help="Disable the /v1/chat/completions passthrough")
@upstream_options
def serve(
    host: str | None,
    port: int | None,
    no_chat_proxy: bool,
    tool_prefix: str | None,
    max_attempts: int | None,
    base_delay_ms: int | None,
    log_level: str | None,
) -> None:
    """Start the HTTP gateway.

    Requires Z_AI_API_KEY in the environment.

    \b
    Examples:
        zeke-bridge serve                     Start on port 8081
        zeke-bridge serve --port 9000         Start on port 9000
        zeke-bridge serve --tool-prefix zai   Expose zai_search / zai_reader

    \b
    Usage with OpenAI-compatible clients:
        OPENAI_BASE_URL=http://localhost:8081/v1 your-app
    """
    config = load_config(
        tool_prefix,
        max_attempts,
        base_delay_ms,
        log_level,
        host=host,
        port=port,
        chat_proxy_enabled=False if no_chat_proxy else None,
    )

    # Import here to avoid slow startup
    from zeke_bridge.proxy.server import run_server

    click.echo(f"""
{config.server_name}: MCP tools and chat completions gateway for Z.AI

  URL:          http://{config.host}:{config.port}
  Tools:        {config.tool_prefix}_search, {config.tool_prefix}_reader
  Chat proxy:   {"ENABLED" if config.chat_proxy_enabled else "DISABLED"}
  Retry:        {config.retry_max_attempts} attempts, {config.retry_base_delay_ms}ms base

Endpoints:
  POST /mcp                     MCP tools (streamable HTTP)
  POST /v1/chat/completions     Chat completions passthrough
  GET  /healthz                 Health check
  GET  /debug/last-errors       Recent upstream errors

Press Ctrl+C to stop.
""")

    try:
        run_server(config)
    except KeyboardInterrupt:
        click.echo("\nShutting down...")
