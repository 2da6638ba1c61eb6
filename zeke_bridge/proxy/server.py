"""zeke-bridge gateway server.

Exposes the bridge's tools over MCP and an OpenAI-compatible chat completions
passthrough, all backed by one retrying upstream client.

Endpoints:
    POST /mcp                     MCP tools (streamable HTTP)
    POST /v1/chat/completions     Chat completions passthrough
    GET  /healthz                 Health check
    GET  /debug/last-errors       Recent upstream errors

Usage:
    Z_AI_API_KEY=... zeke-bridge serve --port 8081
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .. import __version__
from ..config import BridgeConfig
from ..telemetry import RingLog, configure_logging
from ..tools.adapter import ToolAdapter
from ..tools.mcp_server import BridgeMCPServer, StreamableHTTPEndpoint
from ..upstream import RetryingClient, create_http_client
from .chat import ChatCompletionsProxy, disconnect_context

logger = logging.getLogger("zeke_bridge.server")


class BridgeGateway:
    """The gateway's components, built from one BridgeConfig."""

    def __init__(
        self,
        config: BridgeConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the gateway.

        Args:
            config: Gateway configuration.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self.config = config
        self.http_client = create_http_client(
            timeout_seconds=config.request_timeout_seconds,
            max_connections=config.max_connections,
            max_keepalive_connections=config.max_keepalive_connections,
            transport=transport,
        )
        self.client = RetryingClient(
            self.http_client,
            max_attempts=config.retry_max_attempts,
            base_delay=config.retry_base_delay_seconds,
            attempt_timeout=config.request_timeout_seconds,
        )
        self.ring_log = RingLog(config.ring_log_capacity)
        self.adapter = ToolAdapter(
            self.client,
            api_key=config.api_key,
            endpoints={"search": config.search_url, "reader": config.reader_url},
            prefix=config.tool_prefix,
            ring_log=self.ring_log,
        )
        self.mcp = BridgeMCPServer(self.adapter, name=config.server_name)
        self.session_manager = self.mcp.session_manager(stateless=config.mcp_stateless)
        self.chat_proxy = (
            ChatCompletionsProxy(
                self.client,
                api_key=config.api_key,
                upstream_url=config.chat_completions_url,
                canonical_models=config.canonical_models,
                ring_log=self.ring_log,
            )
            if config.chat_proxy_enabled
            else None
        )

    async def shutdown(self) -> None:
        await self.http_client.aclose()


def create_app(
    config: BridgeConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the FastAPI application."""
    config = config or BridgeConfig()
    gateway = BridgeGateway(config, transport=transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with gateway.session_manager.run():
            logger.info(
                f"{config.server_name} started: tools={[name for name, _ in gateway.adapter.tools]} "
                f"chat_proxy={'ENABLED' if gateway.chat_proxy else 'DISABLED'}"
            )
            try:
                yield
            finally:
                await gateway.shutdown()

    app = FastAPI(
        title="zeke-bridge",
        description="MCP tools and chat completions gateway for Z.AI",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.gateway = gateway

    app.router.add_route(
        "/mcp",
        StreamableHTTPEndpoint(gateway.session_manager),
        methods=["GET", "POST", "DELETE"],
    )

    if gateway.chat_proxy is not None:
        chat_proxy = gateway.chat_proxy

        @app.post("/v1/chat/completions")
        async def chat_completions(request: Request):
            await request.body()
            async with disconnect_context(request) as ctx:
                return await chat_proxy.forward(request, ctx)

    @app.get("/healthz")
    async def healthz():
        return PlainTextResponse("OK")

    @app.get("/debug/last-errors")
    async def last_errors():
        return JSONResponse([entry.to_dict() for entry in gateway.ring_log.snapshot()])

    return app


def run_server(config: BridgeConfig | None = None) -> None:
    """Run the gateway with uvicorn."""
    config = config or BridgeConfig()
    configure_logging(config.log_level)
    app = create_app(config)
    logger.info(f"{config.server_name} listening on http://{config.host}:{config.port}")
    uvicorn.run(app, host=config.host, port=config.port, log_level="warning")
