"""Shared pytest fixtures for zeke-bridge tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import ExitStack
from typing import Any

import httpx
import pytest

from zeke_bridge.config import BridgeConfig
from zeke_bridge.telemetry import RingLog
from zeke_bridge.tools import ToolAdapter
from zeke_bridge.upstream import RetryingClient, create_http_client

SEARCH_URL = "https://upstream.test/mcp/search"
READER_URL = "https://upstream.test/mcp/reader"
CHAT_URL = "https://upstream.test/v4/chat/completions"
API_KEY = "test-key"


def make_response(
    status_code: int = 200,
    body: bytes | str = b"",
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Build an unread, streamable upstream response."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return httpx.Response(status_code, headers=headers, stream=httpx.ByteStream(body))


class FailingStream(httpx.AsyncByteStream):
    """Yields some chunks, then fails like a dropped connection."""

    def __init__(self, chunks: list[bytes]):
        self.chunks = chunks

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk
        raise httpx.ReadError("connection reset")


class UpstreamStub:
    """Scripted upstream for httpx.MockTransport.

    Each request consumes the next scripted item; the last one repeats.
    Items may be responses, exceptions (raised), or callables taking the
    request.
    """

    def __init__(self, *script: Any):
        self.script = list(script) or [make_response(200, b"{}")]
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def handler(self, request: httpx.Request):
        index = min(len(self.requests), len(self.script) - 1)
        self.requests.append(request)
        item = self.script[index]
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, httpx.Response):
            # Responses are single use; hand out a fresh copy with the same body
            return httpx.Response(
                item.status_code,
                headers=item.headers,
                stream=item.stream,
            )
        return item(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream() -> Callable[..., UpstreamStub]:
    """Factory for scripted upstreams."""
    return UpstreamStub


@pytest.fixture
def retrying_client() -> Callable[..., RetryingClient]:
    """Factory for RetryingClient over a stub, with no backoff by default."""

    def factory(stub: UpstreamStub, max_attempts: int = 4, base_delay: float = 0.0) -> RetryingClient:
        return RetryingClient(
            create_http_client(transport=stub.transport()),
            max_attempts=max_attempts,
            base_delay=base_delay,
        )

    return factory


@pytest.fixture
def ring_log() -> RingLog:
    return RingLog(capacity=10)


@pytest.fixture
def tool_adapter(retrying_client, ring_log) -> Callable[..., ToolAdapter]:
    """Factory for a ToolAdapter wired to a stub upstream."""

    def factory(stub: UpstreamStub, prefix: str = "zeke", **endpoints: str) -> ToolAdapter:
        return ToolAdapter(
            retrying_client(stub),
            api_key=API_KEY,
            endpoints=endpoints or {"search": SEARCH_URL, "reader": READER_URL},
            prefix=prefix,
            ring_log=ring_log,
        )

    return factory


@pytest.fixture
def bridge_config() -> BridgeConfig:
    """Config pointing at the stub upstream, with no backoff."""
    return BridgeConfig(
        api_key=API_KEY,
        search_url=SEARCH_URL,
        reader_url=READER_URL,
        chat_completions_url=CHAT_URL,
        retry_base_delay_ms=0,
    )


@pytest.fixture
def gateway_client(bridge_config):
    """Factory for a TestClient over the full app, upstream served by a stub.

    The client is entered as a context manager so the app lifespan (and the
    MCP session manager) runs.
    """
    from fastapi.testclient import TestClient

    from zeke_bridge.proxy.server import create_app

    with ExitStack() as stack:

        def factory(stub: UpstreamStub, **overrides: Any) -> TestClient:
            config = bridge_config.with_overrides(**overrides)
            app = create_app(config, transport=stub.transport())
            return stack.enter_context(TestClient(app))

        yield factory
