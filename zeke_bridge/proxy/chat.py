"""OpenAI-compatible chat completions passthrough.

The inbound body is decoded only to normalize the ``model`` field; every
other field is forwarded unexamined. The upstream status, headers and body
are relayed as they arrive, without buffering the body.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager, suppress
from typing import Any

import httpx
from fastapi import Request, Response
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask

from ..exceptions import CancellationError, DecodeError, RequestBuildError
from ..telemetry.ring_log import ErrorEntry, RingLog
from ..tools.results import decode_json
from ..upstream import (
    CallContext,
    RetryingClient,
    Success,
    TerminalFailure,
    TransientFailure,
    build_request,
)

logger = logging.getLogger("zeke_bridge.proxy")

ROUTE_NAME = "chat_completions"

DISCONNECT_POLL_SECONDS = 0.1

# Managed by the server for the downstream connection
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


def normalize_model(body: dict[str, Any], canonical_models: Iterable[str]) -> dict[str, Any]:
    """Rewrite ``body["model"]`` to its canonical casing, in place.

    "GLM-4.6" becomes "glm-4.6" when "glm-4.6" is canonical. Unknown models
    and non-string values are left alone.
    """
    model = body.get("model")
    if isinstance(model, str):
        canonical = {m.lower(): m for m in canonical_models}
        body["model"] = canonical.get(model.lower(), model)
    return body


@asynccontextmanager
async def disconnect_context(
    request: Request, poll_interval: float = DISCONNECT_POLL_SECONDS
) -> AsyncIterator[CallContext]:
    """A CallContext cancelled when the downstream client disconnects.

    Read the request body before entering: disconnect polling consumes
    pending ASGI messages.
    """
    ctx = CallContext()

    async def watch() -> None:
        while not await request.is_disconnected():
            await asyncio.sleep(poll_interval)
        ctx.cancel("client disconnected")

    watcher = asyncio.ensure_future(watch())
    try:
        yield ctx
    finally:
        watcher.cancel()
        with suppress(asyncio.CancelledError):
            await watcher


def relay_headers(headers: httpx.Headers) -> list[tuple[bytes, bytes]]:
    """Upstream headers as raw ASGI pairs, minus hop-by-hop headers."""
    return [
        (name.lower(), value)
        for name, value in headers.raw
        if name.decode("latin-1").lower() not in HOP_BY_HOP_HEADERS
    ]


class ChatCompletionsProxy:
    """Forwards chat completion requests to one upstream URL."""

    def __init__(
        self,
        client: RetryingClient,
        api_key: str,
        upstream_url: str,
        canonical_models: Iterable[str] = ("glm-4.6",),
        ring_log: RingLog | None = None,
    ):
        self.client = client
        self.api_key = api_key
        self.upstream_url = upstream_url
        self.canonical_models = tuple(canonical_models)
        self.ring_log = ring_log

    def _record(self, status: int, error: str) -> None:
        if self.ring_log is not None:
            self.ring_log.record(
                ErrorEntry(tool=ROUTE_NAME, endpoint=self.upstream_url, status=status, error=error)
            )

    async def forward(self, request: Request, ctx: CallContext | None = None) -> Response:
        """Handle POST /v1/chat/completions."""
        try:
            body = decode_json(await request.body(), allow_nan=False)
        except DecodeError:
            return PlainTextResponse("invalid JSON", status_code=400)
        if not isinstance(body, dict):
            return PlainTextResponse("invalid JSON", status_code=400)

        normalize_model(body, self.canonical_models)

        try:
            call = build_request(
                "POST",
                self.upstream_url,
                json.dumps(body),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        except RequestBuildError as e:
            logger.error(f"Failed to create chat completions request: {e}")
            return PlainTextResponse("failed to create request", status_code=500)

        try:
            outcome = await self.client.execute(call, ctx)
        except CancellationError as e:
            self._record(0, str(e))
            return PlainTextResponse(f"upstream GLM error: {e}", status_code=502)

        if isinstance(outcome, TransientFailure):
            logger.error(f"Chat completions upstream failed: {outcome.cause}")
            self._record(0, str(outcome.cause))
            return PlainTextResponse(f"upstream GLM error: {outcome.cause}", status_code=502)

        if outcome.status_code >= 400:
            logger.warning(f"Chat completions upstream returned status {outcome.status_code}")
            self._record(outcome.status_code, f"upstream returned status {outcome.status_code}")

        return self._stream(outcome)

    def _stream(self, outcome: Success | TerminalFailure) -> StreamingResponse:
        async def relay() -> AsyncIterator[bytes]:
            try:
                async for chunk in outcome.aiter_raw():
                    yield chunk
            except (httpx.HTTPError, httpx.StreamError) as e:
                # Status and headers are already sent
                logger.debug(f"Chat completions stream aborted: {e}")
            finally:
                await outcome.aclose()

        response = StreamingResponse(
            relay(),
            status_code=outcome.status_code,
            # Covers a client that disconnects before the body starts
            background=BackgroundTask(outcome.aclose),
        )
        # Replace Starlette's defaults with the upstream headers, duplicates included
        response.raw_headers = relay_headers(outcome.headers)
        return response
