"""Retrying upstream HTTP client.

Wraps a shared httpx.AsyncClient with a fixed per-request timeout, a bounded
number of attempts and a deterministic exponential backoff. Every exposed
endpoint of the bridge funnels its upstream traffic through
RetryingClient.execute.

Usage:
    http = httpx.AsyncClient(timeout=httpx.Timeout(25.0))
    client = RetryingClient(http)

    call = build_request("POST", url, body, headers={"Authorization": f"Bearer {key}"})
    outcome = await client.execute(call, CallContext.with_timeout(60))
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from ..exceptions import TransportError
from .context import CallContext
from .outcome import Success, TerminalFailure, TransientFailure, UpstreamOutcome
from .request import OutboundCall
from .retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS, RetryState, is_retryable_status

logger = logging.getLogger("zeke_bridge.upstream")

DEFAULT_TIMEOUT_SECONDS = 25.0


def create_http_client(
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    max_connections: int = 100,
    max_keepalive_connections: int = 20,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the pooled httpx client shared by all requests."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        ),
        transport=transport,
    )


async def _close_response(response: httpx.Response) -> None:
    await response.aclose()


class RetryingClient:
    """HTTP client with retry and exponential backoff.

    Classification after each attempt:
    - transport error (connect failure, timeout): retry
    - status < 500 and != 429: final, returned immediately
    - status >= 500 or == 429: retry, keeping the response in case attempts
      run out

    When attempts run out, the last retryable response is returned if the
    last attempt produced one; otherwise the last transport error is.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        attempt_timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initialize the client.

        Args:
            http_client: Shared httpx client. Its timeout bounds each
                individual connect, read and write.
            max_attempts: Total attempts, including the first.
            base_delay: Backoff base in seconds.
            attempt_timeout: Overall limit in seconds for one attempt to
                produce a response (status line and headers). None disables it.
        """
        # Validates the arguments up front
        RetryState(max_attempts=max_attempts, base_delay=base_delay)
        if attempt_timeout is not None and attempt_timeout <= 0:
            raise ValueError("attempt_timeout must be positive")
        self.http_client = http_client
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.attempt_timeout = attempt_timeout

    async def _send(self, request: httpx.Request) -> httpx.Response:
        """Send one attempt, failing with a timeout once ``attempt_timeout`` passes."""
        if self.attempt_timeout is None:
            return await self.http_client.send(request, stream=True)
        try:
            return await asyncio.wait_for(
                self.http_client.send(request, stream=True), self.attempt_timeout
            )
        except asyncio.TimeoutError:
            raise httpx.ReadTimeout(
                f"no response within {self.attempt_timeout}s", request=request
            ) from None

    async def execute(self, call: OutboundCall, ctx: CallContext | None = None) -> UpstreamOutcome:
        """Send ``call`` with retries.

        Returns:
            Success, TerminalFailure or TransientFailure. Response outcomes
            must be read or closed by the caller.

        Raises:
            CancellationError: If ``ctx`` is cancelled or expires, including
                during a backoff wait.
        """
        ctx = ctx or CallContext()
        state = RetryState(max_attempts=self.max_attempts, base_delay=self.base_delay)
        last: UpstreamOutcome | None = None

        try:
            while True:
                request = self.http_client.build_request(
                    call.method,
                    call.url,
                    headers=call.attempt_headers(),
                    content=call.body,
                )
                try:
                    response = await ctx.run(self._send(request), discard=_close_response)
                except httpx.TransportError as e:
                    await self._release(last)
                    last = TransientFailure(
                        cause=TransportError(
                            f"{type(e).__name__}: {e}", cause=e, details={"url": call.url}
                        )
                    )
                else:
                    await self._release(last)
                    if not is_retryable_status(response.status_code):
                        if response.status_code < 400:
                            return Success(response)
                        return TerminalFailure(response)
                    last = TerminalFailure(response)

                if state.exhausted:
                    break

                delay = state.delay()
                status = last.status_code
                err = last.cause if isinstance(last, TransientFailure) else None
                logger.warning(
                    f"Retrying upstream request (attempt {state.attempt + 1}/{self.max_attempts}, "
                    f"delay {delay * 1000:.0f}ms, status {status}, err {err}): {call.url}"
                )
                await ctx.sleep(delay)
                state = state.next()
        except BaseException:
            await self._release(last)
            raise

        return last

    @staticmethod
    async def _release(outcome: UpstreamOutcome | None) -> None:
        if isinstance(outcome, (Success, TerminalFailure)):
            await outcome.aclose()
