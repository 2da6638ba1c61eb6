"""Result of an upstream call.

UpstreamOutcome is one of:

- Success: the upstream answered with a status below 400.
- TerminalFailure: the upstream answered with a status that is final for the
  caller, either a non-retryable 4xx or the last retryable response (5xx/429)
  kept when attempts ran out.
- TransientFailure: every attempt ended without a response; ``cause`` is the
  transport error from the last attempt.

Success and TerminalFailure own an open, unread httpx response. Consume it
once, either with ``read()`` or by streaming ``aiter_raw()``, and always
``aclose()`` it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Union

import httpx


@dataclass(frozen=True)
class _ResponseOutcome:
    response: httpx.Response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    async def read(self) -> bytes:
        """Buffer the whole body and release the connection."""
        try:
            return await self.response.aread()
        finally:
            await self.response.aclose()

    def aiter_raw(self) -> AsyncIterator[bytes]:
        """Stream the body bytes exactly as the upstream sent them."""
        return self.response.aiter_raw()

    async def aclose(self) -> None:
        await self.response.aclose()


@dataclass(frozen=True)
class Success(_ResponseOutcome):
    pass


@dataclass(frozen=True)
class TerminalFailure(_ResponseOutcome):
    pass


@dataclass(frozen=True)
class TransientFailure:
    cause: Exception

    @property
    def status_code(self) -> int:
        return 0


UpstreamOutcome = Union[Success, TerminalFailure, TransientFailure]
