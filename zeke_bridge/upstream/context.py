"""Cancellation and deadline signal for upstream calls.

A CallContext is handed to RetryingClient.execute. Both the network send and
the backoff wait race against it, so a cancelled or expired call returns as
soon as the signal fires instead of finishing the pending attempt or sleep.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ..exceptions import CancellationError

T = TypeVar("T")


class CallContext:
    """Deadline plus an explicit cancel switch for one logical call.

    Example:
        ctx = CallContext.with_timeout(5.0)
        outcome = await client.execute(call, ctx)

        # From another task:
        ctx.cancel("client disconnected")
    """

    def __init__(self, deadline: float | None = None):
        """Args:
        deadline: Absolute ``time.monotonic()`` value, or None for no deadline.
        """
        self.deadline = deadline
        self._cancelled = asyncio.Event()
        self._reason = "call cancelled"

    @classmethod
    def with_timeout(cls, seconds: float) -> CallContext:
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self, reason: str = "call cancelled") -> None:
        self._reason = reason
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), None if unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def error(self) -> CancellationError:
        if self.cancelled:
            return CancellationError(self._reason)
        return CancellationError("deadline exceeded")

    def check(self) -> None:
        """Raise CancellationError if the context is already done."""
        if self.done:
            raise self.error()

    async def sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds unless the context fires first.

        Raises:
            CancellationError: If cancelled or the deadline passes during the wait.
        """
        self.check()
        remaining = self.remaining()
        # The deadline, not the delay, ends this wait
        bounded = remaining is not None and remaining <= delay
        timeout = remaining if bounded else delay
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            if bounded or self.expired:
                raise self.error() from None
            return
        raise self.error()

    async def run(
        self,
        awaitable: Awaitable[T],
        discard: Callable[[Any], Awaitable[None]] | None = None,
    ) -> T:
        """Await ``awaitable`` unless the context fires first.

        If the context wins, the pending work is cancelled. A result that
        still arrives while it is being cancelled is passed to ``discard``
        so the caller can release it (e.g. close a streamed response).

        Raises:
            CancellationError: If cancelled or the deadline passes first.
        """
        if self.done:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise self.error()
        task = asyncio.ensure_future(awaitable)
        signal = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {task, signal},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            signal.cancel()

        if task in done:
            return task.result()

        task.cancel()
        (outcome,) = await asyncio.gather(task, return_exceptions=True)
        if discard is not None and not isinstance(outcome, BaseException):
            await discard(outcome)
        raise self.error()
