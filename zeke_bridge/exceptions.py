"""Custom exceptions for zeke-bridge.

All exceptions inherit from BridgeError, so callers embedding the bridge
can catch everything it raises in one place.

Example:
    from zeke_bridge import BridgeConfig, ConfigurationError

    try:
        config = BridgeConfig.from_env()
        config.validate()
    except ConfigurationError as e:
        print(f"Configuration problem: {e}")
"""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base exception for all zeke-bridge errors.

    Carries a human-readable message plus optional structured details,
    which are appended to ``str()`` so they show up in logs:

        raise TransportError("connect failed", details={"url": url})
        # -> "connect failed (url=https://...)"
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(BridgeError):
    """Raised when the bridge is misconfigured.

    This includes:
    - Missing API key
    - Non-positive retry counts, delays, timeouts or capacities

    Example:
        ConfigurationError(
            "Z_AI_API_KEY is required",
            details={"env": "Z_AI_API_KEY"}
        )
    """

    pass


class ValidationError(BridgeError):
    """Raised for bad or missing caller input.

    Never retried and never sent upstream.
    """

    pass


class RequestBuildError(ValidationError):
    """Raised when an outbound request cannot be built (bad method or URL)."""

    pass


class TransportError(BridgeError):
    """Raised when the network call itself fails (connect error, timeout).

    The underlying httpx exception is kept as ``cause``.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.cause = cause


class UpstreamStatusError(BridgeError):
    """Raised when the upstream answered with a non-success status.

    Example:
        UpstreamStatusError(
            "upstream returned status 503",
            status_code=503,
            body="Service Unavailable",
        )
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str = "",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body


class DecodeError(BridgeError):
    """Raised when an upstream body is not valid JSON.

    The tool adapter never lets this escape: an undecodable body is
    passed through verbatim instead.
    """

    pass


class CancellationError(BridgeError):
    """Raised when the caller's deadline passes or the call is cancelled.

    Propagates immediately; no further attempts are made.
    """

    pass
