"""Resilient upstream HTTP layer: request building, retries, outcomes."""

from .client import DEFAULT_TIMEOUT_SECONDS, RetryingClient, create_http_client
from .context import CallContext
from .outcome import Success, TerminalFailure, TransientFailure, UpstreamOutcome
from .request import DEFAULT_ACCEPT, OutboundCall, build_request
from .retry import RetryState, backoff_delay, is_retryable_status

__all__ = [
    "CallContext",
    "DEFAULT_ACCEPT",
    "DEFAULT_TIMEOUT_SECONDS",
    "OutboundCall",
    "RetryState",
    "RetryingClient",
    "Success",
    "TerminalFailure",
    "TransientFailure",
    "UpstreamOutcome",
    "backoff_delay",
    "build_request",
    "create_http_client",
    "is_retryable_status",
]
