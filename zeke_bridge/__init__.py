"""
zeke-bridge - MCP tools and chat completions gateway for Z.AI.

Exposes web search and web reader as MCP tools plus an OpenAI-compatible
/v1/chat/completions passthrough. Every upstream call goes through one
retrying client:

- Up to 4 attempts with deterministic exponential backoff (250ms base)
- 5xx and 429 retried, other statuses returned immediately
- Cancellable backoff and network waits
- Tool failures returned as error results, never raised

Quick Start:

    Z_AI_API_KEY=... zeke-bridge serve

Embedding:

    from zeke_bridge import BridgeConfig, create_app

    app = create_app(BridgeConfig(api_key="..."))

Error Handling:

    from zeke_bridge import BridgeError, ConfigurationError

    try:
        BridgeConfig.from_env().validate()
    except ConfigurationError as e:
        print(f"Config error: {e}")
"""

__version__ = "0.1.0"

from .config import BridgeConfig
from .exceptions import (
    BridgeError,
    CancellationError,
    ConfigurationError,
    DecodeError,
    RequestBuildError,
    TransportError,
    UpstreamStatusError,
    ValidationError,
)


def create_app(*args, **kwargs):
    """Create the gateway FastAPI app (imported lazily to keep startup light)."""
    from .proxy.server import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "BridgeConfig",
    "BridgeError",
    "CancellationError",
    "ConfigurationError",
    "DecodeError",
    "RequestBuildError",
    "TransportError",
    "UpstreamStatusError",
    "ValidationError",
    "__version__",
    "create_app",
]
