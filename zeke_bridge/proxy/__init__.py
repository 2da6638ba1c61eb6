"""HTTP surface of the gateway: chat completions passthrough and app wiring."""

from .chat import ChatCompletionsProxy, disconnect_context, normalize_model
from .server import BridgeGateway, create_app, run_server

__all__ = [
    "BridgeGateway",
    "ChatCompletionsProxy",
    "create_app",
    "disconnect_context",
    "normalize_model",
    "run_server",
]
