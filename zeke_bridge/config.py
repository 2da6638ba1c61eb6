"""Configuration for the zeke-bridge gateway.

The core components (retrying client, tool adapter, passthrough proxy) take
plain constructor arguments. Only this module knows about environment
variables; the server and CLI build a BridgeConfig and hand its values down.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .exceptions import ConfigurationError

DEFAULT_SEARCH_URL = "https://api.z.ai/api/mcp/web_search_prime/mcp"
DEFAULT_READER_URL = "https://api.z.ai/api/mcp/web_reader/mcp"
DEFAULT_CHAT_COMPLETIONS_URL = "https://api.z.ai/api/coding/paas/v4/chat/completions"

# Environment variable -> BridgeConfig field
ENV_VARS: dict[str, str] = {
    "Z_AI_API_KEY": "api_key",
    "ZAI_MCP_SEARCH_URL": "search_url",
    "ZAI_MCP_READER_URL": "reader_url",
    "ZAI_GLM_CODING_URL": "chat_completions_url",
    "PORT": "port",
    "LOG_LEVEL": "log_level",
    "ZEKE_TOOL_PREFIX": "tool_prefix",
}


@dataclass
class BridgeConfig:
    """Gateway configuration."""

    # Server
    host: str = "127.0.0.1"
    port: int = 8081
    server_name: str = "zeke-bridge"

    # Upstream
    api_key: str = ""
    search_url: str = DEFAULT_SEARCH_URL
    reader_url: str = DEFAULT_READER_URL
    chat_completions_url: str = DEFAULT_CHAT_COMPLETIONS_URL

    # Tools
    tool_prefix: str = "zeke"  # "zai" gives the standalone adapter's tool names

    # Chat completions passthrough
    chat_proxy_enabled: bool = True
    canonical_models: tuple[str, ...] = field(default_factory=lambda: ("glm-4.6",))

    # Retry
    retry_max_attempts: int = 4  # Total attempts, including the first
    retry_base_delay_ms: int = 250

    # Timeouts and pooling
    request_timeout_seconds: float = 25.0
    max_connections: int = 100
    max_keepalive_connections: int = 20

    # Diagnostics
    log_level: str = "info"
    ring_log_capacity: int = 100

    # MCP transport
    mcp_stateless: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> BridgeConfig:
        """Build a config from environment variables.

        Empty variables fall back to the defaults. Keyword overrides win over
        both (the CLI passes explicit options this way).

        Raises:
            ConfigurationError: If PORT is not an integer.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for var, field_name in ENV_VARS.items():
            value = env.get(var, "").strip()
            if not value:
                continue
            if field_name == "port":
                try:
                    values[field_name] = int(value)
                except ValueError:
                    raise ConfigurationError(
                        "PORT must be an integer", details={"value": value}
                    ) from None
            else:
                values[field_name] = value

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def retry_base_delay_seconds(self) -> float:
        return self.retry_base_delay_ms / 1000

    def with_overrides(self, **overrides: Any) -> BridgeConfig:
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> None:
        """Check the config is usable.

        Raises:
            ConfigurationError: On a missing API key or out-of-range numbers.
        """
        if not self.api_key:
            raise ConfigurationError("Z_AI_API_KEY is required", details={"env": "Z_AI_API_KEY"})
        if self.retry_max_attempts < 1:
            raise ConfigurationError(
                "retry_max_attempts must be at least 1",
                details={"retry_max_attempts": self.retry_max_attempts},
            )
        if self.retry_base_delay_ms < 0:
            raise ConfigurationError(
                "retry_base_delay_ms must not be negative",
                details={"retry_base_delay_ms": self.retry_base_delay_ms},
            )
        if self.request_timeout_seconds <= 0:
            raise ConfigurationError(
                "request_timeout_seconds must be positive",
                details={"request_timeout_seconds": self.request_timeout_seconds},
            )
        if self.ring_log_capacity < 1:
            raise ConfigurationError(
                "ring_log_capacity must be at least 1",
                details={"ring_log_capacity": self.ring_log_capacity},
            )
        if not 0 < self.port < 65536:
            raise ConfigurationError("port out of range", details={"port": self.port})
