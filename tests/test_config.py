"""Tests for BridgeConfig."""

import pytest

from zeke_bridge.config import (
    DEFAULT_CHAT_COMPLETIONS_URL,
    DEFAULT_READER_URL,
    DEFAULT_SEARCH_URL,
    BridgeConfig,
)
from zeke_bridge.exceptions import BridgeError, ConfigurationError


class TestDefaults:
    """Test default values."""

    def test_defaults(self):
        config = BridgeConfig()
        assert config.port == 8081
        assert config.search_url == DEFAULT_SEARCH_URL
        assert config.reader_url == DEFAULT_READER_URL
        assert config.chat_completions_url == DEFAULT_CHAT_COMPLETIONS_URL
        assert config.tool_prefix == "zeke"
        assert config.retry_max_attempts == 4
        assert config.retry_base_delay_ms == 250
        assert config.request_timeout_seconds == 25.0
        assert config.canonical_models == ("glm-4.6",)

    def test_base_delay_seconds(self):
        assert BridgeConfig(retry_base_delay_ms=250).retry_base_delay_seconds == 0.25


class TestFromEnv:
    """Test BridgeConfig.from_env()."""

    def test_reads_variables(self):
        config = BridgeConfig.from_env(
            {
                "Z_AI_API_KEY": "secret",
                "ZAI_MCP_SEARCH_URL": "https://search.test",
                "ZAI_MCP_READER_URL": "https://reader.test",
                "ZAI_GLM_CODING_URL": "https://chat.test",
                "PORT": "9000",
                "LOG_LEVEL": "debug",
                "ZEKE_TOOL_PREFIX": "zai",
            }
        )
        assert config.api_key == "secret"
        assert config.search_url == "https://search.test"
        assert config.reader_url == "https://reader.test"
        assert config.chat_completions_url == "https://chat.test"
        assert config.port == 9000
        assert config.log_level == "debug"
        assert config.tool_prefix == "zai"

    def test_empty_values_use_defaults(self):
        config = BridgeConfig.from_env({"ZAI_MCP_SEARCH_URL": "", "PORT": "  "})
        assert config.search_url == DEFAULT_SEARCH_URL
        assert config.port == 8081

    def test_bad_port(self):
        with pytest.raises(ConfigurationError, match="PORT must be an integer"):
            BridgeConfig.from_env({"PORT": "eighty"})

    def test_overrides_win(self):
        config = BridgeConfig.from_env({"PORT": "9000"}, port=7000, tool_prefix=None)
        assert config.port == 7000
        assert config.tool_prefix == "zeke"

    def test_uses_process_environment(self, monkeypatch):
        monkeypatch.setenv("Z_AI_API_KEY", "from-env")
        assert BridgeConfig.from_env().api_key == "from-env"


class TestWithOverrides:
    """Test BridgeConfig.with_overrides()."""

    def test_returns_copy(self):
        config = BridgeConfig(api_key="k")
        updated = config.with_overrides(port=9999, host=None)
        assert updated.port == 9999
        assert updated.host == config.host
        assert config.port == 8081


class TestValidate:
    """Test BridgeConfig.validate()."""

    def test_valid(self):
        BridgeConfig(api_key="k").validate()

    def test_missing_api_key(self):
        with pytest.raises(ConfigurationError, match="Z_AI_API_KEY is required") as exc_info:
            BridgeConfig().validate()
        assert exc_info.value.details == {"env": "Z_AI_API_KEY"}

    @pytest.mark.parametrize(
        "overrides",
        [
            {"retry_max_attempts": 0},
            {"retry_base_delay_ms": -1},
            {"request_timeout_seconds": 0},
            {"ring_log_capacity": 0},
            {"port": 0},
            {"port": 70000},
        ],
    )
    def test_out_of_range(self, overrides):
        with pytest.raises(ConfigurationError):
            BridgeConfig(api_key="k", **overrides).validate()

    def test_error_is_bridge_error(self):
        with pytest.raises(BridgeError):
            BridgeConfig().validate()

    def test_error_str_includes_details(self):
        with pytest.raises(ConfigurationError) as exc_info:
            BridgeConfig(api_key="k", port=0).validate()
        assert str(exc_info.value) == "port out of range (port=0)"
