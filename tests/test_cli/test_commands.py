"""Tests for the zeke-bridge CLI."""

from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from zeke_bridge import __version__
from zeke_bridge.cli.main import main
from zeke_bridge.config import ENV_VARS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test from an empty bridge environment."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def runner():
    return CliRunner()


class TestMain:
    """Test the top-level group."""

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "zeke-bridge" in result.output
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "serve" in result.output
        assert "mcp" in result.output

    def test_short_help(self, runner):
        result = runner.invoke(main, ["-h"])
        assert result.exit_code == 0
        assert "Z.AI" in result.output


class TestServe:
    """Test `zeke-bridge serve`."""

    def test_missing_api_key(self, runner):
        with patch("zeke_bridge.proxy.server.run_server") as run_server:
            result = runner.invoke(main, ["serve"])

        assert result.exit_code == 1
        assert "Z_AI_API_KEY is required" in result.output
        run_server.assert_not_called()

    def test_defaults_from_env(self, runner, monkeypatch):
        monkeypatch.setenv("Z_AI_API_KEY", "k")
        monkeypatch.setenv("PORT", "9100")

        with patch("zeke_bridge.proxy.server.run_server") as run_server:
            result = runner.invoke(main, ["serve"])

        assert result.exit_code == 0, result.output
        (config,) = run_server.call_args.args
        assert config.api_key == "k"
        assert config.port == 9100
        assert config.chat_proxy_enabled is True
        assert "http://127.0.0.1:9100" in result.output

    def test_options_override_env(self, runner, monkeypatch):
        monkeypatch.setenv("Z_AI_API_KEY", "k")
        monkeypatch.setenv("PORT", "9100")

        with patch("zeke_bridge.proxy.server.run_server") as run_server:
            result = runner.invoke(
                main,
                [
                    "serve",
                    "--host",
                    "0.0.0.0",
                    "--port",
                    "7000",
                    "--no-chat-proxy",
                    "--tool-prefix",
                    "zai",
                    "--max-attempts",
                    "2",
                    "--base-delay-ms",
                    "10",
                    "--log-level",
                    "debug",
                ],
            )

        assert result.exit_code == 0, result.output
        (config,) = run_server.call_args.args
        assert config.host == "0.0.0.0"
        assert config.port == 7000
        assert config.chat_proxy_enabled is False
        assert config.tool_prefix == "zai"
        assert config.retry_max_attempts == 2
        assert config.retry_base_delay_ms == 10
        assert config.log_level == "debug"
        assert "zai_search" in result.output

    def test_invalid_max_attempts(self, runner, monkeypatch):
        monkeypatch.setenv("Z_AI_API_KEY", "k")

        with patch("zeke_bridge.proxy.server.run_server") as run_server:
            result = runner.invoke(main, ["serve", "--max-attempts", "0"])

        assert result.exit_code == 1
        assert "retry_max_attempts must be at least 1" in result.output
        run_server.assert_not_called()

    def test_keyboard_interrupt(self, runner, monkeypatch):
        monkeypatch.setenv("Z_AI_API_KEY", "k")

        with patch("zeke_bridge.proxy.server.run_server", side_effect=KeyboardInterrupt):
            result = runner.invoke(main, ["serve"])

        assert result.exit_code == 0
        assert "Shutting down..." in result.output


class TestMCPServe:
    """Test `zeke-bridge mcp serve`."""

    def test_missing_api_key(self, runner):
        with patch("zeke_bridge.tools.mcp_server.run_stdio_server", new=AsyncMock()) as run:
            result = runner.invoke(main, ["mcp", "serve"])

        assert result.exit_code == 1
        assert "Z_AI_API_KEY is required" in result.output
        run.assert_not_called()

    def test_runs_stdio_server(self, runner, monkeypatch):
        monkeypatch.setenv("Z_AI_API_KEY", "k")

        with patch("zeke_bridge.tools.mcp_server.run_stdio_server", new=AsyncMock()) as run:
            result = runner.invoke(main, ["mcp", "serve", "--tool-prefix", "zai"])

        assert result.exit_code == 0, result.output
        run.assert_awaited_once()
        (config,) = run.call_args.args
        assert config.api_key == "k"
        assert config.tool_prefix == "zai"
