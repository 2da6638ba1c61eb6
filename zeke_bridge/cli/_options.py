"""Options shared by the serve commands."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click

from ..config import BridgeConfig
from ..exceptions import ConfigurationError


def upstream_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the tool and retry options common to every transport."""
    options = [
        click.option(
            "--tool-prefix",
            default=None,
            help="Tool name prefix, e.g. 'zai' for zai_search (default: $ZEKE_TOOL_PREFIX or zeke)",
        ),
        click.option(
            "--max-attempts",
            type=int,
            default=None,
            help="Total upstream attempts including the first (default: 4)",
        ),
        click.option(
            "--base-delay-ms",
            type=int,
            default=None,
            help="Backoff base delay in milliseconds (default: 250)",
        ),
        click.option(
            "--log-level",
            type=click.Choice(["debug", "info", "warn", "warning", "error"], case_sensitive=False),
            default=None,
            help="Log level (default: $LOG_LEVEL or info)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def load_config(
    tool_prefix: str | None,
    max_attempts: int | None,
    base_delay_ms: int | None,
    log_level: str | None,
    **overrides: Any,
) -> BridgeConfig:
    """Build and validate a config from the environment plus CLI overrides.

    Exits with status 1 on a configuration error.
    """
    try:
        config = BridgeConfig.from_env(
            tool_prefix=tool_prefix,
            retry_max_attempts=max_attempts,
            retry_base_delay_ms=base_delay_ms,
            log_level=log_level,
            **overrides,
        )
        config.validate()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None
    return config
