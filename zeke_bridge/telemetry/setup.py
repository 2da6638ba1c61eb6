"""Logging setup for the server and CLI."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_log_level(level: str | None) -> int:
    """Map a level name to a logging level. Unknown names mean INFO."""
    return _LEVELS.get((level or "").strip().lower(), logging.INFO)


def configure_logging(level: str | None = "info") -> None:
    logging.basicConfig(level=parse_log_level(level), format=LOG_FORMAT)
    logging.getLogger("zeke_bridge").setLevel(parse_log_level(level))
