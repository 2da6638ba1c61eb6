"""Diagnostics: bounded recent-error log and logging setup."""

from .ring_log import BODY_SNIPPET_LIMIT, ErrorEntry, RingLog, snippet
from .setup import configure_logging, parse_log_level

__all__ = [
    "BODY_SNIPPET_LIMIT",
    "ErrorEntry",
    "RingLog",
    "configure_logging",
    "parse_log_level",
    "snippet",
]
