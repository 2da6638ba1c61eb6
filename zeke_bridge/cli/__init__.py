"""Command line interface for zeke-bridge."""

from .main import main

__all__ = ["main"]
