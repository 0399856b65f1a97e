"""Utility modules for strongbox."""

from .logging import console, get_logger, parse_level, setup_logging

__all__ = [
    "console",
    "get_logger",
    "parse_level",
    "setup_logging",
]
