"""Logging setup for strongbox.

All modules log through children of the "strongbox" logger. Console
records go to stderr through Rich so command output on stdout stays
parseable; an optional debug log file is created owner-only, since it
names vault paths.

Passphrases, keys and vault plaintext must never be passed to a logger.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler


# Shared stderr console for log records and prompts
console = Console(stderr=True)

LOGGER_NAME = "strongbox"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_level(level: Union[str, int]) -> int:
    """
    Turn a level name ("debug", "INFO", ...) into a logging constant.

    Raises:
        ValueError: If the name is not one of LEVELS
    """
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name not in LEVELS:
        raise ValueError(f"Unknown log level {level!r} (choose from {', '.join(LEVELS)})")
    return getattr(logging, name)


def _owner_only_file_handler(log_file: Path) -> logging.FileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(log_file, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
    os.close(fd)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(
    level: Union[str, int] = "WARNING",
    log_file: Optional[Path] = None,
    rich_output: bool = True,
) -> logging.Logger:
    """
    Configure the strongbox logger. Safe to call once per command.

    Args:
        level: Console level name or constant
        log_file: Optional file receiving every record at DEBUG
        rich_output: Rich console handler, or a plain stderr stream handler

    Returns:
        The "strongbox" logger
    """
    console_level = parse_level(level)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if rich_output:
        stream_handler: logging.Handler = RichHandler(
            console=console,
            show_time=False,
            show_path=False,
            markup=False,
        )
        stream_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        stream_handler = logging.StreamHandler(console.file)
        stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    stream_handler.setLevel(console_level)
    logger.addHandler(stream_handler)

    if log_file:
        logger.addHandler(_owner_only_file_handler(Path(log_file)))
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(console_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a module logger, e.g. get_logger(__name__) inside strongbox.vault.engine."""
    return logging.getLogger(name)
