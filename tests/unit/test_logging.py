"""Unit tests for logging setup."""

import logging
import os
from pathlib import Path

import pytest


@pytest.fixture
def strongbox_logger():
    """The package logger, with handlers and level restored afterwards."""
    logger = logging.getLogger("strongbox")
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


class TestParseLevel:
    """Tests for level name parsing."""

    @pytest.mark.parametrize("name", ["debug", "INFO", " Warning ", "ERROR"])
    def test_known_names(self, name):
        """Level names are case-insensitive."""
        from strongbox.utils.logging import parse_level

        assert parse_level(name) == getattr(logging, name.strip().upper())

    def test_constant_passthrough(self):
        from strongbox.utils.logging import parse_level

        assert parse_level(logging.INFO) == logging.INFO

    def test_unknown_name(self):
        """Typos are rejected instead of silently logging at WARNING."""
        from strongbox.utils.logging import parse_level

        with pytest.raises(ValueError, match="LOUD"):
            parse_level("LOUD")


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_single_console_handler(self, strongbox_logger):
        """Calling setup twice doesn't stack handlers."""
        from rich.logging import RichHandler

        from strongbox.utils.logging import setup_logging

        setup_logging("INFO")
        logger = setup_logging("INFO")

        assert logger is strongbox_logger
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.level == logging.INFO

    def test_plain_output(self, strongbox_logger):
        """Without Rich a plain stream handler is installed."""
        from rich.logging import RichHandler

        from strongbox.utils.logging import setup_logging

        logger = setup_logging("ERROR", rich_output=False)

        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0], RichHandler)
        assert logger.handlers[0].level == logging.ERROR

    def test_log_file_gets_debug(self, strongbox_logger, tmp_path: Path):
        """The log file records DEBUG while the console stays at WARNING."""
        from strongbox.utils.logging import get_logger, setup_logging

        log_file = tmp_path / "logs" / "strongbox.log"
        logger = setup_logging("WARNING", log_file=log_file)

        get_logger("strongbox.vault.engine").debug("Derived key for /vaults/vault.db")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert logger.handlers[0].level == logging.WARNING
        assert "Derived key for /vaults/vault.db" in log_file.read_text()

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
    def test_log_file_owner_only(self, strongbox_logger, tmp_path: Path):
        """A new log file is readable by its owner only."""
        from strongbox.utils.logging import setup_logging

        log_file = tmp_path / "strongbox.log"
        setup_logging(log_file=log_file)

        assert log_file.stat().st_mode & 0o777 == 0o600

    def test_cli_rejects_unknown_level(self, strongbox_logger):
        """An unknown --log-level is a usage error."""
        from typer.testing import CliRunner

        from strongbox.cli.main import app

        result = CliRunner().invoke(app, ["--log-level", "LOUD", "path"])

        assert result.exit_code == 2
