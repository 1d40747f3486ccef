"""Tests for logging configuration."""

import sys
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from ytorder.logging import configure_logging, logger


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_verbose_false_filters_debug(self) -> None:
        """Non-verbose mode filters DEBUG messages."""
        stderr = StringIO()
        with patch.object(sys, "stderr", stderr):
            configure_logging(verbose=False)
            logger.debug("debug message")
            logger.warning("warning message")

        output = stderr.getvalue()
        assert "debug message" not in output
        assert "warning message" in output

    def test_verbose_true_shows_debug(self) -> None:
        """Verbose mode shows DEBUG messages."""
        stderr = StringIO()
        with patch.object(sys, "stderr", stderr):
            configure_logging(verbose=True)
            logger.debug("debug message")

        assert "debug message" in stderr.getvalue()

    def test_verbose_true_shows_timestamps(self) -> None:
        """Verbose mode includes timestamps in format."""
        stderr = StringIO()
        with patch.object(sys, "stderr", stderr):
            configure_logging(verbose=True)
            logger.info("test message")

        # Timestamp format is HH:mm:ss, so expect colons
        assert ":" in stderr.getvalue()

    def test_reconfigure_replaces_sink(self) -> None:
        """Calling configure_logging twice does not duplicate output."""
        stderr = StringIO()
        with patch.object(sys, "stderr", stderr):
            configure_logging(verbose=False)
            configure_logging(verbose=False)
            logger.info("once")

        assert stderr.getvalue().count("once") == 1

    def test_log_file_gets_debug_records(self, tmp_path: Path) -> None:
        """The file sink records DEBUG even when the console shows INFO only."""
        log_file = tmp_path / "logs" / "ytorder.log"
        stderr = StringIO()
        with patch.object(sys, "stderr", stderr):
            configure_logging(verbose=False, log_file=log_file)
            logger.debug("planned 3 moves")
            # Reconfiguring closes the file sink
            configure_logging(verbose=False)

        assert "planned 3 moves" in log_file.read_text(encoding="utf-8")
        assert "[DEBUG]" in log_file.read_text(encoding="utf-8")
        assert "planned 3 moves" not in stderr.getvalue()
