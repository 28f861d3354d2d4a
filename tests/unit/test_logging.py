"""Unit tests for logging configuration."""

import logging
import os
import time
from unittest.mock import patch

import pytest

from insightboard.utils.logging import InsightBoardFormatter, setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before and after each test."""
    root = logging.getLogger()
    original_level = root.level
    original_handlers = root.handlers.copy()

    yield

    root.setLevel(original_level)
    root.handlers.clear()
    for handler in original_handlers:
        root.addHandler(handler)


def make_record(name="insightboard.graph.processor", level=logging.INFO, msg="Test message"):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_console_handler_created(self):
        """Test console handler uses InsightBoardFormatter."""
        setup_logging()

        handlers = [
            h for h in logging.getLogger().handlers if isinstance(h.formatter, InsightBoardFormatter)
        ]
        assert len(handlers) == 1

    def test_console_disabled(self):
        """Test console=False leaves only a NullHandler."""
        setup_logging(console=False)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.NullHandler)

    def test_log_level_case_insensitive(self):
        """Test log level is case-insensitive."""
        setup_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

        setup_logging(level="WaRnInG")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler_no_colors(self, tmp_path):
        """Test file handler never uses colors."""
        log_file = tmp_path / "nested" / "test.log"
        setup_logging(log_file=log_file, use_colors=True)

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]

        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename == str(log_file)
        assert file_handlers[0].formatter.use_colors is False
        assert log_file.parent.is_dir()

    def test_log_dir_creates_timestamped_file(self, tmp_path):
        """Test log_dir produces an insightboard_*.log file."""
        setup_logging(log_dir=tmp_path, console=False)

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert os.path.basename(file_handlers[0].baseFilename).startswith("insightboard_")

    def test_old_logs_removed(self, tmp_path):
        """Test logs older than the retention window are deleted."""
        stale = tmp_path / "old.log"
        stale.write_text("old")
        old_time = time.time() - 10 * 86400
        os.utime(stale, (old_time, old_time))

        setup_logging(log_dir=tmp_path, retention_days=7, console=False)

        assert not stale.exists()

    def test_noisy_loggers_suppressed(self):
        """Test noisy third-party loggers are suppressed."""
        setup_logging(level="DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING

    def test_logger_filters_by_level(self, capsys):
        """Test logger respects level filtering."""
        setup_logging(level="WARNING")
        logger = logging.getLogger("insightboard.test")

        logger.info("Info message")
        logger.warning("Warning message")

        captured = capsys.readouterr()
        assert "Info message" not in captured.err
        assert "Warning message" in captured.err


class TestInsightBoardFormatter:
    """Tests for InsightBoardFormatter class."""

    def test_formatter_with_colors(self):
        """Test formatter includes color codes on a tty."""
        formatter = InsightBoardFormatter(use_colors=True)

        with patch("sys.stderr.isatty", return_value=True):
            formatted = formatter.format(make_record())

        assert "\033[32m" in formatted
        assert "\033[0m" in formatted
        assert "Test message" in formatted

    def test_formatter_without_colors(self):
        """Test formatter output has no ANSI codes and a short logger name."""
        formatted = InsightBoardFormatter(use_colors=False).format(make_record())

        assert "\033[" not in formatted
        assert "processor" in formatted
        assert "insightboard.graph" not in formatted
        assert "INFO" in formatted

    def test_formatter_includes_exception(self):
        """Test exception tracebacks are appended."""
        try:
            raise ValueError("boom")
        except ValueError:
            import sys

            record = make_record(level=logging.ERROR, msg="failed")
            record.exc_info = sys.exc_info()

        formatted = InsightBoardFormatter(use_colors=False).format(record)

        assert "failed" in formatted
        assert "ValueError: boom" in formatted
