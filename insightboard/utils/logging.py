"""Logging configuration."""

import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


class InsightBoardFormatter(logging.Formatter):
    """Console/file formatter with optional level colors."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname

        if self.use_colors and sys.stderr.isatty():
            color = self.COLORS.get(levelname, "")
            levelname = f"{color}{levelname}{self.COLORS['RESET']}"

        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        name = record.name.split(".")[-1]
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        return f"[{timestamp}] {levelname:8} {name:10} {message}"


def _cleanup_old_logs(log_dir: Path, retention_days: int) -> None:
    """Remove log files older than retention_days."""
    if retention_days <= 0:
        return
    cutoff = datetime.now().timestamp() - (retention_days * 86400)
    for path in log_dir.glob("*.log*"):
        try:
            if path.stat().st_mtime < cutoff:
                path.unlink()
        except FileNotFoundError:
            continue


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    log_dir: Optional[Path] = None,
    rotation_mb: int = 10,
    retention_days: int = 7,
    use_colors: bool = True,
    console: bool = True,
) -> None:
    """Setup logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        log_dir: Optional log directory (used if log_file not provided)
        rotation_mb: Max log size before rotation (MB)
        retention_days: Days to retain log files (<=0 disables cleanup)
        use_colors: Whether to use colors in console output
        console: Whether to log to console
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(InsightBoardFormatter(use_colors=use_colors))
        root_logger.addHandler(console_handler)

    if log_file or log_dir:
        if log_file is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file = Path(log_dir) / f"insightboard_{timestamp}.log"
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        _cleanup_old_logs(log_file.parent, retention_days)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max(1, rotation_mb) * 1024 * 1024,
            backupCount=max(1, retention_days),
        )
        file_handler.setFormatter(InsightBoardFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    # Keep the stdlib last-resort handler from writing to stderr
    if not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())

    # Suppress noisy client loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
