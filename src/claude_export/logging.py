"""Logging configuration for claude-export.

Log files are written to ~/claude-export/logs/ unless a directory is given.
"""

import logging
import sys
from pathlib import Path

DEFAULT_LOG_DIR = Path.home() / "claude-export" / "logs"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    name: str,
    log_dir: Path | None = None,
    level: int = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """Configure the package logger for one command run.

    Handlers are attached to the ``claude_export`` root logger so every
    module logger obtained through get_logger() shares them. Calling this
    again replaces the previous handlers, which lets a single process switch
    between verbose and quiet runs.

    Args:
        name: Command name (used for the log filename)
        log_dir: Directory for log files (defaults to ~/claude-export/logs/)
        level: Logging level (defaults to INFO)
        console: Whether to also log to stderr (defaults to True)

    Returns:
        The configured package logger
    """
    if log_dir is None:
        log_dir = DEFAULT_LOG_DIR

    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("claude_export")
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    file_handler = logging.FileHandler(log_dir / f"{name}.log", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a claude-export component.

    Args:
        name: Logger name (will be prefixed with 'claude_export.')

    Returns:
        Logger instance
    """
    return logging.getLogger(f"claude_export.{name}")
