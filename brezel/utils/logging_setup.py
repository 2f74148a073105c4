"""
Logging configuration utilities.

This module provides standardized logging setup for the deployment scripts.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# ANSI colors used by the deploy scripts' status prefixes
LEVEL_COLORS = {
    logging.DEBUG: "\033[0;34m",
    logging.INFO: "\033[0;32m",
    logging.WARNING: "\033[1;33m",
    logging.ERROR: "\033[0;31m",
    logging.CRITICAL: "\033[0;31m",
}
RESET = "\033[0m"


class ColorFormatter(logging.Formatter):
    """Formatter that prefixes records with a colored ``[LEVEL]`` tag."""

    def __init__(self, fmt: str = "%(message)s", use_color: bool = True):
        super().__init__(fmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        tag = f"[{record.levelname}]"
        if self.use_color:
            color = LEVEL_COLORS.get(record.levelno, "")
            tag = f"{color}{tag}{RESET}"
        return f"{tag} {message}"


def _level_from_env(default: int) -> int:
    name = os.getenv("LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def setup_logging(
    name: str = None,
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
    color: bool = False,
    format_string: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Set up logging with optional file and console handlers.

    Args:
        name: Logger name (defaults to root logger if None)
        level: Logging level (default: INFO, overridden by LOG_LEVEL)
        log_file: Path to log file (optional)
        console: Whether to add console handler (default: True)
        color: Use colored ``[LEVEL]`` prefixes on the console when stdout is a TTY
        format_string: Log message format

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logging(__name__, color=True)
        >>> logger.info("Starting deployment")
    """
    level = _level_from_env(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        if color:
            console_handler.setFormatter(
                ColorFormatter(use_color=sys.stdout.isatty())
            )
        else:
            console_handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
