"""
Logging utility module.

Provides centralized logging configuration for the ``rsicraft`` logger tree,
with a console handler and an optional file handler.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "rsicraft"


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Set up a logger with console and optional file handlers.

    Args:
        name: Logger name
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Falls back to LOG_LEVEL from the configuration.
        log_file: Optional path to log file. Falls back to LOG_FILE; if neither
            is set, logs only to console.
        format_string: Optional custom format string

    Returns:
        Configured logger instance
    """
    from .config import get_config

    config = get_config()
    if log_level is None:
        log_level = config.log_level
    if log_file is None:
        log_file = config.log_file

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if format_string is None:
        format_string = (
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(filename)s:%(lineno)d] - %(message)s"
        )

    formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger inside the ``rsicraft`` tree.

    The package logger is configured on first use; child loggers carry no
    handlers of their own and propagate to it.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        setup_logger(ROOT_LOGGER_NAME)
    return logging.getLogger(name)
