"""Logging utilities for genosim."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def parse_log_level(level: Union[int, str]) -> int:
    """Convert a level name such as ``"info"`` into a logging level."""
    if isinstance(level, int):
        return level
    try:
        return LOG_LEVELS[level.upper()]
    except KeyError:
        raise ValueError(
            f"Unknown log level: {level}. Available: {list(LOG_LEVELS.keys())}"
        ) from None


def setup_logger(
    name: str = "genosim",
    log_file: Optional[str] = None,
    level: Union[int, str] = logging.INFO,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Set up and configure a logger.

    Args:
        name: Logger name
        log_file: Optional path to log file
        level: Logging level, as a number or a name (default: INFO)
        format_string: Custom format string

    Returns:
        Configured logger instance
    """
    if format_string is None:
        format_string = "%(asctime)s - %(levelname)s - %(message)s"
    level = parse_log_level(level)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Repeated CLI invocations in one process must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(format_string)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger



def get_logger(name: str = "genosim") -> logging.Logger:
    """
    Get an existing logger or create a new one.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name)
    return logger
