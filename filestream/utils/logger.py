"""
Logging setup for filestream.
Every module gets its logger through get_logger so the package shares one
format and one debug switch.
"""

import logging
import os
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Name of the package logger every module logger hangs off
ROOT_LOGGER = "filestream"

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)


def configure_logging(debug: bool = False) -> None:
    """
    Switch the package loggers between INFO and DEBUG.

    Args:
        debug: Enable debug output for every filestream logger
    """
    logging.getLogger(ROOT_LOGGER).setLevel(logging.DEBUG if debug else logging.INFO)


def get_logger(name: str, log_level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger instance with the specified name and log level.

    Args:
        name: Name of the logger, typically __name__ from the calling module
        log_level: Optional logging level to override the package level

    Returns:
        A configured logger instance
    """
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"

    logger = logging.getLogger(name)

    if log_level is not None:
        logger.setLevel(log_level)
    elif os.getenv('DEBUG', 'false').lower() == 'true':
        logger.setLevel(logging.DEBUG)

    return logger
