"""Logging configuration for Crudio."""

import logging
import sys
from pathlib import Path
from typing import Optional
from .settings import get_settings

LOGGER_NAMESPACE = "crudio"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"

# Third-party loggers that are chatty at DEBUG while rows are generated
QUIET_LOGGERS = ("faker", "faker.factory")


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level '{name}'")
    return level


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> None:
    """
    Configure the crudio logger namespace.

    Missing arguments fall back to the log_level / log_file settings.
    Handlers installed by an earlier call are replaced, so the CLI and
    tests can reconfigure freely.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file that receives the same records as stdout
        format_string: Optional custom format string
    """
    settings = get_settings()
    log_level = _level(level or settings.log_level)
    log_file_path = log_file or settings.log_file
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(log_level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    logger.addHandler(_handler(logging.StreamHandler(sys.stdout), log_level, formatter))
    if log_file_path:
        logger.addHandler(_handler(logging.FileHandler(log_file_path, encoding="utf-8"), log_level, formatter))
    logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the crudio namespace, configuring logging on first use.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if not logging.getLogger(LOGGER_NAMESPACE).handlers:
        setup_logging()

    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
