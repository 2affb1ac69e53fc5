"""
Logging Configuration Module.

Every module logs through ``get_logger(__name__)``, which nests its logger
under the ``invoice_scoring`` namespace. The command-line entry point
calls ``setup_logger_from_config()`` once to attach a coloured console
handler and, when enabled in settings, a rotating log file.

Usage:
    from invoice_scoring.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Scoring invoice...")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

import colorama
from colorama import Fore, Style

colorama.init()

# Root namespace for every logger in the package
LOGGER_NAMESPACE = "invoice_scoring"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation for the optional log file
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


class ColoredFormatter(logging.Formatter):
    """Prefixes each console line with its level colour."""

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, '')
        return f"{color}{super().format(record)}{Style.RESET_ALL}"


def _level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def setup_logger(
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    colorize: bool = True
) -> logging.Logger:
    """
    Attach handlers to the package logger, replacing any earlier ones.

    Args:
        level: Level name or number for the logger and its handlers.
        log_file: Rotating log file path; None disables file logging.
        colorize: Whether console lines are coloured.

    Returns:
        The ``invoice_scoring`` logger.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/scoring.log")
    """
    level = _level(level)
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    formatter_class = ColoredFormatter if colorize else logging.Formatter
    handlers = [logging.StreamHandler(sys.stdout)]
    handlers[0].setFormatter(formatter_class(LOG_FORMAT, datefmt=DATE_FORMAT))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        package_logger.addHandler(handler)

    package_logger.propagate = False
    package_logger.debug("Logging initialized")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` under the package namespace."""
    if name.startswith(LOGGER_NAMESPACE):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def setup_logger_from_config(level: Optional[Union[str, int]] = None) -> logging.Logger:
    """
    Initialize logging from the ``logging`` settings section.

    Args:
        level: Overrides ``logging.level`` when given.

    Returns:
        The ``invoice_scoring`` logger.
    """
    from invoice_scoring.config import get_config

    log_file = None
    if get_config("logging.file.enabled", False):
        log_file = get_config("logging.file.path")

    return setup_logger(
        level=level if level is not None else get_config("logging.level", "INFO"),
        log_file=log_file,
        colorize=get_config("logging.console.colorize", True)
    )
