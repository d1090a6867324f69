"""
Console and file logging for the metaengine package logger.
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import colorama
from colorama import Fore, Style

colorama.init(autoreset=True)

ROOT_LOGGER_NAME = "metaengine"
DEFAULT_LOG_FILE = "logs/metaengine.log"

_BRIEF_FORMAT = "%(levelname)-8s | %(message)s"
_TRACE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


class LogLevel(str, Enum):
    """Verbosity presets accepted in the ``logging.level`` config key."""

    MINIMAL = "minimal"  # warnings and errors
    NORMAL = "normal"  # one line per analysis step
    DETAILED = "detailed"  # plus per-pooling debug traces
    FULL = "full"  # detailed, with timestamps and logger names


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name for terminals."""

    COLORS = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.RED + Style.BRIGHT,
    }

    def format(self, record):
        # Handlers share the record; restore the plain level name afterwards.
        plain = record.levelname
        record.levelname = f"{self.COLORS.get(plain, '')}{plain}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def _resolve_level(level: LogLevel, verbose: bool, debug: bool) -> int:
    if debug or verbose or level in (LogLevel.DETAILED, LogLevel.FULL):
        return logging.DEBUG
    if level == LogLevel.NORMAL:
        return logging.INFO
    return logging.WARNING


def _file_handler(log_file: str) -> logging.FileHandler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: LogLevel = LogLevel.NORMAL,
    log_to_file: bool = False,
    log_file: Optional[str] = None,
    verbose: bool = False,
    debug: bool = False,
) -> logging.Logger:
    """
    Configure the ``metaengine`` logger, replacing any handlers from an
    earlier call.

    Args:
        level: Verbosity preset
        log_to_file: Also write every record (DEBUG and up) to ``log_file``
        log_file: Log file path (``logs/metaengine.log`` if None)
        verbose: Force DEBUG on the console
        debug: Force DEBUG on the console

    Returns:
        The configured package logger
    """
    level = LogLevel(level)
    log_level = _resolve_level(level, verbose, debug)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    if debug or verbose or level == LogLevel.FULL:
        console_handler.setFormatter(ColoredFormatter(_TRACE_FORMAT, datefmt="%H:%M:%S"))
    else:
        console_handler.setFormatter(ColoredFormatter(_BRIEF_FORMAT))
    logger.addHandler(console_handler)

    if log_to_file:
        logger.addHandler(_file_handler(log_file or DEFAULT_LOG_FILE))

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the metaengine namespace.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_from_settings(config) -> logging.Logger:
    """
    Apply a LoggingConfig: console/file logging plus the structured audit log
    when ``structured_log_dir`` is set.

    Args:
        config: metaengine.models.LoggingConfig

    Returns:
        Configured logger
    """
    from metaengine.utils.structured_log import configure_run_logging

    logger = setup_logging(
        level=LogLevel(config.level),
        log_to_file=config.log_to_file,
        log_file=config.log_file,
    )
    if config.structured_log_dir:
        configure_run_logging(config.structured_log_dir)
    return logger
