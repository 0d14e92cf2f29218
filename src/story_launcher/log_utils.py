"""
Logging for Story Launcher.

A single package logger writes to a Rich console handler on stderr, so
stdout stays free for command output such as ``--json``. A rotating log file
can be added once the log directory is known.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from story_launcher.constants import (
    DEBUG_LOG_FORMAT,
    INFO_LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
    LOG_FILE_NAME,
    LOG_LEVEL_ENV_VAR,
    LOGGER_NAME,
)

logger = logging.getLogger(LOGGER_NAME)

# The file handler installed by add_file_logging, if any
_file_handler: Optional[RotatingFileHandler] = None


def _resolve_level(level_name: str) -> Optional[int]:
    level = getattr(logging, str(level_name).upper(), None)
    return level if isinstance(level, int) else None


def _formatter_for(handler: logging.Handler, level: int) -> logging.Formatter:
    # Rich renders time and level itself
    if isinstance(handler, RichHandler):
        return logging.Formatter("%(message)s")
    fmt = INFO_LOG_FORMAT if level >= logging.INFO else DEBUG_LOG_FORMAT
    return logging.Formatter(fmt, datefmt=LOG_DATE_FORMAT)


def set_log_level(level_name: str) -> None:
    """
    Apply `level_name` to the logger and every attached handler.

    Unknown names are reported and ignored.
    """
    level = _resolve_level(level_name)
    if level is None:
        logger.warning(f"Invalid log level name: {level_name}. Using current level.")
        return

    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
        handler.setFormatter(_formatter_for(handler, level))
    logger.log(level, f"Log level set to {logging.getLevelName(level)}")


def add_file_logging(log_dir_path: Path, level_name: str = "INFO") -> Path:
    """
    Write the log to a rotating file in `log_dir_path` as well.

    Calling this again replaces the previous file handler. An unknown level
    name falls back to INFO.

    Returns:
        Path: The log file.
    """
    global _file_handler

    if _file_handler is not None:
        logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None

    level = _resolve_level(level_name)
    if level is None:
        logger.warning(f"Invalid file log level name: {level_name}. Defaulting to INFO.")
        level = logging.INFO

    log_dir_path.mkdir(parents=True, exist_ok=True)
    log_file = log_dir_path / LOG_FILE_NAME
    handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(_formatter_for(handler, level))
    logger.addHandler(handler)
    _file_handler = handler

    logger.debug(f"Writing log file {log_file}")
    return log_file


def _initialize_logger() -> None:
    """Reset the logger to a single Rich console handler at the env-configured level."""
    logger.propagate = False
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    console = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        log_time_format=LOG_DATE_FORMAT,
    )
    logger.addHandler(console)

    env_level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO")
    level = _resolve_level(env_level)
    if level is None:
        logger.warning(f"Invalid {LOG_LEVEL_ENV_VAR}={env_level}; defaulting to INFO.")
        level = logging.INFO

    logger.setLevel(level)
    console.setLevel(level)
    console.setFormatter(_formatter_for(console, level))


_initialize_logger()
