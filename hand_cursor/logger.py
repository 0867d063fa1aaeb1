"""
Logging for the hand cursor.

Every module logs through a child of the "HandCursor" logger. The demo host
calls setup_logging() once; library users may leave it unconfigured and
attach their own handlers.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import (
    APP_DIR_FALLBACK,
    APP_DIR_NAME,
    LOG_BACKUP_COUNT,
    LOG_FILENAME,
    LOG_MAX_BYTES,
)

LOGGER_NAME = "HandCursor"

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s"


def get_app_directory() -> Path:
    """Per-user data directory: %APPDATA%/HandCursor, else ~/.hand_cursor."""
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / APP_DIR_NAME
    return Path.home() / APP_DIR_FALLBACK


def setup_logging(
    debug: bool = False,
    log_dir: Optional[Path] = None,
    log_to_file: bool = True
) -> logging.Logger:
    """
    Configure the root "HandCursor" logger.

    Console output goes to stdout at INFO (DEBUG with debug=True). The
    rotating log file always records DEBUG.

    Args:
        debug: Verbose console output.
        log_dir: Directory for the log file (default: <app dir>/logs).
        log_to_file: Set False to log to the console only.

    Returns:
        The configured logger.
    """
    level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(logging.DEBUG if log_to_file else level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(console)

    if log_to_file:
        directory = Path(log_dir) if log_dir else get_app_directory() / "logs"
        directory.mkdir(parents=True, exist_ok=True)
        log_path = directory / LOG_FILENAME

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)

        root.debug(f"Log file: {log_path}")

    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a module logger.

    Args:
        name: Child name, e.g. "Session". None returns the root logger.
    """
    root = logging.getLogger(LOGGER_NAME)
    return root.getChild(name) if name else root
