"""
Logging configuration for Codexgate.

Provides the logging setup used by the gateway entry point. All modules
should use these functions instead of configuring logging directly.

stdout carries the JSON-RPC channel, so console output always goes to
stderr.

Usage:
    from .logging_config import setup_gateway_logging

    setup_gateway_logging(log_level="DEBUG")
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import colorlog

from ..config import LOGS_DIR
from .constants import (
    COLORLOG_COLORS,
    LOG_BACKUP_COUNT,
    LOG_FILE_GATEWAY,
    LOG_FORMAT_COLORED,
    LOG_FORMAT_FILE,
    LOG_MAX_BYTES,
)

logger = logging.getLogger(__name__)


def _get_log_level(log_level: str) -> int:
    """
    Convert log level string to logging constant.

    Args:
        log_level: Log level name (DEBUG, INFO, WARNING, ERROR).

    Returns:
        Logging level constant.
    """
    return getattr(logging, log_level.upper(), logging.INFO)


def _create_rotating_file_handler(
    log_file: Path,
    level: int,
    max_bytes: int = LOG_MAX_BYTES,
    backup_count: int = LOG_BACKUP_COUNT,
) -> RotatingFileHandler:
    """
    Create a rotating file handler with standard configuration.

    Args:
        log_file: Path to the log file.
        level: Logging level.
        max_bytes: Maximum file size before rotation.
        backup_count: Number of backup files to keep.

    Returns:
        Configured RotatingFileHandler.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(log_file),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT_FILE))
    return handler


def _create_console_handler(level: int) -> logging.Handler:
    """Create a colored stderr handler."""
    handler = colorlog.StreamHandler(sys.stderr)
    handler.setFormatter(
        colorlog.ColoredFormatter(
            LOG_FORMAT_COLORED,
            log_colors=COLORLOG_COLORS,
            secondary_log_colors={},
            style="%",
        )
    )
    handler.setLevel(level)
    return handler


def setup_gateway_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    console: bool = True,
    max_bytes: int = LOG_MAX_BYTES,
    backup_count: int = LOG_BACKUP_COUNT,
) -> None:
    """
    Configure gateway logging: rotating file plus colored stderr.

    Replaces all handlers on the root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file. If None, uses LOGS_DIR / codexgate.log.
        console: Also log to stderr.
        max_bytes: Maximum size of log file before rotation.
        backup_count: Number of backup files to keep.
    """
    level = _get_log_level(log_level)

    if log_file is None:
        log_file = LOGS_DIR / LOG_FILE_GATEWAY

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    root_logger.addHandler(
        _create_rotating_file_handler(
            log_file=log_file,
            level=level,
            max_bytes=max_bytes,
            backup_count=backup_count,
        )
    )
    if console:
        root_logger.addHandler(_create_console_handler(level))
