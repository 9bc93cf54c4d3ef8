"""Centralized logging configuration using loguru."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

# Remove default handler
logger.remove()

_console_handler_id = logger.add(
    sys.stderr,
    level="INFO",
    format=CONSOLE_FORMAT,
    colorize=True,
)
_file_handler_ids: list[int] = []


def configure_logging(level: str = "INFO", log_dir: Optional[Union[str, Path]] = "logs") -> None:
    """Configure console level and rotating file sinks for a calibration run.

    Args:
        level: Minimum level for the console sink
        log_dir: Directory for log files, or None to log to the console only
    """
    global _console_handler_id

    logger.remove(_console_handler_id)
    _console_handler_id = logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    for handler_id in _file_handler_ids:
        logger.remove(handler_id)
    _file_handler_ids.clear()

    if log_dir is None:
        return

    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    _file_handler_ids.append(
        logger.add(
            logs_dir / "calibration_{time}.log",
            rotation="10 MB",
            retention="10 days",
            level="DEBUG",
            format=FILE_FORMAT,
        )
    )

    # Add error-specific log file
    _file_handler_ids.append(
        logger.add(
            logs_dir / "errors_{time}.log",
            rotation="10 MB",
            retention="30 days",
            level="ERROR",
            format=FILE_FORMAT,
        )
    )


def get_logger(name: Optional[str] = None):
    """Get a logger instance with the given name.

    Args:
        name: Module name for the logger (usually __name__)

    Returns:
        Configured logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


__all__ = ["logger", "get_logger", "configure_logging"]
