"""Logging configuration."""

from .logger import configure_logging, get_logger, logger

__all__ = ["configure_logging", "get_logger", "logger"]
