"""Logging integration for :mod:`packager_core`."""

from .app import LOGGER_NAME, get_logger, setup_logging

__all__ = ["LOGGER_NAME", "get_logger", "setup_logging"]
