"""Logging setup for the packager CLI and library users."""
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from pythonjsonlogger import jsonlogger

LOGGER_NAME = "packager_core"
_CONFIGURED_FLAG = "_packager_logging_configured"


def _env(name: str) -> str | None:
    value = os.getenv(name)
    return value.strip() if value and value.strip() else None


def _build_formatter(format_type: str, service_name: str) -> logging.Formatter:
    format_type = (format_type or "text").lower()
    if format_type == "json":

        class _JsonFormatter(jsonlogger.JsonFormatter):
            def add_fields(self, log_record, record, message_dict):  # type: ignore[override]
                super().add_fields(log_record, record, message_dict)
                log_record.setdefault("service", service_name)
                log_record.setdefault("level", record.levelname)
                log_record.setdefault("logger", record.name)
                if record.exc_info:
                    log_record.setdefault("exc_info", self.formatException(record.exc_info))

        return _JsonFormatter("%(message)s")

    return logging.Formatter("[%(levelname)s] %(name)s: %(message)s")


def setup_logging(
    *,
    level: int | str | None = None,
    log_file: Path | str | None = None,
    format_type: str | None = None,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
    service_name: str = "native-packager",
    force: bool = False,
) -> logging.Logger:
    """Configure the ``packager_core`` logger once (stdout plus optional rotating file)."""

    root = logging.getLogger(LOGGER_NAME)
    if getattr(root, _CONFIGURED_FLAG, False) and not force:
        return root

    resolved_level = level or _env("PACKAGER_LOG_LEVEL") or "INFO"
    if isinstance(resolved_level, str):
        resolved_level = getattr(logging, resolved_level.upper(), logging.INFO)

    formatter = _build_formatter(format_type or _env("PACKAGER_LOG_FORMAT") or "text", service_name)

    stream_handler = logging.StreamHandler(stream=sys.stdout)
    stream_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [stream_handler]

    target_file = log_file or _env("PACKAGER_LOG_FILE")
    if target_file:
        target_path = Path(target_file).expanduser()
        target_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(target_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(resolved_level)
    root.propagate = False
    setattr(root, _CONFIGURED_FLAG, True)
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger below ``packager_core``, configuring logging on first use."""

    setup_logging()
    return logging.getLogger(name or LOGGER_NAME)


__all__ = ["LOGGER_NAME", "get_logger", "setup_logging"]
