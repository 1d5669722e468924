"""Structured JSON Logging with Correlation ID Support"""
import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Iterator, Optional

from ..config.settings import settings


# Shared by the API (set per HTTP request) and the client core (set per
# outgoing call), so both sides log the same id for one round trip
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_MAX_BYTES = 10 * 1024 * 1024  # 10MB
_BACKUP_COUNT = 5


class JsonFormatter(logging.Formatter):
    """One JSON object per line; portal extras become top-level keys"""

    EXTRA_FIELDS = (
        "request_id", "activity_id", "actor_id", "actor_role",
        "impersonated_by", "field", "action", "status", "error_code",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            log_obj["correlation_id"] = correlation_id

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_obj[field] = value

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Enums and datetimes in extras
        return json.dumps(log_obj, default=str)


def _rotating_handler(path: str, formatter: logging.Formatter, level: int = logging.NOTSET) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(level: Optional[str] = None, log_to_files: Optional[bool] = None) -> None:
    """
    Configure the root logger

    Console output always; portal.log and error.log under settings.logs_path
    unless log_to_files is off (the client core embedded in another process
    usually leaves file handling to its host).
    """
    if log_to_files is None:
        log_to_files = settings.log_to_files

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or settings.log_level).upper()))
    root_logger.handlers.clear()

    json_formatter = JsonFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(json_formatter)
    root_logger.addHandler(console_handler)

    if log_to_files:
        os.makedirs(settings.logs_path, exist_ok=True)
        root_logger.addHandler(_rotating_handler(os.path.join(settings.logs_path, "portal.log"), json_formatter))
        root_logger.addHandler(
            _rotating_handler(os.path.join(settings.logs_path, "error.log"), json_formatter, logging.ERROR)
        )

    # Reduce verbosity of third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name"""
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID in context"""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Get correlation ID from context"""
    return correlation_id_var.get()


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Set the correlation ID for the duration of one client call, then restore the previous one"""
    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)
