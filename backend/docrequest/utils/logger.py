"""Structured JSON Logging with Correlation ID and Request Context Support"""
import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from ..config.settings import Settings, settings as default_settings


# Context variable for correlation ID
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Inbound request facts (ip, user agent, origin, path) merged into audit metadata
request_context_var: ContextVar[Optional[Dict[str, str]]] = ContextVar("request_context", default=None)

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_FILE_BACKUPS = 5

QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "pymongo": logging.WARNING,
}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    Only whitelisted `extra` fields are copied so that draft values and raw
    tokens passed around elsewhere never end up in the logs by accident.
    """

    EXTRA_FIELDS = (
        "request_id", "actor_id", "action", "section",
        "error_code", "reason_code", "table", "status_code",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            log_obj["correlation_id"] = correlation_id
        path = (request_context_var.get() or {}).get("path")
        if path:
            log_obj["path"] = path

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value not in (None, ""):
                log_obj[field] = value

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, ensure_ascii=False, default=str)


def _rotating_handler(path: str, formatter: logging.Formatter, level: int = logging.NOTSET) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Console plus app.log and error.log under the configured logs path"""
    settings = settings or default_settings
    os.makedirs(settings.logs_path, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    formatter = JsonFormatter()
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(_rotating_handler(os.path.join(settings.logs_path, "app.log"), formatter))
    root_logger.addHandler(
        _rotating_handler(os.path.join(settings.logs_path, "error.log"), formatter, logging.ERROR)
    )

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name"""
    return logging.getLogger(name)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def set_request_context(context: Dict[str, str]) -> None:
    """Set inbound request facts in context"""
    request_context_var.set(dict(context))


def get_request_context() -> Dict[str, str]:
    """Get inbound request facts from context (empty outside a request)"""
    return dict(request_context_var.get() or {})
