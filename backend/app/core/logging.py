"""Structured logging configuration (structlog on top of stdlib logging)."""

import logging
import re
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog

from app.core.config import Settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

_JWT_RE = re.compile(r"\beyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\b")
_SENSITIVE_KEYS = {"password", "confirm_password", "confirmPassword", "access_token", "refresh_token"}

_configured = False


def add_request_id(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    request_id = request_id_var.get()
    if request_id:
        event_dict.setdefault("request_id", request_id)
    return event_dict


def redact_event(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask credentials and JWTs before an event is rendered."""
    for key, value in list(event_dict.items()):
        if key in _SENSITIVE_KEYS:
            event_dict[key] = "***REDACTED***"
        elif isinstance(value, str):
            event_dict[key] = _JWT_RE.sub("***REDACTED***", value)
    return event_dict


def configure_logging(settings: Settings) -> None:
    """
    Configure structlog and the stdlib root logger.

    Development gets a colored console renderer. Every other environment
    renders JSON and additionally writes to a rotating log file.

    Args:
        settings: Application settings
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL)

    if _configured:
        return

    use_json = settings.LOG_JSON if settings.LOG_JSON is not None else not settings.is_development
    renderer: Any = structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_request_id,
        redact_event,
    ]
    if use_json:
        shared_processors.append(structlog.processors.format_exc_info)

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root.handlers.clear()
    root.addHandler(stream_handler)

    if not settings.is_development and settings.APP_ENV != "test":
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _configured = True
