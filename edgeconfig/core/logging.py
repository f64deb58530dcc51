"""Logging helpers for the configuration API client.

Library modules only ask for loggers via :func:`get_logger`. Applications that
want the JSONL error and structured streams call :func:`setup_logging` once.
"""

import json
import logging
import os
import re
import sys
import traceback
from datetime import UTC, datetime
from functools import lru_cache
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

from edgeconfig.core.settings import get_settings

REDACTED = "<redacted>"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_BUILTIN_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

# Extras with a dedicated slot in the payload rather than in context_data.
_PROMOTED_ATTRS = frozenset(
    {"component", "operation", "context_data", "http_details", "error_type", "error_message"}
)

_CREDENTIAL_MARKERS = (
    "authorization",
    "cookie",
    "fastly-key",
    "api-key",
    "apikey",
    "api_key",
    "token",
    "password",
    "secret",
)

_BEARER_RE = re.compile(r"(?i)\bbearer\s+[a-z0-9\-._~+/]+=*")
_KEY_ASSIGNMENT_RE = re.compile(
    r"(?i)((?:fastly-key|authorization)['\"]?\s*[:=]\s*['\"]?)([^'\"\s,}]+)"
)

_CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(filename)s:%(lineno)d] %(message)s"


def _is_credential(key: object) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in _CREDENTIAL_MARKERS)


def redact(value: Any) -> Any:
    """Replace credential values in nested dicts, lists and header strings."""
    if isinstance(value, str):
        masked = _BEARER_RE.sub(f"Bearer {REDACTED}", value)
        return _KEY_ASSIGNMENT_RE.sub(rf"\1{REDACTED}", masked)
    if isinstance(value, dict):
        return {str(k): REDACTED if _is_credential(k) else redact(v) for k, v in value.items()}
    if isinstance(value, list):
        return [redact(item) for item in value]
    if isinstance(value, tuple):
        return tuple(redact(item) for item in value)
    return value


def _record_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        name: value
        for name, value in vars(record).items()
        if name not in _BUILTIN_ATTRS and name not in _PROMOTED_ATTRS
    }


def _context_for(record: logging.LogRecord) -> Any:
    explicit = getattr(record, "context_data", None)
    extras = _record_extras(record)
    if not extras:
        return explicit
    if explicit is None:
        return extras
    if isinstance(explicit, dict):
        return {**extras, **explicit}
    return {**extras, "context_data": explicit}


def _error_fields(record: logging.LogRecord, message: str) -> dict[str, Any]:
    exc_type, exc_value, exc_tb = record.exc_info if record.exc_info else (None, None, None)

    error_type = getattr(record, "error_type", None) or (
        exc_type.__name__ if exc_type else "LogError"
    )
    error_message = getattr(record, "error_message", None) or (
        str(exc_value) if exc_value else message
    )
    fields: dict[str, Any] = {"error_type": error_type, "error_message": redact(error_message)}
    if exc_value is not None and exc_tb is not None:
        fields["stack_trace"] = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
    return fields


def build_log_payload(record: logging.LogRecord, *, include_error: bool = False) -> dict[str, Any]:
    """Build the JSON object written for one log record.

    ``component`` falls back to the logger name. Unknown ``extra`` keys are
    folded into ``context_data``. Keys whose value is None are dropped.
    """
    message = redact(record.getMessage())
    component = getattr(record, "component", None)
    if not isinstance(component, str) or not component.strip():
        component = record.name

    context = _context_for(record)
    http_details = getattr(record, "http_details", None)

    payload: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "component": component,
        "operation": getattr(record, "operation", None),
        "message": message,
        "context_data": None if context is None else redact(context),
        "http_details": None if http_details is None else redact(http_details),
        "source_file": record.filename,
        "source_line": record.lineno,
        "source_function": record.funcName,
        "process": record.process,
        "thread": record.thread,
    }
    if include_error:
        payload.update(_error_fields(record, message))

    return {key: value for key, value in payload.items() if value is not None}


class _JsonLineFormatter(logging.Formatter):
    def __init__(self, *, include_error: bool) -> None:
        super().__init__()
        self.include_error = include_error

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            build_log_payload(record, include_error=self.include_error),
            ensure_ascii=False,
            default=str,
        )


class _StructuredLogFilter(logging.Filter):
    """Pass only records that carry an operation, context or extra fields."""

    def filter(self, record: logging.LogRecord) -> bool:
        if any(
            getattr(record, name, None) is not None
            for name in ("operation", "context_data", "http_details")
        ):
            return True
        return bool(_record_extras(record))


def _file_stem(logger_name: str) -> str:
    stem = re.sub(r"[^a-z0-9._-]+", "_", logger_name.strip().lower()).strip("._-")
    return stem or "edgeconfig"


def _rollover_name(default_name: str) -> str:
    # app_errors_1.jsonl.20240101_000000 -> app_errors_1_20240101_000000.jsonl
    head, sep, stamp = default_name.partition(".jsonl.")
    return f"{head}_{stamp}.jsonl" if sep else default_name


def _jsonl_handler(
    logs_dir: Path, stream: str, logger_name: str, *, level: int, include_error: bool
) -> TimedRotatingFileHandler:
    target_dir = logs_dir / stream
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / f"{_file_stem(logger_name)}_{stream}_{os.getpid()}.jsonl"

    handler = TimedRotatingFileHandler(
        path, when="midnight", backupCount=0, encoding="utf-8", delay=True, utc=True
    )
    handler.suffix = "%Y%m%d_%H%M%S"
    handler.namer = _rollover_name
    handler.setLevel(level)
    handler.setFormatter(_JsonLineFormatter(include_error=include_error))
    return handler


@lru_cache
def setup_logging(name: str | None = None, level: str | None = None) -> logging.Logger:
    """Install console and JSONL handlers on the root logger.

    Error records go to ``<logs_dir>/errors``. Records with structured
    context go to ``<logs_dir>/structured``. The client never calls this
    on its own.

    Args:
        name: Logger to return and to name the files after. Defaults to
            ``settings.app_name``.
        level: Level name. Defaults to ``settings.log_level``.

    Returns:
        The named logger.
    """
    settings = get_settings()
    logger_name = name or settings.app_name
    log_level = getattr(logging, (level or settings.log_level).upper())

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    errors = _jsonl_handler(
        settings.logs_dir, "errors", logger_name, level=logging.ERROR, include_error=True
    )
    structured = _jsonl_handler(
        settings.logs_dir, "structured", logger_name, level=logging.NOTSET, include_error=False
    )
    structured.addFilter(_StructuredLogFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)
    for handler in (console, errors, structured):
        root.addHandler(handler)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
