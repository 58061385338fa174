"""Structured logging with JSON output, correlation IDs and field redaction.

Every record emitted while a request or webhook is being handled carries the
request's correlation id and whatever was pushed with ``set_log_context`` (for
example the provider video id). Extra fields named like credentials are masked
before they reach the handler, including inside nested dicts.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
log_context_var: ContextVar[dict[str, Any]] = ContextVar("log_context")

REDACTED = "***"

# Extra fields whose values must never reach log output
REDACTED_FIELDS = frozenset(
    {
        "authorization",
        "signature",
        "secret",
        "api_token",
        "admin_api_token",
        "password",
    }
)

# Attributes every LogRecord has; anything else was passed via ``extra``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context, generating one if needed."""
    cid = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(cid)
    return cid


def get_log_context() -> dict[str, Any]:
    return dict(log_context_var.get({}))


def set_log_context(**kwargs: Any) -> None:
    """Merge key-value pairs into the logging context of the current task."""
    log_context_var.set({**log_context_var.get({}), **kwargs})


def clear_log_context() -> None:
    log_context_var.set({})


def redact(key: str, value: Any) -> Any:
    """Mask credential-like fields, descending into dicts."""
    if key.lower() in REDACTED_FIELDS:
        return REDACTED
    if isinstance(value, dict):
        return {k: redact(str(k), v) for k, v in value.items()}
    return value


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: redact(key, value)
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def __init__(self, *, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "path": f"{record.pathname}:{record.lineno}",
            "message": record.getMessage(),
        }
        if self.service:
            payload["service"] = self.service

        cid = get_correlation_id()
        if cid:
            payload["correlation_id"] = cid
        context = get_log_context()
        if context:
            payload["context"] = redact("context", context)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload.update(_extra_fields(record))
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Colored single-line output for local development.

    Layout: ``time LEVEL [logger] [cid] message key=value ...`` where the
    trailing pairs come from the logging context, sorted by key.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, UTC)
        color = _LEVEL_COLORS.get(record.levelname, "")
        parts = [
            timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            f"{color}{record.levelname:8}{_RESET}",
            f"[{record.name}]",
        ]

        cid = get_correlation_id()
        if cid:
            parts.append(f"[{cid[:8]}]")
        parts.append(record.getMessage())

        context = redact("context", get_log_context())
        parts.extend(f"{key}={context[key]}" for key in sorted(context))

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(
    level: str = "INFO",
    format_type: str = "json",
    logger_name: str | None = None,
    service: str | None = None,
) -> logging.Logger:
    """Attach a single stdout handler to a logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        format_type: ``json`` or ``text``.
        logger_name: Logger to configure. Defaults to the root logger.
        service: Service name stamped on JSON records.

    Returns:
        The configured logger. It no longer propagates to its parents.
    """
    numeric_level = logging.getLevelName(level.upper())
    formatter: logging.Formatter = (
        JsonFormatter(service=service) if format_type == "json" else TextFormatter()
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)

    logger = logging.getLogger(logger_name)
    logger.setLevel(numeric_level)
    logger.handlers = [handler]
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
