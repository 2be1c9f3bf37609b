"""
Logging configuration for clustergate.

Console output is colored when attached to a TTY, JSON when LOG_JSON is set.
structlog loggers render through the stdlib root logger so both share handlers.
"""
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from ..config import get_settings
from .request_context import request_id_var

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(request_id)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SERVICE_NAME = "clustergate"

_CONFIGURED = False

# Attributes every LogRecord carries; anything else is an extra field.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "service"}


class ContextFilter(logging.Filter):
    """Stamps every record with the current request id ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get() or "-"
        record.service = SERVICE_NAME
        return True


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        color = self.LEVEL_COLORS.get(record.levelno)
        if color:
            record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers see the same record.
            record.levelname = original


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    structlog event fields arrive as record extras and are emitted as
    top-level keys; values under sensitive keys are masked.
    """

    REDACT_KEYS = frozenset({"password", "secret", "token", "authorization", "bearer_token"})

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "service": getattr(record, "service", SERVICE_NAME),
            "event": record.getMessage(),
        }
        rid = getattr(record, "request_id", None)
        if rid and rid != "-":
            payload["request_id"] = rid

        extras = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS and k != "request_id"}
        for key, value in extras.items():
            payload[key] = "***REDACTED***" if key.lower() in self.REDACT_KEYS and value else value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _build_formatter(json_output: bool, color: bool) -> logging.Formatter:
    if json_output:
        return JSONFormatter(datefmt=LOG_DATE_FORMAT)
    if color:
        return ColoredFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def _configure_structlog(json_output: bool) -> None:
    # JSON output keeps the event fields as LogRecord extras; text output
    # renders them inline as key=value pairs.
    renderer = (
        structlog.stdlib.render_to_log_kwargs
        if json_output
        else structlog.processors.KeyValueRenderer(key_order=["event"], drop_missing=True)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    use_color: bool = True,
) -> logging.Logger:
    """Configure the root logger and structlog once per process.

    Args:
        level: log level name, defaults to LOG_LEVEL
        log_file: optional rotating log file, defaults to LOG_FILE
        use_color: color console output when stdout is a TTY

    Returns:
        logging.Logger: the "clustergate" logger
    """
    global _CONFIGURED
    app_logger = logging.getLogger(SERVICE_NAME)
    if _CONFIGURED:
        return app_logger

    settings = get_settings()
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    for existing in list(root.handlers):
        root.removeHandler(existing)

    context_filter = ContextFilter()
    handlers: list[logging.Handler] = []

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_build_formatter(settings.log_json, use_color and sys.stdout.isatty()))
    handlers.append(console)

    file_path = log_file or settings.log_file
    if file_path:
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(file_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        rotating.setFormatter(_build_formatter(settings.log_json, color=False))
        handlers.append(rotating)

    for handler in handlers:
        handler.addFilter(context_filter)
        root.addHandler(handler)

    # uvicorn installs its own handlers; send everything through root instead
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        named = logging.getLogger(name)
        named.handlers.clear()
        named.propagate = True

    _configure_structlog(settings.log_json)

    _CONFIGURED = True
    return app_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
