"""
Logging configuration for NoteBase.

Provides structured logging with JSON output for production
and human-readable output for development. Formula and rollup
failures are logged with ``extra`` context (column id, source,
error code) so they can be traced without interrupting a render.
"""

import logging
import sys
from typing import Any

import orjson

from notebase.core.exceptions import NoteBaseException

# Attributes every LogRecord carries; anything else came from ``extra=``
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
        "asctime",
    }
)


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed to the logging call with ``extra=``."""
    return {
        k: v
        for k, v in record.__dict__.items()
        if k not in _STANDARD_ATTRS and not k.startswith("_")
    }


def error_context(error: NoteBaseException, **fields: Any) -> dict[str, Any]:
    """
    Build the ``extra=`` mapping for logging an engine failure.

    Args:
        error: The exception being reported
        **fields: Call-site context such as column_id or formula

    Returns:
        Call-site fields plus the error code and details
    """
    payload = error.to_dict()["error"]
    return {**fields, "code": payload["code"], "details": payload["details"]}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON for easy parsing by log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_data = extra_fields(record)
        if extra_data:
            log_data["extra"] = extra_data

        # default=str keeps datetimes and enum members in cell values serialisable
        return orjson.dumps(log_data, default=str).decode("utf-8")


class ConsoleFormatter(logging.Formatter):
    """Console formatter with colored level names for development."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.COLORS.get(record.levelname, self.RESET)
        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname

    def formatMessage(self, record: logging.LogRecord) -> str:
        """Append ``extra=`` context as key=value pairs."""
        message = super().formatMessage(record)
        context = extra_fields(record)
        if not context:
            return message
        pairs = " ".join(f"{k}={v!r}" for k, v in context.items() if v is not None)
        return f"{message} [{pairs}]" if pairs else message


def setup_logging(
    log_level: str | None = None,
    json_logs: bool | None = None,
    log_format: str | None = None,
) -> None:
    """
    Set up engine logging.

    Args:
        log_level: Logging level (defaults to ``settings.log_level``)
        json_logs: Whether to output JSON logs (defaults to ``settings.json_logs``)
        log_format: Custom log format string for console output
    """
    from notebase.core.config import settings

    level = (log_level or settings.log_level).upper()
    use_json = settings.json_logs if json_logs is None else json_logs

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if use_json:
        formatter: logging.Formatter = JSONFormatter()
    else:
        format_str = (
            log_format
            or "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s"
        )
        formatter = ConsoleFormatter(format_str, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # lark logs grammar construction at DEBUG
    logging.getLogger("lark").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(
        "Logging configured",
        extra={
            "log_level": level,
            "json_logs": use_json,
        },
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


class LoggerMixin:
    """
    Mixin class that provides a logger attribute.

    Classes that inherit from this mixin get a logger named after the class.
    """

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this class."""
        return logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)
