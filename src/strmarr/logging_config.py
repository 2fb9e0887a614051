"""Logging configuration and custom formatters for strmarr.

This module provides the record factory, context filter, formatter and
dictConfig used by the application. Output is either human-readable text with
``extra`` key/value pairs appended, or JSON via python-json-logger.
"""

from collections.abc import Mapping
from contextvars import ContextVar
import json
import logging
from logging.config import dictConfig
import sys
from typing import Any, Literal

_original_log_record_factory = logging.getLogRecordFactory()

_STANDARD_RECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
        "context_id",
        "exc_custom_attrs",
        "semantic_trace",
    }
)


def _walk_exception_chain(exc: BaseException) -> tuple[dict[str, Any], list[str]]:
    """Collect public attributes and messages along an exception chain.

    Args:
        exc: The outermost exception.

    Returns:
        Tuple of (merged public attributes, one message per chained exception).
        Attributes of outer exceptions win over inner ones.
    """
    attrs: dict[str, Any] = {}
    messages: list[str] = []
    seen: set[int] = set()

    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        for name, val in vars(current).items():
            if not name.startswith("_"):
                attrs.setdefault(name, val)
        messages.append(str(current) or type(current).__name__)
        current = current.__cause__ or current.__context__

    return attrs, messages


def custom_record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
    """Create a log record enriched with exception-chain details.

    Args:
        *args: Arguments passed to the original log record factory.
        **kwargs: Keyword arguments passed to the original log record factory.

    Returns:
        LogRecord carrying ``exc_custom_attrs`` and ``semantic_trace`` when
        an exception is attached.
    """
    record = _original_log_record_factory(*args, **kwargs)

    if record.exc_info and record.exc_info[1]:
        attrs, messages = _walk_exception_chain(record.exc_info[1])
        if attrs:
            record.exc_custom_attrs = attrs
        if messages:
            record.semantic_trace = messages

    return record


_context_id_var: ContextVar[str | None] = ContextVar("context_id", default=None)


def set_context_id(context_id: str) -> None:
    """Set the context ID for the current async context.

    Every log line emitted in this context (and in tasks created from it)
    carries the ID, e.g. one sweep run or one HTTP request.

    Args:
        context_id: The context identifier (e.g., "wanted_missing-1640995200").
    """
    _context_id_var.set(context_id)


def get_context_id() -> str | None:
    """Return the context ID of the current async context, if any."""
    return _context_id_var.get()


class ContextIdFilter(logging.Filter):
    """Inject the current context_id into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Attach the context_id, if set, and always keep the record.

        Args:
            record: The log record to modify.

        Returns:
            Always True.
        """
        context_id = _context_id_var.get()
        if context_id is not None:
            record.context_id = context_id
        return True


_should_include_stacktrace: bool = False


def _format_extra_value(value: Any) -> str:
    match value:
        case dict() | list() | tuple():
            return json.dumps(value, sort_keys=True, separators=(", ", ":"), default=str)
        case _:
            return str(value)


class HumanReadableExtrasFormatter(logging.Formatter):
    """Format records as one readable line followed by error context.

    The line is ``<time> <level> [<logger>] CtxID:<id> key:value ... - message``.
    When an exception is attached, either the full traceback or the chain of
    exception messages ("Error: ... / Caused by: ...") follows.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: Literal["%", "{", "$"] = "%",
        validate: bool = True,
        *,
        defaults: Mapping[str, Any] | None = None,
    ):
        super().__init__(fmt, datefmt, style, validate, defaults=defaults)

    def _extras(self, record: logging.LogRecord) -> dict[str, Any]:
        extras: dict[str, Any] = {}
        exc_attrs = getattr(record, "exc_custom_attrs", None)
        if isinstance(exc_attrs, dict):
            extras.update(exc_attrs)  # type: ignore
        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_"):
                extras[key] = value
        return extras

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        parts: list[str] = [
            self.formatTime(record, self.datefmt),
            record.levelname,
            f"[{record.name}]",
        ]

        ctx_id = getattr(record, "context_id", None)
        if ctx_id is not None:
            parts.append(f"CtxID:{ctx_id}")

        for key, value in self._extras(record).items():
            try:
                parts.append(f"{key}:{_format_extra_value(value)}")
            except (TypeError, ValueError):
                parts.append(f"{key}=[Unserializable Value: {type(value)}]")

        message = record.getMessage()
        parts.append(f"- {message}" if message else "-")
        line = " ".join(filter(None, parts))

        if record.exc_info:
            if _should_include_stacktrace:
                if not record.exc_text:
                    record.exc_text = self.formatException(record.exc_info)
                if record.exc_text:
                    line += "\n" + record.exc_text
            else:
                trace: list[str] | None = getattr(record, "semantic_trace", None)
                if trace:
                    first, *causes = trace
                    line += f"\nError: {first}"
                    for cause in causes:
                        line += f"\n  Caused by: {cause}"

        if record.stack_info:
            line += "\n" + self.formatStack(record.stack_info)

        return line


LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "context_id_filter": {
            "()": ContextIdFilter,
        },
    },
    "formatters": {
        "human_readable_formatter": {
            "()": HumanReadableExtrasFormatter,
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "json_formatter": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(context_id)s %(message)s",
        },
    },
    "handlers": {
        "console_handler": {
            "class": "logging.StreamHandler",
            "formatter": "human_readable_formatter",
            "stream": "ext://sys.stdout",
            "filters": ["context_id_filter"],
        },
    },
    "loggers": {
        "strmarr": {
            "handlers": ["console_handler"],
            "level": "INFO",
            "propagate": False,
        },
        "uvicorn.error": {
            "handlers": ["console_handler"],
            "level": "INFO",
            "propagate": False,
        },
        "apscheduler": {
            "handlers": ["console_handler"],
            "level": "WARNING",
            "propagate": False,
        },
    },
    "root": {
        "handlers": ["console_handler"],
        "level": "WARNING",
    },
}


def setup_logging(
    log_format_type: Literal["human", "json"],
    app_log_level_name: str,
    include_stacktrace: bool,
) -> None:
    """Configure logging for the application.

    Args:
        log_format_type: Format for logs ('human' or 'json').
        app_log_level_name: Logging level name (e.g., 'INFO', 'DEBUG').
        include_stacktrace: Whether to include full stack traces in error logs.
    """
    global _should_include_stacktrace
    _should_include_stacktrace = include_stacktrace

    logging.setLogRecordFactory(custom_record_factory)

    level_name = app_log_level_name.upper()
    if not isinstance(logging.getLevelNamesMapping().get(level_name), int):
        print(
            f"Warning: Invalid LOG_LEVEL '{app_log_level_name}'. Defaulting to INFO.",
            file=sys.stderr,
        )
        level_name = "INFO"
    LOGGING_CONFIG["loggers"]["strmarr"]["level"] = level_name

    handler = LOGGING_CONFIG["handlers"]["console_handler"]
    match log_format_type.lower():
        case "json":
            handler["formatter"] = "json_formatter"
        case _:
            handler["formatter"] = "human_readable_formatter"

    dictConfig(LOGGING_CONFIG)
