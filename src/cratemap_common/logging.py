"""Structured logging helpers with correlation IDs.

This module provides a LoggerAdapter that injects the structured fields every
cratemap log record carries (``correlation_id``, ``operation``, ``status`` and,
when known, ``duration_ms``), a JSON formatter, and module-level loggers with a
NullHandler so library code never configures handlers on its own.

Examples
--------
>>> from cratemap_common.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.info("Resolution started", extra={"operation": "resolve", "status": "started"})
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping, MutableMapping
    from types import TracebackType

__all__ = [
    "JsonFormatter",
    "LoggerAdapter",
    "get_correlation_id",
    "get_logger",
    "monotonic_ms",
    "set_correlation_id",
    "setup_logging",
    "with_fields",
]

# Context variable for correlation ID propagation (thread and task safe)
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

_STANDARD_RECORD_ATTRS = frozenset(
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
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON documents.

    The payload holds ``ts``, ``level``, ``name`` and ``message`` plus every
    JSON-compatible extra attribute attached to the record. The correlation id is
    taken from the context variable when the record does not carry one.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format ``record`` as JSON.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format.

        Returns
        -------
        str
            JSON-encoded log entry.
        """
        data: dict[str, object] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if getattr(record, "correlation_id", None) is None:
            ctx_correlation_id = _correlation_id.get()
            if ctx_correlation_id is not None:
                data["correlation_id"] = ctx_correlation_id

        for key, value in record.__dict__.items():
            if (
                key not in _STANDARD_RECORD_ATTRS
                and key not in data
                and not key.startswith("_")
                and value is not None
                and isinstance(value, (str, int, float, bool, list, dict))
            ):
                data[key] = value

        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)


class LoggerAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter that injects structured context fields.

    Fields bound at construction time (see :func:`with_fields`) are merged into
    every call's ``extra`` without overriding values passed explicitly. Missing
    ``operation`` defaults to ``"unknown"`` and missing ``status`` is inferred from
    the level.

    Examples
    --------
    >>> from cratemap_common.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Fetched metadata", extra={"operation": "fetch", "root": "src/libstd"})
    """

    logger: logging.Logger

    def log(self, level: int, msg: object, *args: object, **kwargs: Any) -> None:
        """Log ``msg`` at ``level`` with merged structured fields.

        ``debug``/``info``/``warning``/``error``/``exception``/``critical`` all route
        through here via :class:`logging.LoggerAdapter`.
        """
        if not self.isEnabledFor(level):
            return
        kwargs["extra"] = self._merge_extra(kwargs.get("extra"), level)
        self.logger.log(level, msg, *args, **kwargs)

    def process(
        self, msg: object, kwargs: MutableMapping[str, Any]
    ) -> tuple[object, MutableMapping[str, Any]]:
        """Inject structured fields for callers using ``process`` directly."""
        kwargs["extra"] = self._merge_extra(kwargs.get("extra"), logging.INFO)
        return msg, kwargs

    def _merge_extra(self, extra: object, level: int) -> dict[str, Any]:
        merged: dict[str, Any] = dict(extra) if isinstance(extra, dict) else {}
        if isinstance(self.extra, dict):
            for key, value in self.extra.items():
                merged.setdefault(key, value)
        if "correlation_id" not in merged:
            ctx_correlation_id = _correlation_id.get()
            if ctx_correlation_id is not None:
                merged["correlation_id"] = ctx_correlation_id
        merged.setdefault("operation", "unknown")
        if "status" not in merged:
            if level >= logging.ERROR:
                merged["status"] = "error"
            elif level >= logging.WARNING:
                merged["status"] = "warning"
            else:
                merged["status"] = "success"
        return merged

    def log_success(
        self,
        message: str,
        *,
        operation: str | None = None,
        duration_ms: float | None = None,
        **fields: object,
    ) -> None:
        """Log a successful operation with structured fields.

        Parameters
        ----------
        message : str
            Success message.
        operation : str | None, optional
            Operation name. Defaults to ``None``.
        duration_ms : float | None, optional
            Operation duration in milliseconds. Defaults to ``None``.
        **fields : object
            Additional structured fields.
        """
        extra: dict[str, object] = {"status": "success"}
        if operation is not None:
            extra["operation"] = operation
        if duration_ms is not None:
            extra["duration_ms"] = duration_ms
        extra.update(fields)
        self.info(message, extra=extra)

    def log_failure(
        self,
        message: str,
        *,
        exception: Exception | None = None,
        operation: str | None = None,
        duration_ms: float | None = None,
        **fields: object,
    ) -> None:
        """Log a failure with structured fields and the exception summary.

        Parameters
        ----------
        message : str
            Failure message.
        exception : Exception | None, optional
            Exception that caused the failure. Defaults to ``None``.
        operation : str | None, optional
            Operation name. Defaults to ``None``.
        duration_ms : float | None, optional
            Operation duration in milliseconds. Defaults to ``None``.
        **fields : object
            Additional structured fields.
        """
        extra: dict[str, object] = {"status": "error"}
        if operation is not None:
            extra["operation"] = operation
        if duration_ms is not None:
            extra["duration_ms"] = duration_ms
        if exception is not None:
            extra["error_type"] = exception.__class__.__name__
            extra["error_detail"] = str(exception)
        extra.update(fields)
        self.error(message, extra=extra)


def get_logger(name: str) -> LoggerAdapter:
    """Return a structured logger adapter for ``name``.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__``).

    Returns
    -------
    LoggerAdapter
        Adapter wrapping ``logging.getLogger(name)``; a NullHandler is attached
        when the logger has no handlers.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return LoggerAdapter(logger, {})


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure the root logger with :class:`JsonFormatter` on stderr.

    Parameters
    ----------
    level : int | str, optional
        Level threshold, numeric or by name. Defaults to ``logging.INFO``.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, handlers=[handler], force=True)


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID injected into subsequent log records."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    """Return the current correlation ID, or ``None``."""
    return _correlation_id.get()


class _WithFieldsContext(AbstractContextManager[LoggerAdapter]):
    def __init__(
        self, logger: logging.Logger | LoggerAdapter, fields: Mapping[str, object]
    ) -> None:
        self._logger = logger
        self._fields = dict(fields)
        self._token: contextvars.Token[str | None] | None = None

    def __enter__(self) -> LoggerAdapter:
        base_logger = (
            self._logger.logger if isinstance(self._logger, LoggerAdapter) else self._logger
        )
        correlation_id = self._fields.get("correlation_id")
        if isinstance(correlation_id, str):
            self._token = _correlation_id.set(correlation_id)
        return LoggerAdapter(base_logger, dict(self._fields))

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _correlation_id.reset(self._token)
            self._token = None


def with_fields(
    logger: logging.Logger | LoggerAdapter,
    **fields: object,
) -> AbstractContextManager[LoggerAdapter]:
    """Bind structured fields to a logger for the duration of a ``with`` block.

    A ``correlation_id`` field is also published through the context variable and
    restored on exit.

    Parameters
    ----------
    logger : logging.Logger | LoggerAdapter
        Base logger to wrap.
    **fields : object
        Fields injected into every record logged through the yielded adapter.

    Returns
    -------
    AbstractContextManager[LoggerAdapter]
        Context manager yielding the bound adapter.

    Examples
    --------
    >>> from cratemap_common.logging import get_logger, with_fields
    >>> logger = get_logger(__name__)
    >>> with with_fields(logger, correlation_id="run-1", operation="resolve") as log:
    ...     log.info("Resolving roots")
    """
    return _WithFieldsContext(logger, fields)


def monotonic_ms() -> float:
    """Return the monotonic clock in milliseconds, for ``duration_ms`` fields."""
    return time.monotonic() * 1000.0
