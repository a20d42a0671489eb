# SPDX-License-Identifier: MIT
"""Structured JSON logging for exposure and risk-control decisions.

Every trade evaluation runs inside :func:`evaluation_context`, which pins an
evaluation identifier to the current task so that reads, reversals, overflow
closes and budget rejections belonging to the same decision can be correlated
in the log stream.
"""
from __future__ import annotations

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Mapping, Optional
from uuid import uuid4


_EVALUATION_ID_VAR: ContextVar[Optional[str]] = ContextVar(
    "exposure_evaluation_id", default=None
)


def generate_evaluation_id() -> str:
    """Generate a new evaluation identifier."""

    return uuid4().hex


def get_evaluation_id() -> Optional[str]:
    """Return the identifier of the evaluation running in this context, if any."""

    return _EVALUATION_ID_VAR.get()


@contextmanager
def evaluation_context(evaluation_id: Optional[str] = None) -> Iterator[str]:
    """Bind an evaluation identifier to the current context."""

    resolved = evaluation_id or generate_evaluation_id()
    token = _EVALUATION_ID_VAR.set(resolved)
    try:
        yield resolved
    finally:
        _EVALUATION_ID_VAR.reset(token)


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        evaluation_id = getattr(record, "evaluation_id", None)
        if evaluation_id:
            log_data["evaluation_id"] = evaluation_id
        fields = getattr(record, "extra_fields", None)
        if fields:
            log_data.update(fields)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class StructuredLogger:
    """Wrapper around a standard logger that emits keyword fields as structure."""

    def __init__(self, name: str, fields: Optional[Mapping[str, Any]] = None) -> None:
        self.logger = logging.getLogger(name)
        self._fields: Dict[str, Any] = dict(fields or {})

    @property
    def fields(self) -> Mapping[str, Any]:
        return dict(self._fields)

    def bind(self, **fields: Any) -> "StructuredLogger":
        """Return a child logger that always carries ``fields``."""

        return StructuredLogger(self.logger.name, {**self._fields, **fields})

    def _log(self, level: int, msg: str, *, exc_info: Any = None, **kwargs: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra: Dict[str, Any] = {"evaluation_id": get_evaluation_id()}
        payload = {**self._fields, **kwargs}
        if payload:
            extra["extra_fields"] = payload
        self.logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, **kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at error level including the active exception traceback."""

        self._log(logging.ERROR, msg, exc_info=True, **kwargs)

    @contextmanager
    def operation(
        self, operation_name: str, *, evaluation_id: Optional[str] = None, **context: Any
    ) -> Iterator[Dict[str, Any]]:
        """Track timing and outcome of an operation inside its own evaluation context.

        Example:
            >>> logger = get_logger("execution.services")
            >>> with logger.operation("evaluate_trade", symbol="BTC/USD") as op:
            ...     op["state"] = "size_resolved"
        """

        started = time.perf_counter()
        op_context: Dict[str, Any] = {"operation": operation_name, **context}
        with evaluation_context(evaluation_id or get_evaluation_id()):
            self.debug(f"Starting operation: {operation_name}", **op_context)
            try:
                yield op_context
            except Exception as exc:
                self.error(
                    f"Failed operation: {operation_name}",
                    **op_context,
                    duration_seconds=time.perf_counter() - started,
                    error_type=type(exc).__name__,
                    error_message=str(exc),
                )
                raise
            self.info(
                f"Completed operation: {operation_name}",
                **op_context,
                duration_seconds=time.perf_counter() - started,
            )


def configure_logging(
    level: str = "INFO",
    use_json: bool = True,
    stream: Any = None,
) -> None:
    """Configure application-wide logging.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        use_json: Whether to render records with :class:`JSONFormatter`.
        stream: Output stream, defaults to ``sys.stdout``.
    """

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    if use_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    root_logger.addHandler(handler)


def configure_logging_from(settings: Any, stream: Any = None) -> None:
    """Apply the ``log_level`` and ``log_json`` fields of :class:`~configs.settings.ExposureSettings`."""

    configure_logging(level=settings.log_level, use_json=settings.log_json, stream=stream)


def get_logger(name: str, **fields: Any) -> StructuredLogger:
    """Return a structured logger, optionally pre-bound with ``fields``."""

    return StructuredLogger(name, fields)


__all__ = [
    "JSONFormatter",
    "StructuredLogger",
    "configure_logging",
    "configure_logging_from",
    "evaluation_context",
    "generate_evaluation_id",
    "get_evaluation_id",
    "get_logger",
]
