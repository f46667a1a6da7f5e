"""Logging helpers for emberlite: package loggers, correlation ids, timings."""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterable, Iterator, Optional

_correlation_id: ContextVar[str | None] = ContextVar("emberlite_correlation_id", default=None)

_SENSITIVE_TOKENS = ("password", "passwd", "secret", "token", "api_key", "apikey", "bearer")
REDACTED_VALUE = "***"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(correlation_id)s | %(name)s | %(message)s"


class CorrelationIdFilter(logging.Filter):
    """Stamps every record with the correlation id of the running task."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True


def configure_logging(level: int = logging.INFO) -> None:
    root = logging.getLogger("emberlite")
    if root.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(f"emberlite.{name}")


def set_correlation_id(value: Optional[str] = None) -> str:
    token = value or uuid.uuid4().hex[:12]
    _correlation_id.set(token)
    return token


def get_correlation_id() -> str:
    return _correlation_id.get() or set_correlation_id()


@contextmanager
def correlation_scope(value: Optional[str] = None) -> Iterator[str]:
    """
    Tag log lines emitted inside the block with one correlation id.

    An id already set by the caller is kept, so nested scopes share it.
    """

    current = _correlation_id.get()
    if current is not None and value is None:
        yield current
        return
    reset_token = _correlation_id.set(value or uuid.uuid4().hex[:12])
    try:
        yield _correlation_id.get()
    finally:
        _correlation_id.reset(reset_token)


def redact_params(params: Iterable[Any] | None) -> list[Any]:
    """
    Mask bound values that look like credentials before they reach a log line.
    """
    redacted: list[Any] = []
    for value in params or ():
        if isinstance(value, str) and any(token in value.lower() for token in _SENSITIVE_TOKENS):
            redacted.append(REDACTED_VALUE)
        else:
            redacted.append(value)
    return redacted


@contextmanager
def time_call(
    name: str,
    logger: logging.Logger,
    *,
    sql: str | None = None,
    params: Iterable[Any] | None = None,
    threshold_ms: int = 100,
) -> Iterator[None]:
    start = time.monotonic()
    outcome = "ok"
    try:
        yield
    except BaseException:
        outcome = "failed"
        raise
    finally:
        elapsed_ms = (time.monotonic() - start) * 1000
        level = logging.WARNING if elapsed_ms >= threshold_ms else logging.DEBUG
        extra = {"sql": sql, "params": redact_params(params), "elapsed_ms": elapsed_ms, "outcome": outcome}
        logger.log(level, "%s took %.2fms (%s)", name, elapsed_ms, outcome, extra=extra)
