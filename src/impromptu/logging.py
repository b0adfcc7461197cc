"""Logging utilities for impromptu.

This module provides structured logging context for dispatch and adapter
synthesis so log records emitted deep inside a cache build can be traced back
to the member or interface that triggered it.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Any, Dict, Iterator

_CONTEXT_KEYS = (
    "operation",
    "member",
    "interface",
    "adapter_type",
    "cache",
)

_context_vars = {key: contextvars.ContextVar(key, default=None) for key in _CONTEXT_KEYS}


def get_logging_context() -> Dict[str, Any]:
    """Return current structured logging context."""
    return {key: var.get() for key, var in _context_vars.items() if var.get() is not None}


def update_logging_context(**kwargs: Any) -> None:
    """Update structured logging context fields present in kwargs."""
    for key, value in kwargs.items():
        if key in _context_vars:
            _context_vars[key].set(value)


@contextlib.contextmanager
def logging_context(**kwargs: Any) -> Iterator[None]:
    """Context manager to temporarily set logging context fields."""
    tokens = {}
    for key, value in kwargs.items():
        if key in _context_vars:
            tokens[key] = _context_vars[key].set(value)
    try:
        yield
    finally:
        for key, token in tokens.items():
            _context_vars[key].reset(token)


class LoggingContextFilter(logging.Filter):
    """Logging filter that injects structured context into records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject structured context into the log record."""
        context = get_logging_context()
        for key in _CONTEXT_KEYS:
            setattr(record, key, context.get(key))
        return True


def ensure_logging_context_filter(logger_name: str = "impromptu") -> None:
    """Attach the context filter to the package logger once."""
    logger = logging.getLogger(logger_name)
    for existing in logger.filters:
        if isinstance(existing, LoggingContextFilter):
            return
    logger.addFilter(LoggingContextFilter())


__all__ = [
    "get_logging_context",
    "update_logging_context",
    "logging_context",
    "ensure_logging_context_filter",
    "LoggingContextFilter",
]
