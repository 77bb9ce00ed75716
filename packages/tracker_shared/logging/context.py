"""Structured logging context carried in a ``ContextVar``.

Fields bound here are copied onto every record by ``ContextFilter`` so that a
tracking run, its envelope and the artifact being processed show up on each
log line without repeating them at every call site.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Mapping

_LOG_CONTEXT: ContextVar[dict[str, str]] = ContextVar("tracker_log_context", default={})


def get_context() -> dict[str, str]:
    """Return a copy of the bound logging fields."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind values into the current context; ``None`` values are skipped."""
    if not values:
        return
    current = _LOG_CONTEXT.get().copy()
    current.update(
        {str(key): str(value) for key, value in values.items() if value is not None}
    )
    _LOG_CONTEXT.set(current)


def clear_context(*keys: str) -> None:
    """Drop the named keys, or every key when none are given."""
    if not keys:
        _LOG_CONTEXT.set({})
        return
    current = _LOG_CONTEXT.get().copy()
    for key in keys:
        current.pop(key, None)
    _LOG_CONTEXT.set(current)


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for the duration of a ``with`` block."""
    token = _LOG_CONTEXT.set(_LOG_CONTEXT.get().copy())
    try:
        bind_context(**dict(values))
        yield
    finally:
        _LOG_CONTEXT.reset(token)
