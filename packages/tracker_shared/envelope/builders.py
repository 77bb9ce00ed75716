"""Constructors for successful and failed service results."""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from packages.tracker_shared.errors import ErrorDetail

from .envelope import Envelope, Payload
from .meta import EnvelopeMeta

T = TypeVar("T")


def success(*, meta: EnvelopeMeta, payload: T) -> Envelope[T]:
    """Wrap one domain value in an ``ok`` envelope."""
    return Envelope[Any](metadata=meta, payload=Payload[Any](value=payload))


def failure(*, meta: EnvelopeMeta, errors: Iterable[ErrorDetail]) -> Envelope[Any]:
    """Build a payload-less envelope; at least one error is required."""
    collected = list(errors)
    if not collected:
        raise ValueError("failure envelopes need at least one error")
    return Envelope[Any](metadata=meta, payload=None, errors=collected)
