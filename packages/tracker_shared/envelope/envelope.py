"""Typed result envelope returned by every public service operation.

A result is ``ok`` exactly when it carries no errors. Successful results wrap
their value in ``Payload`` so that a legitimately empty value (an empty report,
``None``) stays distinguishable from "no payload".
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from packages.tracker_shared.errors import ErrorDetail

from .meta import EnvelopeMeta

T = TypeVar("T")


class Payload(BaseModel, Generic[T]):
    """Container for the domain value of a successful result."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    value: T


class Envelope(BaseModel, Generic[T]):
    """Metadata, optional payload and errors of one service call."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    metadata: EnvelopeMeta
    payload: Payload[T] | None
    errors: list[ErrorDetail] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def value(self) -> T | None:
        """Return the unwrapped payload value, if any."""
        if self.payload is None:
            return None
        return self.payload.value
