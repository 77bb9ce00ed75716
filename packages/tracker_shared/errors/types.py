"""Canonical shared error types for Pattern Tracker components.

This module defines a transport-agnostic error taxonomy and shape used at
service boundaries and by the command-line actor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ErrorCategory(str, Enum):
    """High-level error categories shared across component boundaries."""

    UNSPECIFIED = "unspecified"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured error object used in envelope responses."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)

    def summary(self) -> str:
        """Return ``CODE: message`` for one-line rendering."""
        if self.code == "":
            return self.message
        return f"{self.code}: {self.message}"
