"""Pattern tracking exceptions and service-local error codes."""

from __future__ import annotations

INVALID_FILTER = "INVALID_FILTER"
INVALID_TIMESTAMP = "INVALID_TIMESTAMP"
UNKNOWN_SUBTYPE = "UNKNOWN_SUBTYPE"
ARTIFACT_NOT_FOUND = "ARTIFACT_NOT_FOUND"


class PatternTrackingError(Exception):
    """Base exception for pattern tracking failures."""


class ConfigurationError(PatternTrackingError, ValueError):
    """Raised when tracking configuration is inconsistent."""


class InvalidInputError(PatternTrackingError, ValueError):
    """Raised when an artifact or run argument cannot be evaluated."""


class StageNotFoundError(PatternTrackingError, KeyError):
    """Raised when a stage key or display name is not registered."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "stage not found"


class ArtifactNotFoundError(PatternTrackingError, KeyError):
    """Raised when an artifact is not part of the tracked working set."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "artifact not found"


class UnknownSubtypeError(InvalidInputError):
    """Raised when a report asks for a subtype that is not tracked."""
