"""Exception normalization utilities for shared error contracts."""

from __future__ import annotations

from . import codes
from .factories import dependency_error, internal_error, not_found_error, validation_error
from .types import ErrorDetail


def exception_to_error(exc: Exception) -> ErrorDetail:
    """Normalize a Python exception into a shared ``ErrorDetail``.

    The mapping is generic. Components layer domain-specific normalization
    before falling back to this function.
    """
    metadata = {"exception_type": type(exc).__name__}

    if isinstance(exc, ValueError):
        return validation_error(str(exc), code=codes.INVALID_ARGUMENT, metadata=metadata)

    if isinstance(exc, KeyError):
        message = exc.args[0] if exc.args else ""
        return not_found_error(
            str(message), code=codes.RESOURCE_NOT_FOUND, metadata=metadata
        )

    if isinstance(exc, (ConnectionError, OSError)):
        return dependency_error(
            str(exc) or "dependency unavailable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            retryable=True,
            metadata=metadata,
        )

    return internal_error(
        str(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
