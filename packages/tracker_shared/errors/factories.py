"""Factory helpers for creating consistent shared errors."""

from __future__ import annotations

from typing import Mapping

from . import codes
from .types import ErrorCategory, ErrorDetail


def _detail(
    category: ErrorCategory,
    message: str,
    *,
    code: str,
    retryable: bool = False,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    return ErrorDetail(
        code=code,
        message=message,
        category=category,
        retryable=retryable,
        metadata={} if metadata is None else dict(metadata),
    )


def validation_error(
    message: str,
    *,
    code: str = codes.VALIDATION_ERROR,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Bad request input: filters, timestamps, stage or subtype names."""
    return _detail(ErrorCategory.VALIDATION, message, code=code, metadata=metadata)


def not_found_error(
    message: str,
    *,
    code: str = codes.NOT_FOUND,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Unknown artifact or page."""
    return _detail(ErrorCategory.NOT_FOUND, message, code=code, metadata=metadata)


def dependency_error(
    message: str,
    *,
    code: str = codes.DEPENDENCY_FAILURE,
    retryable: bool = True,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Page store or file system failure outside the tracking logic."""
    return _detail(
        ErrorCategory.DEPENDENCY,
        message,
        code=code,
        retryable=retryable,
        metadata=metadata,
    )


def internal_error(
    message: str,
    *,
    code: str = codes.INTERNAL_ERROR,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Anything unexpected; never retryable."""
    return _detail(ErrorCategory.INTERNAL, message, code=code, metadata=metadata)
