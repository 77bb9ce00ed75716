"""Validation of envelope metadata at service boundaries."""

from __future__ import annotations

from .meta import EnvelopeKind, EnvelopeMeta

_REQUIRED_TEXT_FIELDS = ("envelope_id", "trace_id", "source", "principal")


def validate_meta(meta: EnvelopeMeta) -> None:
    """Raise ``ValueError`` naming the first missing or invalid field."""
    for name in _REQUIRED_TEXT_FIELDS:
        if str(getattr(meta, name, "") or "").strip() == "":
            raise ValueError(f"metadata.{name} is required")
    if meta.timestamp.tzinfo is None:
        raise ValueError("metadata.timestamp must be timezone-aware")
    if meta.kind is EnvelopeKind.UNSPECIFIED:
        raise ValueError("metadata.kind must be specified")
