"""Request validation models for Pattern Tracking Service operations."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.tracker_shared.vault_paths import normalize_vault_relative_path


class _RequestModel(BaseModel):
    """Strict request validation base model."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class TrackRequest(_RequestModel):
    """Validate one full tracking run request."""

    filter_expression: str | None = None
    subtype: str | None = None
    stages: tuple[str, ...] = ()
    now: datetime | None = None

    @field_validator("subtype")
    @classmethod
    def _blank_subtype_is_primary(cls, value: str | None) -> str | None:
        if value is None or value.strip() == "":
            return None
        return value.strip()

    @field_validator("stages")
    @classmethod
    def _strip_stage_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(name.strip() for name in value if name.strip())


class GetArtifactRequest(_RequestModel):
    """Validate one single-artifact lookup request."""

    path: str = Field(min_length=1)
    filter_expression: str | None = None
    now: datetime | None = None

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, value: str) -> str:
        return normalize_vault_relative_path(value)
