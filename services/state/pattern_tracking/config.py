"""Pydantic settings for Pattern Tracking Service behavior."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from packages.tracker_shared.config import TrackerSettings, resolve_component_settings
from services.state.pattern_tracking.classification import (
    DEFAULT_WAITING_THRESHOLD_DAYS,
    LocationRule,
)
from services.state.pattern_tracking.component import SERVICE_COMPONENT_ID
from services.state.pattern_tracking.domain import StageKey
from services.state.pattern_tracking.stages import (
    DEFAULT_FALLBACK_LABEL,
    DEFAULT_STAGE_NAMES,
    StageRegistry,
)


class LocationRuleSettings(BaseModel):
    """Path marker deciding ready vs not-ready; exactly one must be set."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    not_ready_marker: str | None = "WIP"
    ready_marker: str | None = None

    @field_validator("not_ready_marker", "ready_marker")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        if value is None or value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def _require_one_marker(self) -> "LocationRuleSettings":
        self.to_rule()
        return self

    def to_rule(self) -> LocationRule:
        return LocationRule(
            not_ready_marker=self.not_ready_marker,
            ready_marker=self.ready_marker,
        )


class PatternTrackingSettings(BaseModel):
    """Pattern tracking runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    filter: str = '-"~META"'
    type_key: str = "Type"
    primary_type: str = "story"
    subtype_key: str | None = "Subtype"
    subtypes: tuple[str, ...] = ("side-story", "thought")
    publish_key: str = "publish"
    stage_names: dict[StageKey, str] = Field(
        default_factory=lambda: dict(DEFAULT_STAGE_NAMES)
    )
    fallback_label: str = DEFAULT_FALLBACK_LABEL
    location: LocationRuleSettings = Field(default_factory=LocationRuleSettings)
    waiting_threshold_days: int = Field(default=DEFAULT_WAITING_THRESHOLD_DAYS, ge=0)

    @field_validator("subtypes")
    @classmethod
    def _validate_subtypes(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Require unique, non-blank subtype tags in configured order."""
        cleaned = tuple(item.strip() for item in value)
        if any(item == "" for item in cleaned):
            raise ValueError("subtypes must be non-blank")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("subtypes must be unique")
        return cleaned

    @field_validator("subtype_key")
    @classmethod
    def _blank_subtype_key_is_unset(cls, value: str | None) -> str | None:
        if value is None or value.strip() == "":
            return None
        return value

    @field_validator("stage_names", mode="before")
    @classmethod
    def _fill_default_stage_names(cls, value: Any) -> Any:
        """Overlay partial stage name overrides on the defaults."""
        if not isinstance(value, dict):
            return value
        merged: dict[Any, Any] = {key.value: name for key, name in DEFAULT_STAGE_NAMES.items()}
        merged.update({str(getattr(key, "value", key)): name for key, name in value.items()})
        return merged

    @model_validator(mode="after")
    def _validate_stage_registry(self) -> "PatternTrackingSettings":
        self.stage_registry()
        return self

    def tracked_subtypes(self) -> tuple[str, ...]:
        """Return subtypes that drive aggregation; empty without a subtype key."""
        if self.subtype_key is None:
            return ()
        return self.subtypes

    def location_rule(self) -> LocationRule:
        return self.location.to_rule()

    def stage_registry(self) -> StageRegistry:
        return StageRegistry(self.stage_names, fallback_label=self.fallback_label)


def resolve_pattern_tracking_settings(settings: TrackerSettings) -> PatternTrackingSettings:
    """Resolve settings from ``components.service.pattern_tracking``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=PatternTrackingSettings,
    )
