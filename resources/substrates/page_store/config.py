"""Pydantic settings for the page store substrate."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from packages.tracker_shared.config import TrackerSettings, resolve_component_settings
from resources.substrates.page_store.component import RESOURCE_COMPONENT_ID


class PageStoreSettings(BaseModel):
    """Runtime settings for the snapshot-backed page store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    snapshot_path: str = ""

    @field_validator("snapshot_path")
    @classmethod
    def _strip_snapshot_path(cls, value: str) -> str:
        """Normalize surrounding whitespace so blank means unset."""
        return value.strip()

    def snapshot_file(self) -> Path:
        """Return the expanded snapshot file path."""
        return Path(self.snapshot_path).expanduser().resolve()


def resolve_page_store_settings(settings: TrackerSettings) -> PageStoreSettings:
    """Resolve page store settings from ``components.substrate.page_store``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=PageStoreSettings,
    )
