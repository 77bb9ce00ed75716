"""Domain contracts for Pattern Tracking Service payloads."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

Connections = Mapping[str, frozenset[str]]


class StageKey(StrEnum):
    """Canonical workflow stage keys, independent of display names."""

    WRITING = "stage1"
    EDITING = "stage2"
    CLOSE = "stage3"
    READY = "stage4"
    SUBMITTED = "stage5"
    DONE = "stage6"
    WAITING = "stage-waiting"
    NEEDS_ATTENTION = "needs-attention"


WORKFLOW_STAGES: tuple[StageKey, ...] = (
    StageKey.WRITING,
    StageKey.EDITING,
    StageKey.CLOSE,
    StageKey.READY,
    StageKey.SUBMITTED,
    StageKey.DONE,
)

# Keys a stage registry must name; the needs-attention sentinel is not one.
REGISTERED_STAGES: tuple[StageKey, ...] = (*WORKFLOW_STAGES, StageKey.WAITING)


class PublishState(StrEnum):
    """Normalized reading of an artifact's publication marker."""

    UNSET = "unset"
    PUBLISHED = "published"
    SUBMITTED = "submitted"
    OTHER = "other"


def publish_state(marker: Any) -> PublishState:
    """Normalize a raw publish marker; string matching is exact."""
    if marker is None:
        return PublishState.UNSET
    if marker is True or marker in ("yes", "published"):
        return PublishState.PUBLISHED
    if marker == "submitted":
        return PublishState.SUBMITTED
    return PublishState.OTHER


class Artifact(BaseModel):
    """One tracked document node in the link graph."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    title: str
    type: str | None = None
    subtype: str | None = None
    publish_marker: Any = None
    modified_at: datetime | None = None
    outlinks: tuple[str, ...] = ()

    @property
    def is_primary(self) -> bool:
        """Return ``True`` for artifacts without a subtype."""
        return self.subtype is None

    @property
    def type_label(self) -> str:
        """Return subtype when present, otherwise type."""
        return self.subtype or self.type or ""


class TrackedArtifact(BaseModel):
    """One artifact annotated with the derived values of a tracking run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    artifact: Artifact
    connections: dict[str, frozenset[str]]
    stage: StageKey
    wait_days: int = Field(ge=0)
    waiting: bool

    def connection_count(self, subtype: str) -> int:
        """Return the number of connections carrying ``subtype``."""
        return len(self.connections.get(subtype, frozenset()))


class TrackingRow(BaseModel):
    """Render-ready row for one tracked artifact."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str
    path: str
    type_label: str
    wait_days: int
    stage: str
    stage_key: StageKey
    waiting: bool
    connection_counts: tuple[int, ...]

    def as_tuple(self) -> tuple[Any, ...]:
        """Return ``(title, type, wait days, stage, waiting, *counts)``."""
        return (
            self.title,
            self.type_label,
            self.wait_days,
            self.stage,
            self.waiting,
            *self.connection_counts,
        )


class LegendEntry(BaseModel):
    """One stage legend entry in registry order."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: StageKey
    label: str


class TrackingReport(BaseModel):
    """Result of one tracking run for a group of artifacts."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    generated_at: datetime
    subtype: str | None = None
    subtypes: tuple[str, ...]
    legend: tuple[LegendEntry, ...]
    rows: tuple[TrackingRow, ...]
    stage_counts: dict[str, int]
    waiting_count: int = 0
    needs_attention: tuple[str, ...] = ()
