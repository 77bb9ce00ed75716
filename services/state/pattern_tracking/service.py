"""Authoritative in-process Python API for Pattern Tracking Service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from packages.tracker_shared.config import TrackerSettings
from packages.tracker_shared.envelope import Envelope, EnvelopeMeta
from resources.substrates.page_store import PageStore
from services.state.pattern_tracking.domain import TrackedArtifact, TrackingReport


class PatternTrackingService(ABC):
    """Public API for workflow stage tracking over a vault of linked notes."""

    @abstractmethod
    def track(
        self,
        *,
        meta: EnvelopeMeta,
        filter_expression: str | None = None,
        subtype: str | None = None,
        stages: Sequence[str] = (),
        now: datetime | None = None,
    ) -> Envelope[TrackingReport]:
        """Classify every matching artifact and report one artifact group.

        ``subtype`` selects a tracked subtype group instead of primary
        artifacts; ``stages`` restricts rows to the named display stages.
        """

    @abstractmethod
    def get_artifact(
        self,
        *,
        meta: EnvelopeMeta,
        path: str,
        filter_expression: str | None = None,
        now: datetime | None = None,
    ) -> Envelope[TrackedArtifact]:
        """Classify the working set and return one artifact's annotations."""


def build_pattern_tracking_service(
    *,
    settings: TrackerSettings,
    store: PageStore | None = None,
) -> PatternTrackingService:
    """Build default Pattern Tracking implementation from typed settings."""
    from resources.substrates.page_store.component import (
        build_component as build_page_store,
    )
    from services.state.pattern_tracking.config import resolve_pattern_tracking_settings
    from services.state.pattern_tracking.implementation import (
        DefaultPatternTrackingService,
    )

    return DefaultPatternTrackingService(
        settings=resolve_pattern_tracking_settings(settings),
        store=store if store is not None else build_page_store(settings=settings),
    )
