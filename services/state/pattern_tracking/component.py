"""Component declaration for the Pattern Tracking Service."""

from __future__ import annotations

from packages.tracker_shared.config import TrackerSettings

SERVICE_COMPONENT_ID = "service_pattern_tracking"


def build_component(*, settings: TrackerSettings, store: object | None = None) -> object:
    """Build concrete runtime instance for this service component."""
    from services.state.pattern_tracking.service import build_pattern_tracking_service

    return build_pattern_tracking_service(settings=settings, store=store)
