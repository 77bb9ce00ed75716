"""Pattern Tracking Service native package exports."""

from packages.tracker_shared.envelope import Envelope, EnvelopeKind, EnvelopeMeta
from packages.tracker_shared.errors import ErrorCategory, ErrorDetail
from services.state.pattern_tracking.aggregation import (
    ConnectionAggregator,
    ConnectionIndex,
)
from services.state.pattern_tracking.classification import (
    LocationRule,
    StatusClassifier,
    is_waiting,
)
from services.state.pattern_tracking.component import SERVICE_COMPONENT_ID
from services.state.pattern_tracking.config import (
    LocationRuleSettings,
    PatternTrackingSettings,
)
from services.state.pattern_tracking.domain import (
    Artifact,
    LegendEntry,
    PublishState,
    StageKey,
    TrackedArtifact,
    TrackingReport,
    TrackingRow,
)
from services.state.pattern_tracking.engine import TrackingEngine, TrackingRun
from services.state.pattern_tracking.errors import (
    ArtifactNotFoundError,
    ConfigurationError,
    InvalidInputError,
    PatternTrackingError,
    StageNotFoundError,
    UnknownSubtypeError,
)
from services.state.pattern_tracking.implementation import DefaultPatternTrackingService
from services.state.pattern_tracking.service import (
    PatternTrackingService,
    build_pattern_tracking_service,
)
from services.state.pattern_tracking.stages import StageRegistry
from services.state.pattern_tracking.wait_time import compute_wait_days

__all__ = [
    "Artifact",
    "ArtifactNotFoundError",
    "ConfigurationError",
    "ConnectionAggregator",
    "ConnectionIndex",
    "DefaultPatternTrackingService",
    "Envelope",
    "EnvelopeKind",
    "EnvelopeMeta",
    "ErrorCategory",
    "ErrorDetail",
    "InvalidInputError",
    "LegendEntry",
    "LocationRule",
    "LocationRuleSettings",
    "PatternTrackingError",
    "PatternTrackingService",
    "PatternTrackingSettings",
    "PublishState",
    "SERVICE_COMPONENT_ID",
    "StageKey",
    "StageNotFoundError",
    "StageRegistry",
    "StatusClassifier",
    "TrackedArtifact",
    "TrackingEngine",
    "TrackingReport",
    "TrackingRow",
    "TrackingRun",
    "UnknownSubtypeError",
    "build_pattern_tracking_service",
    "compute_wait_days",
    "is_waiting",
]
