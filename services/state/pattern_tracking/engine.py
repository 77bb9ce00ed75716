"""Tracking run orchestration: query, aggregate all, then classify all."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Iterable

from packages.tracker_shared.logging import fields, get_logger, log_context
from resources.substrates.page_store import PageRecord, PageStore, PageStoreNotFoundError
from services.state.pattern_tracking.aggregation import ConnectionAggregator, ConnectionIndex
from services.state.pattern_tracking.classification import StatusClassifier, is_waiting
from services.state.pattern_tracking.config import PatternTrackingSettings
from services.state.pattern_tracking.domain import (
    Artifact,
    StageKey,
    TrackedArtifact,
    TrackingReport,
    TrackingRow,
)
from services.state.pattern_tracking.errors import (
    ArtifactNotFoundError,
    InvalidInputError,
    UnknownSubtypeError,
)
from services.state.pattern_tracking.stages import StageRegistry
from services.state.pattern_tracking.wait_time import compute_wait_days

_LOGGER = get_logger(__name__)


class TrackingEngine:
    """Run the two-phase tracking pass over one page store."""

    def __init__(self, *, store: PageStore, settings: PatternTrackingSettings) -> None:
        self._store = store
        self._settings = settings
        self._registry = settings.stage_registry()
        self._classifier = StatusClassifier(
            location_rule=settings.location_rule(),
            subtypes=settings.tracked_subtypes(),
        )

    @property
    def registry(self) -> StageRegistry:
        return self._registry

    @property
    def classifier(self) -> StatusClassifier:
        return self._classifier

    def to_artifact(self, page: PageRecord) -> Artifact:
        """Project one page record onto the configured tracking fields."""
        subtype = page.frontmatter(self._settings.subtype_key)
        kind = page.frontmatter(self._settings.type_key)
        return Artifact(
            path=page.path,
            title=page.name,
            type=None if kind is None else str(kind),
            subtype=None if subtype is None else str(subtype),
            publish_marker=page.frontmatter(self._settings.publish_key),
            modified_at=page.modified_at,
            outlinks=page.outlinks,
        )

    def select(self, filter_expression: str | None = None) -> list[Artifact]:
        """Return artifacts of the primary type matching the filter."""
        expression = self._settings.filter if filter_expression is None else filter_expression
        return [
            self.to_artifact(page)
            for page in self._store.query(expression)
            if page.frontmatter(self._settings.type_key) == self._settings.primary_type
        ]

    def run(self, *, now: datetime, filter_expression: str | None = None) -> "TrackingRun":
        """Aggregate connections for the whole working set, then classify it."""
        artifacts = self.select(filter_expression)
        known = {artifact.path: artifact for artifact in artifacts}

        aggregator = ConnectionAggregator(
            subtypes=self._settings.tracked_subtypes(),
            resolve=lambda identifier: self._resolve(identifier, known),
        )
        index = aggregator.aggregate(artifacts)

        tracked = {
            artifact.path: self.evaluate(artifact, index, now=now)
            for artifact in artifacts
        }
        with log_context({fields.ARTIFACT_COUNT: len(tracked)}):
            _LOGGER.info("Tracking run complete")
        return TrackingRun(
            now=now,
            registry=self._registry,
            subtypes=self._settings.tracked_subtypes(),
            tracked=tracked,
            index=index,
            waiting_threshold_days=self._settings.waiting_threshold_days,
        )

    def evaluate(
        self, artifact: Artifact, index: ConnectionIndex, *, now: datetime
    ) -> TrackedArtifact:
        """Classify one already-aggregated artifact."""
        connections = index.get(artifact.path)
        stage = self._classifier.classify(
            path=artifact.path,
            connections=connections,
            publish_marker=artifact.publish_marker,
        )
        with log_context({fields.ARTIFACT_PATH: artifact.path, fields.STAGE: stage.value}):
            if stage is StageKey.NEEDS_ATTENTION:
                _LOGGER.warning("Artifact matched no workflow stage")
            try:
                wait_days = compute_wait_days(artifact.modified_at, now, stage)
            except InvalidInputError as exc:
                raise InvalidInputError(f"{artifact.path}: {exc}") from exc

        return TrackedArtifact(
            artifact=artifact,
            connections={
                subtype: connections.get(subtype, frozenset())
                for subtype in self._settings.tracked_subtypes()
            },
            stage=stage,
            wait_days=wait_days,
            waiting=is_waiting(stage, wait_days, self._settings.waiting_threshold_days),
        )

    def _resolve(self, identifier: str, known: dict[str, Artifact]) -> Artifact | None:
        try:
            page = self._store.resolve(identifier)
        except PageStoreNotFoundError:
            return None
        cached = known.get(page.path)
        if cached is None:
            cached = self.to_artifact(page)
            known[page.path] = cached
        return cached


class TrackingRun:
    """Derived annotations of one tracking run with query accessors."""

    def __init__(
        self,
        *,
        now: datetime,
        registry: StageRegistry,
        subtypes: tuple[str, ...],
        tracked: dict[str, TrackedArtifact],
        index: ConnectionIndex,
        waiting_threshold_days: int,
    ) -> None:
        self.now = now
        self.registry = registry
        self.subtypes = subtypes
        self.index = index
        self.waiting_threshold_days = waiting_threshold_days
        self._tracked = tracked

    def __len__(self) -> int:
        return len(self._tracked)

    def __contains__(self, path: object) -> bool:
        return path in self._tracked

    def get(self, path: str) -> TrackedArtifact:
        try:
            return self._tracked[path]
        except KeyError:
            raise ArtifactNotFoundError(f"artifact not tracked: {path}") from None

    def stage(self, path: str) -> StageKey:
        return self.get(path).stage

    def wait_days(self, path: str) -> int:
        return self.get(path).wait_days

    def is_waiting(self, path: str) -> bool:
        return self.get(path).waiting

    def connections(self, path: str) -> dict[str, frozenset[str]]:
        return dict(self.get(path).connections)

    def files_of_type(self, subtype: str | None = None) -> list[TrackedArtifact]:
        """Return primary artifacts, or those of one tracked subtype, by title."""
        if subtype is not None and subtype not in self.subtypes:
            raise UnknownSubtypeError(f"subtype is not tracked: {subtype}")
        selected = (
            item for item in self._tracked.values() if item.artifact.subtype == subtype
        )
        return sorted(selected, key=lambda item: (item.artifact.title, item.artifact.path))

    def row(self, item: TrackedArtifact) -> TrackingRow:
        """Build the render-ready row for one tracked artifact."""
        return TrackingRow(
            title=item.artifact.title,
            path=item.artifact.path,
            type_label=item.artifact.type_label,
            wait_days=item.wait_days,
            stage=self.registry.display(item.stage),
            stage_key=item.stage,
            waiting=item.waiting,
            connection_counts=tuple(
                item.connection_count(subtype) for subtype in self.subtypes
            ),
        )

    def rows(self, subtype: str | None = None) -> list[TrackingRow]:
        return [self.row(item) for item in self.files_of_type(subtype)]

    def report(
        self,
        subtype: str | None = None,
        *,
        stages: Iterable[StageKey] | None = None,
    ) -> TrackingReport:
        """Summarize one artifact group, optionally restricted to some stages."""
        items = self.files_of_type(subtype)
        if stages is not None:
            wanted = set(stages)
            items = [item for item in items if item.stage in wanted]
        counts = Counter(self.registry.display(item.stage) for item in items)
        return TrackingReport(
            generated_at=self.now,
            subtype=subtype,
            subtypes=self.subtypes,
            legend=self.registry.legend(),
            rows=tuple(self.row(item) for item in items),
            stage_counts=dict(counts),
            waiting_count=sum(1 for item in items if item.waiting),
            needs_attention=tuple(
                item.artifact.path
                for item in items
                if item.stage is StageKey.NEEDS_ATTENTION
            ),
        )
