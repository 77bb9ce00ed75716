"""Workflow stage classification and the staleness overlay."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Any, Mapping, Sequence

from services.state.pattern_tracking.domain import PublishState, StageKey, publish_state
from services.state.pattern_tracking.errors import ConfigurationError

DEFAULT_WAITING_THRESHOLD_DAYS = 4


@dataclass(frozen=True)
class LocationRule:
    """Decide readiness from an artifact path.

    Exactly one marker is set. With ``not_ready_marker`` a path containing it
    is not ready and everything else is; with ``ready_marker`` only paths
    containing it are ready.
    """

    not_ready_marker: str | None = None
    ready_marker: str | None = None

    def __post_init__(self) -> None:
        has_not_ready = bool(self.not_ready_marker)
        has_ready = bool(self.ready_marker)
        if has_not_ready == has_ready:
            raise ConfigurationError(
                "location rule needs exactly one of not_ready_marker or ready_marker"
            )

    def is_ready(self, path: str) -> bool:
        if self.not_ready_marker:
            return self.not_ready_marker not in path
        return str(self.ready_marker) in path


class StatusClassifier:
    """Assign one stage key from location, connections and publish marker."""

    def __init__(self, *, location_rule: LocationRule, subtypes: Sequence[str]) -> None:
        self._location_rule = location_rule
        self._subtypes = tuple(subtypes)

    @property
    def subtypes(self) -> tuple[str, ...]:
        return self._subtypes

    def has_connections(
        self,
        connections: Mapping[str, AbstractSet[str]] | None,
        subtypes: Sequence[str] | None = None,
    ) -> bool:
        """Return whether any of ``subtypes`` (default: all tracked) has links."""
        if not connections:
            return False
        wanted = self._subtypes if subtypes is None else tuple(subtypes)
        return any(connections.get(subtype) for subtype in wanted)

    def classify(
        self,
        *,
        path: str,
        connections: Mapping[str, AbstractSet[str]] | None,
        publish_marker: Any,
    ) -> StageKey:
        """Return the stage for one artifact; never raises for valid input."""
        connected = self.has_connections(connections)
        if not self._location_rule.is_ready(path):
            return StageKey.EDITING if connected else StageKey.WRITING
        return self._ready_stage(connected, connections, publish_state(publish_marker))

    def _ready_stage(
        self,
        connected: bool,
        connections: Mapping[str, AbstractSet[str]] | None,
        publish: PublishState,
    ) -> StageKey:
        stage = StageKey.NEEDS_ATTENTION
        if not connected:
            stage = StageKey.CLOSE
        elif self._second_subtype_empty(connections):
            stage = StageKey.READY

        # Publication is checked after, not instead of, the chain above.
        if connected and publish is PublishState.PUBLISHED:
            stage = StageKey.DONE
        elif connected and publish is PublishState.SUBMITTED:
            stage = StageKey.SUBMITTED
        return stage

    def _second_subtype_empty(
        self, connections: Mapping[str, AbstractSet[str]] | None
    ) -> bool:
        if len(self._subtypes) < 2:
            return False
        return not (connections or {}).get(self._subtypes[1])


def is_waiting(
    stage: StageKey,
    wait_days: int,
    threshold_days: int = DEFAULT_WAITING_THRESHOLD_DAYS,
) -> bool:
    """Return whether an unfinished artifact has been idle for too long."""
    return stage is not StageKey.DONE and wait_days >= threshold_days
