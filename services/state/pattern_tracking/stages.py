"""Bidirectional registry between canonical stage keys and display names."""

from __future__ import annotations

from typing import Mapping

from services.state.pattern_tracking.domain import (
    REGISTERED_STAGES,
    LegendEntry,
    StageKey,
)
from services.state.pattern_tracking.errors import ConfigurationError, StageNotFoundError

DEFAULT_STAGE_NAMES: dict[StageKey, str] = {
    StageKey.WRITING: "writing",
    StageKey.EDITING: "editing",
    StageKey.CLOSE: "close",
    StageKey.READY: "ready",
    StageKey.SUBMITTED: "submitted",
    StageKey.DONE: "done",
    StageKey.WAITING: "waiting",
}

DEFAULT_FALLBACK_LABEL = "needs attention"


class StageRegistry:
    """Map stage keys to caller-configured display names and back.

    Built once from an ordered mapping that must name every registered key
    exactly once with unique, non-blank display names. The needs-attention
    sentinel is not registered; ``display`` renders it with the fallback label.
    """

    def __init__(
        self,
        names: Mapping[StageKey | str, str],
        *,
        fallback_label: str = DEFAULT_FALLBACK_LABEL,
    ) -> None:
        forward: dict[StageKey, str] = {}
        for raw_key, raw_name in names.items():
            key = _coerce_key(raw_key)
            if key not in REGISTERED_STAGES:
                raise ConfigurationError(f"stage key {key.value!r} cannot be registered")
            name = str(raw_name).strip()
            if name == "":
                raise ConfigurationError(f"stage {key.value!r} needs a display name")
            forward[key] = name

        missing = [key.value for key in REGISTERED_STAGES if key not in forward]
        if missing:
            raise ConfigurationError(f"stage names missing for: {', '.join(missing)}")

        reverse: dict[str, StageKey] = {}
        for key, name in forward.items():
            if name in reverse:
                raise ConfigurationError(
                    f"display name {name!r} used by {reverse[name].value} and {key.value}"
                )
            reverse[name] = key

        fallback = fallback_label.strip()
        if fallback == "" or fallback in reverse:
            raise ConfigurationError(
                f"fallback label {fallback_label!r} must be non-blank and unique"
            )

        self._forward = forward
        self._reverse = reverse
        self._fallback_label = fallback

    @property
    def fallback_label(self) -> str:
        return self._fallback_label

    def forward(self, key: StageKey | str) -> str:
        """Return the display name for one registered key."""
        try:
            return self._forward[_coerce_key(key)]
        except (KeyError, ConfigurationError):
            raise StageNotFoundError(f"stage key not registered: {key}") from None

    def reverse(self, display_name: str) -> StageKey:
        """Return the canonical key for one display name."""
        try:
            return self._reverse[display_name]
        except KeyError:
            raise StageNotFoundError(f"no stage named {display_name!r}") from None

    def display(self, outcome: StageKey) -> str:
        """Return the display text for any classification outcome."""
        if outcome is StageKey.NEEDS_ATTENTION:
            return self._fallback_label
        return self.forward(outcome)

    def legend(self) -> tuple[LegendEntry, ...]:
        """Return registered keys and names in configured order."""
        return tuple(LegendEntry(key=key, label=name) for key, name in self._forward.items())

    def keys(self) -> tuple[StageKey, ...]:
        return tuple(self._forward)


def _coerce_key(value: StageKey | str) -> StageKey:
    try:
        return StageKey(value)
    except ValueError:
        raise ConfigurationError(f"unknown stage key: {value!r}") from None
