"""Unit tests for the stage key / display name registry."""

from __future__ import annotations

import pytest

from services.state.pattern_tracking.domain import REGISTERED_STAGES, StageKey
from services.state.pattern_tracking.errors import ConfigurationError, StageNotFoundError
from services.state.pattern_tracking.stages import DEFAULT_STAGE_NAMES, StageRegistry


def _names(**overrides: str) -> dict[StageKey, str]:
    names = dict(DEFAULT_STAGE_NAMES)
    for key, name in overrides.items():
        names[StageKey[key.upper()]] = name
    return names


def test_forward_and_reverse_round_trip_for_every_key() -> None:
    """Every registered key should survive a display-name round trip."""
    registry = StageRegistry(_names(writing="✍️ drafting", done="🏁"))

    for key in REGISTERED_STAGES:
        assert registry.reverse(registry.forward(key)) is key
    assert registry.forward(StageKey.WRITING) == "✍️ drafting"
    assert registry.forward("stage6") == "🏁"


def test_reverse_unknown_name_raises_stage_not_found() -> None:
    """Unknown display names should fail with a not-found error."""
    registry = StageRegistry(DEFAULT_STAGE_NAMES)

    with pytest.raises(StageNotFoundError, match="polishing"):
        registry.reverse("polishing")


def test_forward_unregistered_key_raises_stage_not_found() -> None:
    """The needs-attention sentinel and unknown keys are not registered."""
    registry = StageRegistry(DEFAULT_STAGE_NAMES)

    with pytest.raises(StageNotFoundError):
        registry.forward(StageKey.NEEDS_ATTENTION)
    with pytest.raises(StageNotFoundError):
        registry.forward("stage9")


def test_display_renders_sentinel_with_fallback_label() -> None:
    """Display text should cover every classification outcome."""
    registry = StageRegistry(DEFAULT_STAGE_NAMES, fallback_label="check me")

    assert registry.display(StageKey.NEEDS_ATTENTION) == "check me"
    assert registry.display(StageKey.READY) == "ready"


def test_legend_follows_configured_order() -> None:
    """Legend entries should keep the order of the configured mapping."""
    names = {key: DEFAULT_STAGE_NAMES[key] for key in reversed(REGISTERED_STAGES)}

    registry = StageRegistry(names)

    assert [entry.key for entry in registry.legend()] == list(reversed(REGISTERED_STAGES))
    assert registry.keys() == tuple(reversed(REGISTERED_STAGES))


def test_duplicate_display_names_are_rejected() -> None:
    """Two keys sharing one display name would break reverse lookup."""
    with pytest.raises(ConfigurationError, match="used by"):
        StageRegistry(_names(editing="writing"))


def test_missing_or_blank_names_are_rejected() -> None:
    """Every registered key needs a non-blank display name."""
    partial = dict(DEFAULT_STAGE_NAMES)
    del partial[StageKey.WAITING]

    with pytest.raises(ConfigurationError, match="missing"):
        StageRegistry(partial)
    with pytest.raises(ConfigurationError, match="display name"):
        StageRegistry(_names(close="  "))


def test_sentinel_and_unknown_keys_cannot_be_registered() -> None:
    """Only workflow stages and the waiting marker can be named."""
    with pytest.raises(ConfigurationError):
        StageRegistry({**DEFAULT_STAGE_NAMES, StageKey.NEEDS_ATTENTION: "help"})
    with pytest.raises(ConfigurationError):
        StageRegistry({**DEFAULT_STAGE_NAMES, "stage7": "extra"})


def test_fallback_label_must_not_collide_with_stage_names() -> None:
    """The fallback label shares the display namespace with stage names."""
    with pytest.raises(ConfigurationError, match="fallback"):
        StageRegistry(DEFAULT_STAGE_NAMES, fallback_label="done")
