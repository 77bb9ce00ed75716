"""Configuration loading with deterministic precedence.

The cascade is always:
1) CLI params
2) Environment variables
3) ~/.config/pattern-tracker/tracker.yaml
4) Model defaults

Environment variable format:
- Prefix: ``TRACKER_``
- Nested keys: ``__`` separator
- Example: ``TRACKER_COMPONENTS__SERVICE__PATTERN_TRACKING__PRIMARY_TYPE=essay``
  -> ``components.service.pattern_tracking.primary_type = "essay"``
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import DEFAULT_CONFIG_PATH, TrackerSettings

_NULL_LITERALS = frozenset({"null", "none"})
_BOOL_LITERALS = frozenset({"true", "false"})


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
) -> TrackerSettings:
    """Resolve typed root settings from explicit sources only.

    Unlike ``TrackerSettings()``, nothing is read implicitly: ``environ``
    defaults to ``os.environ`` and ``config_path`` to ``DEFAULT_CONFIG_PATH``.
    """
    merged = load_config(
        cli_params=cli_params,
        environ=environ,
        config_path=config_path,
    )
    return TrackerSettings.model_validate(merged)


def load_config(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    env_prefix: str = "TRACKER_",
) -> dict[str, Any]:
    """Return the raw merged mapping, lowest precedence first."""
    layers = (
        _read_yaml_file(Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH),
        _read_environment(os.environ if environ is None else environ, env_prefix),
        dict(cli_params or {}),
    )
    merged: dict[str, Any] = {}
    for layer in layers:
        merged = _deep_merge(merged, layer)
    return merged


def _read_yaml_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        parsed = yaml.safe_load(handle)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config file must contain a top-level mapping: {path}")
    return parsed


def _read_environment(environ: Mapping[str, str], prefix: str) -> dict[str, Any]:
    """Map ``PREFIX_A__B=value`` variables onto ``{"a": {"b": value}}``."""
    output: dict[str, Any] = {}
    for key, raw in environ.items():
        if not key.startswith(prefix):
            continue
        segments = [part.strip().lower() for part in key[len(prefix) :].split("__")]
        segments = [part for part in segments if part]
        if not segments:
            continue

        cursor = output
        for segment in segments[:-1]:
            child = cursor.get(segment)
            if not isinstance(child, dict):
                child = cursor[segment] = {}
            cursor = child
        cursor[segments[-1]] = _parse_env_value(raw)
    return output


def _parse_env_value(raw: str) -> Any:
    """Read booleans, numbers, null and flow lists/maps; keep the rest as text."""
    text = raw.strip()
    if text.lower() in _NULL_LITERALS:
        return None
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError:
        return raw
    if isinstance(parsed, bool):
        return parsed if text.lower() in _BOOL_LITERALS else raw
    if isinstance(parsed, (int, float)):
        return parsed
    if isinstance(parsed, (list, dict)) and text.startswith(("[", "{")):
        return parsed
    return raw


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` updated recursively with ``override``; inputs are untouched."""
    result = {str(key): copy.deepcopy(value) for key, value in base.items()}
    for key, value in override.items():
        current = result.get(str(key))
        if isinstance(current, dict) and isinstance(value, Mapping):
            result[str(key)] = _deep_merge(current, value)
        else:
            result[str(key)] = copy.deepcopy(value)
    return result
