"""Public API for shared Pattern Tracker configuration utilities."""

from .loader import load_config, load_settings
from .models import (
    ComponentsSettings,
    DEFAULT_CONFIG_PATH,
    LoggingSettings,
    TrackerSettings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ComponentsSettings",
    "LoggingSettings",
    "TrackerSettings",
    "load_config",
    "load_settings",
    "resolve_component_settings",
]
