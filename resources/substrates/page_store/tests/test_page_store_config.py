"""Configuration tests for the page store substrate component."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from packages.tracker_shared.config import load_settings
from resources.substrates.page_store import InMemoryPageStore, resolve_page_store_settings
from resources.substrates.page_store.component import build_component


def test_page_store_settings_default_to_no_snapshot(tmp_path: Path) -> None:
    """Missing component settings should resolve to an empty snapshot path."""
    settings = load_settings(environ={}, config_path=tmp_path / "absent.yaml")

    store_settings = resolve_page_store_settings(settings)

    assert store_settings.snapshot_path == ""
    store = build_component(settings=settings)
    assert isinstance(store, InMemoryPageStore)
    assert len(store) == 0


def test_build_component_loads_configured_snapshot(tmp_path: Path) -> None:
    """A configured snapshot path should be loaded into the store."""
    snapshot = tmp_path / "vault.yaml"
    snapshot.write_text("- path: A.md\n- path: B.md\n", encoding="utf-8")
    settings = load_settings(
        environ={"TRACKER_COMPONENTS__SUBSTRATE__PAGE_STORE__SNAPSHOT_PATH": str(snapshot)},
        config_path=tmp_path / "absent.yaml",
    )

    store = build_component(settings=settings)

    assert isinstance(store, InMemoryPageStore)
    assert len(store) == 2


def test_page_store_settings_reject_unknown_keys(tmp_path: Path) -> None:
    """Component-local settings should forbid unknown keys."""
    settings = load_settings(
        cli_params={"components": {"substrate": {"page_store": {"vault_root": "x"}}}},
        environ={},
        config_path=tmp_path / "absent.yaml",
    )

    with pytest.raises(ValidationError):
        resolve_page_store_settings(settings)
