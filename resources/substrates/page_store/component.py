"""Component declaration for the page store substrate resource."""

from __future__ import annotations

from packages.tracker_shared.config import TrackerSettings

RESOURCE_COMPONENT_ID = "substrate_page_store"


def build_component(*, settings: TrackerSettings) -> object:
    """Build the configured page store, loading the snapshot when one is set."""
    from resources.substrates.page_store.config import resolve_page_store_settings
    from resources.substrates.page_store.memory_substrate import InMemoryPageStore
    from resources.substrates.page_store.snapshot import load_snapshot

    store_settings = resolve_page_store_settings(settings)
    if store_settings.snapshot_path == "":
        return InMemoryPageStore()
    return load_snapshot(store_settings.snapshot_file())
