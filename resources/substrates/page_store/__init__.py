"""Page store substrate resource exports."""

from resources.substrates.page_store.component import RESOURCE_COMPONENT_ID
from resources.substrates.page_store.config import (
    PageStoreSettings,
    resolve_page_store_settings,
)
from resources.substrates.page_store.memory_substrate import InMemoryPageStore
from resources.substrates.page_store.query import PageQuery, parse_page_query
from resources.substrates.page_store.snapshot import load_snapshot, parse_snapshot
from resources.substrates.page_store.substrate import (
    PageQueryError,
    PageRecord,
    PageStore,
    PageStoreError,
    PageStoreNotFoundError,
    PageStoreSnapshotError,
)

__all__ = [
    "InMemoryPageStore",
    "PageQuery",
    "PageQueryError",
    "PageRecord",
    "PageStore",
    "PageStoreError",
    "PageStoreNotFoundError",
    "PageStoreSettings",
    "PageStoreSnapshotError",
    "RESOURCE_COMPONENT_ID",
    "load_snapshot",
    "parse_page_query",
    "parse_snapshot",
    "resolve_page_store_settings",
]
