"""Load a page store from a YAML or JSON vault snapshot file.

A snapshot is either a list of page mappings or a mapping with a ``pages``
list. Each page mapping accepts ``path`` (required), ``metadata`` (alias
``frontmatter``), ``tags``, ``modified_at`` (alias ``mtime``) and
``outlinks``.
"""

from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from packages.tracker_shared.logging import get_logger
from resources.substrates.page_store.memory_substrate import InMemoryPageStore
from resources.substrates.page_store.substrate import (
    PageRecord,
    PageStoreSnapshotError,
)

_LOGGER = get_logger(__name__)

_ALIASES = {"frontmatter": "metadata", "mtime": "modified_at", "links": "outlinks"}


def load_snapshot(path: str | Path) -> InMemoryPageStore:
    """Read one snapshot file into an ``InMemoryPageStore``."""
    resolved = Path(path)
    try:
        with resolved.open("r", encoding="utf-8") as handle:
            parsed = yaml.safe_load(handle)
    except OSError as exc:
        raise PageStoreSnapshotError(f"cannot read snapshot {resolved}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise PageStoreSnapshotError(f"invalid snapshot {resolved}: {exc}") from exc

    store = InMemoryPageStore(parse_snapshot(parsed, source=str(resolved)))
    _LOGGER.info("Loaded page snapshot %s with %d pages", resolved, len(store))
    return store


def parse_snapshot(data: Any, *, source: str = "<snapshot>") -> list[PageRecord]:
    """Validate raw snapshot data into page records."""
    if data is None:
        return []
    if isinstance(data, Mapping):
        data = data.get("pages", [])
    if not isinstance(data, list):
        raise PageStoreSnapshotError(f"{source}: snapshot must be a list of pages")

    records: list[PageRecord] = []
    for index, raw in enumerate(data):
        if not isinstance(raw, Mapping):
            raise PageStoreSnapshotError(f"{source}: page {index} must be a mapping")
        try:
            records.append(PageRecord.model_validate(_apply_aliases(raw)))
        except (ValidationError, ValueError) as exc:
            raise PageStoreSnapshotError(f"{source}: page {index}: {exc}") from exc
    return records


def _apply_aliases(raw: Mapping[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in raw.items():
        payload[_ALIASES.get(str(key), str(key))] = value
    for key in ("tags", "outlinks"):
        if isinstance(payload.get(key), list):
            payload[key] = tuple(str(item) for item in payload[key])
    if payload.get("metadata") is None:
        payload.pop("metadata", None)
    modified_at = payload.get("modified_at")
    if isinstance(modified_at, date) and not isinstance(modified_at, datetime):
        payload["modified_at"] = datetime.combine(modified_at, time.min)
    return payload
