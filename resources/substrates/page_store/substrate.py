"""Transport-agnostic protocol and records for page store access."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.tracker_shared.vault_paths import (
    normalize_vault_relative_path,
    page_name,
)


class PageStoreError(Exception):
    """Base exception for page store failures."""


class PageStoreNotFoundError(PageStoreError, KeyError):
    """Raised when a link identifier does not resolve to a page."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "page not found"


class PageQueryError(PageStoreError, ValueError):
    """Raised when a filter expression cannot be parsed."""


class PageStoreSnapshotError(PageStoreError, ValueError):
    """Raised when a snapshot file cannot be loaded into records."""


class PageRecord(BaseModel):
    """One vault page: identity, frontmatter, modification time and links."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    tags: tuple[str, ...] = ()
    modified_at: datetime | None = None
    outlinks: tuple[str, ...] = ()

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, value: str) -> str:
        """Require a vault-relative path."""
        return normalize_vault_relative_path(value)

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Store tags without the leading ``#``."""
        return tuple(tag.strip().lstrip("#") for tag in value if tag.strip("# "))

    @property
    def name(self) -> str:
        """Return the page display name."""
        return page_name(self.path)

    def frontmatter(self, key: str | None) -> Any:
        """Return one frontmatter value, or ``None`` when absent or unkeyed."""
        if key is None:
            return None
        return self.metadata.get(key)


class PageStore(Protocol):
    """Protocol for filtered page queries and link resolution."""

    def query(self, filter_expression: str = "") -> list[PageRecord]:
        """Return pages matching one filter expression, ordered by path."""

    def resolve(self, identifier: str) -> PageRecord:
        """Resolve one link identifier or raise ``PageStoreNotFoundError``."""
