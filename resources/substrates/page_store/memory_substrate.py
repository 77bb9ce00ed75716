"""In-memory page store with Obsidian-style link resolution."""

from __future__ import annotations

from typing import Iterable

from packages.tracker_shared.logging import get_logger
from packages.tracker_shared.vault_paths import (
    MARKDOWN_SUFFIX,
    link_target,
    strip_markdown_suffix,
)
from resources.substrates.page_store.query import parse_page_query
from resources.substrates.page_store.substrate import (
    PageRecord,
    PageStore,
    PageStoreNotFoundError,
)

_LOGGER = get_logger(__name__)


class InMemoryPageStore(PageStore):
    """Hold page records in memory and answer queries and link lookups.

    Link identifiers resolve in order: exact path, path plus ``.md``, then the
    shortest page path whose extension-less form ends with the identifier
    (so ``[[B]]`` finds ``Stories/B.md``).
    """

    def __init__(self, pages: Iterable[PageRecord] = ()) -> None:
        self._pages: dict[str, PageRecord] = {}
        for page in pages:
            self.add(page)

    def __len__(self) -> int:
        return len(self._pages)

    def add(self, page: PageRecord) -> None:
        """Insert or replace one page keyed by its path."""
        self._pages[page.path] = page

    def pages(self) -> list[PageRecord]:
        """Return every page ordered by path."""
        return [self._pages[path] for path in sorted(self._pages)]

    def query(self, filter_expression: str = "") -> list[PageRecord]:
        """Return pages matching one filter expression, ordered by path."""
        page_query = parse_page_query(filter_expression)
        return [page for page in self.pages() if page_query.matches(page)]

    def resolve(self, identifier: str) -> PageRecord:
        """Resolve one link identifier or raise ``PageStoreNotFoundError``."""
        target = link_target(identifier).replace("\\", "/").strip("/")
        if target == "":
            raise PageStoreNotFoundError(f"empty link identifier: {identifier!r}")

        exact = self._pages.get(target) or self._pages.get(f"{target}{MARKDOWN_SUFFIX}")
        if exact is not None:
            return exact

        bare = strip_markdown_suffix(target)
        candidates = sorted(
            (
                path
                for path in self._pages
                if strip_markdown_suffix(path) == bare
                or strip_markdown_suffix(path).endswith(f"/{bare}")
            ),
            key=lambda path: (len(path), path),
        )
        if not candidates:
            _LOGGER.debug("Unresolved link identifier %s", identifier)
            raise PageStoreNotFoundError(f"page not found: {identifier}")
        return self._pages[candidates[0]]
