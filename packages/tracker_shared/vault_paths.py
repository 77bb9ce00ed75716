"""Vault path normalization helpers shared by the page store and tracking."""

from __future__ import annotations

MARKDOWN_SUFFIX = ".md"


def normalize_vault_relative_path(value: str) -> str:
    """Normalize and validate one vault-relative path string."""
    path = value.strip().replace("\\", "/")
    if path == "":
        raise ValueError("path must be non-empty")
    if path.startswith("/"):
        raise ValueError("path must be vault-relative")

    normalized_parts: list[str] = []
    for part in path.split("/"):
        if part in {"", ".", ".."}:
            raise ValueError("path contains invalid segment")
        normalized_parts.append(part)
    return "/".join(normalized_parts)


def strip_markdown_suffix(path: str) -> str:
    """Return ``path`` without a trailing ``.md`` suffix."""
    if path.lower().endswith(MARKDOWN_SUFFIX):
        return path[: -len(MARKDOWN_SUFFIX)]
    return path


def page_name(path: str) -> str:
    """Return the display name of a page: file name without ``.md``."""
    return strip_markdown_suffix(path.rsplit("/", maxsplit=1)[-1])


def link_target(link: str) -> str:
    """Reduce a wiki-link body (``[[a/b#h|alias]]``) to its path part."""
    target = link.strip()
    if target.startswith("[[") and target.endswith("]]"):
        target = target[2:-2]
    target = target.split("|", maxsplit=1)[0]
    target = target.split("#", maxsplit=1)[0]
    return target.strip()
