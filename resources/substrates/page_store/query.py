"""Filter expressions over page records.

Supports the Dataview source subset used for tracking views:

- ``"Folder/Sub"`` matches pages inside the folder, or the page itself;
- ``#tag`` matches pages carrying the tag or one of its subtags;
- ``-term`` / ``!term`` negate a term;
- ``and`` / ``or`` combine terms (``and`` binds tighter), with parentheses.

An empty expression matches every page.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from packages.tracker_shared.vault_paths import strip_markdown_suffix
from resources.substrates.page_store.substrate import PageQueryError, PageRecord

PagePredicate = Callable[[PageRecord], bool]

_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<string>"[^"]*")
      | (?P<tag>\#[^\s()"]+)
      | (?P<op>[()!-])
      | (?P<word>[A-Za-z]+)
    )""",
    re.VERBOSE,
)


@dataclass(frozen=True)
class PageQuery:
    """Parsed filter expression."""

    expression: str
    predicate: PagePredicate

    def matches(self, page: PageRecord) -> bool:
        """Return whether ``page`` satisfies the expression."""
        return self.predicate(page)


def parse_page_query(expression: str) -> PageQuery:
    """Parse one filter expression, raising ``PageQueryError`` when invalid."""
    tokens = _tokenize(expression)
    if not tokens:
        return PageQuery(expression=expression, predicate=lambda page: True)
    parser = _Parser(tokens, expression)
    predicate = parser.parse_or()
    if not parser.done():
        raise PageQueryError(
            f"unexpected token {parser.peek()!r} in filter: {expression}"
        )
    return PageQuery(expression=expression, predicate=predicate)


def folder_matches(page: PageRecord, folder: str) -> bool:
    """Return whether ``page`` lives under ``folder`` or is that exact page."""
    prefix = folder.strip().strip("/")
    if prefix == "":
        return True
    if page.path == prefix or strip_markdown_suffix(page.path) == prefix:
        return True
    return page.path.startswith(f"{prefix}/")


def tag_matches(page: PageRecord, tag: str) -> bool:
    """Return whether ``page`` carries ``tag`` or a nested subtag of it."""
    wanted = tag.lstrip("#").lower()
    for candidate in page.tags:
        lowered = candidate.lower()
        if lowered == wanted or lowered.startswith(f"{wanted}/"):
            return True
    return False


def _tokenize(expression: str) -> list[str]:
    tokens: list[str] = []
    position = 0
    text = expression.rstrip()
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if match is None or match.end() == position:
            raise PageQueryError(
                f"cannot parse filter at offset {position}: {expression}"
            )
        tokens.append(match.group(match.lastgroup or "op"))
        position = match.end()
    return tokens


class _Parser:
    """Recursive-descent parser producing nested predicates."""

    def __init__(self, tokens: list[str], expression: str) -> None:
        self._tokens = tokens
        self._expression = expression
        self._index = 0

    def done(self) -> bool:
        return self._index >= len(self._tokens)

    def peek(self) -> str | None:
        if self.done():
            return None
        return self._tokens[self._index]

    def _take(self) -> str:
        token = self.peek()
        if token is None:
            raise PageQueryError(f"unexpected end of filter: {self._expression}")
        self._index += 1
        return token

    def _at_keyword(self, keyword: str) -> bool:
        token = self.peek()
        return token is not None and token.lower() == keyword

    def parse_or(self) -> PagePredicate:
        terms = [self._parse_and()]
        while self._at_keyword("or"):
            self._take()
            terms.append(self._parse_and())
        if len(terms) == 1:
            return terms[0]
        return lambda page: any(term(page) for term in terms)

    def _parse_and(self) -> PagePredicate:
        terms = [self._parse_unary()]
        while self._at_keyword("and"):
            self._take()
            terms.append(self._parse_unary())
        if len(terms) == 1:
            return terms[0]
        return lambda page: all(term(page) for term in terms)

    def _parse_unary(self) -> PagePredicate:
        if self.peek() in {"-", "!"}:
            self._take()
            inner = self._parse_unary()
            return lambda page: not inner(page)
        return self._parse_atom()

    def _parse_atom(self) -> PagePredicate:
        token = self._take()
        if token == "(":
            inner = self.parse_or()
            if self._take() != ")":
                raise PageQueryError(f"unbalanced parentheses: {self._expression}")
            return inner
        if token.startswith('"'):
            folder = token[1:-1]
            return lambda page: folder_matches(page, folder)
        if token.startswith("#"):
            return lambda page: tag_matches(page, token)
        raise PageQueryError(f"unexpected token {token!r} in filter: {self._expression}")
