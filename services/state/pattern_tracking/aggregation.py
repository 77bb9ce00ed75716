"""Transitive link aggregation per tracked subtype.

For every artifact the aggregator collects, per tracked subtype, the paths of
all artifacts carrying that subtype that are reachable through outlinks. The
link graph may contain cycles, self links and dangling links.

Traversal is an explicit-stack Tarjan walk: artifacts in one strongly
connected component reach exactly the same artifacts, so each component is
closed once, after every component it links to, and the result is memoized
per path. Each artifact and each link is therefore expanded once per run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Mapping, Sequence

from packages.tracker_shared.logging import fields, get_logger, log_context
from services.state.pattern_tracking.domain import Artifact

_LOGGER = get_logger(__name__)

Resolver = Callable[[str], Artifact | None]


@dataclass(frozen=True)
class ConnectionIndex:
    """Write-once connection sets keyed by artifact path."""

    subtypes: tuple[str, ...]
    entries: Mapping[str, Mapping[str, frozenset[str]]] = field(default_factory=dict)

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, path: str) -> dict[str, frozenset[str]]:
        """Return one artifact's sets; unknown paths get empty sets."""
        found = self.entries.get(path, {})
        return {subtype: found.get(subtype, frozenset()) for subtype in self.subtypes}


class ConnectionAggregator:
    """Compute transitive connection sets over the artifact link graph.

    ``resolve`` maps one outlink identifier to an artifact, or ``None`` for a
    dangling link. Results are memoized for the lifetime of the aggregator,
    so one instance corresponds to one tracking run.
    """

    def __init__(self, *, subtypes: Sequence[str], resolve: Resolver) -> None:
        self._subtypes = tuple(subtypes)
        self._tracked = frozenset(self._subtypes)
        self._resolve = resolve
        self._memo: dict[str, dict[str, frozenset[str]]] = {}
        self._links: dict[str, tuple[Artifact, ...]] = {}

    @property
    def subtypes(self) -> tuple[str, ...]:
        return self._subtypes

    def aggregate(self, artifacts: Iterable[Artifact]) -> ConnectionIndex:
        """Aggregate every artifact in ``artifacts`` and all it reaches."""
        roots = list(artifacts)
        if not self._subtypes:
            _LOGGER.debug("No tracked subtypes configured; skipping aggregation")
            return ConnectionIndex(subtypes=(), entries={})

        for root in roots:
            if root.path not in self._memo:
                self._walk(root)

        with log_context({fields.ARTIFACT_COUNT: len(self._memo)}):
            _LOGGER.debug("Connection aggregation complete")
        return ConnectionIndex(subtypes=self._subtypes, entries=dict(self._memo))

    def _walk(self, root: Artifact) -> None:
        """Explicit-stack Tarjan traversal from one unvisited root."""
        order: dict[str, int] = {}
        lowlink: dict[str, int] = {}
        component_stack: list[Artifact] = []
        on_stack: set[str] = set()
        work: list[tuple[Artifact, Iterator[Artifact]]] = []

        def enter(node: Artifact) -> None:
            order[node.path] = lowlink[node.path] = len(order)
            component_stack.append(node)
            on_stack.add(node.path)
            work.append((node, iter(self._targets(node))))

        enter(root)
        while work:
            node, targets = work[-1]
            descended = False
            for target in targets:
                if target.path in self._memo:
                    continue
                if target.path not in order:
                    enter(target)
                    descended = True
                    break
                if target.path in on_stack:
                    lowlink[node.path] = min(lowlink[node.path], order[target.path])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent.path] = min(lowlink[parent.path], lowlink[node.path])
            if lowlink[node.path] != order[node.path]:
                continue

            component: list[Artifact] = []
            while True:
                member = component_stack.pop()
                on_stack.discard(member.path)
                component.append(member)
                if member.path == node.path:
                    break
            self._close(component)

    def _close(self, component: list[Artifact]) -> None:
        """Memoize the shared reachable sets of one finished component."""
        members = {member.path for member in component}
        shared: dict[str, set[str]] = {subtype: set() for subtype in self._subtypes}
        cyclic = len(component) > 1

        for member in component:
            for target in self._targets(member):
                if target.subtype in self._tracked:
                    shared[target.subtype].add(target.path)
                if target.path in members:
                    cyclic = True
                    continue
                child = self._memo[target.path]
                for subtype in self._subtypes:
                    shared[subtype].update(child[subtype])

        if cyclic:
            with log_context({fields.ARTIFACT_PATH: sorted(members)[0]}):
                _LOGGER.debug("Link cycle across %d artifacts", len(members))

        for member in component:
            self._memo[member.path] = {
                subtype: frozenset(paths - {member.path})
                for subtype, paths in shared.items()
            }

    def _targets(self, node: Artifact) -> tuple[Artifact, ...]:
        """Resolve and cache one artifact's outlinks, dropping dangling ones."""
        cached = self._links.get(node.path)
        if cached is not None:
            return cached

        resolved: list[Artifact] = []
        for identifier in node.outlinks:
            target = self._resolve(identifier)
            if target is None:
                with log_context(
                    {fields.ARTIFACT_PATH: node.path, fields.LINK_TARGET: identifier}
                ):
                    _LOGGER.debug("Skipping dangling link")
                continue
            resolved.append(target)

        links = tuple(resolved)
        self._links[node.path] = links
        return links
