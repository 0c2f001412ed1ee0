"""Transitive dependency graph resolution.

The graph is expanded breadth-first from a work-list. A package is only
expanded the first time its key is seen, which bounds the walk even when
upstream metadata contains dependency cycles; the first version seen for a
key wins.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Deque, Dict, Iterator, List, Mapping, Optional, Tuple

from common.errors import DeployError, DependencyResolutionError, HttpError
from common.logging_utils import extra_context
from versioning.parser import parse_dependency

logger = logging.getLogger(__name__)

FetchDependencies = Callable[[str, str], Awaitable[Mapping[str, str]]]
ParseDependency = Callable[[str, str], Tuple[str, str]]
OnError = Callable[[str, DependencyResolutionError], None]


@dataclass
class DependencyGraph:
    """Ordered ``name_or_urlish -> version`` closure plus per-dependency failures."""
    dependencies: Dict[str, str] = field(default_factory=dict)
    failures: List[DependencyResolutionError] = field(default_factory=list)

    def __contains__(self, key: object) -> bool:
        return key in self.dependencies

    def __iter__(self) -> Iterator[str]:
        return iter(self.dependencies)

    def __len__(self) -> int:
        return len(self.dependencies)

    def items(self):
        return self.dependencies.items()

    def is_empty(self) -> bool:
        return not self.dependencies

    def describe(self) -> str:
        return " ".join(f"{name}#{version}" for name, version in self.dependencies.items())


async def resolve_dependency_graph(
    root_dependencies: Mapping[str, str],
    fetch_dependencies: FetchDependencies,
    parse: ParseDependency = parse_dependency,
    on_error: Optional[OnError] = None,
) -> DependencyGraph:
    """Expand ``root_dependencies`` into their transitive closure.

    Args:
        root_dependencies: Declared ``name -> versionish`` map of the root package.
        fetch_dependencies: Returns the declared dependencies of ``(name_or_urlish, version)``.
        parse: Maps a declared ``(name, versionish)`` to the ``(key, version)`` stored in the graph.
        on_error: Called for every dependency whose metadata could not be fetched.

    Returns:
        The graph; dependencies whose metadata failed stay in it but are not expanded.
    """
    graph = DependencyGraph()
    work: Deque[Tuple[str, str]] = deque(root_dependencies.items())

    while work:
        name, versionish = work.popleft()
        try:
            key, version = parse(name, versionish)
        except DeployError as exc:
            failure = DependencyResolutionError(f"Can not parse dependency {name}#{versionish}: {exc}")
            graph.failures.append(failure)
            if on_error:
                on_error(name, failure)
            continue
        if key in graph:
            continue
        graph.dependencies[key] = version

        try:
            children = await fetch_dependencies(key, version)
        except (DeployError, HttpError) as exc:
            failure = DependencyResolutionError(f"Could not resolve dependency {key}#{version}: {exc}")
            failure.__cause__ = exc
            graph.failures.append(failure)
            logger.warning(
                "Dependency resolution failed",
                extra=extra_context(event="dep_graph", outcome="error", target=key),
            )
            if on_error:
                on_error(key, failure)
            continue

        work.extend(children.items())

    logger.debug("Resolved dependency graph with %d entries", len(graph))
    return graph
