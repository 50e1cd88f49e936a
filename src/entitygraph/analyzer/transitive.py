"""Transitive relationship suggester.

Breadth-first search from every entity through ``has_many``/``has_one``
relationships, looking for 2+ hop paths to entities the source has no direct
relationship with. Each path becomes a suggestion with a ready-to-paste YAML
snippet for the source entity's definition file.

Output is deterministic for a given graph: the manifest derives suggestion
identity from it.
"""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from entitygraph.analyzer.models import (
    AnalysisIssue,
    PathHop,
    Severity,
    TransitivePath,
    TransitiveSuggestion,
)
from entitygraph.config.models import SuggesterConfig

if TYPE_CHECKING:
    from entitygraph.analyzer.models import DomainGraph, Entity

logger = structlog.get_logger()

_TRAVERSABLE = ("has_many", "has_one")


@dataclass(frozen=True, slots=True)
class _Exclusions:
    entities: frozenset[str]
    patterns: tuple[re.Pattern[str], ...]

    @classmethod
    def from_config(cls, config: SuggesterConfig) -> _Exclusions:
        return cls(
            entities=frozenset(config.exclude_entities),
            patterns=tuple(config.compiled_patterns()),
        )

    def __contains__(self, entity_name: object) -> bool:
        if not isinstance(entity_name, str):
            return False
        if entity_name in self.entities:
            return True
        return any(p.search(entity_name) for p in self.patterns)


@dataclass(slots=True)
class _SearchNode:
    entity: str
    depth: int
    hops: tuple[PathHop, ...]
    visited: frozenset[str]


def suggest_transitive_relationships(
    graph: DomainGraph,
    config: SuggesterConfig | None = None,
) -> list[TransitiveSuggestion]:
    """Suggest transitive relationships for every non-excluded entity."""
    config = config or SuggesterConfig()
    excluded = _Exclusions.from_config(config)

    suggestions: list[TransitiveSuggestion] = []
    for name in graph.entities:
        if name in excluded:
            continue
        suggestions.extend(
            _create_suggestion(path)
            for path in find_transitive_paths(graph, name, config.max_depth, excluded)
        )

    logger.debug("transitive_paths_found", count=len(suggestions), max_depth=config.max_depth)
    return suggestions


def find_transitive_paths(
    graph: DomainGraph,
    source: str,
    max_depth: int,
    excluded: _Exclusions | None = None,
) -> list[TransitivePath]:
    """All transitive paths out of ``source``, shortest first."""
    source_entity = graph.entities.get(source)
    if source_entity is None:
        return []
    excluded = excluded or _Exclusions.from_config(SuggesterConfig())

    paths: list[TransitivePath] = []
    queue = deque([_SearchNode(source, 0, (), frozenset({source}))])

    while queue:
        node = queue.popleft()
        if node.depth >= max_depth:
            continue
        current = graph.entities.get(node.entity)
        if current is None:
            continue

        for rel_name, rel in current.relationships.items():
            # Pre-declared transitive relationships are not re-traversed
            if rel.through or rel.type not in _TRAVERSABLE:
                continue
            target = rel.target
            if target in excluded or target in node.visited:
                continue

            hop = PathHop(via=node.entity, relationship=rel_name, foreign_key=rel.foreign_key)
            hops = (*node.hops, hop)

            if node.depth >= 1 and not _has_direct_relationship(source_entity, target):
                paths.append(_build_path(source, target, hops))

            if node.depth + 1 < max_depth:
                queue.append(_SearchNode(target, node.depth + 1, hops, node.visited | {target}))

    return paths


def _has_direct_relationship(source: Entity, target: str) -> bool:
    return any(rel.target == target and not rel.through for rel in source.relationships.values())


def singularize(name: str) -> str:
    """Naive singular form: strips one trailing ``s``."""
    return name.removesuffix("s")


def suggest_relationship_name(target: str, hops: tuple[PathHop, ...]) -> str:
    """``meetings`` + ``action_item`` -> ``meeting_action_item``.

    Only the first hop contributes; middle hops of longer paths are ignored.
    """
    return f"{singularize(hops[0].relationship)}_{target}"


def render_yaml_snippet(name: str, target: str, through_path: str) -> str:
    return (
        f"  {name}:\n"
        f"    type: has_many\n"
        f"    target: {target}\n"
        f'    through: "{through_path}"'
    )


def _build_path(source: str, target: str, hops: tuple[PathHop, ...]) -> TransitivePath:
    through_path = ".".join(hop.relationship for hop in hops)
    name = suggest_relationship_name(target, hops)
    return TransitivePath(
        source=source,
        target=target,
        hops=hops,
        suggested_name=name,
        through_path=through_path,
        yaml_snippet=render_yaml_snippet(name, target, through_path),
    )


def _create_suggestion(path: TransitivePath) -> TransitiveSuggestion:
    chain = " -> ".join([path.source, *(hop.via for hop in path.hops[1:]), path.target])
    issue = AnalysisIssue(
        severity=Severity.INFO,
        type="transitive_suggestion",
        entity=path.source,
        message=f"Potential transitive relationship: {chain}",
        suggestion=f'Add "{path.suggested_name}" relationship via "{path.through_path}"',
    )
    return TransitiveSuggestion(issue=issue, path=path)
