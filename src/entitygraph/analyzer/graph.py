"""Domain graph construction and derived queries.

The graph is an arena of entities keyed by name plus a flat list of directed
edges. It is rebuilt from scratch on every analysis pass.
"""

from __future__ import annotations

from collections import defaultdict, deque
from typing import TYPE_CHECKING

import structlog

from entitygraph.analyzer.models import Cardinality, DomainGraph, Edge, EntityNode

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from entitygraph.analyzer.models import Entity

logger = structlog.get_logger()

_CARDINALITY: dict[str, Cardinality] = {
    "belongs_to": "N:1",
    "has_many": "1:N",
    "has_one": "1:1",
}


def infer_cardinality(relationship_type: str) -> Cardinality:
    """Cardinality from the relationship kind alone; unknown kinds are 1:N."""
    return _CARDINALITY.get(relationship_type, "1:N")


def build_domain_graph(entities: Iterable[Entity]) -> DomainGraph:
    """Build a domain graph from entities whose references are resolved.

    Relationships not marked ``resolved`` are skipped. When an edge runs
    opposite to an existing one between the same two entities, both are
    marked bidirectional.
    """
    graph = DomainGraph()
    entity_list = list(entities)
    for entity in entity_list:
        graph.entities[entity.name] = entity

    for entity in entity_list:
        for rel in entity.relationships.values():
            if not rel.resolved:
                continue

            reverse = next(
                (e for e in graph.edges if e.source == rel.target and e.target == entity.name),
                None,
            )
            edge = Edge(
                source=entity.name,
                target=rel.target,
                relationship=rel,
                cardinality=infer_cardinality(rel.type),
                bidirectional=reverse is not None,
            )
            if reverse is not None:
                reverse.bidirectional = True
            graph.edges.append(edge)

    logger.debug("domain_graph_built", entities=len(graph.entities), edges=len(graph.edges))
    return graph


def _undirected_adjacency(graph: DomainGraph) -> dict[str, list[str]]:
    adjacency: dict[str, list[str]] = defaultdict(list)
    for edge in graph.edges:
        adjacency[edge.source].append(edge.target)
        adjacency[edge.target].append(edge.source)
    return adjacency


def get_related_entities(graph: DomainGraph, entity_name: str, depth: int = 1) -> set[str]:
    """Entities reachable within ``depth`` hops, ignoring edge direction.

    The start entity is never part of the result.
    """
    adjacency = _undirected_adjacency(graph)
    related: set[str] = set()
    visited: set[str] = set()
    queue: deque[tuple[str, int]] = deque([(entity_name, 0)])

    while queue:
        name, current_depth = queue.popleft()
        if name in visited:
            continue
        visited.add(name)
        if current_depth >= depth:
            continue

        for neighbor in adjacency.get(name, ()):
            if neighbor in visited:
                continue
            if neighbor != entity_name:
                related.add(neighbor)
            queue.append((neighbor, current_depth + 1))

    return related


def find_orphan_entities(graph: DomainGraph) -> list[str]:
    """Entities with no incident edge in either direction, in graph order."""
    connected = {e.source for e in graph.edges} | {e.target for e in graph.edges}
    return [name for name in graph.entities if name not in connected]


def _cycle_key(cycle: list[str]) -> tuple[str, ...]:
    # Drop the repeated closing name, then rotate to the smallest member
    members = cycle[:-1]
    start = members.index(min(members))
    return tuple(members[start:] + members[:start])


def _iter_cycles(graph: DomainGraph) -> Iterator[list[str]]:
    """Depth-first search over directed edges, yielding each back-edge cycle.

    Uses an explicit stack; ``path`` mirrors the recursion stack.
    """
    outgoing: dict[str, list[str]] = defaultdict(list)
    for edge in graph.edges:
        outgoing[edge.source].append(edge.target)

    visited: set[str] = set()
    for root in graph.entities:
        if root in visited:
            continue

        visited.add(root)
        path = [root]
        on_path = {root}
        stack = [iter(outgoing.get(root, ()))]

        while stack:
            target = next(stack[-1], None)
            if target is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if target not in visited:
                visited.add(target)
                on_path.add(target)
                path.append(target)
                stack.append(iter(outgoing.get(target, ())))
            elif target in on_path:
                yield [*path[path.index(target) :], target]


def find_circular_dependencies(graph: DomainGraph) -> list[list[str]]:
    """Directed cycles, each as a closed path (first name repeated at the end).

    The same cycle reached from different starting points is reported once.
    """
    unique: list[list[str]] = []
    seen: set[tuple[str, ...]] = set()
    for cycle in _iter_cycles(graph):
        key = _cycle_key(cycle)
        if key not in seen:
            seen.add(key)
            unique.append(cycle)
    return unique


def build_entity_nodes(graph: DomainGraph) -> list[EntityNode]:
    return [
        EntityNode(id=name, name=entity.name, entity=entity)
        for name, entity in graph.entities.items()
    ]
