"""Analyzer module - domain graph analysis.

This module provides:
- Graph building: edges, cardinality, bidirectional pairs, orphans, cycles
- Consistency checks: severity-tagged issues over entities and the graph
- Statistics: pure counts and distributions
- Transitive suggestions: bounded BFS for undeclared multi-hop relationships
- Manifest: persisted snapshot with staleness hash and suggestion lifecycle

The one-pass orchestration lives in `entitygraph.ops`.
"""

from entitygraph.analyzer.consistency import check_consistency
from entitygraph.analyzer.graph import (
    build_domain_graph,
    build_entity_nodes,
    find_circular_dependencies,
    find_orphan_entities,
    get_related_entities,
    infer_cardinality,
)
from entitygraph.analyzer.manifest import (
    ManifestStore,
    compute_entity_files_hash,
    merge_suggestions,
    suggestion_id,
)
from entitygraph.analyzer.models import (
    AnalysisIssue,
    AnalysisResult,
    DomainGraph,
    DomainStatistics,
    Edge,
    Entity,
    EntityNode,
    Field,
    FieldBreakdown,
    FieldConstraints,
    ForeignKeyRef,
    Manifest,
    ManifestSuggestion,
    PathHop,
    Relationship,
    Severity,
    TransitivePath,
    TransitiveSuggestion,
    UiMetadata,
    UiMetadataCoverage,
)
from entitygraph.analyzer.statistics import (
    compute_statistics,
    get_field_breakdown,
    get_ui_metadata_coverage,
)
from entitygraph.analyzer.transitive import (
    find_transitive_paths,
    suggest_transitive_relationships,
)

__all__ = [
    # Models
    "AnalysisIssue",
    "AnalysisResult",
    "DomainGraph",
    "DomainStatistics",
    "Edge",
    "Entity",
    "EntityNode",
    "Field",
    "FieldBreakdown",
    "FieldConstraints",
    "ForeignKeyRef",
    "Manifest",
    "ManifestSuggestion",
    "PathHop",
    "Relationship",
    "Severity",
    "TransitivePath",
    "TransitiveSuggestion",
    "UiMetadata",
    "UiMetadataCoverage",
    # Graph
    "build_domain_graph",
    "build_entity_nodes",
    "find_circular_dependencies",
    "find_orphan_entities",
    "get_related_entities",
    "infer_cardinality",
    # Checks and statistics
    "check_consistency",
    "compute_statistics",
    "get_field_breakdown",
    "get_ui_metadata_coverage",
    # Transitive suggestions
    "find_transitive_paths",
    "suggest_transitive_relationships",
    # Manifest
    "ManifestStore",
    "compute_entity_files_hash",
    "merge_suggestions",
    "suggestion_id",
]
