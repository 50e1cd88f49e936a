"""Domain statistics: pure reductions over the graph."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from entitygraph.analyzer.models import DomainStatistics, FieldBreakdown, UiMetadataCoverage

if TYPE_CHECKING:
    from entitygraph.analyzer.models import DomainGraph


def compute_statistics(graph: DomainGraph) -> DomainStatistics:
    entities = list(graph.entities.values())

    fields_by_type: Counter[str] = Counter()
    relationships_by_type: Counter[str] = Counter()
    for entity in entities:
        fields_by_type.update(f.type for f in entity.fields.values())
        relationships_by_type.update(r.type for r in entity.relationships.values())

    total_fields = sum(len(e.fields) for e in entities)
    return DomainStatistics(
        total_entities=len(entities),
        total_fields=total_fields,
        total_relationships=sum(len(e.relationships) for e in entities),
        fields_by_type=dict(fields_by_type),
        relationships_by_type=dict(relationships_by_type),
        entities_with_behaviors=sum(1 for e in entities if e.behaviors),
        average_fields_per_entity=total_fields / len(entities) if entities else 0.0,
    )


def get_field_breakdown(graph: DomainGraph) -> FieldBreakdown:
    """Count fields by storage property."""
    fields = [f for e in graph.entities.values() for f in e.fields.values()]
    return FieldBreakdown(
        required=sum(f.required for f in fields),
        nullable=sum(f.nullable for f in fields),
        indexed=sum(f.index for f in fields),
        unique=sum(f.unique for f in fields),
        with_foreign_key=sum(f.foreign_key is not None for f in fields),
        with_constraints=sum(f.constraints.has_any for f in fields),
    )


def get_ui_metadata_coverage(graph: DomainGraph) -> UiMetadataCoverage:
    """Count fields carrying each kind of UI metadata."""
    uis = [f.ui for e in graph.entities.values() for f in e.fields.values()]
    return UiMetadataCoverage(
        with_label=sum(bool(ui.label) for ui in uis),
        with_type=sum(bool(ui.type) for ui in uis),
        with_group=sum(bool(ui.group) for ui in uis),
        with_importance=sum(bool(ui.importance) for ui in uis),
        total=len(uis),
    )
