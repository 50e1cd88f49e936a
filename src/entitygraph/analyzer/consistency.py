"""Consistency checks over the domain graph.

Checks performed:
- Missing standard fields (id, created_at / timestamps behavior)
- Relationships whose foreign key field is missing on either side
- Naming conventions for entities, fields and relationships
- Missing indexes on filterable and foreign key fields
- Missing UI metadata
- Orphan entities and circular dependencies
- Missing inverse relationships

No rule here reports ``error``. Only loading and reference resolution can
make an analysis invalid.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from entitygraph.analyzer.graph import find_circular_dependencies, find_orphan_entities
from entitygraph.analyzer.models import AnalysisIssue, Severity
from entitygraph.config.constants import SYSTEM_FIELDS

if TYPE_CHECKING:
    from entitygraph.analyzer.models import DomainGraph, Entity

_UPPER = re.compile(r"([A-Z])")


def to_snake_case(name: str) -> str:
    """``accountOwner`` -> ``account_owner``."""
    return _UPPER.sub(r"_\1", name).lower().removeprefix("_")


def check_consistency(graph: DomainGraph) -> list[AnalysisIssue]:
    """Run every check. Entity checks run in graph order, then graph checks."""
    issues: list[AnalysisIssue] = []

    for entity in graph.entities.values():
        issues.extend(_check_standard_fields(entity))
        issues.extend(_check_relationship_keys(entity, graph))
        issues.extend(_check_naming(entity))
        issues.extend(_check_indexes(entity))
        issues.extend(_check_ui_metadata(entity))

    issues.extend(_check_orphans(graph))
    issues.extend(_check_cycles(graph))
    issues.extend(_check_missing_inverses(graph))
    return issues


def _check_standard_fields(entity: Entity) -> list[AnalysisIssue]:
    issues: list[AnalysisIssue] = []

    if "id" not in entity.fields:
        issues.append(
            AnalysisIssue(
                severity=Severity.INFO,
                type="missing_id",
                entity=entity.name,
                message='Entity missing standard "id" field',
                suggestion='Add an "id" field with type "uuid"',
            )
        )

    if "created_at" not in entity.fields and "timestamps" not in entity.behaviors:
        issues.append(
            AnalysisIssue(
                severity=Severity.INFO,
                type="missing_timestamps",
                entity=entity.name,
                message='Entity missing "created_at" field and "timestamps" behavior',
                suggestion='Add "timestamps" to behaviors or add created_at/updated_at fields',
            )
        )

    return issues


def _check_relationship_keys(entity: Entity, graph: DomainGraph) -> list[AnalysisIssue]:
    issues: list[AnalysisIssue] = []

    for rel_name, rel in entity.relationships.items():
        if rel.type == "belongs_to" and rel.foreign_key not in entity.fields:
            issues.append(
                AnalysisIssue(
                    severity=Severity.WARNING,
                    type="missing_fk_field",
                    entity=entity.name,
                    field=rel_name,
                    message=f'Relationship "{rel_name}" references foreign key '
                    f'"{rel.foreign_key}" but field doesn\'t exist',
                    suggestion=f'Add field "{rel.foreign_key}" with foreign_key reference',
                )
            )

        if rel.type in ("has_many", "has_one"):
            target = graph.entities.get(rel.target)
            if target is not None and rel.foreign_key not in target.fields:
                issues.append(
                    AnalysisIssue(
                        severity=Severity.WARNING,
                        type="missing_target_fk",
                        entity=entity.name,
                        field=rel_name,
                        message=f'Relationship "{rel_name}" expects foreign key '
                        f'"{rel.foreign_key}" on "{rel.target}" but field doesn\'t exist',
                        suggestion=f'Add field "{rel.foreign_key}" to "{rel.target}" entity',
                    )
                )

    return issues


def _check_naming(entity: Entity) -> list[AnalysisIssue]:
    issues: list[AnalysisIssue] = []

    if entity.name != entity.name.lower():
        issues.append(
            AnalysisIssue(
                severity=Severity.WARNING,
                type="naming_convention",
                entity=entity.name,
                message="Entity name should be lowercase",
                suggestion=f'Use "{to_snake_case(entity.name)}"',
            )
        )

    for field_name in entity.fields:
        if field_name != field_name.lower():
            issues.append(
                AnalysisIssue(
                    severity=Severity.WARNING,
                    type="naming_convention",
                    entity=entity.name,
                    field=field_name,
                    message="Field name should be snake_case",
                    suggestion=f'Use "{to_snake_case(field_name)}"',
                )
            )

    for rel_name in entity.relationships:
        if rel_name != rel_name.lower():
            issues.append(
                AnalysisIssue(
                    severity=Severity.WARNING,
                    type="naming_convention",
                    entity=entity.name,
                    field=rel_name,
                    message="Relationship name should be snake_case",
                    suggestion=f'Use "{to_snake_case(rel_name)}"',
                )
            )

    return issues


def _check_indexes(entity: Entity) -> list[AnalysisIssue]:
    issues: list[AnalysisIssue] = []

    for field_name, field in entity.fields.items():
        indexed = field.index or field.unique

        if field.ui.filterable and not indexed:
            issues.append(
                AnalysisIssue(
                    severity=Severity.WARNING,
                    type="missing_index",
                    entity=entity.name,
                    field=field_name,
                    message=f'Field "{field_name}" is filterable but has no index',
                    suggestion='Add "index: true" to improve query performance',
                )
            )

        # Softer than the filterable case: join performance only
        if field.foreign_key is not None and not indexed:
            issues.append(
                AnalysisIssue(
                    severity=Severity.INFO,
                    type="missing_fk_index",
                    entity=entity.name,
                    field=field_name,
                    message=f'Foreign key field "{field_name}" has no index',
                    suggestion='Add "index: true" for better join performance',
                )
            )

    return issues


def _check_ui_metadata(entity: Entity) -> list[AnalysisIssue]:
    issues: list[AnalysisIssue] = []

    for field_name, field in entity.fields.items():
        if field_name in SYSTEM_FIELDS:
            continue
        ui = field.ui
        if ui.label is None and ui.type is None and ui.group is None:
            issues.append(
                AnalysisIssue(
                    severity=Severity.INFO,
                    type="missing_ui_metadata",
                    entity=entity.name,
                    field=field_name,
                    message=f'Field "{field_name}" has no UI metadata',
                    suggestion="Add ui_label, ui_type, ui_group for better admin panel display",
                )
            )

    return issues


def _check_orphans(graph: DomainGraph) -> list[AnalysisIssue]:
    return [
        AnalysisIssue(
            severity=Severity.INFO,
            type="orphan_entity",
            entity=name,
            message=f'Entity "{name}" has no relationships to other entities',
            suggestion="Consider if this entity should be related to others",
        )
        for name in find_orphan_entities(graph)
    ]


def _check_cycles(graph: DomainGraph) -> list[AnalysisIssue]:
    return [
        AnalysisIssue(
            severity=Severity.INFO,
            type="circular_dependency",
            entity=cycle[0],
            message=f"Circular reference detected: {' -> '.join(cycle)}",
            suggestion="Verify this is intentional (e.g., self-referential hierarchy)",
        )
        for cycle in find_circular_dependencies(graph)
    ]


def _check_missing_inverses(graph: DomainGraph) -> list[AnalysisIssue]:
    issues: list[AnalysisIssue] = []

    for edge in graph.edges:
        target = graph.entities.get(edge.target)
        if target is None:
            continue

        has_inverse = any(rel.target == edge.source for rel in target.relationships.values())
        # A has_many on the other side already serves as a belongs_to's inverse
        if has_inverse or edge.relationship.type == "belongs_to":
            continue

        rel_name = edge.relationship.name
        issues.append(
            AnalysisIssue(
                severity=Severity.INFO,
                type="missing_inverse",
                entity=edge.source,
                field=rel_name,
                message=f'Relationship "{rel_name}" to "{edge.target}" has no inverse '
                "defined on target",
                suggestion=f'Add inverse relationship on "{edge.target}" pointing back to '
                f'"{edge.source}"',
            )
        )

    return issues
