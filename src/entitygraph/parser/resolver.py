"""Cross-entity reference resolution.

Marks relationships whose target entity exists as ``resolved``; the graph
builder only turns resolved relationships into edges.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from entitygraph.analyzer.models import AnalysisIssue, Severity

if TYPE_CHECKING:
    from entitygraph.analyzer.models import Entity


def resolve_references(entities: list[Entity]) -> list[AnalysisIssue]:
    """Resolve relationship targets and foreign key tables.

    Reports duplicate entity names and unknown relationship targets as
    errors, unknown foreign key tables as warnings.
    """
    issues: list[AnalysisIssue] = []
    by_name: dict[str, Entity] = {}

    for entity in entities:
        if entity.name in by_name:
            issues.append(
                AnalysisIssue(
                    severity=Severity.ERROR,
                    type="duplicate_entity",
                    entity=entity.name,
                    message=f"Duplicate entity name: {entity.name}",
                    path=entity.source_path,
                )
            )
        by_name[entity.name] = entity

    tables = {e.table for e in entities}

    for entity in entities:
        for rel_name, rel in entity.relationships.items():
            if rel.target in by_name:
                rel.resolved = True
                continue
            issues.append(
                AnalysisIssue(
                    severity=Severity.ERROR,
                    type="missing_target",
                    entity=entity.name,
                    field=rel_name,
                    message=f"Relationship '{rel_name}' references unknown entity '{rel.target}'",
                    path=entity.source_path,
                    suggestion=f"Define entity '{rel.target}' or fix the target name",
                )
            )

        for field_name, f in entity.fields.items():
            if f.foreign_key is None or f.foreign_key.table in tables:
                continue
            issues.append(
                AnalysisIssue(
                    severity=Severity.WARNING,
                    type="missing_fk_target",
                    entity=entity.name,
                    field=field_name,
                    message=f"Foreign key references unknown table '{f.foreign_key.table}'",
                    path=entity.source_path,
                    suggestion=f"Define entity with table '{f.foreign_key.table}' "
                    "or fix the foreign_key reference",
                )
            )

    return issues
