"""Entity loading from YAML definition files.

Each file is loaded and validated on its own. A file that fails degrades to
"absent" and contributes error issues; the remaining files still load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from entitygraph.analyzer.models import (
    AnalysisIssue,
    Entity,
    Field,
    FieldConstraints,
    ForeignKeyRef,
    Relationship,
    Severity,
    UiMetadata,
)
from entitygraph.parser.discovery import discover_entity_files
from entitygraph.parser.schema import EntityDefinition

logger = structlog.get_logger()


@dataclass(slots=True)
class LoadResult:
    """Outcome of loading one file: a definition, or an error with details."""

    file_path: str
    definition: EntityDefinition | None = None
    error: str | None = None
    details: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.definition is not None


@dataclass(slots=True)
class LoadEntitiesResult:
    entities: list[Entity] = field(default_factory=list)
    issues: list[AnalysisIssue] = field(default_factory=list)


def _format_validation_errors(error: ValidationError) -> list[str]:
    details = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err["loc"])
        location = f"at '{loc}'" if loc else "at root"
        details.append(f"{err['msg']} {location}")
    return details


def load_entity_file(path: Path) -> LoadResult:
    """Load and validate a single entity definition file."""
    file_path = str(path)

    if not path.exists():
        return LoadResult(file_path, error=f"File not found: {file_path}")

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return LoadResult(file_path, error=f"Failed to read file: {file_path}", details=[str(e)])

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        return LoadResult(
            file_path, error=f"Invalid YAML syntax in {file_path}", details=[str(e)]
        )

    try:
        definition = EntityDefinition.model_validate(data)
    except ValidationError as e:
        return LoadResult(
            file_path,
            error=f"Validation failed for {file_path}",
            details=_format_validation_errors(e),
        )

    return LoadResult(file_path, definition=definition)


def to_entity(definition: EntityDefinition, source_path: str) -> Entity:
    """Project a validated definition onto the analyzer's entity model."""
    fields = {
        name: Field(
            name=name,
            type=fd.type,
            required=fd.required,
            nullable=fd.nullable,
            unique=bool(fd.unique),
            index=bool(fd.index),
            foreign_key=ForeignKeyRef.parse(fd.foreign_key) if fd.foreign_key else None,
            choices=tuple(fd.choices) if fd.choices is not None else None,
            constraints=FieldConstraints(
                min_length=fd.min_length,
                max_length=fd.max_length,
                min=fd.min,
                max=fd.max,
            ),
            ui=UiMetadata(
                label=fd.ui_label,
                type=fd.ui_type,
                importance=fd.ui_importance,
                group=fd.ui_group,
                sortable=fd.ui_sortable,
                filterable=fd.ui_filterable,
                visible=fd.ui_visible,
            ),
        )
        for name, fd in definition.fields.items()
    }

    relationships = {
        name: Relationship(
            name=name,
            type=rd.type,
            target=rd.target,
            foreign_key=rd.foreign_key,
            inverse=rd.inverse,
            through=rd.through,
        )
        for name, rd in (definition.relationships or {}).items()
    }

    config = definition.entity
    return Entity(
        name=config.name,
        plural=config.plural,
        table=config.table,
        folder_structure=config.folder_structure or "nested",
        fields=fields,
        relationships=relationships,
        behaviors=definition.behavior_names(),
        source_path=source_path,
    )


def _load_error_issues(result: LoadResult) -> list[AnalysisIssue]:
    issues = [
        AnalysisIssue(
            severity=Severity.ERROR,
            type="parse_error",
            message=result.error or f"Failed to load {result.file_path}",
            path=result.file_path,
        )
    ]
    issues.extend(
        AnalysisIssue(
            severity=Severity.ERROR,
            type="schema_error",
            message=detail,
            path=result.file_path,
        )
        for detail in result.details
    )
    return issues


def load_entities(entities_dir: Path) -> LoadEntitiesResult:
    """Load every entity definition file in ``entities_dir``."""
    result = LoadEntitiesResult()
    resolved_dir = entities_dir.resolve()

    if not resolved_dir.is_dir():
        result.issues.append(
            AnalysisIssue(
                severity=Severity.ERROR,
                type="parse_error",
                message=f"Failed to read directory: {resolved_dir}",
                path=str(resolved_dir),
            )
        )
        return result

    files = discover_entity_files(resolved_dir)
    if not files:
        result.issues.append(
            AnalysisIssue(
                severity=Severity.WARNING,
                type="no_files",
                message=f"No YAML files found in directory: {resolved_dir}",
                path=str(resolved_dir),
            )
        )
        return result

    for path in files:
        loaded = load_entity_file(path)
        if loaded.definition is not None:
            result.entities.append(to_entity(loaded.definition, loaded.file_path))
        else:
            logger.debug("entity_file_rejected", path=loaded.file_path, error=loaded.error)
            result.issues.extend(_load_error_issues(loaded))

    logger.debug("entities_loaded", loaded=len(result.entities), files=len(files))
    return result
