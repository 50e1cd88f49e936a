"""Data models for domain analysis.

Single source of truth for the analyzer's types:
- Entity model: entities, fields, relationships (plain dataclasses)
- Domain graph: name-keyed entity map plus directed edge records
- Analysis output: issues, statistics, transitive paths
- Manifest: the persisted JSON document (pydantic, camelCase on disk)

Edges reference entities by name, never by object, so the graph holds no
cyclic object references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from pydantic.alias_generators import to_camel

from entitygraph.config.constants import MANIFEST_VERSION

RelationshipType = Literal["belongs_to", "has_many", "has_one"]
Cardinality = Literal["1:1", "1:N", "N:1"]
FolderStructure = Literal["nested", "flat"]
SuggestionStatus = Literal["pending", "accepted", "skipped"]
ResolvedStatus = Literal["accepted", "skipped"]


# ============================================================================
# ENUMS
# ============================================================================


class Severity(str, Enum):
    """Issue severity. Only ``ERROR`` makes an analysis invalid."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


# ============================================================================
# ENTITY MODEL
# ============================================================================


@dataclass(frozen=True, slots=True)
class ForeignKeyRef:
    """Field-level foreign key target, e.g. ``accounts.id``."""

    table: str
    column: str = "id"

    @classmethod
    def parse(cls, reference: str) -> ForeignKeyRef:
        table, _, column = reference.partition(".")
        return cls(table=table, column=column or "id")


@dataclass(frozen=True, slots=True)
class FieldConstraints:
    min_length: int | None = None
    max_length: int | None = None
    min: float | None = None
    max: float | None = None

    @property
    def has_any(self) -> bool:
        return any(v is not None for v in (self.min_length, self.max_length, self.min, self.max))


@dataclass(frozen=True, slots=True)
class UiMetadata:
    """Admin-panel hints attached to a field."""

    label: str | None = None
    type: str | None = None
    importance: str | None = None
    group: str | None = None
    sortable: bool | None = None
    filterable: bool | None = None
    visible: bool | None = None


@dataclass(frozen=True, slots=True)
class Field:
    """A declared entity field.

    ``required`` means a value must be supplied on creation; ``nullable``
    means storage may hold no value. A field cannot be both.
    """

    name: str
    type: str
    required: bool = False
    nullable: bool = False
    unique: bool = False
    index: bool = False
    foreign_key: ForeignKeyRef | None = None
    choices: tuple[str, ...] | None = None
    constraints: FieldConstraints = field(default_factory=FieldConstraints)
    ui: UiMetadata = field(default_factory=UiMetadata)

    def __post_init__(self) -> None:
        if self.required and self.nullable:
            raise ValueError(
                f"Field '{self.name}' cannot be both required and nullable: "
                "a required field cannot be null"
            )


@dataclass(slots=True)
class Relationship:
    """A declared relationship, referencing its target entity by name.

    ``resolved`` is flipped by reference resolution once the target is known
    to exist. ``through`` marks a pre-declared transitive relationship.
    """

    name: str
    type: RelationshipType
    target: str
    foreign_key: str
    inverse: str | None = None
    through: str | None = None
    resolved: bool = False


@dataclass(slots=True)
class Entity:
    """A declared domain entity, as loaded from one definition file."""

    name: str
    plural: str
    table: str
    folder_structure: FolderStructure = "nested"
    fields: dict[str, Field] = field(default_factory=dict)
    relationships: dict[str, Relationship] = field(default_factory=dict)
    behaviors: list[str] = field(default_factory=list)
    source_path: str = ""


# ============================================================================
# DOMAIN GRAPH
# ============================================================================


@dataclass(slots=True)
class Edge:
    """One directed relationship instance between two entities."""

    source: str
    target: str
    relationship: Relationship
    cardinality: Cardinality
    bidirectional: bool = False


@dataclass(slots=True)
class DomainGraph:
    entities: dict[str, Entity] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class EntityNode:
    """Graph node for visualization."""

    id: str
    name: str
    entity: Entity


# ============================================================================
# ANALYSIS OUTPUT
# ============================================================================


@dataclass(frozen=True, slots=True)
class AnalysisIssue:
    """A single finding. One flat record for every kind of issue."""

    severity: Severity
    type: str
    message: str
    entity: str | None = None
    field: str | None = None
    path: str | None = None
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "severity": self.severity.value,
            "type": self.type,
            "message": self.message,
        }
        for key in ("entity", "field", "path", "suggestion"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True, slots=True)
class DomainStatistics:
    total_entities: int
    total_fields: int
    total_relationships: int
    fields_by_type: dict[str, int]
    relationships_by_type: dict[str, int]
    entities_with_behaviors: int
    average_fields_per_entity: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalEntities": self.total_entities,
            "totalFields": self.total_fields,
            "totalRelationships": self.total_relationships,
            "fieldsByType": dict(self.fields_by_type),
            "relationshipsByType": dict(self.relationships_by_type),
            "entitiesWithBehaviors": self.entities_with_behaviors,
            "averageFieldsPerEntity": self.average_fields_per_entity,
        }


@dataclass(frozen=True, slots=True)
class FieldBreakdown:
    required: int = 0
    nullable: int = 0
    indexed: int = 0
    unique: int = 0
    with_foreign_key: int = 0
    with_constraints: int = 0


@dataclass(frozen=True, slots=True)
class UiMetadataCoverage:
    with_label: int = 0
    with_type: int = 0
    with_group: int = 0
    with_importance: int = 0
    total: int = 0


@dataclass(slots=True)
class AnalysisResult:
    """Everything one analysis pass produces."""

    entities: list[Entity]
    graph: DomainGraph
    issues: list[AnalysisIssue]
    statistics: DomainStatistics

    @property
    def is_valid(self) -> bool:
        return not any(i.severity is Severity.ERROR for i in self.issues)

    def issues_by_severity(self, severity: Severity) -> list[AnalysisIssue]:
        return [i for i in self.issues if i.severity is severity]

    def summary(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "entities": self.statistics.total_entities,
            "fields": self.statistics.total_fields,
            "relationships": self.statistics.total_relationships,
            "errors": len(self.issues_by_severity(Severity.ERROR)),
            "warnings": len(self.issues_by_severity(Severity.WARNING)),
            "info": len(self.issues_by_severity(Severity.INFO)),
        }


# ============================================================================
# TRANSITIVE PATHS
# ============================================================================


@dataclass(frozen=True, slots=True)
class PathHop:
    via: str  # entity traversed from
    relationship: str  # relationship name used at this hop
    foreign_key: str


@dataclass(frozen=True, slots=True)
class TransitivePath:
    source: str
    target: str
    hops: tuple[PathHop, ...]
    suggested_name: str
    through_path: str  # e.g. "meetings.action_items"
    yaml_snippet: str


@dataclass(frozen=True, slots=True)
class TransitiveSuggestion:
    """An ``info`` issue plus the path it proposes."""

    issue: AnalysisIssue
    path: TransitivePath


# ============================================================================
# MANIFEST (persisted, camelCase JSON)
# ============================================================================


class _ManifestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ManifestForeignKey(_ManifestModel):
    table: str
    column: str


class ManifestField(_ManifestModel):
    name: str
    type: str
    required: bool
    nullable: bool
    unique: bool
    index: bool
    foreign_key: ManifestForeignKey | None = None
    choices: list[str] | None = None


class ManifestRelationship(_ManifestModel):
    type: RelationshipType
    target: str
    foreign_key: str
    through: str | None = None
    inverse: str | None = None


class ManifestEntity(_ManifestModel):
    """Lightweight entity projection; UI metadata and constraints are omitted."""

    source_path: str
    table: str
    plural: str
    fields: dict[str, ManifestField] = PydanticField(default_factory=dict)
    relationships: dict[str, ManifestRelationship] = PydanticField(default_factory=dict)
    behaviors: list[str] = PydanticField(default_factory=list)


class ManifestEdge(_ManifestModel):
    source: str = PydanticField(alias="from")
    target: str = PydanticField(alias="to")
    relationship: str
    cardinality: Cardinality
    bidirectional: bool


class ManifestGraph(_ManifestModel):
    edges: list[ManifestEdge] = PydanticField(default_factory=list)
    orphans: list[str] = PydanticField(default_factory=list)
    cycles: list[list[str]] = PydanticField(default_factory=list)


class ManifestSuggestion(_ManifestModel):
    """A transitive suggestion with its review lifecycle.

    Identity is ``"{source}->{target}"``. Timestamps are ISO-8601 strings.
    """

    id: str
    source: str
    target: str
    through_path: str
    suggested_name: str
    yaml_snippet: str
    status: SuggestionStatus = "pending"
    detected_at: str
    resolved_at: str | None = None


class ManifestSuggestions(_ManifestModel):
    transitive: list[ManifestSuggestion] = PydanticField(default_factory=list)


class ManifestStatistics(_ManifestModel):
    total_entities: int = 0
    total_fields: int = 0
    total_relationships: int = 0
    transitive_paths_detected: int = 0


class Manifest(_ManifestModel):
    version: int = MANIFEST_VERSION
    generated_at: str
    entity_files_hash: str
    entities: dict[str, ManifestEntity] = PydanticField(default_factory=dict)
    graph: ManifestGraph = PydanticField(default_factory=ManifestGraph)
    suggestions: ManifestSuggestions = PydanticField(default_factory=ManifestSuggestions)
    statistics: ManifestStatistics = PydanticField(default_factory=ManifestStatistics)
