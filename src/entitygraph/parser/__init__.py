"""Parser module - entity definition files to the analyzer's entity model.

This module provides:
- Schema: pydantic models validating one entity YAML file
- Loading: per-file load with errors collected as issues
- Resolution: cross-entity reference checks, marks relationships resolved
"""

from entitygraph.parser.discovery import discover_entity_files
from entitygraph.parser.loader import (
    LoadEntitiesResult,
    LoadResult,
    load_entities,
    load_entity_file,
    to_entity,
)
from entitygraph.parser.resolver import resolve_references
from entitygraph.parser.schema import (
    BehaviorSpec,
    EntityConfig,
    EntityDefinition,
    FieldDefinition,
    RelationshipDefinition,
)

__all__ = [
    # Schema
    "BehaviorSpec",
    "EntityConfig",
    "EntityDefinition",
    "FieldDefinition",
    "RelationshipDefinition",
    # Loading
    "LoadEntitiesResult",
    "LoadResult",
    "discover_entity_files",
    "load_entities",
    "load_entity_file",
    "to_entity",
    # Resolution
    "resolve_references",
]
