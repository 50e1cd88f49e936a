"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are file-format versions, naming conventions, and implementation details.

For configurable values, see models.py (ManifestConfig, SuggesterConfig, etc.).
"""

# =============================================================================
# Manifest
# =============================================================================

MANIFEST_VERSION = 1
"""Manifest schema version. Bump on any incompatible change to its shape."""

DEFAULT_MANIFEST_DIR = ".codegen"
"""Manifest directory, relative to the project root."""

DEFAULT_MANIFEST_FILE = "manifest.json"
"""Manifest file name inside the manifest directory."""

SUGGESTION_ID_SEPARATOR = "->"
"""Joins source and target entity names into a stable suggestion id."""

# =============================================================================
# Entity definitions
# =============================================================================

DEFAULT_ENTITIES_DIR = "entities"
"""Entity definition directory, relative to the project root."""

ENTITY_FILE_SUFFIXES = (".yaml", ".yml")
"""File suffixes recognized as entity definitions."""

SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at", "deleted_at", "tenant_id"})
"""Fields managed by the platform. These never need UI metadata."""

# =============================================================================
# Config files
# =============================================================================

PROJECT_CONFIG_FILE = "entitygraph.yaml"
"""Project-level config file name, looked up in the project root."""
