"""Config module exports."""

from entitygraph.config.loader import get_entities_dir, get_manifest_path, load_config
from entitygraph.config.models import (
    EntitiesConfig,
    EntityGraphConfig,
    LoggingConfig,
    ManifestConfig,
    SuggesterConfig,
)

__all__ = [
    "load_config",
    "get_entities_dir",
    "get_manifest_path",
    "EntityGraphConfig",
    "EntitiesConfig",
    "LoggingConfig",
    "ManifestConfig",
    "SuggesterConfig",
]
