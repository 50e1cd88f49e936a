"""Core module exports."""

from entitygraph.core.errors import (
    ConfigError,
    EntityGraphError,
    ErrorCode,
    ManifestError,
)
from entitygraph.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "EntityGraphError",
    "ConfigError",
    "ErrorCode",
    "ManifestError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
