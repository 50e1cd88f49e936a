"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (ENTITYGRAPH__SECTION__KEY)
3. Project YAML (<project_root>/entitygraph.yaml)
4. Global YAML (~/.config/entitygraph/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    ENTITYGRAPH__<SECTION>__<KEY>=<VALUE>

Examples:
    ENTITYGRAPH__LOGGING__LEVEL=DEBUG
    ENTITYGRAPH__MANIFEST__DIRECTORY=.cache/codegen
    ENTITYGRAPH__SUGGESTER__MAX_DEPTH=2
"""

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from entitygraph.config.constants import (
    DEFAULT_ENTITIES_DIR,
    DEFAULT_MANIFEST_DIR,
    DEFAULT_MANIFEST_FILE,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        ENTITYGRAPH__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs per-step counts of every analysis pass.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class EntitiesConfig(BaseModel):
    """Entity definition location.

    Env vars:
        ENTITYGRAPH__ENTITIES__DIRECTORY: Entity YAML directory (relative to project root)
    """

    directory: str = Field(
        default=DEFAULT_ENTITIES_DIR,
        description="Directory holding entity definition YAML files.",
    )


class ManifestConfig(BaseModel):
    """Manifest persistence configuration.

    Env vars:
        ENTITYGRAPH__MANIFEST__DIRECTORY: Manifest directory (relative to project root)
        ENTITYGRAPH__MANIFEST__FILE_NAME: Manifest file name
    """

    directory: str = Field(
        default=DEFAULT_MANIFEST_DIR,
        description="Directory the manifest is written to. Relative paths resolve "
        "against the project root.",
    )
    file_name: str = Field(
        default=DEFAULT_MANIFEST_FILE,
        description="Manifest file name.",
    )

    @field_validator("file_name")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        if not v or Path(v).name != v:
            raise ValueError(f"Manifest file name must be a bare file name: {v!r}")
        return v


class SuggesterConfig(BaseModel):
    """Transitive relationship suggester configuration.

    Env vars:
        ENTITYGRAPH__SUGGESTER__MAX_DEPTH: Maximum hops explored per source entity
    """

    max_depth: int = Field(
        default=3,
        ge=1,
        description="Maximum hop count explored per source entity. Paths need at "
        "least 2 hops, so 1 disables suggestions.",
    )
    exclude_entities: list[str] = Field(
        default_factory=lambda: ["workspace", "tenant"],
        description="Entities never used as a path endpoint or intermediary.",
    )
    exclude_patterns: list[str] = Field(
        default_factory=lambda: [r"_audit$", r"_log$", r"_history$"],
        description="Regexes; matching entity names are excluded like exclude_entities.",
    )

    @field_validator("exclude_patterns")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid exclude pattern {pattern!r}: {e}") from e
        return v

    def compiled_patterns(self) -> list[re.Pattern[str]]:
        return [re.compile(p) for p in self.exclude_patterns]


class EntityGraphConfig(BaseModel):
    """Root configuration for entitygraph.

    All settings can be configured via:
    1. Environment variables: ENTITYGRAPH__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    entities: EntitiesConfig = Field(default_factory=EntitiesConfig)
    manifest: ManifestConfig = Field(default_factory=ManifestConfig)
    suggester: SuggesterConfig = Field(default_factory=SuggesterConfig)
