"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (ENTITYGRAPH__SECTION__KEY)
3. Project config (<project_root>/entitygraph.yaml)
4. Global config (~/.config/entitygraph/config.yaml)
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from entitygraph.config.constants import PROJECT_CONFIG_FILE
from entitygraph.config.models import (
    EntitiesConfig,
    EntityGraphConfig,
    LoggingConfig,
    ManifestConfig,
    SuggesterConfig,
)
from entitygraph.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/entitygraph/config.yaml").expanduser()


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source."""

    class EntityGraphSettings(BaseSettings):
        """Root config. Env vars: ENTITYGRAPH__LOGGING__LEVEL, ENTITYGRAPH__MANIFEST__DIRECTORY, etc."""

        model_config = SettingsConfigDict(
            env_prefix="ENTITYGRAPH__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        entities: EntitiesConfig = EntitiesConfig()
        manifest: ManifestConfig = ManifestConfig()
        suggester: SuggesterConfig = SuggesterConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return EntityGraphSettings


def load_config(
    project_root: Path | None = None,
    *,
    config_path: Path | None = None,
    **kwargs: Any,
) -> EntityGraphConfig:
    """Load config: defaults < global yaml < project yaml < env vars < kwargs.

    Args:
        project_root: Project root to load entitygraph.yaml from.
                      Defaults to current working directory.
        config_path: Explicit project config file. Must exist when given.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On a missing explicit config file, invalid YAML syntax
            or validation errors.
    """
    project_root = project_root or Path.cwd()

    if config_path is not None:
        if not config_path.exists():
            raise ConfigError.file_not_found(str(config_path))
        project_config = _load_yaml(config_path)
    else:
        project_config = _load_yaml(project_root / PROJECT_CONFIG_FILE)

    yaml_config = _deep_merge(_load_yaml(GLOBAL_CONFIG_PATH), project_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return EntityGraphConfig.model_validate(settings.model_dump())


def get_manifest_path(project_root: Path, config: EntityGraphConfig | None = None) -> Path:
    """Get the manifest file path for a project, respecting config.manifest."""
    manifest = (config or load_config(project_root)).manifest
    return project_root / manifest.directory / manifest.file_name


def get_entities_dir(project_root: Path, config: EntityGraphConfig | None = None) -> Path:
    """Get the entity definition directory for a project."""
    entities = (config or load_config(project_root)).entities
    return project_root / entities.directory
