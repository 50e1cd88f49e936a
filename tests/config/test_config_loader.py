"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence and errors
- get_manifest_path() / get_entities_dir()
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from entitygraph.config.loader import (
    GLOBAL_CONFIG_PATH,
    _deep_merge,
    _load_yaml,
    get_entities_dir,
    get_manifest_path,
    load_config,
)
from entitygraph.config.models import EntityGraphConfig, ManifestConfig, SuggesterConfig
from entitygraph.core.errors import ConfigError, ErrorCode


@pytest.fixture
def no_global_config(tmp_path: Path) -> Any:
    with patch("entitygraph.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
        yield


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("logging:\n  level: DEBUG\n")

        assert _load_yaml(yaml_file) == {"logging": {"level": "DEBUG"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        """Returns empty dict for empty file."""
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        """A top-level list is not a config."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"suggester": {"max_depth": 3, "exclude_entities": ["tenant"]}}
        override = {"suggester": {"max_depth": 2}}
        assert _deep_merge(base, override) == {
            "suggester": {"max_depth": 2, "exclude_entities": ["tenant"]}
        }

    def test_override_replaces_non_dict(self) -> None:
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}
        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


@pytest.mark.usefixtures("no_global_config")
class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_default_config_when_no_files(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)

        assert isinstance(config, EntityGraphConfig)
        assert config.logging.level == "INFO"
        assert config.manifest.directory == ".codegen"
        assert config.suggester.max_depth == 3

    def test_loads_project_config(self, tmp_path: Path) -> None:
        """Loads config from entitygraph.yaml in the project root."""
        (tmp_path / "entitygraph.yaml").write_text(
            "suggester:\n  max_depth: 2\nmanifest:\n  directory: .meta\n"
        )

        config = load_config(tmp_path)

        assert config.suggester.max_depth == 2
        assert config.manifest.directory == ".meta"
        assert config.manifest.file_name == "manifest.json"

    def test_project_overrides_global(self, tmp_path: Path) -> None:
        global_file = tmp_path / "global.yaml"
        global_file.write_text("logging:\n  level: DEBUG\nsuggester:\n  max_depth: 5\n")
        (tmp_path / "entitygraph.yaml").write_text("suggester:\n  max_depth: 2\n")

        with patch("entitygraph.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(tmp_path)

        assert config.logging.level == "DEBUG"
        assert config.suggester.max_depth == 2

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        """Environment variables override YAML config."""
        (tmp_path / "entitygraph.yaml").write_text("suggester:\n  max_depth: 2\n")

        with patch.dict(os.environ, {"ENTITYGRAPH__SUGGESTER__MAX_DEPTH": "4"}):
            config = load_config(tmp_path)

        assert config.suggester.max_depth == 4

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        """Keyword arguments override everything."""
        with patch.dict(os.environ, {"ENTITYGRAPH__SUGGESTER__MAX_DEPTH": "4"}):
            config = load_config(tmp_path, suggester=SuggesterConfig(max_depth=1))

        assert config.suggester.max_depth == 1

    def test_explicit_config_path_used(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.yaml"
        custom.write_text("entities:\n  directory: defs\n")

        config = load_config(tmp_path, config_path=custom)

        assert config.entities.directory == "defs"

    def test_missing_explicit_config_path_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path, config_path=tmp_path / "missing.yaml")
        assert exc_info.value.code == ErrorCode.CONFIG_FILE_NOT_FOUND

    @pytest.mark.parametrize(
        "content",
        [
            "suggester:\n  max_depth: 0\n",
            "suggester:\n  exclude_patterns: ['(']\n",
            "manifest:\n  file_name: nested/manifest.json\n",
        ],
    )
    def test_raises_config_error_for_invalid_value(self, tmp_path: Path, content: str) -> None:
        (tmp_path / "entitygraph.yaml").write_text(content)

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE


class TestProjectPaths:
    def test_default_manifest_path(self, tmp_path: Path) -> None:
        config = EntityGraphConfig()
        assert get_manifest_path(tmp_path, config) == tmp_path / ".codegen" / "manifest.json"

    def test_custom_manifest_path(self, tmp_path: Path) -> None:
        config = EntityGraphConfig(manifest=ManifestConfig(directory="build", file_name="g.json"))
        assert get_manifest_path(tmp_path, config) == tmp_path / "build" / "g.json"

    def test_entities_dir_loaded_from_project(
        self, tmp_path: Path, no_global_config: None
    ) -> None:
        (tmp_path / "entitygraph.yaml").write_text("entities:\n  directory: schema/entities\n")
        assert get_entities_dir(tmp_path) == tmp_path / "schema" / "entities"


class TestGlobalConfigPath:
    def test_is_in_user_config(self) -> None:
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert "entitygraph" in str(GLOBAL_CONFIG_PATH)
