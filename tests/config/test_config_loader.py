# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the config loader, the entry point for all config loading in llmbench.

We test:
  1. Valid YAML loads into a frozen, correct config object
  2. Empty files and missing sections fall back to defaults
  3. Unknown fields raise ConfigValidationError (extra="forbid")
  4. Broken YAML and missing files raise ConfigLoadError
  5. Loaded config is truly immutable
"""

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from llmbench.config.exceptions import ConfigError, ConfigLoadError, ConfigValidationError
from llmbench.config.loader import load_config


class TestLoadValidConfig:
    def test_loads_minimal_valid_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.global_config.seed == 42
        assert config.global_config.log_level == "DEBUG"
        assert config.global_config.concurrency == 2
        assert config.bench.runs == 50
        assert config.bench.warmup == 2

    def test_missing_sections_use_defaults(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.validation.mode == "static"
        assert config.validation.recording_enabled is False
        assert config.adapters.enabled == ["python", "javascript"]
        assert config.bench.per_iteration_sampling is True

    def test_empty_file_means_all_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("", encoding="utf-8")

        config = load_config(config_file)
        assert config.global_config.seed == 42
        assert config.bench.runs == 1000

    def test_loads_every_section(self, tmp_path: Path) -> None:
        content = textwrap.dedent("""\
            global:
              seed: 7
              log_level: warning
            validation:
              mode: record-replay
              recording_enabled: true
              recordings_directory: "tmp/recordings"
              record_count: 10
            bench:
              enabled: false
              per_iteration_sampling: false
            adapters:
              enabled: [python]
              python_formatter: ["black", "-q", "-"]
        """)
        config_file = tmp_path / "full.yaml"
        config_file.write_text(content, encoding="utf-8")

        config = load_config(config_file)
        assert config.global_config.seed == 7
        assert config.global_config.log_level == "WARNING"
        assert config.validation.mode == "record-replay"
        assert config.validation.recording_enabled is True
        assert config.validation.record_count == 10
        assert config.bench.enabled is False
        assert config.adapters.enabled == ["python"]
        assert config.adapters.python_formatter == ["black", "-q", "-"]

    def test_json_config_loads_through_the_same_path(self, tmp_path: Path) -> None:
        config_file = tmp_path / "llmbench.json"
        config_file.write_text('{"validation": {"mode": "property-based"}}', encoding="utf-8")

        assert load_config(config_file).validation.mode == "property-based"


class TestValidationFailures:
    def test_unknown_field_raises(self, invalid_config_file: Path) -> None:
        with pytest.raises(ConfigValidationError):
            load_config(invalid_config_file)

    def test_unknown_mode_raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "mode.yaml"
        config_file.write_text("validation:\n  mode: fuzz\n", encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_error_message_names_the_file(self, invalid_config_file: Path) -> None:
        with pytest.raises(ConfigValidationError, match="invalid_config.yaml"):
            load_config(invalid_config_file)


class TestLoadFailures:
    def test_missing_file_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_directory_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not a file"):
            load_config(tmp_path)

    def test_broken_yaml_raises_load_error(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(broken_yaml_file)

    def test_non_mapping_top_level_raises_load_error(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="mapping"):
            load_config(config_file)

    def test_all_errors_share_a_base(self) -> None:
        assert issubclass(ConfigLoadError, ConfigError)
        assert issubclass(ConfigValidationError, ConfigError)


class TestImmutability:
    def test_loaded_config_is_frozen(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(ValidationError):
            config.global_config.seed = 999  # type: ignore[misc]
