# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader: YAML on disk → validated, frozen LLMBenchConfig.

The pipeline is linear: read the file, parse it as YAML into a dict, hand
the dict to pydantic, return the frozen result. Any failure stops here with
an error that names the file. There are no fallbacks. A broken config should
stop the run before a single child process starts.

JSON is valid YAML, so `llmbench.json` config files load through the same
path.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from llmbench.config.exceptions import ConfigLoadError, ConfigValidationError
from llmbench.config.schema import LLMBenchConfig


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed mapping.

    An empty file is treated as an empty mapping, which means "all
    defaults". Anything other than a mapping at the top level is an error.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't valid YAML.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if parsed is None:
        return {}

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def load_config(config_path: Path) -> LLMBenchConfig:
    """
    Load and validate a config file.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations (wrong types, unknown keys, bad ranges).
    """
    raw_data = _read_yaml_file(config_path)

    try:
        return LLMBenchConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Config validation failed for {config_path}:\n{err}"
        ) from err
