# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Exceptions for the configuration file layer.

Kept apart from llmbench.evaluation.errors on purpose: these are about the
YAML file on disk, those are about the evaluation itself. The CLI catches
both families and maps them to the same CONFIG_ERROR exit code.
"""


class ConfigError(Exception):
    """Base for all configuration file errors."""


class ConfigLoadError(ConfigError):
    """The config file couldn't be read from disk or parsed as YAML."""


class ConfigValidationError(ConfigError):
    """
    The config file parsed fine but failed schema validation: unknown keys,
    wrong types, out-of-range values.
    """
