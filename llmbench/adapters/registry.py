# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Language adapter registry and dispatch.

`ADAPTERS` is the static map from language id to adapter class. New
languages are added with `register_adapter` before the dispatcher is
built; nothing is discovered by scanning packages at runtime.

Dispatch is two-pass: file extension first (cheap, unambiguous), then each
adapter's `detect` for files whose extension says nothing (shebang
scripts). The first adapter that claims the file wins, in registration
order.
"""

from pathlib import Path
from typing import Any

from llmbench.adapters.base import LanguageAdapter
from llmbench.adapters.javascript.adapter import JavaScriptAdapter
from llmbench.adapters.python.adapter import PythonAdapter
from llmbench.evaluation.errors import ConfigurationError, UnsupportedFormatError
from llmbench.logging.logger import get_logger

logger = get_logger(__name__)

ADAPTERS: dict[str, type[LanguageAdapter]] = {
    "python": PythonAdapter,
    "javascript": JavaScriptAdapter,
}


def register_adapter(language_id: str, adapter_class: type[LanguageAdapter]) -> None:
    """Register (or replace) the adapter class for a language id."""
    ADAPTERS[language_id.lower()] = adapter_class


def get_adapter_class(language_id: str) -> type[LanguageAdapter] | None:
    return ADAPTERS.get(language_id.lower())


def available_languages() -> list[str]:
    return list(ADAPTERS.keys())


def build_adapters(config: Any, language_ids: list[str] | None = None) -> list[LanguageAdapter]:
    """
    Instantiate adapters from an LLMBenchConfig.

    `language_ids` defaults to `config.adapters.enabled`. An id with no
    registered class is a configuration error, not something to skip
    quietly, because the user asked for that language by name.
    """
    wanted = language_ids if language_ids is not None else list(config.adapters.enabled)

    adapters: list[LanguageAdapter] = []
    for language_id in wanted:
        adapter_class = get_adapter_class(language_id)
        if adapter_class is None:
            raise ConfigurationError(
                f"Unknown language adapter: {language_id}. "
                f"Available adapters: {', '.join(available_languages())}"
            )
        adapters.append(adapter_class.from_config(config))
    return adapters


class AdapterDispatcher:
    """Picks the adapter for a source file."""

    def __init__(self, adapters: list[LanguageAdapter]) -> None:
        if not adapters:
            raise ConfigurationError("At least one language adapter must be enabled")
        self._adapters = list(adapters)

    @classmethod
    def from_config(cls, config: Any) -> "AdapterDispatcher":
        return cls(build_adapters(config))

    @property
    def adapters(self) -> list[LanguageAdapter]:
        return list(self._adapters)

    def dispatch(self, path: Path) -> LanguageAdapter:
        """The adapter for `path`. Raises UnsupportedFormatError if none claims it."""
        suffix = path.suffix.lower()
        for adapter in self._adapters:
            if suffix and suffix in adapter.extensions:
                return adapter

        for adapter in self._adapters:
            if adapter.detect(path):
                logger.debug(
                    "Adapter chosen by content",
                    extra={"file": str(path), "language": adapter.language_id},
                )
                return adapter

        supported = sorted({ext for adapter in self._adapters for ext in adapter.extensions})
        raise UnsupportedFormatError(
            f"No language adapter handles {path.name}. "
            f"Supported extensions: {', '.join(supported)}"
        )
