# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The single entry point for getting an oracle.

    provider = TestCaseProvider(adapter, mode="record-replay", recording_enabled=True)
    cases = provider.load(Path("src/add.py"), extraction.signature)

Three modes, one result type:

  static:         hand-written case files next to the baseline.
  record-replay:  replay a recording; record one first if it's missing
                  and recording is enabled.
  property-based: generate inputs, run the baseline, use what it returns.
                  Rebuilt every run, never stored.

`preflight` catches configuration mistakes (unknown mode, missing recording
with recording disabled, an adapter that can't generate inputs) before any
child process starts. `load` runs it again itself, so calling it directly
is optional.
"""

from pathlib import Path
from typing import Any

from llmbench.adapters.base import LanguageAdapter
from llmbench.evaluation.errors import ConfigurationError
from llmbench.evaluation.models import VALID_MODES, Signature, TestCase
from llmbench.logging.logger import get_logger
from llmbench.testcases.loader import load_static_cases
from llmbench.testcases.oracle import build_property_cases
from llmbench.testcases.recorder import (
    DEFAULT_RECORDINGS_DIR,
    load_recording,
    record_cases,
    recording_path,
)

logger = get_logger(__name__)


class TestCaseProvider:
    """Supplies the oracle for one baseline according to the validation mode."""

    __test__ = False

    def __init__(
        self,
        adapter: LanguageAdapter,
        mode: str = "static",
        cases_pattern: str | None = None,
        recording_enabled: bool = False,
        recordings_dir: Path = DEFAULT_RECORDINGS_DIR,
        record_count: int = 50,
        property_count: int = 100,
        seed: int = 42,
    ) -> None:
        self._adapter = adapter
        self.mode = mode
        self._cases_pattern = cases_pattern
        self._recording_enabled = recording_enabled
        self._recordings_dir = recordings_dir
        self._record_count = record_count
        self._property_count = property_count
        self._seed = seed

    @classmethod
    def from_config(cls, adapter: LanguageAdapter, config: Any) -> "TestCaseProvider":
        validation = config.validation
        return cls(
            adapter,
            mode=validation.mode,
            cases_pattern=validation.cases,
            recording_enabled=validation.recording_enabled,
            recordings_dir=Path(validation.recordings_directory),
            record_count=validation.record_count,
            property_count=validation.property_count,
            seed=config.global_config.seed,
        )

    def preflight(self, baseline: Path) -> None:
        if self.mode not in VALID_MODES:
            raise ConfigurationError(
                f"Unknown validation mode: {self.mode}. "
                f"Expected one of: {', '.join(sorted(VALID_MODES))}"
            )

        if self.mode == "record-replay":
            if recording_path(baseline, self._recordings_dir).is_file():
                return
            if not self._recording_enabled:
                raise ConfigurationError(
                    f"No recording exists for {baseline.name} and recording is disabled. "
                    f"Enable validation.recording_enabled to record one."
                )

        if self.mode in ("record-replay", "property-based") and not self._adapter.supports_input_generation:
            raise ConfigurationError(
                f"Mode {self.mode} needs input generation, which the "
                f"{self._adapter.language_id} adapter does not support"
            )

    def load(self, baseline: Path, signature: Signature) -> list[TestCase]:
        self.preflight(baseline)

        if self.mode == "static":
            return load_static_cases(baseline, self._cases_pattern)

        if self.mode == "property-based":
            return build_property_cases(
                self._adapter, baseline, signature, self._property_count, self._seed
            )

        path = recording_path(baseline, self._recordings_dir)
        if path.is_file():
            cases = load_recording(path)
            logger.info(
                "Replaying recorded test cases",
                extra={"baseline": baseline.name, "cases": len(cases), "recording": str(path)},
            )
            return cases

        return record_cases(
            self._adapter,
            baseline,
            signature,
            self._record_count,
            self._seed,
            self._recordings_dir,
        )
