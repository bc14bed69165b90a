# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The language adapter contract.

Everything language-specific sits behind this one interface: recognizing a
file, pulling the target function out of it, formatting and syntax-checking
candidate code, running candidates against an oracle, and timing them. The
engines above never look at a language id. They get an adapter from the
registry and call these methods.

Two groups of methods:

  In-process, trusted input only: detect, extract, format,
  generate_test_inputs. These read source text, never execute it.

  Out-of-process, untrusted input: compile, validate, observe, benchmark.
  Candidate code only ever runs in a child process. See
  llmbench.adapters.child for the shared driver.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from llmbench.evaluation.models import (
    AdapterValidation,
    BenchOptions,
    BenchResult,
    Extraction,
    Observation,
    Signature,
    TestCase,
    ValidationResult,
)
from llmbench.validation.compare import deep_equal


class LanguageAdapter(ABC):
    """Base class for language adapters."""

    language_id: str = "unknown"
    extensions: tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: Any) -> "LanguageAdapter":
        """Build the adapter from an LLMBenchConfig. Subclasses override to pick their settings."""
        return cls()

    @abstractmethod
    def detect(self, path: Path) -> bool:
        """True if this adapter understands the file. Must never raise."""

    @abstractmethod
    def extract(self, path: Path, target: str | None = None) -> Extraction:
        """
        Locate the target function (or the file's primary export) and return
        its source, signature and imports. Raises ExtractionError.
        """

    def format(self, code: str) -> str:
        """Canonicalize code. The default leaves it untouched, which is trivially idempotent."""
        return code

    def compile(self, path: Path) -> None:
        """Syntax-check a file without running it. Raises CandidateLoadError."""
        return None

    @property
    def supports_compile(self) -> bool:
        return type(self).compile is not LanguageAdapter.compile

    @abstractmethod
    def validate(
        self,
        test_cases: list[TestCase],
        candidate_path: Path,
        function_name: str | None = None,
    ) -> AdapterValidation:
        """
        Run a candidate against every case. Exactly one result per case, in
        order. Candidate failures become failed results, never exceptions.
        """

    @abstractmethod
    def observe(
        self,
        path: Path,
        inputs: list[list[Any]],
        function_name: str | None = None,
    ) -> list[Observation]:
        """
        Run a trusted file (the baseline) on each input and report what came
        back. Raises CandidateLoadError if the file can't be loaded at all.
        """

    @abstractmethod
    def benchmark(self, options: BenchOptions) -> list[BenchResult]:
        """Time the baseline, then each candidate. Baseline row first."""

    def generate_test_inputs(
        self,
        signature: Signature,
        count: int,
        seed: int = 0,
    ) -> list[list[Any]]:
        """Synthesize argument vectors for a signature. Optional capability."""
        raise NotImplementedError(
            f"The {self.language_id} adapter does not generate test inputs"
        )

    @property
    def supports_input_generation(self) -> bool:
        return type(self).generate_test_inputs is not LanguageAdapter.generate_test_inputs


def judge_case(case: TestCase, observation: Observation) -> ValidationResult:
    """
    Compare one observation against its oracle entry.

    Expected-error cases pass exactly when the candidate raised, whatever the
    message. Ordinary cases pass when the candidate returned without raising
    and the value is deeply equal to the expected output.
    """
    if observation.raised:
        return ValidationResult(
            case_id=case.id,
            passed=case.error is not None,
            input=case.input,
            expected=case.output,
            error=observation.error,
            duration_ms=observation.duration_ms,
        )

    return ValidationResult(
        case_id=case.id,
        passed=case.error is None and deep_equal(case.output, observation.actual),
        input=case.input,
        expected=case.output,
        actual=observation.actual,
        duration_ms=observation.duration_ms,
    )
