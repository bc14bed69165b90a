# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Data models for the evaluation pipeline.

These are the types every stage passes around: what we extracted from the
baseline, the oracle we test against, and the per-candidate verdicts and
timings that come out the other end. They're all frozen dataclasses because
none of this should change once it's produced. A test case that mutates
mid-run, or a summary that gets patched after the fact, is a bug.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

ValidationMode = Literal["static", "record-replay", "property-based"]

VALID_MODES: frozenset[str] = frozenset({"static", "record-replay", "property-based"})


@dataclass(frozen=True)
class Parameter:
    """
    One positional parameter of an extracted function.

    `type` and `default` are kept as source text exactly as written. We
    never evaluate them, they're only hints for input generation and for
    humans reading a report.
    """

    name: str
    type: str | None = None
    optional: bool = False
    default: str | None = None


@dataclass(frozen=True)
class Signature:
    """Name, positional parameters, return annotation and async-ness of a function."""

    name: str
    params: tuple[Parameter, ...] = ()
    return_type: str | None = None
    is_async: bool = False

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class Extraction:
    """What `extract` hands back: the function's source, its signature, and its imports."""

    code: str
    signature: Signature
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class TestCase:
    """
    A single oracle entry.

    `input` is always a list of positional arguments. Loaders wrap bare
    scalars before constructing one of these. `error` is the expected-error
    marker: when set, the case passes only if the function raises.
    """

    __test__ = False

    id: str
    input: list[Any]
    output: Any = None
    error: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class Observation:
    """The result of running a trusted function on one input vector."""

    actual: Any = None
    error: str | None = None
    duration_ms: float = 0.0

    @property
    def raised(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class ValidationResult:
    """
    The outcome of one test case against one candidate.

    `actual` is only meaningful when `error` is None; a case that raised or
    crashed carries the message in `error` instead.
    """

    case_id: str
    passed: bool
    input: list[Any]
    expected: Any
    actual: Any = None
    error: str | None = None
    duration_ms: float = 0.0


@dataclass(frozen=True)
class AdapterValidation:
    """
    Raw return value of `LanguageAdapter.validate`. `error` is set when the
    candidate never loaded, in which case every result carries it too.
    """

    passed: bool
    results: list[ValidationResult]
    error: str | None = None


@dataclass(frozen=True)
class ValidationSummary:
    """
    Everything we know about one candidate's correctness.

    Build these with `from_results` so the counts can never disagree with the
    result list: total_cases = passed_cases + failed_cases = len(results).
    """

    candidate: str
    passed: bool
    mode: str
    total_cases: int
    passed_cases: int
    failed_cases: int
    results: list[ValidationResult]
    duration_ms: float
    error: str | None = None

    @classmethod
    def from_results(
        cls,
        candidate: str,
        mode: str,
        results: list[ValidationResult],
        duration_ms: float,
        error: str | None = None,
    ) -> "ValidationSummary":
        passed_cases = sum(1 for r in results if r.passed)
        failed_cases = len(results) - passed_cases
        return cls(
            candidate=candidate,
            passed=bool(results) and failed_cases == 0 and error is None,
            mode=mode,
            total_cases=len(results),
            passed_cases=passed_cases,
            failed_cases=failed_cases,
            results=list(results),
            duration_ms=duration_ms,
            error=error,
        )


@dataclass(frozen=True)
class BenchMetrics:
    """
    Timing statistics for one file. All times are milliseconds.

    When `percentiles_approximated` is True, p95/p99 were not measured: only
    an aggregate timing was available and they were derived from the mean
    with fixed multipliers. Don't compare them against measured percentiles.
    """

    ops_per_sec: float
    mean_ms: float
    std_dev_ms: float
    p95_ms: float
    p99_ms: float
    relative_margin_of_error: float
    samples: int
    max_rss_kb: int | None = None
    gc_collections: int | None = None
    percentiles_approximated: bool = False


@dataclass(frozen=True)
class BenchResult:
    """
    One row of a benchmark batch.

    Invariants: invalid results carry no metrics, and the baseline's own
    row always has improvement == 0.
    """

    candidate: str
    valid: bool
    metrics: BenchMetrics | None = None
    error: str | None = None
    improvement: float | None = None
    is_baseline: bool = False


@dataclass(frozen=True)
class BenchOptions:
    """
    Settings shared by every file in a benchmark batch.

    `inputs` are the argument vectors cycled through while timing, normally
    the validated oracle's inputs, so each candidate is timed on exactly the
    same work as the baseline. Empty means zero-argument calls.
    """

    runs: int
    warmup: int
    baseline: Path
    candidates: list[Path] = field(default_factory=list)
    timeout_seconds: float | None = None
    inputs: list[list[Any]] = field(default_factory=list)
    function_name: str | None = None
    per_iteration: bool = True


@dataclass(frozen=True)
class Candidate:
    """A generated variant as supplied by the code-generation side."""

    code: str
    provider_id: str
    model_id: str
    generation_metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def identity(self) -> str:
        return f"{self.provider_id}.{self.model_id}"


@dataclass(frozen=True)
class EvaluationReport:
    """The full output of evaluating one baseline: ordered, terminal, read-only."""

    source: Path
    extraction: Extraction
    test_cases: list[TestCase]
    summaries: list[ValidationSummary]
    bench_results: list[BenchResult] = field(default_factory=list)
    # Why the benchmark produced no rows, when it was attempted and failed.
    bench_error: str | None = None
