# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Benchmark engine: time validated candidates against the baseline.

The engine is a thin layer over `adapter.benchmark`. What it adds is the
contract that callers rely on regardless of which adapter produced the
numbers:

  - exactly one row for the baseline, first, with improvement == 0
  - one row per candidate, in the order given
  - invalid rows carry an error and no metrics
  - rows can be relabelled with caller-supplied identities (sandboxed
    candidates have meaningless temp file names)

Only candidates that passed validation should be handed in. Timing a wrong
answer is pointless, so the engine doesn't re-check correctness.
"""

from dataclasses import replace
from pathlib import Path
from typing import Any

from llmbench.adapters.base import LanguageAdapter
from llmbench.evaluation.models import BenchOptions, BenchResult
from llmbench.logging.logger import get_logger

logger = get_logger(__name__)


class BenchmarkEngine:
    """Runs one benchmark batch with one adapter."""

    def __init__(
        self,
        adapter: LanguageAdapter,
        runs: int = 1000,
        warmup: int = 20,
        timeout_seconds: float | None = None,
        per_iteration: bool = True,
    ) -> None:
        if runs < 1:
            raise ValueError(f"runs must be at least 1, got {runs}")
        if warmup < 0:
            raise ValueError(f"warmup must be non-negative, got {warmup}")
        self._adapter = adapter
        self._runs = runs
        self._warmup = warmup
        self._timeout_seconds = timeout_seconds
        self._per_iteration = per_iteration

    @classmethod
    def from_config(cls, adapter: LanguageAdapter, config: Any) -> "BenchmarkEngine":
        bench = config.bench
        return cls(
            adapter,
            runs=bench.runs,
            warmup=bench.warmup,
            timeout_seconds=bench.timeout_seconds,
            per_iteration=bench.per_iteration_sampling,
        )

    def run(
        self,
        baseline: Path,
        candidate_paths: list[Path],
        inputs: list[list[Any]] | None = None,
        function_name: str | None = None,
        identities: list[str] | None = None,
    ) -> list[BenchResult]:
        """
        Benchmark the baseline and every candidate.

        Raises BenchmarkLoadError if the baseline itself can't be timed.
        """
        if identities is not None and len(identities) != len(candidate_paths):
            raise ValueError("identities must have one entry per candidate path")

        options = BenchOptions(
            runs=self._runs,
            warmup=self._warmup,
            baseline=baseline,
            candidates=list(candidate_paths),
            timeout_seconds=self._timeout_seconds,
            inputs=list(inputs or []),
            function_name=function_name,
            per_iteration=self._per_iteration,
        )

        logger.info(
            "Benchmark started",
            extra={
                "baseline": baseline.name,
                "candidates": len(candidate_paths),
                "runs": self._runs,
                "warmup": self._warmup,
            },
        )
        results = self._adapter.benchmark(options)

        if len(results) != len(candidate_paths) + 1:
            raise RuntimeError(
                f"{self._adapter.language_id} adapter returned {len(results)} benchmark rows "
                f"for a baseline and {len(candidate_paths)} candidates"
            )

        labels = identities if identities is not None else [path.name for path in candidate_paths]
        normalized = [self._enforce(results[0], baseline.name, is_baseline=True)]
        normalized.extend(
            self._enforce(result, label, is_baseline=False)
            for result, label in zip(results[1:], labels)
        )

        for result in normalized:
            if result.metrics is not None:
                logger.info(
                    "Benchmark result",
                    extra={
                        "candidate": result.candidate,
                        "ops_per_sec": round(result.metrics.ops_per_sec, 2),
                        "mean_ms": round(result.metrics.mean_ms, 6),
                        "improvement": round(result.improvement or 0.0, 2),
                    },
                )
        return normalized

    @staticmethod
    def _enforce(result: BenchResult, label: str, is_baseline: bool) -> BenchResult:
        if is_baseline:
            return replace(result, candidate=label, improvement=0.0, is_baseline=True)
        if not result.valid:
            return replace(result, candidate=label, metrics=None, improvement=None, is_baseline=False)
        return replace(result, candidate=label, is_baseline=False)
