# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
End-to-end evaluation of one baseline.

    dispatch adapter → extract target → load oracle → validate all
        → benchmark the ones that passed → EvaluationReport

The first three steps are fatal if they fail: without an adapter, a target
function or an oracle there's nothing to evaluate against, and those
errors propagate to the caller. From validation on, failures belong to
individual candidates and end up inside the report. A baseline that can't
be timed costs the bench rows only: the report keeps its validation
summaries and records the reason in `bench_error`.

Candidates come in two forms. Files already on disk are used in place.
Code strings (`Candidate` records) are formatted, written into one sandbox
for the whole run so validation and benchmarking see the same files, and
the sandbox is removed at the end.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from llmbench.adapters.base import LanguageAdapter
from llmbench.adapters.registry import AdapterDispatcher
from llmbench.benchmark.engine import BenchmarkEngine
from llmbench.evaluation.errors import BenchmarkLoadError
from llmbench.evaluation.models import (
    BenchResult,
    Candidate,
    EvaluationReport,
    Extraction,
    TestCase,
    ValidationSummary,
)
from llmbench.execution.sandbox import SandboxContext, candidate_file_name
from llmbench.logging.logger import get_logger
from llmbench.testcases.provider import TestCaseProvider
from llmbench.validation.engine import ValidationEngine

logger = get_logger(__name__)


@dataclass(frozen=True)
class PreparedBaseline:
    """Everything that has to exist before any candidate runs."""

    source: Path
    adapter: LanguageAdapter
    extraction: Extraction
    test_cases: list[TestCase]

    @property
    def function_name(self) -> str:
        return self.extraction.signature.name

    @property
    def bench_inputs(self) -> list[list[Any]]:
        # Expected-error inputs would abort the timing loop.
        return [case.input for case in self.test_cases if case.error is None]


class Evaluator:
    """Runs the evaluation pipeline under one configuration."""

    def __init__(self, config: Any, dispatcher: AdapterDispatcher | None = None) -> None:
        self._config = config
        self._dispatcher = dispatcher or AdapterDispatcher.from_config(config)

    def prepare(self, source: Path, target: str | None = None) -> PreparedBaseline:
        """Pick the adapter, extract the target, and load the oracle."""
        adapter = self._dispatcher.dispatch(source)
        extraction = adapter.extract(source, target)
        provider = TestCaseProvider.from_config(adapter, self._config)
        test_cases = provider.load(source, extraction.signature)

        logger.info(
            "Baseline prepared",
            extra={
                "source": str(source),
                "language": adapter.language_id,
                "function": extraction.signature.name,
                "mode": provider.mode,
                "cases": len(test_cases),
            },
        )
        return PreparedBaseline(
            source=source,
            adapter=adapter,
            extraction=extraction,
            test_cases=test_cases,
        )

    def validate(
        self,
        prepared: PreparedBaseline,
        candidate_paths: list[Path],
        identities: list[str] | None = None,
    ) -> list[ValidationSummary]:
        engine = ValidationEngine(
            prepared.adapter,
            mode=self._config.validation.mode,
            max_workers=self._config.global_config.concurrency,
        )
        return engine.validate_files(
            prepared.test_cases,
            candidate_paths,
            prepared.function_name,
            identities=identities,
        )

    def benchmark(
        self,
        prepared: PreparedBaseline,
        candidate_paths: list[Path],
        identities: list[str] | None = None,
    ) -> list[BenchResult]:
        engine = BenchmarkEngine.from_config(prepared.adapter, self._config)
        return engine.run(
            prepared.source,
            candidate_paths,
            inputs=prepared.bench_inputs,
            function_name=prepared.function_name,
            identities=identities,
        )

    def evaluate_files(
        self,
        source: Path,
        candidate_paths: list[Path],
        target: str | None = None,
        identities: list[str] | None = None,
    ) -> EvaluationReport:
        prepared = self.prepare(source, target)
        return self._evaluate(prepared, candidate_paths, identities)

    def evaluate_candidates(
        self,
        source: Path,
        candidates: list[Candidate],
        target: str | None = None,
    ) -> EvaluationReport:
        prepared = self.prepare(source, target)

        files = {
            candidate_file_name(candidate, source, index): prepared.adapter.format(candidate.code)
            for index, candidate in enumerate(candidates)
        }
        with SandboxContext(files) as sandbox:
            return self._evaluate(
                prepared,
                [sandbox / name for name in files],
                [candidate.identity for candidate in candidates],
            )

    def _evaluate(
        self,
        prepared: PreparedBaseline,
        candidate_paths: list[Path],
        identities: list[str] | None,
    ) -> EvaluationReport:
        labels = identities if identities is not None else [path.name for path in candidate_paths]
        summaries = self.validate(prepared, candidate_paths, labels)

        bench_results: list[BenchResult] = []
        bench_error: str | None = None
        if self._config.bench.enabled:
            passing = [
                (label, path)
                for label, path, summary in zip(labels, candidate_paths, summaries)
                if summary.passed
            ]
            if not passing:
                logger.info(
                    "No candidate passed validation, skipping benchmark",
                    extra={"source": str(prepared.source)},
                )
            elif not prepared.bench_inputs and prepared.extraction.signature.arity > 0:
                # Every case expects an error, and calling with no arguments
                # would time a TypeError instead of the function.
                bench_error = "No test case without an expected error to time"
                logger.info(
                    "No timing inputs, skipping benchmark",
                    extra={"source": str(prepared.source)},
                )
            else:
                try:
                    bench_results = self.benchmark(
                        prepared,
                        [path for _, path in passing],
                        [label for label, _ in passing],
                    )
                except BenchmarkLoadError as exc:
                    bench_error = str(exc)
                    logger.warning(
                        "Baseline could not be benchmarked, keeping validation results",
                        extra={"source": str(prepared.source), "error": bench_error},
                    )

        return EvaluationReport(
            source=prepared.source,
            extraction=prepared.extraction,
            test_cases=prepared.test_cases,
            summaries=summaries,
            bench_results=bench_results,
            bench_error=bench_error,
        )
