# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Validation engine: one oracle, many candidates, one summary each.

Per candidate the pipeline is:

    compile (if the adapter has a syntax check) → adapter.validate → summary

Candidates are independent, so they're validated concurrently on a small
thread pool. The threads only wait on child processes, so the GIL isn't a
factor. Output order always matches input order, however the pool schedules
the work.

Failures stay local. A candidate that won't compile, won't load, or
crashes gets a failed summary. The other candidates and the run as a whole
carry on.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from llmbench.adapters.base import LanguageAdapter
from llmbench.evaluation.errors import CandidateLoadError
from llmbench.evaluation.models import (
    Candidate,
    TestCase,
    ValidationResult,
    ValidationSummary,
)
from llmbench.execution.sandbox import SandboxContext, candidate_file_name
from llmbench.logging.logger import get_logger

logger = get_logger(__name__)


class ValidationEngine:
    """Validates candidate files against an oracle with one adapter."""

    def __init__(
        self,
        adapter: LanguageAdapter,
        mode: str,
        max_workers: int = 4,
        sandbox_base_dir: Path | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self._adapter = adapter
        self._mode = mode
        self._max_workers = max_workers
        self._sandbox_base_dir = sandbox_base_dir

    def validate_files(
        self,
        test_cases: list[TestCase],
        candidate_paths: list[Path],
        function_name: str | None = None,
        identities: list[str] | None = None,
    ) -> list[ValidationSummary]:
        """
        Validate candidate files that already exist on disk.

        `identities` names each candidate in the summaries; it defaults to
        the file name.
        """
        names = identities if identities is not None else [path.name for path in candidate_paths]
        if len(names) != len(candidate_paths):
            raise ValueError("identities must have one entry per candidate path")
        if not candidate_paths:
            return []

        logger.info(
            "Validation started",
            extra={"candidates": len(candidate_paths), "cases": len(test_cases), "mode": self._mode},
        )

        workers = min(self._max_workers, len(candidate_paths))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="llmbench-validate") as pool:
            summaries = list(pool.map(
                lambda pair: self._validate_one(test_cases, pair[0], pair[1], function_name),
                zip(names, candidate_paths),
            ))

        passed = sum(1 for summary in summaries if summary.passed)
        logger.info(
            "Validation finished",
            extra={"candidates": len(summaries), "passed": passed, "failed": len(summaries) - passed},
        )
        return summaries

    def validate_candidates(
        self,
        test_cases: list[TestCase],
        candidates: list[Candidate],
        baseline: Path,
        function_name: str | None = None,
    ) -> list[ValidationSummary]:
        """
        Validate candidates supplied as code strings.

        Each one is written into a temporary sandbox with the baseline's
        extension, validated, and the sandbox is removed afterwards.
        """
        files = {
            candidate_file_name(candidate, baseline, index): candidate.code
            for index, candidate in enumerate(candidates)
        }
        with SandboxContext(files, self._sandbox_base_dir) as sandbox:
            return self.validate_files(
                test_cases,
                [sandbox / name for name in files],
                function_name,
                identities=[candidate.identity for candidate in candidates],
            )

    def _validate_one(
        self,
        test_cases: list[TestCase],
        identity: str,
        path: Path,
        function_name: str | None,
    ) -> ValidationSummary:
        start = time.monotonic()

        if self._adapter.supports_compile:
            try:
                self._adapter.compile(path)
            except CandidateLoadError as exc:
                logger.warning(
                    "Candidate failed syntax check",
                    extra={"candidate": identity, "error": str(exc)},
                )
                results = [
                    ValidationResult(
                        case_id=case.id,
                        passed=False,
                        input=case.input,
                        expected=case.output,
                        error=f"Compilation failed: {exc}",
                    )
                    for case in test_cases
                ]
                return ValidationSummary.from_results(
                    identity,
                    self._mode,
                    results,
                    duration_ms=(time.monotonic() - start) * 1000,
                    error=str(exc),
                )

        outcome = self._adapter.validate(test_cases, path, function_name)
        if len(outcome.results) != len(test_cases):
            raise RuntimeError(
                f"{self._adapter.language_id} adapter returned {len(outcome.results)} "
                f"results for {len(test_cases)} test cases"
            )

        summary = ValidationSummary.from_results(
            identity,
            self._mode,
            outcome.results,
            duration_ms=(time.monotonic() - start) * 1000,
            error=outcome.error,
        )
        logger.info(
            "Candidate validated",
            extra={
                "candidate": identity,
                "passed": summary.passed,
                "passed_cases": summary.passed_cases,
                "total_cases": summary.total_cases,
            },
        )
        return summary
