# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared driver for adapters whose candidates run in a child interpreter.

A concrete adapter only has to say how to start its runner script
(`runner_command`). Everything else is the same for every language:

  1. Serialize one JSON payload (mode, path, function, inputs, ...) to the
     runner's stdin.
  2. Read protocol events back from its stdout: `loaded` or `load_error`
     first, then one `case` event per input, or a single `bench` event.
  3. Turn those events into Observations, ValidationResults, or
     BenchMetrics.

Every child gets a fresh random nonce in its payload and only events that
echo it back are believed, so text the candidate prints can't pass for a
result.

Crash handling for validation works like a resumable cursor. If the child
dies or times out on case k, cases 0..k-1 keep their results, case k is
failed with the crash reason, and a fresh child picks up at k+1. One bad
input costs one case, not the whole candidate.
"""

import json
import secrets
from abc import abstractmethod
from pathlib import Path
from typing import Any

from llmbench.adapters.base import LanguageAdapter, judge_case
from llmbench.benchmark.stats import (
    compute_improvement,
    summarize_aggregate,
    summarize_samples,
)
from llmbench.evaluation.errors import (
    BenchmarkLoadError,
    CandidateLoadError,
    CandidateRuntimeError,
)
from llmbench.evaluation.models import (
    AdapterValidation,
    BenchMetrics,
    BenchOptions,
    BenchResult,
    Observation,
    TestCase,
    ValidationResult,
)
from llmbench.execution.process import (
    ChildResult,
    parse_events,
    run_child,
    run_child_streaming,
    tail,
)
from llmbench.logging.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CASE_TIMEOUT_SECONDS = 10.0
DEFAULT_BENCH_TIMEOUT_SECONDS = 60.0
DEFAULT_COMPILE_TIMEOUT_SECONDS = 30.0


def _describe_crash(child: ChildResult, where: str) -> str:
    if child.timed_out:
        return f"Timed out {where}"
    detail = tail(child.stderr) or "no output"
    return f"Child process exited with code {child.exit_code} {where}: {detail}"


def _new_nonce() -> str:
    return secrets.token_hex(8)


def _observation_from_event(event: dict[str, Any]) -> Observation:
    duration_ms = float(event.get("duration_ms") or 0.0)
    if event.get("ok"):
        return Observation(actual=event.get("actual"), duration_ms=duration_ms)
    return Observation(
        error=str(event.get("error") or "Unknown error"),
        duration_ms=duration_ms,
    )


class ChildProcessAdapter(LanguageAdapter):
    """LanguageAdapter that executes candidates through a runner script."""

    def __init__(
        self,
        case_timeout_seconds: float = DEFAULT_CASE_TIMEOUT_SECONDS,
        bench_timeout_seconds: float = DEFAULT_BENCH_TIMEOUT_SECONDS,
        compile_timeout_seconds: float = DEFAULT_COMPILE_TIMEOUT_SECONDS,
        formatter_command: list[str] | None = None,
    ) -> None:
        self._case_timeout = case_timeout_seconds
        self._bench_timeout = bench_timeout_seconds
        self._compile_timeout = compile_timeout_seconds
        self._formatter_command = list(formatter_command) if formatter_command else None

    @abstractmethod
    def runner_command(self) -> list[str]:
        """argv that starts the runner. The payload arrives on stdin."""

    # ── format ──────────────────────────────────────────────────────────

    def format(self, code: str) -> str:
        """
        Pipe code through the configured formatter, if there is one.

        The formatter reads stdin and writes the formatted code to stdout.
        When it's missing, fails, or prints nothing, the code comes back
        unchanged. Formatting is cosmetic and never worth failing a run over.
        """
        if not self._formatter_command:
            return code

        result = run_child(self._formatter_command, code, self._compile_timeout)
        if not result.success or not result.stdout.strip():
            logger.debug(
                "Formatter did not produce output, keeping code as-is",
                extra={
                    "formatter": self._formatter_command[0],
                    "exit_code": result.exit_code,
                },
            )
            return code
        return result.stdout

    # ── validate / observe ──────────────────────────────────────────────

    def _run_batch(
        self,
        path: Path,
        inputs: list[list[Any]],
        function_name: str | None,
        mode: str = "validate",
    ) -> list[Observation]:
        """
        One child, one slice of inputs.

        Returns an observation per input when the child got through all of
        them. Raises CandidateLoadError if the file never loaded, and
        CandidateRuntimeError (carrying the finished observations) if the
        child went down part-way.
        """
        nonce = _new_nonce()
        payload = json.dumps(
            {
                "nonce": nonce,
                "mode": mode,
                "path": str(path),
                "function": function_name,
                "inputs": inputs,
            },
            default=str,
        )
        child = run_child_streaming(
            self.runner_command(),
            payload,
            self._case_timeout,
            cwd=path.parent,
            # Loading gets one case's worth of time on top.
            total_timeout_seconds=self._case_timeout * (len(inputs) + 1),
            nonce=nonce,
        )
        events = parse_events(child.stdout, nonce)

        for event in events:
            if event["event"] == "load_error":
                raise CandidateLoadError(str(event.get("error") or "unknown load error"))
        if not any(event["event"] == "loaded" for event in events):
            raise CandidateLoadError(_describe_crash(child, "while loading"))

        finished = {
            event["index"]: event
            for event in events
            if event["event"] == "case" and isinstance(event.get("index"), int)
        }

        completed: list[Observation] = []
        while len(completed) < len(inputs) and len(completed) in finished:
            completed.append(_observation_from_event(finished[len(completed)]))

        if len(completed) < len(inputs):
            raise CandidateRuntimeError(
                _describe_crash(child, "while running this case"),
                completed=completed,
            )
        return completed

    def _execute(
        self,
        path: Path,
        inputs: list[list[Any]],
        function_name: str | None,
        mode: str = "validate",
    ) -> list[Observation]:
        """Run every input, restarting the child after each crash."""
        observations: list[Observation] = []

        while len(observations) < len(inputs):
            remaining = inputs[len(observations):]
            try:
                observations.extend(self._run_batch(path, remaining, function_name, mode))
            except CandidateLoadError as exc:
                if not observations:
                    raise
                # It loaded before, so this is the restart failing. Whatever
                # is left can't run.
                observations.extend(
                    Observation(error=f"Could not restart after crash: {exc}")
                    for _ in remaining
                )
            except CandidateRuntimeError as exc:
                observations.extend(exc.completed)
                observations.append(Observation(error=str(exc)))
                logger.debug(
                    "Child crashed mid-batch, resuming",
                    extra={
                        "file": path.name,
                        "failed_index": len(observations) - 1,
                    },
                )

        return observations

    def observe(
        self,
        path: Path,
        inputs: list[list[Any]],
        function_name: str | None = None,
    ) -> list[Observation]:
        return self._execute(path, inputs, function_name, mode="observe")

    def validate(
        self,
        test_cases: list[TestCase],
        candidate_path: Path,
        function_name: str | None = None,
    ) -> AdapterValidation:
        inputs = [case.input for case in test_cases]

        try:
            observations = self._execute(candidate_path, inputs, function_name)
        except CandidateLoadError as exc:
            logger.warning(
                "Candidate failed to load",
                extra={"candidate": candidate_path.name, "error": str(exc)},
            )
            message = f"Failed to load candidate: {exc}"
            results = [
                ValidationResult(
                    case_id=case.id,
                    passed=False,
                    input=case.input,
                    expected=case.output,
                    error=message,
                )
                for case in test_cases
            ]
            return AdapterValidation(passed=False, results=results, error=message)

        results = [
            judge_case(case, observation)
            for case, observation in zip(test_cases, observations)
        ]
        return AdapterValidation(
            passed=all(result.passed for result in results),
            results=results,
        )

    # ── benchmark ───────────────────────────────────────────────────────

    def _time_file(self, path: Path, options: BenchOptions) -> BenchMetrics:
        """Time one file in its own child. Raises BenchmarkLoadError."""
        nonce = _new_nonce()
        payload = json.dumps(
            {
                "nonce": nonce,
                "mode": "bench",
                "path": str(path),
                "function": options.function_name,
                "inputs": options.inputs,
                "runs": options.runs,
                "warmup": options.warmup,
                "per_iteration": options.per_iteration,
            },
            default=str,
        )
        child = run_child(
            self.runner_command(),
            payload,
            options.timeout_seconds or self._bench_timeout,
            cwd=path.parent,
        )
        events = parse_events(child.stdout, nonce)

        by_name = {event["event"]: event for event in events}
        if "load_error" in by_name:
            raise BenchmarkLoadError(
                f"Failed to load {path.name}: {by_name['load_error'].get('error')}"
            )
        if "bench_error" in by_name:
            raise BenchmarkLoadError(
                f"{path.name} raised while being timed: {by_name['bench_error'].get('error')}"
            )
        bench = by_name.get("bench")
        if bench is None:
            raise BenchmarkLoadError(_describe_crash(child, f"while timing {path.name}"))

        if bench.get("samples_ns"):
            return summarize_samples(
                bench["samples_ns"],
                max_rss_kb=bench.get("rss_kb"),
                gc_collections=bench.get("gc_collections"),
            )
        return summarize_aggregate(
            int(bench.get("total_ns") or 0),
            int(bench.get("iterations") or options.runs),
            max_rss_kb=bench.get("rss_kb"),
            gc_collections=bench.get("gc_collections"),
        )

    def benchmark(self, options: BenchOptions) -> list[BenchResult]:
        """
        Baseline first, then each candidate, one child each, one at a time.

        Sequential on purpose: two timing loops sharing cores would measure
        each other. If the baseline can't be timed there's nothing to
        compare against and BenchmarkLoadError propagates. A candidate that
        can't be timed just gets a valid=False row.
        """
        baseline_metrics = self._time_file(options.baseline, options)
        results = [
            BenchResult(
                candidate=options.baseline.name,
                valid=True,
                metrics=baseline_metrics,
                improvement=0.0,
                is_baseline=True,
            )
        ]

        for path in options.candidates:
            try:
                metrics = self._time_file(path, options)
            except BenchmarkLoadError as exc:
                logger.warning(
                    "Candidate could not be benchmarked",
                    extra={"candidate": path.name, "error": str(exc)},
                )
                results.append(BenchResult(candidate=path.name, valid=False, error=str(exc)))
                continue

            results.append(
                BenchResult(
                    candidate=path.name,
                    valid=True,
                    metrics=metrics,
                    improvement=compute_improvement(
                        metrics.ops_per_sec, baseline_metrics.ops_per_sec
                    ),
                )
            )

        return results

