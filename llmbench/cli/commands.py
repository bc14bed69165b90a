# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the llmbench CLI.

Each function here is one subcommand and returns an exit code. The shape is
the same everywhere: load and bootstrap, do the work inside a try block,
map failures to exit codes. Fatal evaluation errors (no oracle, no
function to extract) become VALIDATION_ERROR, configuration problems
become CONFIG_ERROR, and anything unexpected is logged with a traceback
and becomes RUNTIME_ERROR.

No print() calls. Results go out as structured log lines.
"""

import argparse
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from llmbench.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR, VALIDATION_ERROR
from llmbench.config.exceptions import ConfigError
from llmbench.config.loader import load_config
from llmbench.config.schema import LLMBenchConfig
from llmbench.evaluation.errors import ConfigurationError, EvaluationError
from llmbench.evaluation.executor import Evaluator
from llmbench.evaluation.models import BenchResult, EvaluationReport, ValidationSummary
from llmbench.evaluation.variants import VariantFile, find_variant_files
from llmbench.logging.logger import get_logger
from llmbench.runtime.bootstrap import bootstrap


def _apply_overrides(config: LLMBenchConfig, args: argparse.Namespace) -> LLMBenchConfig:
    """
    Fold command-line overrides into the config.

    Goes through model_validate rather than model_copy so an override like
    `--runs 0` is rejected by the same rules as the file.
    """
    data: dict[str, Any] = config.model_dump(by_alias=True)

    if args.seed is not None:
        data["global"]["seed"] = args.seed
    if args.log_level is not None:
        data["global"]["log_level"] = args.log_level
    if getattr(args, "mode", None) is not None:
        data["validation"]["mode"] = args.mode
    if getattr(args, "runs", None) is not None:
        data["bench"]["runs"] = args.runs
    if getattr(args, "warmup", None) is not None:
        data["bench"]["warmup"] = args.warmup
    if getattr(args, "record", False):
        data["validation"]["recording_enabled"] = True

    return LLMBenchConfig.model_validate(data)


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, LLMBenchConfig | None, logging.Logger]:
    """
    The shared setup every command needs: load config, apply overrides,
    run bootstrap.

    Returns (exit_code, config, logger). If exit_code is not SUCCESS the
    caller should return it immediately.
    """
    logger = get_logger(f"llmbench.cli.{command_name}")

    try:
        config = load_config(Path(args.config)) if args.config is not None else LLMBenchConfig.defaults()
        config = _apply_overrides(config, args)
    except ConfigError as err:
        logger.error(
            "Configuration error",
            extra={"command": command_name, "error": str(err)},
        )
        return CONFIG_ERROR, None, logger
    except ValidationError as err:
        logger.error(
            "Invalid command-line override",
            extra={"command": command_name, "error": str(err)},
        )
        return CONFIG_ERROR, None, logger

    if args.config is None:
        logger.debug(
            "No config provided, running with defaults",
            extra={"command": command_name},
        )

    try:
        bootstrap(config.global_config)
    except RuntimeError as err:
        logger.error("Bootstrap failed", extra={"command": command_name, "error": str(err)})
        return RUNTIME_ERROR, None, logger

    return SUCCESS, config, logger


def _resolve_inputs(
    args: argparse.Namespace,
    logger: logging.Logger,
) -> tuple[int, Path, list[VariantFile]]:
    """Check the baseline exists and find its variants."""
    source = Path(args.file)
    if not source.is_file():
        logger.error("Baseline file not found", extra={"path": str(source)})
        return USER_ERROR, source, []

    variants = find_variant_files(source)
    if not variants:
        logger.error(
            "No variant files found next to the baseline",
            extra={
                "path": str(source),
                "expected_pattern": f"{source.stem}.<provider>.<model>{source.suffix}",
            },
        )
        return USER_ERROR, source, []

    logger.info(
        "Variants discovered",
        extra={"baseline": str(source), "variants": [variant.identity for variant in variants]},
    )
    return SUCCESS, source, variants


def _log_summary(logger: logging.Logger, summary: ValidationSummary) -> None:
    logger.info(
        "Validation summary",
        extra={
            "candidate": summary.candidate,
            "passed": summary.passed,
            "passed_cases": summary.passed_cases,
            "failed_cases": summary.failed_cases,
            "total_cases": summary.total_cases,
            "duration_ms": round(summary.duration_ms, 2),
            "error": summary.error,
        },
    )
    for result in summary.results:
        if result.passed:
            continue
        logger.info(
            "Failed case",
            extra={
                "candidate": summary.candidate,
                "case_id": result.case_id,
                "input": result.input,
                "expected": result.expected,
                "actual": result.actual,
                "error": result.error,
            },
        )


def _log_bench(logger: logging.Logger, result: BenchResult) -> None:
    if result.metrics is None:
        logger.warning(
            "Benchmark failed",
            extra={"candidate": result.candidate, "error": result.error},
        )
        return

    metrics = result.metrics
    logger.info(
        "Benchmark summary",
        extra={
            "candidate": result.candidate,
            "baseline": result.is_baseline,
            "ops_per_sec": round(metrics.ops_per_sec, 2),
            "mean_ms": round(metrics.mean_ms, 6),
            "std_dev_ms": round(metrics.std_dev_ms, 6),
            "p95_ms": round(metrics.p95_ms, 6),
            "p99_ms": round(metrics.p99_ms, 6),
            "rme_percent": round(metrics.relative_margin_of_error, 2),
            "percentiles_approximated": metrics.percentiles_approximated,
            "improvement_percent": round(result.improvement or 0.0, 2),
        },
    )


def _ci_exit_code(args: argparse.Namespace, report: EvaluationReport) -> int:
    if getattr(args, "ci", False) and not all(summary.passed for summary in report.summaries):
        return VALIDATION_ERROR
    return SUCCESS


def _run_guarded(command_name: str, logger: logging.Logger, work: Any) -> int:
    """Run `work()` and map whatever it raises to an exit code."""
    try:
        return work()
    except ConfigurationError as err:
        logger.error("Configuration error", extra={"command": command_name, "error": str(err)})
        return CONFIG_ERROR
    except EvaluationError as err:
        logger.error(
            "Evaluation could not run",
            extra={"command": command_name, "error_type": type(err).__name__, "error": str(err)},
        )
        return VALIDATION_ERROR
    except Exception as err:
        logger.error(
            "Runtime error",
            extra={"command": command_name, "error": str(err)},
            exc_info=True,
        )
        return RUNTIME_ERROR


def handle_validate(args: argparse.Namespace) -> int:
    """Check every variant of a baseline for functional equivalence."""
    exit_code, config, logger = _load_and_bootstrap(args, "validate")
    if exit_code != SUCCESS or config is None:
        return exit_code

    exit_code, source, variants = _resolve_inputs(args, logger)
    if exit_code != SUCCESS:
        return exit_code

    def work() -> int:
        evaluator = Evaluator(config)
        prepared = evaluator.prepare(source, args.target)
        summaries = evaluator.validate(
            prepared,
            [variant.path for variant in variants],
            [variant.identity for variant in variants],
        )
        for summary in summaries:
            _log_summary(logger, summary)
        report = EvaluationReport(
            source=source,
            extraction=prepared.extraction,
            test_cases=prepared.test_cases,
            summaries=summaries,
        )
        return _ci_exit_code(args, report)

    return _run_guarded("validate", logger, work)


def handle_bench(args: argparse.Namespace) -> int:
    """
    Benchmark every variant against the baseline without re-validating.

    Meant for variants already known to be correct. Timing inputs still
    come from the configured oracle so the workload matches `run`.
    """
    exit_code, config, logger = _load_and_bootstrap(args, "bench")
    if exit_code != SUCCESS or config is None:
        return exit_code

    exit_code, source, variants = _resolve_inputs(args, logger)
    if exit_code != SUCCESS:
        return exit_code

    def work() -> int:
        evaluator = Evaluator(config)
        prepared = evaluator.prepare(source, args.target)
        results = evaluator.benchmark(
            prepared,
            [variant.path for variant in variants],
            [variant.identity for variant in variants],
        )
        for result in results:
            _log_bench(logger, result)
        return SUCCESS

    return _run_guarded("bench", logger, work)


def handle_run(args: argparse.Namespace) -> int:
    """Validate every variant, then benchmark the ones that passed."""
    exit_code, config, logger = _load_and_bootstrap(args, "run")
    if exit_code != SUCCESS or config is None:
        return exit_code

    exit_code, source, variants = _resolve_inputs(args, logger)
    if exit_code != SUCCESS:
        return exit_code

    def work() -> int:
        report = Evaluator(config).evaluate_files(
            source,
            [variant.path for variant in variants],
            target=args.target,
            identities=[variant.identity for variant in variants],
        )
        for summary in report.summaries:
            _log_summary(logger, summary)
        for result in report.bench_results:
            _log_bench(logger, result)
        if report.bench_error is not None:
            logger.warning("Benchmark skipped", extra={"error": report.bench_error})
        return _ci_exit_code(args, report)

    return _run_guarded("run", logger, work)


def handle_info(args: argparse.Namespace) -> int:
    """Display environment and adapter information."""
    exit_code, config, logger = _load_and_bootstrap(args, "info")
    if exit_code != SUCCESS or config is None:
        return exit_code

    from llmbench import __version__
    from llmbench.adapters.registry import available_languages
    from llmbench.runtime.environment import detect_node_version, get_system_info

    system_info = get_system_info()
    logger.info(
        "System information",
        extra={
            "llmbench_version": __version__,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "cpu_count": system_info.cpu_count,
            "node_version": detect_node_version(config.adapters.node_executable),
            "registered_adapters": available_languages(),
            "enabled_adapters": list(config.adapters.enabled),
            "config": args.config,
        },
    )
    return SUCCESS
