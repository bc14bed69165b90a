# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI smoke tests.

CLI tests verify that:
  - commands execute
  - exit codes are correct
  - help text exists

We use subprocess to test the actual CLI entrypoint the way a user would.
This catches issues that unit tests miss, like broken imports or entrypoint
registration.
"""

import argparse
import json
import subprocess
import sys
from pathlib import Path

import pytest

from llmbench.cli.commands import handle_run
from llmbench.cli.main import _build_global_parser, _register_subcommands

GOOD = """\
    def add(a, b):
        return b + a
"""

WRONG = """\
    def add(a, b):
        return a * b
"""


def _run_cli(*args: str) -> subprocess.CompletedProcess[str]:
    """Run `llmbench` with the given arguments and capture output."""
    return subprocess.run(
        [sys.executable, "-m", "llmbench.cli.main", *args],
        capture_output=True,
        text=True,
        timeout=120,
    )


def _log_messages(output: str) -> list[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestHelpTexts:
    """Every subcommand must have working --help output."""

    @pytest.mark.parametrize("subcommand", ["validate", "bench", "run", "info"])
    def test_subcommand_help_exits_zero(self, subcommand: str) -> None:
        result = _run_cli(subcommand, "--help")
        assert result.returncode == 0
        assert "usage" in result.stdout.lower()

    def test_root_help_exits_with_user_error(self) -> None:
        """Running llmbench with no args should show help and exit with USER_ERROR (1)."""
        result = _run_cli()
        assert result.returncode == 1


class TestInfo:
    def test_info_runs_without_config(self) -> None:
        result = _run_cli("info")
        assert result.returncode == 0

        (info,) = [m for m in _log_messages(result.stdout) if m["msg"] == "System information"]
        assert "python" in info["registered_adapters"]

    def test_global_options_are_accepted(self) -> None:
        result = _run_cli("info", "--log-level", "DEBUG", "--seed", "123")
        assert result.returncode == 0


class TestConfigLoading:
    """Subcommands should handle config loading failures gracefully."""

    def test_nonexistent_config_returns_config_error(self) -> None:
        result = _run_cli("info", "--config", "/nonexistent/path.yaml")
        assert result.returncode == 2  # CONFIG_ERROR

    def test_schema_violation_returns_config_error(self, invalid_config_file: Path) -> None:
        result = _run_cli("info", "--config", str(invalid_config_file))
        assert result.returncode == 2

    def test_valid_config_is_accepted(self, tmp_config_file: Path) -> None:
        result = _run_cli("info", "--config", str(tmp_config_file))
        assert result.returncode == 0

    def test_invalid_override_returns_config_error(self, add_baseline: Path, write_variant) -> None:  # type: ignore[no-untyped-def]
        write_variant(add_baseline, "openai", "gpt", GOOD)
        result = _run_cli("bench", str(add_baseline), "--runs", "0")
        assert result.returncode == 2


class TestEvaluationCommands:
    def test_missing_baseline_is_a_user_error(self, tmp_path: Path) -> None:
        result = _run_cli("validate", str(tmp_path / "missing.py"))
        assert result.returncode == 1

    def test_no_variants_is_a_user_error(self, add_baseline: Path) -> None:
        result = _run_cli("validate", str(add_baseline))
        assert result.returncode == 1

    def test_validate_logs_a_summary_per_variant(self, add_baseline: Path, write_variant) -> None:  # type: ignore[no-untyped-def]
        write_variant(add_baseline, "openai", "gpt", GOOD)
        write_variant(add_baseline, "local", "tiny", WRONG)

        result = _run_cli("validate", str(add_baseline))

        assert result.returncode == 0
        summaries = {
            m["candidate"]: m["passed"]
            for m in _log_messages(result.stdout)
            if m["msg"] == "Validation summary"
        }
        assert summaries == {"openai.gpt": True, "local.tiny": False}

    def test_ci_flag_fails_on_a_wrong_variant(self, add_baseline: Path, write_variant) -> None:  # type: ignore[no-untyped-def]
        write_variant(add_baseline, "openai", "gpt", GOOD)
        write_variant(add_baseline, "local", "tiny", WRONG)

        result = _run_cli("validate", str(add_baseline), "--ci")
        assert result.returncode == 4  # VALIDATION_ERROR

    def test_run_benchmarks_passing_variants(self, add_baseline: Path, write_variant) -> None:  # type: ignore[no-untyped-def]
        write_variant(add_baseline, "openai", "gpt", GOOD)

        result = _run_cli("run", str(add_baseline), "--runs", "20", "--warmup", "1", "--ci")

        assert result.returncode == 0
        rows = [m["candidate"] for m in _log_messages(result.stdout) if m["msg"] == "Benchmark summary"]
        assert rows == ["add.py", "openai.gpt"]

    def test_bench_skips_validation(self, add_baseline: Path, write_variant) -> None:  # type: ignore[no-untyped-def]
        write_variant(add_baseline, "local", "tiny", WRONG)

        result = _run_cli("bench", str(add_baseline), "--runs", "10", "--warmup", "0")

        assert result.returncode == 0
        messages = [m["msg"] for m in _log_messages(result.stdout)]
        assert "Validation summary" not in messages
        assert messages.count("Benchmark summary") == 2

    def test_unknown_target_is_a_validation_error(self, add_baseline: Path, write_variant) -> None:  # type: ignore[no-untyped-def]
        write_variant(add_baseline, "openai", "gpt", GOOD)
        result = _run_cli("run", str(add_baseline), "--target", "sub")
        assert result.returncode == 4

    def test_record_replay_without_recording_is_a_config_error(self, add_baseline: Path, write_variant) -> None:  # type: ignore[no-untyped-def]
        write_variant(add_baseline, "openai", "gpt", GOOD)
        config = add_baseline.parent / "llmbench.yaml"
        config.write_text(
            f"validation:\n  recordings_directory: {add_baseline.parent / 'rec'}\n",
            encoding="utf-8",
        )

        result = _run_cli("validate", str(add_baseline), "--config", str(config), "--mode", "record-replay")
        assert result.returncode == 2


class TestParser:
    def test_evaluation_options(self) -> None:
        parent = _build_global_parser()
        root = argparse.ArgumentParser(parents=[parent])
        _register_subcommands(root.add_subparsers(dest="command"), parent)

        args = root.parse_args(["run", "src/add.py", "--mode", "property-based", "--runs", "5", "--seed", "9"])

        assert args.func is handle_run
        assert args.file == "src/add.py"
        assert (args.mode, args.runs, args.seed) == ("property-based", 5, 9)
        assert args.warmup is None and args.record is False and args.ci is False
