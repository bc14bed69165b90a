# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for llmbench.

Every operation is a subcommand of `llmbench`. The global options
(--config, --log-level, --seed) are inherited by every subcommand through
argparse's parent parser mechanism.

Usage:
    llmbench validate src/add.py
    llmbench run src/add.py --mode record-replay --record --runs 5000
    llmbench bench src/sort.js --target sortNumbers --warmup 50
    llmbench info
"""

import argparse
import sys

from llmbench.cli.commands import handle_bench, handle_info, handle_run, handle_validate
from llmbench.cli.exit_codes import USER_ERROR

_MODES = ["static", "record-replay", "property-based"]


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    A separate parent parser (add_help=False) keeps help text from
    colliding between the root parser and the subcommand parsers.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level (overrides the config file).",
    )
    parent.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the random seed (takes precedence over config).",
    )
    return parent


def _build_evaluation_parser() -> argparse.ArgumentParser:
    """Options shared by validate, bench and run."""
    evaluation = argparse.ArgumentParser(add_help=False)
    evaluation.add_argument("file", help="Baseline source file. Variants are found next to it.")
    evaluation.add_argument(
        "--target",
        type=str,
        default=None,
        help="Function to evaluate. Defaults to the file's primary export.",
    )
    evaluation.add_argument(
        "--mode",
        type=str,
        default=None,
        choices=_MODES,
        help="Where test cases come from (overrides validation.mode).",
    )
    evaluation.add_argument(
        "--record",
        action="store_true",
        default=False,
        help="Allow record-replay mode to record a missing oracle.",
    )
    evaluation.add_argument("--runs", type=int, default=None, help="Timed iterations per file.")
    evaluation.add_argument("--warmup", type=int, default=None, help="Untimed warmup iterations.")
    evaluation.add_argument(
        "--ci",
        action="store_true",
        default=False,
        help="Exit with a validation error if any variant fails.",
    )
    return evaluation


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    """
    Register all subcommands with their handler functions.

    Each subcommand sets its handler via set_defaults(func=...), so after
    parsing `llmbench run x.py`, args.func is handle_run.
    """
    evaluation = _build_evaluation_parser()
    commands = [
        ("validate", "Check variants against the test-case oracle.", handle_validate),
        ("bench", "Benchmark variants against the baseline.", handle_bench),
        ("run", "Validate variants, then benchmark the ones that pass.", handle_run),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent, evaluation], help=help_text)
        parser.set_defaults(func=handler)

    info = subparsers.add_parser("info", parents=[parent], help="Display environment and adapter info.")
    info.set_defaults(func=handle_info)


def main(argv: list[str] | None = None) -> None:
    """
    Main CLI entrypoint. This is what pyproject.toml's [project.scripts] points to.

    With no subcommand, help is shown and the exit code is USER_ERROR.
    """
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="llmbench",
        description="llmbench: validate and benchmark generated function variants.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args(argv)

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
