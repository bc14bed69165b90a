# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Environment checks for llmbench.

Fail early if the interpreter is too old, and collect a snapshot of the
machine for the startup log line. Benchmark numbers are meaningless
without knowing what they were measured on.
"""

import os
import platform
import sys
from typing import NamedTuple

from llmbench.execution.process import run_child

MINIMUM_PYTHON_MAJOR = 3
MINIMUM_PYTHON_MINOR = 11


class SystemInfo(NamedTuple):
    """Snapshot of the current system environment."""

    python_version: str
    platform: str
    architecture: str
    cpu_count: int | None


def get_python_version() -> tuple[int, int, int]:
    """Return the current Python version as a (major, minor, micro) tuple."""
    return sys.version_info[:3]


def check_minimum_python() -> None:
    """
    Verify we're running Python 3.11+.

    Raises:
        RuntimeError: If the Python version is below 3.11.
    """
    major, minor, _ = get_python_version()
    if major < MINIMUM_PYTHON_MAJOR or (
        major == MINIMUM_PYTHON_MAJOR and minor < MINIMUM_PYTHON_MINOR
    ):
        raise RuntimeError(
            f"llmbench requires Python >= {MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}, "
            f"but you're running {major}.{minor}. Please upgrade."
        )


def get_system_info() -> SystemInfo:
    """Collect basic system information for logging and diagnostics."""
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        architecture=platform.machine(),
        cpu_count=os.cpu_count(),
    )


def detect_node_version(node_executable: str = "node") -> str | None:
    """`node --version` without the leading 'v', or None if Node isn't usable."""
    result = run_child([node_executable, "--version"], timeout_seconds=10.0)
    if not result.success:
        return None
    return result.stdout.strip().lstrip("v") or None
