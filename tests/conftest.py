# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for llmbench tests.

Fixtures here are available to every test file automatically.
We keep them minimal, just the stuff that multiple test modules need:
config files, and a small Python baseline with a case file next to it.
"""

import json
import textwrap
from pathlib import Path

import pytest

from llmbench.adapters.python.adapter import PythonAdapter


ADD_SOURCE = textwrap.dedent("""\
    def add(a, b):
        return a + b
""")

ADD_CASES = [
    {"id": "small", "input": [1, 2], "output": 3},
    {"id": "negative", "input": [-4, 1], "output": -3},
    {"id": "zero", "input": [0, 0], "output": 0},
]


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """
    A small valid config YAML file in a temp directory.

    Tests that need specific config values should write their own files.
    """
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          seed: 42
          log_level: "DEBUG"
          concurrency: 2
        bench:
          runs: 50
          warmup: 2
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """A config file that's valid YAML but fails schema validation (unknown key)."""
    config_content = textwrap.dedent("""\
        global:
          seed: 42
          project_name: "not-a-field"
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file


@pytest.fixture()
def add_baseline(tmp_path: Path) -> Path:
    """
    `add.py` plus `add.test.json` in a fresh directory.

    Returns the baseline path. Variants are left to the individual tests.
    """
    project = tmp_path / "project"
    project.mkdir()
    baseline = project / "add.py"
    baseline.write_text(ADD_SOURCE, encoding="utf-8")
    (project / "add.test.json").write_text(json.dumps(ADD_CASES), encoding="utf-8")
    return baseline


@pytest.fixture()
def python_adapter() -> PythonAdapter:
    return PythonAdapter(case_timeout_seconds=10.0, bench_timeout_seconds=30.0)


def _write_variant(baseline: Path, provider: str, model: str, source: str) -> Path:
    path = baseline.with_name(f"{baseline.stem}.{provider}.{model}{baseline.suffix}")
    path.write_text(textwrap.dedent(source), encoding="utf-8")
    return path


@pytest.fixture()
def write_variant():  # type: ignore[no-untyped-def]
    """Writes `<stem>.<provider>.<model><ext>` next to a baseline and returns its path."""
    return _write_variant
