# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Recorded oracles for record-replay mode.

The first run against a baseline generates inputs, runs the baseline on
them, and writes the (input, output) pairs to a recording. Every later run
replays that file instead of re-running the baseline, so results stay
comparable even if the baseline changes underneath.

Recordings live in one directory, named after the baseline's file stem plus
a short digest of its resolved path:

    .llmbench/recordings/add_3f2a9c01b7de.json

Two baselines called `add.py` in different directories get different files.
Writes are atomic: a crash mid-record never leaves half a recording behind
for the next run to trip over.
"""

import json
from pathlib import Path

from llmbench.adapters.base import LanguageAdapter
from llmbench.evaluation.errors import NoTestCasesError, UnsupportedFormatError
from llmbench.evaluation.models import Signature, TestCase
from llmbench.logging.logger import get_logger
from llmbench.testcases.loader import ensure_unique_ids, normalize_case
from llmbench.testcases.oracle import generated_inputs, observe_baseline
from llmbench.utils.filesystem import atomic_write, safe_read
from llmbench.utils.hashing import short_digest

logger = get_logger(__name__)

DEFAULT_RECORDINGS_DIR = Path(".llmbench") / "recordings"


def recording_path(baseline: Path, recordings_dir: Path = DEFAULT_RECORDINGS_DIR) -> Path:
    """Deterministic recording location for a baseline."""
    resolved = baseline.resolve()
    stem = resolved.stem.replace(".", "_")
    return recordings_dir / f"{stem}_{short_digest(str(resolved))}.json"


def load_recording(path: Path) -> list[TestCase]:
    try:
        data = json.loads(safe_read(path))
    except json.JSONDecodeError as exc:
        raise UnsupportedFormatError(f"Corrupt recording {path}: {exc}") from exc

    if not isinstance(data, list):
        raise UnsupportedFormatError(f"Recording {path} must hold a list of cases")

    cases = [normalize_case(item, index, path) for index, item in enumerate(data)]
    if not cases:
        raise NoTestCasesError(f"Recording {path} is empty")
    ensure_unique_ids(cases)
    return cases


def save_recording(path: Path, cases: list[TestCase]) -> None:
    records = []
    for case in cases:
        record = {"id": case.id, "input": case.input, "output": case.output}
        if case.error is not None:
            record["error"] = case.error
        records.append(record)
    atomic_write(path, json.dumps(records, indent=2) + "\n")


def record_cases(
    adapter: LanguageAdapter,
    baseline: Path,
    signature: Signature,
    count: int,
    seed: int,
    recordings_dir: Path = DEFAULT_RECORDINGS_DIR,
) -> list[TestCase]:
    """Generate, observe, persist. Returns the cases that were written."""
    inputs = generated_inputs(adapter, signature, count, seed)
    cases = observe_baseline(adapter, baseline, inputs, signature, id_prefix="recorded")

    path = recording_path(baseline, recordings_dir)
    save_recording(path, cases)
    logger.info(
        "Recorded test cases",
        extra={"baseline": baseline.name, "cases": len(cases), "recording": str(path)},
    )
    return cases
