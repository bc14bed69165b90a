# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Static test-case files: discovery, parsing, normalization.

Where we look for a baseline `src/add.py`, unless a glob is configured:

    src/add.test.json   src/add.test.yaml   src/add.test.yml
    src/__tests__/add.json   src/__tests__/add.yaml   src/__tests__/add.yml

Every file found is loaded, in that order. A file holds either a list of
cases or an object with a `cases` list. Each case can be written three ways,
and all three come out as the same TestCase:

    {"input": [1, 2], "output": 3}
    {"args": [1, 2], "result": 3}
    [[1, 2], 3]

A scalar input is wrapped into a one-element argument list. Cases without
an explicit `id` are numbered `case_<n>` in load order across all files.
An `error` field (with no `output`) marks a case that must raise.
"""

import json
from pathlib import Path
from typing import Any

import yaml

from llmbench.evaluation.errors import NoTestCasesError, UnsupportedFormatError
from llmbench.evaluation.models import TestCase
from llmbench.logging.logger import get_logger
from llmbench.utils.filesystem import safe_read

logger = get_logger(__name__)

CASE_FILE_EXTENSIONS: tuple[str, ...] = (".json", ".yaml", ".yml")


def discover_case_files(baseline: Path, pattern: str | None = None) -> list[Path]:
    """
    Existing case files for a baseline.

    With `pattern`, it's a glob relative to the baseline's directory (or an
    absolute glob), and matches come back sorted.
    """
    base_dir = baseline.parent

    if pattern:
        pattern_path = Path(pattern)
        if pattern_path.is_absolute():
            anchor = Path(pattern_path.anchor)
            matches = anchor.glob(str(pattern_path.relative_to(anchor)))
        else:
            matches = base_dir.glob(pattern)
        return sorted(path for path in matches if path.is_file())

    return [path for path in default_case_locations(baseline) if path.is_file()]


def default_case_locations(baseline: Path) -> list[Path]:
    base_dir = baseline.parent
    stem = baseline.stem
    return [
        *(base_dir / f"{stem}.test{ext}" for ext in CASE_FILE_EXTENSIONS),
        *(base_dir / "__tests__" / f"{stem}{ext}" for ext in CASE_FILE_EXTENSIONS),
    ]


def parse_case_document(path: Path) -> Any:
    """Read a JSON or YAML file into plain Python data."""
    suffix = path.suffix.lower()
    if suffix not in CASE_FILE_EXTENSIONS:
        raise UnsupportedFormatError(
            f"Unsupported test case file {path.name}. "
            f"Use one of: {', '.join(CASE_FILE_EXTENSIONS)}"
        )

    text = safe_read(path)
    if suffix == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise UnsupportedFormatError(f"Invalid JSON in {path}: {exc}") from exc

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise UnsupportedFormatError(f"Invalid YAML in {path}: {exc}") from exc


def _case_items(data: Any, source: Path) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("cases"), list):
        return data["cases"]
    raise UnsupportedFormatError(
        f"{source}: expected a list of test cases or an object with a 'cases' list, "
        f"got {type(data).__name__}"
    )


def as_argument_vector(raw: Any) -> list[Any]:
    """A case input as a positional argument list."""
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return [raw]


def normalize_case(item: Any, index: int, source: Path | None = None) -> TestCase:
    """
    Turn one raw case, in any accepted shape, into a TestCase.

    `index` is the case's position across everything loaded so far and
    only matters when the case has no explicit id.
    """
    where = f" in {source}" if source else ""
    default_id = f"case_{index}"

    if isinstance(item, (list, tuple)):
        if len(item) != 2:
            raise UnsupportedFormatError(
                f"Case {index}{where}: a pair must be [input, output], got {len(item)} items"
            )
        return TestCase(id=default_id, input=as_argument_vector(item[0]), output=item[1])

    if not isinstance(item, dict):
        raise UnsupportedFormatError(
            f"Case {index}{where}: expected an object or an [input, output] pair, "
            f"got {type(item).__name__}"
        )

    if "input" in item:
        raw_input, output_key = item["input"], "output"
    elif "args" in item:
        raw_input, output_key = item["args"], "result"
    else:
        raise UnsupportedFormatError(
            f"Case {index}{where}: needs 'input'/'output' or 'args'/'result'"
        )

    error = item.get("error")
    if output_key not in item and error is None:
        raise UnsupportedFormatError(
            f"Case {index}{where}: has an input but no '{output_key}' (or 'error')"
        )

    metadata = item.get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        raise UnsupportedFormatError(f"Case {index}{where}: 'metadata' must be an object")

    case_id = item.get("id")
    return TestCase(
        id=str(case_id) if case_id is not None else default_id,
        input=as_argument_vector(raw_input),
        output=item.get(output_key),
        error=str(error) if error is not None else None,
        metadata=metadata,
    )


def load_case_file(path: Path, start_index: int = 0) -> list[TestCase]:
    """All cases in one file, numbered from `start_index`."""
    items = _case_items(parse_case_document(path), path)
    return [
        normalize_case(item, start_index + offset, path)
        for offset, item in enumerate(items)
    ]


def ensure_unique_ids(cases: list[TestCase]) -> None:
    seen: set[str] = set()
    for case in cases:
        if case.id in seen:
            raise UnsupportedFormatError(f"Duplicate test case id: {case.id}")
        seen.add(case.id)


def load_static_cases(baseline: Path, pattern: str | None = None) -> list[TestCase]:
    """
    Discover and load every static case file for a baseline.

    Raises NoTestCasesError naming every place that was searched when
    nothing turns up, and UnsupportedFormatError for unreadable files.
    """
    files = discover_case_files(baseline, pattern)

    cases: list[TestCase] = []
    for path in files:
        cases.extend(load_case_file(path, start_index=len(cases)))

    if not cases:
        searched = (
            [str(baseline.parent / pattern)] if pattern
            else [str(path) for path in default_case_locations(baseline)]
        )
        raise NoTestCasesError(
            f"No test cases found for {baseline.name}. Searched: {', '.join(searched)}"
        )

    ensure_unique_ids(cases)
    logger.info(
        "Loaded static test cases",
        extra={"baseline": baseline.name, "files": len(files), "cases": len(cases)},
    )
    return cases
