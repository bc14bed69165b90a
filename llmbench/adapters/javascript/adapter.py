# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
JavaScript language adapter (ES modules and CommonJS).

There's no JavaScript parser in the dependency stack, so extraction is
two-step: a regex finds where a declaration starts, then the lexical
scanner in llmbench.adapters.scanning finds where it ends (matching
brackets while skipping strings and comments). That covers the shapes
generated code actually uses:

    function add(a, b) { ... }           export function add(a, b) { ... }
    const add = (a, b) => a + b;          export const add = async (a) => { ... }
    export default function (a, b) {...}  module.exports = function add(a, b) {...}
    exports.add = (a, b) => ...           module.exports = add

Primary export, when no target is named: the inline default export, then a
default/module.exports reference, then the first named export. A file with
no export at all gets a different error than a file whose exports don't
include the target, because the fixes are different.

Execution goes through runner.cjs under `node`.
"""

import re
from pathlib import Path
from typing import Any

from llmbench.adapters.child import (
    DEFAULT_BENCH_TIMEOUT_SECONDS,
    DEFAULT_CASE_TIMEOUT_SECONDS,
    DEFAULT_COMPILE_TIMEOUT_SECONDS,
    ChildProcessAdapter,
)
from llmbench.adapters.scanning import (
    find_expression_end,
    find_matching,
    iter_code_chars,
    split_top_level,
)
from llmbench.evaluation.errors import CandidateLoadError, ExtractionError
from llmbench.evaluation.models import Extraction, Parameter, Signature
from llmbench.execution.process import run_child, tail
from llmbench.logging.logger import get_logger
from llmbench.testcases.generator import generate_inputs
from llmbench.utils.filesystem import read_head, safe_read

logger = get_logger(__name__)

RUNNER_PATH = Path(__file__).with_name("runner.cjs")

DEFAULT_EXPORT_NAME = "default"

_IDENT = r"[A-Za-z_$][\w$]*"
_START = r"(?<![\w$.])"
_FUNCTION_HEAD = rf"function\s*\*?\s*(?:{_IDENT})?\s*\("
_FUNCTION_KEYWORD_TAIL = re.compile(rf"(?<![\w$]){_FUNCTION_HEAD}$")

_DEFAULT_INLINE_FUNCTION = re.compile(
    rf"{_START}export\s+default\s+(?P<async>async\s+)?function\s*\*?\s*(?P<name>{_IDENT})?\s*\("
)
_DEFAULT_INLINE_ARROW = re.compile(
    rf"{_START}export\s+default\s+(?P<async>async\s+)?(?:\(|(?P<single>{_IDENT})\s*=>)"
)
_MODULE_EXPORTS_INLINE = re.compile(
    rf"{_START}module\.exports\s*=\s*(?P<async>async\s+)?"
    rf"(?:function\s*\*?\s*(?P<name>{_IDENT})?\s*\(|\(|(?P<single>{_IDENT})\s*=>)"
)
_DEFAULT_REFERENCE = re.compile(
    rf"{_START}(?:export\s+default|module\.exports\s*=)\s*(?P<name>{_IDENT})\s*;?[ \t]*$",
    re.MULTILINE,
)
_EXPORT_LIST = re.compile(rf"{_START}(?:module\.exports\s*=|export)\s*\{{(?P<names>[^}}]*)\}}")
_NAMED_EXPORT = re.compile(
    rf"{_START}export\s+(?:async\s+)?(?:function\s*\*?\s*|const\s+|let\s+|var\s+)(?P<name>{_IDENT})"
)
_EXPORTS_PROPERTY = re.compile(rf"{_START}(?:module\.)?exports\.(?P<name>{_IDENT})\s*=")

_STATIC_IMPORT = re.compile(rf"""{_START}import\s+(?:[^'"`;]*?\s+from\s+)?['"](?P<module>[^'"]+)['"]""")
_DYNAMIC_IMPORT = re.compile(rf"""{_START}(?:require|import)\s*\(\s*['"](?P<module>[^'"]+)['"]\s*\)""")


def _declaration_patterns(name: str) -> tuple[re.Pattern[str], ...]:
    n = re.escape(name)
    return (
        re.compile(
            rf"{_START}(?:export\s+(?:default\s+)?)?(?P<async>async\s+)?function\s*\*?\s*{n}\s*\("
        ),
        re.compile(
            rf"{_START}(?:export\s+)?(?:const|let|var)\s+{n}\s*=\s*(?P<async>async\s+)?"
            rf"(?:{_FUNCTION_HEAD}|\(|(?P<single>{_IDENT})\s*=>)"
        ),
        re.compile(
            rf"{_START}(?:module\.)?exports\.{n}\s*=\s*(?P<async>async\s+)?"
            rf"(?:{_FUNCTION_HEAD}|\(|(?P<single>{_IDENT})\s*=>)"
        ),
    )


def _in_code(source: str, offset: int) -> bool:
    """True if `offset` is real code, not inside a string or comment."""
    for index, _ in iter_code_chars(source):
        if index >= offset:
            return index == offset
    return False


def _skip_space(source: str, index: int) -> int:
    while index < len(source) and source[index].isspace():
        index += 1
    return index


def _function_span(source: str, match: re.Match[str]) -> tuple[int, str] | None:
    """
    Where the function that `match` starts ends, plus its raw parameter text.

    The match ends either just past an opening `(` or just past the `=>` of
    a single-parameter arrow. Returns None when what follows isn't a
    function after all (e.g. `const x = (a + b) * 2`).
    """
    single = match.groupdict().get("single")
    if single:
        params_text = single
        cursor = _skip_space(source, match.end())
    else:
        open_paren = match.end() - 1
        try:
            close_paren = find_matching(source, open_paren)
        except ValueError:
            return None
        params_text = source[open_paren + 1:close_paren - 1]
        cursor = _skip_space(source, close_paren)

        uses_function_keyword = _FUNCTION_KEYWORD_TAIL.search(match.group(0)) is not None
        if uses_function_keyword:
            if not source.startswith("{", cursor):
                return None
        elif source.startswith("=>", cursor):
            cursor = _skip_space(source, cursor + 2)
        else:
            return None

    try:
        if source.startswith("{", cursor):
            end = find_matching(source, cursor)
        else:
            end = find_expression_end(source, cursor)
    except ValueError:
        return None

    if source.startswith(";", end):
        end += 1
    return end, params_text


def _split_default(raw: str) -> tuple[str, str | None]:
    """Split `name = default` at the first top-level assignment `=`."""
    depth = 0
    for index, ch in iter_code_chars(raw):
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "=" and depth == 0:
            before = raw[index - 1] if index > 0 else ""
            after = raw[index + 1] if index + 1 < len(raw) else ""
            if after not in "=>" and before not in "=!<>":
                return raw[:index].strip(), raw[index + 1:].strip()
    return raw.strip(), None


def _parse_params(text: str) -> tuple[Parameter, ...]:
    """
    Positional parameters from a parameter list. Rest parameters are left
    out, the same way *args is for Python.
    """
    params: list[Parameter] = []
    for raw in split_top_level(text):
        if raw.startswith("..."):
            continue
        name, default = _split_default(raw)

        annotation = None
        pieces = split_top_level(name, ":")
        if len(pieces) == 2:
            name, annotation = pieces

        optional = default is not None or name.endswith("?")
        params.append(
            Parameter(
                name=name.rstrip("?").strip(),
                type=annotation,
                optional=optional,
                default=default,
            )
        )
    return tuple(params)


def _dependencies(source: str) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for pattern in (_STATIC_IMPORT, _DYNAMIC_IMPORT):
        for match in pattern.finditer(source):
            if _in_code(source, match.start()):
                seen.setdefault(match.group("module"), None)
    return tuple(seen)


def _export_names(source: str) -> list[str]:
    """Names the file exports, in source order. `default` for a default export."""
    found: list[tuple[int, str]] = []
    for pattern in (_NAMED_EXPORT, _EXPORTS_PROPERTY):
        for match in pattern.finditer(source):
            found.append((match.start(), match.group("name")))
    for match in _EXPORT_LIST.finditer(source):
        for item in split_top_level(match.group("names")):
            # `a as b` exports b; `a: b` in an object exports a.
            exported = re.split(r"\s+as\s+|\s*:\s*", item)
            name = exported[-1] if " as " in item else exported[0]
            found.append((match.start(), name.strip()))
    for pattern in (_DEFAULT_INLINE_FUNCTION, _DEFAULT_INLINE_ARROW, _MODULE_EXPORTS_INLINE, _DEFAULT_REFERENCE):
        for match in pattern.finditer(source):
            found.append((match.start(), DEFAULT_EXPORT_NAME))

    names: dict[str, None] = {}
    for offset, name in sorted(found):
        if _in_code(source, offset):
            names.setdefault(name, None)
    return list(names)


class JavaScriptAdapter(ChildProcessAdapter):
    """Adapter for .js/.mjs/.cjs files, executed under Node.js."""

    language_id = "javascript"
    extensions = (".js", ".mjs", ".cjs")

    def __init__(
        self,
        node_executable: str = "node",
        case_timeout_seconds: float = DEFAULT_CASE_TIMEOUT_SECONDS,
        bench_timeout_seconds: float = DEFAULT_BENCH_TIMEOUT_SECONDS,
        compile_timeout_seconds: float = DEFAULT_COMPILE_TIMEOUT_SECONDS,
        formatter_command: list[str] | None = None,
    ) -> None:
        super().__init__(
            case_timeout_seconds=case_timeout_seconds,
            bench_timeout_seconds=bench_timeout_seconds,
            compile_timeout_seconds=compile_timeout_seconds,
            formatter_command=formatter_command,
        )
        self._node = node_executable

    @classmethod
    def from_config(cls, config: Any) -> "JavaScriptAdapter":
        return cls(
            node_executable=config.adapters.node_executable,
            case_timeout_seconds=config.validation.timeout_seconds,
            bench_timeout_seconds=config.bench.timeout_seconds,
            compile_timeout_seconds=config.adapters.compile_timeout_seconds,
            formatter_command=config.adapters.javascript_formatter,
        )

    def runner_command(self) -> list[str]:
        return [self._node, str(RUNNER_PATH)]

    def detect(self, path: Path) -> bool:
        if path.suffix.lower() in self.extensions:
            return True
        first_line = read_head(path).split("\n", 1)[0]
        return first_line.startswith("#!") and "node" in first_line

    # ── extraction ──────────────────────────────────────────────────────

    def _locate(self, source: str, name: str) -> tuple[re.Match[str], int, str] | None:
        """Earliest declaration of `name` that really is a function."""
        candidates = sorted(
            (match for pattern in _declaration_patterns(name) for match in pattern.finditer(source)),
            key=lambda m: m.start(),
        )
        for match in candidates:
            if not _in_code(source, match.start()):
                continue
            span = _function_span(source, match)
            if span is not None:
                return match, span[0], span[1]
        return None

    def _locate_primary(self, source: str) -> tuple[str, re.Match[str], int, str] | None:
        """The primary export as (exported name, match, end, params)."""
        for pattern in (_DEFAULT_INLINE_FUNCTION, _DEFAULT_INLINE_ARROW, _MODULE_EXPORTS_INLINE):
            for match in pattern.finditer(source):
                if not _in_code(source, match.start()):
                    continue
                span = _function_span(source, match)
                if span is not None:
                    return DEFAULT_EXPORT_NAME, match, span[0], span[1]

        for match in _DEFAULT_REFERENCE.finditer(source):
            if _in_code(source, match.start()):
                located = self._locate(source, match.group("name"))
                if located is not None:
                    return (match.group("name"), *located)

        for name in _export_names(source):
            if name == DEFAULT_EXPORT_NAME:
                continue
            located = self._locate(source, name)
            if located is not None:
                return (name, *located)
        return None

    def extract(self, path: Path, target: str | None = None) -> Extraction:
        try:
            source = safe_read(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise ExtractionError(f"Cannot read {path}: {exc}") from exc

        exports = _export_names(source)

        if target:
            located = self._locate(source, target)
            if located is None:
                if not exports:
                    raise ExtractionError(
                        f"No exports found in {path}, and no function named '{target}' "
                        f"is declared in it."
                    )
                raise ExtractionError(
                    f"Function '{target}' not found in {path}. "
                    f"Exports present: {', '.join(exports)}"
                )
            name = target
            match, end, params_text = located
        else:
            if not exports:
                raise ExtractionError(
                    f"No exports found in {path}. Export the function with "
                    f"`export default`, `export function`, or `module.exports =`."
                )
            primary = self._locate_primary(source)
            if primary is None:
                raise ExtractionError(
                    f"Could not locate the primary export of {path}. "
                    f"Exports present: {', '.join(exports)}"
                )
            name, match, end, params_text = primary

        code = source[match.start():end]
        signature = Signature(
            name=name,
            params=_parse_params(params_text),
            is_async=bool(match.group("async")),
        )
        logger.debug(
            "Extracted JavaScript function",
            extra={"file": str(path), "function": name, "params": signature.arity},
        )
        return Extraction(code=code, signature=signature, dependencies=_dependencies(source))

    # ── execution ───────────────────────────────────────────────────────

    def compile(self, path: Path) -> None:
        result = run_child(
            [self._node, "--check", str(path)],
            timeout_seconds=self._compile_timeout,
            cwd=path.parent,
        )
        if not result.success:
            raise CandidateLoadError(
                f"Syntax check failed for {path.name}: {tail(result.stderr, 3)}"
            )

    def generate_test_inputs(
        self,
        signature: Signature,
        count: int,
        seed: int = 0,
    ) -> list[list[Any]]:
        return generate_inputs(signature, count, seed)
