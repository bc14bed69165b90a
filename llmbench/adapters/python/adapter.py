# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Python language adapter.

Extraction uses the real parser (`ast`), so there is no guessing about where
a function ends. Decorators, nested defs and multi-line signatures all come
out right. Execution goes through runner.py in a child interpreter.

Which function is the "primary export" of a Python file when no target is
named? In order: the first name in a literal `__all__` that is a top-level
function, the first top-level function without a leading underscore, the
first top-level function of any name.
"""

import ast
import sys
from pathlib import Path
from typing import Any

from llmbench.adapters.child import (
    DEFAULT_BENCH_TIMEOUT_SECONDS,
    DEFAULT_CASE_TIMEOUT_SECONDS,
    DEFAULT_COMPILE_TIMEOUT_SECONDS,
    ChildProcessAdapter,
)
from llmbench.evaluation.errors import CandidateLoadError, ExtractionError
from llmbench.evaluation.models import Extraction, Parameter, Signature
from llmbench.execution.process import run_child, tail
from llmbench.logging.logger import get_logger
from llmbench.testcases.generator import generate_inputs
from llmbench.utils.filesystem import read_head, safe_read

logger = get_logger(__name__)

RUNNER_PATH = Path(__file__).with_name("runner.py")

_FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef

# Compiles the file without executing it. Runs in a child so a pathological
# input can't take the evaluator down with it.
_SYNTAX_CHECK = (
    "import sys; "
    "compile(open(sys.argv[1], encoding='utf-8').read(), sys.argv[1], 'exec')"
)


def _literal_all(tree: ast.Module) -> list[str]:
    """Names from a module-level `__all__ = [...]`, if it's a plain literal."""
    for node in tree.body:
        if not isinstance(node, ast.Assign):
            continue
        if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets):
            continue
        try:
            value = ast.literal_eval(node.value)
        except ValueError:
            return []
        if isinstance(value, (list, tuple)):
            return [name for name in value if isinstance(name, str)]
    return []


def _signature_from_node(node: _FunctionNode) -> Signature:
    """
    Positional parameters only. Keyword-only params and *args/**kwargs
    can't be fed from a positional input vector, so they're left out.
    """
    positional = [*node.args.posonlyargs, *node.args.args]
    defaults = node.args.defaults
    first_default = len(positional) - len(defaults)

    params: list[Parameter] = []
    for index, arg in enumerate(positional):
        default = (
            ast.unparse(defaults[index - first_default])
            if index >= first_default
            else None
        )
        params.append(
            Parameter(
                name=arg.arg,
                type=ast.unparse(arg.annotation) if arg.annotation else None,
                optional=default is not None,
                default=default,
            )
        )

    return Signature(
        name=node.name,
        params=tuple(params),
        return_type=ast.unparse(node.returns) if node.returns else None,
        is_async=isinstance(node, ast.AsyncFunctionDef),
    )


def _imports(tree: ast.Module) -> tuple[str, ...]:
    """Every imported module name, in first-seen order, without duplicates."""
    seen: dict[str, None] = {}
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                seen.setdefault(alias.name, None)
        elif isinstance(node, ast.ImportFrom):
            seen.setdefault("." * node.level + (node.module or ""), None)
    return tuple(seen)


class PythonAdapter(ChildProcessAdapter):
    """Adapter for .py files, executed with a separate Python interpreter."""

    language_id = "python"
    extensions = (".py", ".pyw")

    def __init__(
        self,
        python_executable: str | None = None,
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
        self._executable = python_executable or sys.executable

    @classmethod
    def from_config(cls, config: Any) -> "PythonAdapter":
        return cls(
            python_executable=config.adapters.python_executable,
            case_timeout_seconds=config.validation.timeout_seconds,
            bench_timeout_seconds=config.bench.timeout_seconds,
            compile_timeout_seconds=config.adapters.compile_timeout_seconds,
            formatter_command=config.adapters.python_formatter,
        )

    def runner_command(self) -> list[str]:
        return [self._executable, "-B", str(RUNNER_PATH)]

    def detect(self, path: Path) -> bool:
        if path.suffix.lower() in self.extensions:
            return True
        first_line = read_head(path).split("\n", 1)[0]
        return first_line.startswith("#!") and "python" in first_line

    def extract(self, path: Path, target: str | None = None) -> Extraction:
        try:
            source = safe_read(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise ExtractionError(f"Cannot read {path}: {exc}") from exc

        try:
            tree = ast.parse(source, filename=str(path))
        except SyntaxError as exc:
            raise ExtractionError(
                f"{path} is not valid Python: {exc.msg} (line {exc.lineno})"
            ) from exc

        functions = [
            node for node in tree.body
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
        ]
        if not functions:
            raise ExtractionError(
                f"No top-level functions found in {path}. The function has to "
                f"be defined at module level, not inside a class or a block."
            )

        node = self._select(tree, functions, target, path)
        start_line = min([node.lineno, *(d.lineno for d in node.decorator_list)])
        lines = source.splitlines()
        code = "\n".join(lines[start_line - 1:node.end_lineno])

        logger.debug(
            "Extracted Python function",
            extra={"file": str(path), "function": node.name, "lines": len(code.splitlines())},
        )
        return Extraction(
            code=code,
            signature=_signature_from_node(node),
            dependencies=_imports(tree),
        )

    @staticmethod
    def _select(
        tree: ast.Module,
        functions: list[_FunctionNode],
        target: str | None,
        path: Path,
    ) -> _FunctionNode:
        by_name = {node.name: node for node in functions}

        if target:
            if target in by_name:
                return by_name[target]
            raise ExtractionError(
                f"Function '{target}' not found in {path}. "
                f"Top-level functions: {', '.join(by_name)}"
            )

        for name in _literal_all(tree):
            if name in by_name:
                return by_name[name]

        public = [node for node in functions if not node.name.startswith("_")]
        return (public or functions)[0]

    def compile(self, path: Path) -> None:
        result = run_child(
            [self._executable, "-B", "-c", _SYNTAX_CHECK, str(path)],
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
