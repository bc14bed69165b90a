# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Scratch directories for candidate code.

Candidates arrive as code strings. Before a child process can load one it
has to exist on disk, and we don't want generated files landing next to the
user's sources or lingering after the run. Each batch of candidates gets its
own temporary directory; the context manager removes it no matter how the
block exits.

Generated code is untrusted, and so are the names derived from provider and
model ids. Every path is checked to stay inside the sandbox root.
"""

import re
import shutil
import tempfile
from pathlib import Path
from types import TracebackType

from llmbench.evaluation.models import Candidate
from llmbench.logging.logger import get_logger

logger = get_logger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _validate_sandbox_path(path: Path, sandbox_root: Path) -> None:
    """
    Make sure a path doesn't escape the sandbox.

    Both sides are resolved first, so `../../` segments and symlinked temp
    directories are compared on their real locations.
    """
    if not path.resolve().is_relative_to(sandbox_root.resolve()):
        raise ValueError(
            f"Path escapes sandbox: {path} resolves outside {sandbox_root}"
        )


def safe_file_name(name: str) -> str:
    """Collapse anything that isn't a plain filename character into '_'."""
    cleaned = _UNSAFE_NAME_CHARS.sub("_", name).strip("._")
    return cleaned or "candidate"


def candidate_file_name(candidate: Candidate, baseline: Path, index: int) -> str:
    """
    Sandbox file name for a code-string candidate.

    Keeps the baseline's extension so the right runner semantics apply
    (.mjs stays an ES module). The index prefix keeps two candidates from
    the same provider and model apart.
    """
    stem = safe_file_name(baseline.stem)
    return f"{index:03d}_{stem}.{safe_file_name(candidate.identity)}{baseline.suffix}"


def create_sandbox(files: dict[str, str], base_dir: Path | None = None) -> Path:
    """
    Create a temp directory and write `files` (name → content) into it.

    Returns the sandbox path. On any failure the half-built directory is
    removed before the exception propagates.
    """
    sandbox_dir = Path(tempfile.mkdtemp(
        prefix="llmbench_",
        dir=str(base_dir) if base_dir else None,
    ))

    try:
        for filename, content in files.items():
            target = sandbox_dir / filename
            _validate_sandbox_path(target, sandbox_dir)
            target.write_text(content, encoding="utf-8")

        logger.debug(
            "Sandbox created",
            extra={"path": str(sandbox_dir), "files": len(files)},
        )
        return sandbox_dir

    except Exception:
        shutil.rmtree(sandbox_dir, ignore_errors=True)
        raise


def cleanup_sandbox(sandbox_dir: Path) -> None:
    """Remove a sandbox directory and everything inside it."""
    if sandbox_dir.is_dir():
        shutil.rmtree(sandbox_dir, ignore_errors=True)
        logger.debug("Sandbox cleaned up", extra={"path": str(sandbox_dir)})


class SandboxContext:
    """
    Context manager that creates a sandbox on enter and removes it on exit.

    Usage:
        with SandboxContext({"add.openai.gpt.py": code}) as sandbox_path:
            ...  # validate sandbox_path / "add.openai.gpt.py"
        # directory is gone here, even if the block raised
    """

    def __init__(self, files: dict[str, str], base_dir: Path | None = None) -> None:
        self._files = dict(files)
        self._base_dir = base_dir
        self._sandbox_dir: Path | None = None

    def __enter__(self) -> Path:
        self._sandbox_dir = create_sandbox(self._files, self._base_dir)
        return self._sandbox_dir

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._sandbox_dir is not None:
            cleanup_sandbox(self._sandbox_dir)
