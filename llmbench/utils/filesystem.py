# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Filesystem helpers for llmbench.

The one rule that matters: an oracle file on disk is either complete or
absent. A recording that got cut off halfway through a write would become a
corrupt ground truth for every later run, so anything we persist goes
through `atomic_write`: write a temp file in the target directory, flush it
to disk, then rename over the target in a single step.
"""

import os
import tempfile
from pathlib import Path

TEMP_PREFIX = ".llmbench_tmp_"


def atomic_write(target_path: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write content to a file atomically.

    The temp file lives in the same directory as the target so the final
    os.replace is a same-filesystem rename, atomic on POSIX and Windows,
    and it overwrites an existing target instead of failing.

    If anything goes wrong (disk full, permissions, KeyboardInterrupt), the
    temp file is removed and the target is left exactly as it was.

    Raises:
        OSError: If the write or rename fails.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(
        dir=str(target_path.parent),
        prefix=TEMP_PREFIX,
        suffix=".tmp",
    )
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, target_path)
    except BaseException:
        if temp_path.exists():
            temp_path.unlink()
        raise


def safe_read(file_path: Path, encoding: str = "utf-8") -> str:
    """
    Read a text file, with errors that say what was actually wrong.

    Raises:
        FileNotFoundError: If the path doesn't exist.
        IsADirectoryError: If the path is a directory.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise IsADirectoryError(f"Expected a file, got a directory: {file_path}")
    return file_path.read_text(encoding=encoding)


def read_head(file_path: Path, limit: int = 256) -> str:
    """
    Read at most `limit` bytes from the start of a file for content sniffing.

    Never raises: missing, unreadable, or binary files come back as "".
    Language detection calls this speculatively on whatever it's handed.
    """
    try:
        with open(file_path, "rb") as handle:
            head = handle.read(limit)
    except OSError:
        return ""
    try:
        return head.decode("utf-8")
    except UnicodeDecodeError:
        return ""
