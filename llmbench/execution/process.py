# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Child-process harness for untrusted code.

Candidate code never runs inside the evaluator. Every load, every test case
batch, every timing run happens in a fresh interpreter started from here:
run the subprocess, feed it one JSON payload on stdin, capture everything,
enforce a hard wall-clock deadline, hand back a structured result. A hung or
crashing candidate costs us one child and a bounded amount of time, never
the run.

Each child is started in its own session. On timeout the whole process
group is killed, so anything the candidate spawned goes down with it.

The child side speaks a tiny line protocol. Each protocol line starts with
PROTOCOL_PREFIX followed by one JSON object. When the caller passes a
`nonce`, an event only counts if it carries that nonce. Anything else on
stdout is dropped and never resets the idle clock.

The runners keep candidate output off the protocol stream: the Python
runner writes protocol lines to a private duplicate of fd 1 and points fd 1
at stderr before loading the candidate, and the Node runner reroutes
console output. What remains possible is candidate code that inspects its
own runner (walking `sys.modules`, guessing the duplicated descriptor) to
find the nonce and forge events. The runners are process isolation, not a
security sandbox.

No shell=True, no string commands. argv lists only.
"""

import json
import os
import queue
import signal
import subprocess
import threading
import time
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from llmbench.logging.logger import get_logger

logger = get_logger(__name__)

PROTOCOL_PREFIX = "@@llmbench "

# Stderr is only used for error messages, so only its end is kept.
_STDERR_KEEP_LINES = 200

# Just enough of the parent environment for interpreters to start and find
# their own installs. Nothing else leaks into the child.
_ENV_PASSTHROUGH: tuple[str, ...] = (
    "PATH",
    "HOME",
    "LANG",
    "LC_ALL",
    "SYSTEMROOT",
    "TMPDIR",
    "TEMP",
    "TMP",
)


@dataclass(frozen=True)
class ChildResult:
    """What came back from one child-process invocation."""

    exit_code: int
    stdout: str
    stderr: str
    elapsed_seconds: float
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


def build_child_env() -> dict[str, str]:
    """Minimal environment for a child interpreter."""
    env = {key: os.environ[key] for key in _ENV_PASSTHROUGH if key in os.environ}
    env["PYTHONDONTWRITEBYTECODE"] = "1"
    env["PYTHONIOENCODING"] = "utf-8"
    return env


def _spawn(argv: list[str], cwd: Path | None) -> subprocess.Popen[str]:
    # start_new_session is ignored on Windows; there only the child is killed.
    return subprocess.Popen(
        argv,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        cwd=str(cwd) if cwd is not None else None,
        env=build_child_env(),
        start_new_session=True,
    )


def kill_process_tree(process: subprocess.Popen[str]) -> None:
    """Kill a child started by this module together with its process group."""
    if os.name == "posix":
        try:
            os.killpg(process.pid, signal.SIGKILL)
            return
        except ProcessLookupError:
            return
        except PermissionError:
            pass
    try:
        process.kill()
    except ProcessLookupError:
        pass


def _missing_executable(argv: list[str], start: float) -> ChildResult:
    logger.error("Executable not found", extra={"executable": argv[0]})
    return ChildResult(
        exit_code=-1,
        stdout="",
        stderr=f"{argv[0]} executable not found",
        elapsed_seconds=time.monotonic() - start,
    )


def run_child(
    argv: list[str],
    stdin_text: str = "",
    timeout_seconds: float = 10.0,
    cwd: Path | None = None,
) -> ChildResult:
    """
    Run one child process to completion or until the timeout fires.

    On timeout the child's process group is killed and whatever it had
    already written is kept. The caller can still use the protocol lines
    for the cases that finished before things went wrong. A missing
    executable comes back as a failed result, not an exception.
    """
    start = time.monotonic()

    try:
        process = _spawn(argv, cwd)
    except FileNotFoundError:
        return _missing_executable(argv, start)

    try:
        stdout, stderr = process.communicate(stdin_text, timeout=timeout_seconds)
    except subprocess.TimeoutExpired:
        kill_process_tree(process)
        stdout, stderr = process.communicate()
        elapsed = time.monotonic() - start
        logger.warning(
            "Child process timed out",
            extra={"executable": argv[0], "timeout_seconds": timeout_seconds},
        )
        return ChildResult(
            exit_code=-1,
            stdout=stdout or "",
            stderr=(stderr or "") + f"\nTimed out after {timeout_seconds}s",
            elapsed_seconds=elapsed,
            timed_out=True,
        )

    elapsed = time.monotonic() - start
    logger.debug(
        "Child process finished",
        extra={
            "executable": argv[0],
            "exit_code": process.returncode,
            "elapsed_seconds": round(elapsed, 3),
        },
    )
    return ChildResult(
        exit_code=process.returncode,
        stdout=stdout,
        stderr=stderr,
        elapsed_seconds=elapsed,
    )


def parse_event(line: str, nonce: str | None = None) -> dict[str, Any] | None:
    """The protocol event on one stdout line, or None if the line isn't one."""
    if not line.startswith(PROTOCOL_PREFIX):
        return None
    try:
        event = json.loads(line[len(PROTOCOL_PREFIX):])
    except json.JSONDecodeError:
        return None
    if not isinstance(event, dict) or "event" not in event:
        return None
    if nonce is not None and event.get("nonce") != nonce:
        return None
    return event


def parse_events(stdout: str, nonce: str | None = None) -> list[dict[str, Any]]:
    """Pull the protocol events out of a child's stdout, in order."""
    events: list[dict[str, Any]] = []
    for line in stdout.splitlines():
        event = parse_event(line, nonce)
        if event is not None:
            events.append(event)
    return events


def tail(text: str, lines: int = 5) -> str:
    """Last few non-empty lines of a stream, for error messages."""
    kept = [line for line in text.strip().splitlines() if line.strip()]
    return "\n".join(kept[-lines:])


def run_child_streaming(
    argv: list[str],
    stdin_text: str = "",
    idle_timeout_seconds: float = 10.0,
    cwd: Path | None = None,
    total_timeout_seconds: float | None = None,
    nonce: str | None = None,
) -> ChildResult:
    """
    Like run_child, but with two clocks.

    The idle clock restarts every time the child writes a protocol event. A
    runner that reports one event per test case therefore gets
    `idle_timeout_seconds` per case instead of for the whole batch, so a
    long list of quick cases never trips it while one hung case still does.
    Other output doesn't count as progress.

    The total clock never restarts. When `total_timeout_seconds` is set the
    child is killed at that point however busy it looks.

    The returned stdout holds the protocol lines only.
    """
    start = time.monotonic()

    try:
        process = _spawn(argv, cwd)
    except FileNotFoundError:
        return _missing_executable(argv, start)

    lines: queue.Queue[str | None] = queue.Queue()
    stderr_lines: deque[str] = deque(maxlen=_STDERR_KEEP_LINES)

    def _pump_stdout() -> None:
        assert process.stdout is not None
        for line in process.stdout:
            lines.put(line)
        lines.put(None)

    def _pump_stderr() -> None:
        assert process.stderr is not None
        for line in process.stderr:
            stderr_lines.append(line)

    readers = [
        threading.Thread(target=_pump_stdout, daemon=True),
        threading.Thread(target=_pump_stderr, daemon=True),
    ]
    for reader in readers:
        reader.start()

    assert process.stdin is not None
    try:
        process.stdin.write(stdin_text)
        process.stdin.close()
    except BrokenPipeError:
        # The child exited before reading its payload. Its exit code and
        # stderr say why.
        pass

    deadline = start + total_timeout_seconds if total_timeout_seconds is not None else None
    idle_deadline = start + idle_timeout_seconds
    protocol_lines: list[str] = []
    expired: str | None = None

    while expired is None:
        now = time.monotonic()
        if deadline is not None and now >= deadline:
            expired = f"Exceeded the total limit of {total_timeout_seconds}s"
            break
        if now >= idle_deadline:
            expired = f"No output for {idle_timeout_seconds}s"
            break

        wait = idle_deadline - now
        if deadline is not None:
            wait = min(wait, deadline - now)
        try:
            line = lines.get(timeout=wait)
        except queue.Empty:
            continue
        if line is None:
            break
        if parse_event(line, nonce) is not None:
            protocol_lines.append(line)
            idle_deadline = time.monotonic() + idle_timeout_seconds

    if expired is not None:
        kill_process_tree(process)
    exit_code = process.wait()
    for reader in readers:
        reader.join(timeout=1.0)

    elapsed = time.monotonic() - start
    stderr = "".join(stderr_lines)
    if expired is not None:
        logger.warning(
            "Child process timed out and was killed",
            extra={
                "executable": argv[0],
                "reason": expired,
                "elapsed_seconds": round(elapsed, 3),
            },
        )
        stderr += f"\n{expired}"
    else:
        logger.debug(
            "Child process finished",
            extra={
                "executable": argv[0],
                "exit_code": exit_code,
                "elapsed_seconds": round(elapsed, 3),
            },
        )

    return ChildResult(
        exit_code=-1 if expired is not None else exit_code,
        stdout="".join(protocol_lines),
        stderr=stderr,
        elapsed_seconds=elapsed,
        timed_out=expired is not None,
    )
