# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the child-process harness.

The children here are plain `python -c` one-liners, so these run anywhere
the test suite does. We check exit codes, timeouts (all three kinds),
process-group cleanup, the scrubbed environment, and protocol line parsing.
"""

import os
import sys

import pytest

from llmbench.execution.process import (
    PROTOCOL_PREFIX,
    build_child_env,
    parse_events,
    run_child,
    run_child_streaming,
    tail,
)

NONCE = "n1"


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def _emitting(body: str) -> list[str]:
    """A child with an `emit(i)` helper that writes one protocol case event."""
    prelude = (
        "import json, sys, time\n"
        f"P = {PROTOCOL_PREFIX!r}\n"
        "def emit(i):\n"
        f"    print(P + json.dumps({{'event': 'case', 'index': i, 'nonce': {NONCE!r}}}), flush=True)\n"
    )
    return _python(prelude + body)


class TestRunChild:
    def test_captures_stdout_and_exit_code(self) -> None:
        result = run_child(_python("print('hello')"))
        assert result.success
        assert result.exit_code == 0
        assert result.stdout.strip() == "hello"

    def test_passes_stdin(self) -> None:
        result = run_child(_python("import sys; print(sys.stdin.read().upper())"), "abc")
        assert result.stdout.strip() == "ABC"

    def test_nonzero_exit_is_not_success(self) -> None:
        result = run_child(_python("import sys; sys.stderr.write('bad'); sys.exit(3)"))
        assert not result.success
        assert result.exit_code == 3
        assert "bad" in result.stderr

    def test_timeout_kills_child(self) -> None:
        result = run_child(_python("import time; time.sleep(30)"), timeout_seconds=0.5)
        assert result.timed_out
        assert not result.success
        assert "Timed out" in result.stderr

    @pytest.mark.skipif(os.name != "posix", reason="process groups are POSIX only")
    def test_timeout_kills_grandchildren_too(self) -> None:
        # The grandchild inherits stdout. If it survived, reading the
        # pipe to EOF would wait out its whole sleep.
        code = (
            "import subprocess, sys, time\n"
            "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(30)'])\n"
            "time.sleep(30)"
        )
        result = run_child(_python(code), timeout_seconds=0.5)
        assert result.timed_out
        assert result.elapsed_seconds < 10

    def test_missing_executable_is_a_failed_result(self) -> None:
        result = run_child(["no-such-binary-for-llmbench"])
        assert not result.success
        assert "not found" in result.stderr


class TestRunChildStreaming:
    def test_keeps_protocol_lines_only(self) -> None:
        result = run_child_streaming(_emitting("print('chatter')\nfor i in range(3):\n    emit(i)"))
        assert result.success
        assert [event["index"] for event in parse_events(result.stdout)] == [0, 1, 2]
        assert "chatter" not in result.stdout

    def test_steady_protocol_output_keeps_child_alive(self) -> None:
        # Total runtime is well past the idle timeout, but no single gap is.
        code = "for i in range(6):\n    emit(i)\n    time.sleep(0.2)"
        result = run_child_streaming(_emitting(code), idle_timeout_seconds=1.0)
        assert not result.timed_out
        assert len(parse_events(result.stdout)) == 6

    def test_idle_child_is_killed_and_partial_output_kept(self) -> None:
        result = run_child_streaming(_emitting("emit(0)\ntime.sleep(30)"), idle_timeout_seconds=0.5)
        assert result.timed_out
        assert [event["index"] for event in parse_events(result.stdout)] == [0]
        assert "No output for 0.5s" in result.stderr

    def test_chatter_does_not_keep_child_alive(self) -> None:
        code = "while True:\n    print('tick', flush=True)\n    time.sleep(0.1)"
        result = run_child_streaming(_emitting(code), idle_timeout_seconds=0.5)
        assert result.timed_out
        assert result.elapsed_seconds < 5
        assert result.stdout == ""

    def test_total_deadline_stops_a_busy_child(self) -> None:
        code = "i = 0\nwhile True:\n    emit(i)\n    i += 1\n    time.sleep(0.1)"
        result = run_child_streaming(
            _emitting(code), idle_timeout_seconds=1.0, total_timeout_seconds=1.0
        )
        assert result.timed_out
        assert result.elapsed_seconds < 5
        assert "total limit" in result.stderr
        assert parse_events(result.stdout)

    def test_lines_with_the_wrong_nonce_are_dropped(self) -> None:
        code = "print(P + json.dumps({'event': 'case', 'index': 0, 'nonce': 'forged'}))\nemit(1)"
        result = run_child_streaming(_emitting(code), nonce=NONCE)
        assert [event["index"] for event in parse_events(result.stdout)] == [1]

    def test_stderr_keeps_only_the_tail(self) -> None:
        code = "for i in range(5000):\n    sys.stderr.write('line %d\\n' % i)"
        result = run_child_streaming(_emitting(code))
        lines = result.stderr.splitlines()
        assert len(lines) <= 200
        assert lines[-1] == "line 4999"

    def test_missing_executable_is_a_failed_result(self) -> None:
        result = run_child_streaming(["no-such-binary-for-llmbench"])
        assert not result.success


class TestChildEnvironment:
    def test_only_whitelisted_variables_pass_through(self, monkeypatch) -> None:  # type: ignore[no-untyped-def]
        monkeypatch.setenv("LLMBENCH_SECRET_TOKEN", "hunter2")
        env = build_child_env()
        assert "LLMBENCH_SECRET_TOKEN" not in env
        assert env["PYTHONDONTWRITEBYTECODE"] == "1"

    def test_child_does_not_see_secrets(self, monkeypatch) -> None:  # type: ignore[no-untyped-def]
        monkeypatch.setenv("LLMBENCH_SECRET_TOKEN", "hunter2")
        result = run_child(_python("import os; print(os.environ.get('LLMBENCH_SECRET_TOKEN'))"))
        assert result.stdout.strip() == "None"


class TestParseEvents:
    def test_ignores_non_protocol_lines(self) -> None:
        stdout = "\n".join([
            "stray print",
            PROTOCOL_PREFIX + '{"event": "loaded"}',
            PROTOCOL_PREFIX + "{not json",
            PROTOCOL_PREFIX + '{"no_event": 1}',
            PROTOCOL_PREFIX + '{"event": "case", "index": 0, "ok": true, "actual": 3}',
        ])
        events = parse_events(stdout)
        assert [event["event"] for event in events] == ["loaded", "case"]
        assert events[1]["actual"] == 3

    def test_nonce_must_match_when_given(self) -> None:
        stdout = "\n".join([
            PROTOCOL_PREFIX + '{"event": "case", "index": 0}',
            PROTOCOL_PREFIX + '{"event": "case", "index": 1, "nonce": "other"}',
            PROTOCOL_PREFIX + '{"event": "case", "index": 2, "nonce": "n1"}',
        ])
        assert [event["index"] for event in parse_events(stdout, NONCE)] == [2]
        assert len(parse_events(stdout)) == 3

    def test_accepts_non_finite_numbers(self) -> None:
        events = parse_events(PROTOCOL_PREFIX + '{"event": "case", "actual": NaN}')
        assert events[0]["actual"] != events[0]["actual"]


class TestTail:
    def test_keeps_last_non_empty_lines(self) -> None:
        assert tail("a\n\nb\nc\n\n", lines=2) == "b\nc"

    def test_empty_text(self) -> None:
        assert tail("") == ""
