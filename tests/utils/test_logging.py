# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the structured JSON logger.

We verify:
  - output is valid JSON
  - all mandatory fields are present (ts, level, module, msg)
  - log levels filter correctly
  - extra context fields get merged into the JSON
  - reconfiguring never duplicates output
"""

import io
import json
from pathlib import Path

import pytest

from llmbench.logging.logger import configure_logging, get_logger


@pytest.fixture()
def stream() -> io.StringIO:
    """Route the package logger into a buffer for the duration of a test."""
    buffer = io.StringIO()
    configure_logging(log_level="DEBUG", stream=buffer)
    yield buffer  # type: ignore[misc]
    configure_logging(log_level="INFO")


def _lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


class TestJsonOutput:
    def test_output_is_valid_json(self, stream: io.StringIO) -> None:
        get_logger("llmbench.test.json").info("hello")

        lines = _lines(stream)
        assert len(lines) == 1
        assert isinstance(lines[0], dict)

    def test_mandatory_fields_are_present(self, stream: io.StringIO) -> None:
        get_logger("llmbench.test.fields").info("test message")

        parsed = _lines(stream)[0]
        assert parsed["level"] == "INFO"
        assert parsed["module"] == "llmbench.test.fields"
        assert parsed["msg"] == "test message"
        assert "ts" in parsed

    def test_extra_fields_are_included(self, stream: io.StringIO) -> None:
        get_logger("llmbench.test.extra").info(
            "candidate validated", extra={"candidate": "openai.gpt-4o", "passed_cases": 3}
        )

        parsed = _lines(stream)[0]
        assert parsed["candidate"] == "openai.gpt-4o"
        assert parsed["passed_cases"] == 3

    def test_non_json_extras_fall_back_to_str(self, stream: io.StringIO) -> None:
        get_logger("llmbench.test.path").info("path", extra={"path": Path("a") / "b.py"})

        parsed = _lines(stream)[0]
        assert parsed["path"] == str(Path("a") / "b.py")

    def test_exception_info_is_attached(self, stream: io.StringIO) -> None:
        logger = get_logger("llmbench.test.exc")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        parsed = _lines(stream)[0]
        assert "ValueError: boom" in parsed["exc"]


class TestNamespacing:
    def test_foreign_names_are_nested_under_package(self, stream: io.StringIO) -> None:
        logger = get_logger("somewhere.else")
        assert logger.name == "llmbench.somewhere.else"

        logger.info("nested")
        assert _lines(stream)[0]["module"] == "llmbench.somewhere.else"


class TestLogLevelFiltering:
    def test_debug_messages_hidden_at_info_level(self) -> None:
        buffer = io.StringIO()
        configure_logging(log_level="INFO", stream=buffer)
        try:
            get_logger("llmbench.test.level_filter").debug("this should not appear")
        finally:
            configure_logging(log_level="INFO")
        assert buffer.getvalue().strip() == ""

    def test_info_messages_shown_at_info_level(self) -> None:
        buffer = io.StringIO()
        configure_logging(log_level="INFO", stream=buffer)
        try:
            get_logger("llmbench.test.level_show").info("this should appear")
        finally:
            configure_logging(log_level="INFO")
        assert "this should appear" in buffer.getvalue()


class TestReconfiguration:
    def test_configuring_twice_does_not_duplicate_lines(self) -> None:
        buffer = io.StringIO()
        configure_logging(log_level="INFO", stream=buffer)
        configure_logging(log_level="INFO", stream=buffer)
        try:
            get_logger("llmbench.test.dup").info("once")
        finally:
            configure_logging(log_level="INFO")
        assert len(buffer.getvalue().strip().splitlines()) == 1


class TestFileOutput:
    def test_logs_are_written_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "test.log"
        configure_logging(log_level="INFO", log_file=log_file, stream=io.StringIO())
        try:
            get_logger("llmbench.test.file_output").info("file log test")
        finally:
            configure_logging(log_level="INFO")

        assert log_file.exists()
        parsed = json.loads(log_file.read_text(encoding="utf-8").strip())
        assert parsed["msg"] == "file log test"


class TestInvalidLogLevel:
    def test_invalid_level_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            get_logger("llmbench.test.invalid", log_level="INVALID")
