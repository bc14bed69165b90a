# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for llmbench.

Every log entry is a single JSON line: timestamped, leveled, tagged with the
module that emitted it, plus whatever structured context the caller attached
through `extra`. Evaluation runs are long and noisy (dozens of candidates,
hundreds of test cases), and grep-able JSON is a lot easier to slice than
free-form text.

How this works:
  - All llmbench loggers live under the "llmbench" namespace and propagate
    up to one package logger. Only that package logger owns handlers.
  - `configure_logging` (called once by the runtime bootstrap) decides the
    level and where the lines go: a stream, optionally a file as well.
  - `get_logger` is the only way modules obtain a logger. If nobody has
    configured logging yet, it installs the default stdout handler.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "llmbench.validation.engine", "msg": "...", ...}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Optional

PACKAGE_LOGGER_NAME = "llmbench"

# Attributes every LogRecord carries. Anything else on the record came in
# through `extra` and belongs in the JSON payload.
_STANDARD_ATTRS = frozenset({
    "name",
    "msg",
    "args",
    "created",
    "relativeCreated",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "pathname",
    "filename",
    "module",
    "levelno",
    "levelname",
    "processName",
    "process",
    "threadName",
    "thread",
    "message",
    "msecs",
    "taskName",
})


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Mandatory fields:
      ts:     ISO 8601 UTC timestamp
      level:  log level name
      module: the logger name (usually the Python module path)
      msg:    the formatted message string

    Extra context (candidate ids, case counts, timings) is merged in as
    additional keys. Values that aren't JSON-native fall back to str().
    If the record carries exception info, the formatted traceback goes
    under "exc".
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


def configure_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """
    (Re)configure the package logger.

    Existing handlers are dropped first, so calling this twice never
    duplicates output. Child loggers keep their NOTSET level and inherit
    whatever is set here.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a log file. Lines go to both the stream
                  and the file.
        stream: Where to write. Defaults to stdout.

    Returns:
        The configured package logger.
    """
    level = _resolve_log_level(log_level)
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(level)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = JsonFormatter()

    stream_handler = logging.StreamHandler(stream=stream if stream is not None else sys.stdout)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    package_logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    # Don't propagate to the root logger. We handle all output ourselves.
    package_logger.propagate = False

    return package_logger


def get_logger(name: str, log_level: Optional[str] = None) -> logging.Logger:
    """
    Get a structured JSON logger.

    Every module calls this once at the top with __name__. Names outside the
    "llmbench" namespace are nested under it so their records still reach
    the package handlers.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: Optional per-logger level override.

    Returns:
        A logging.Logger whose records are emitted as JSON lines.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    if not package_logger.handlers:
        configure_logging()

    if name != PACKAGE_LOGGER_NAME and not name.startswith(PACKAGE_LOGGER_NAME + "."):
        name = f"{PACKAGE_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if log_level is not None:
        logger.setLevel(_resolve_log_level(log_level))
    return logger
