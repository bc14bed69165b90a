# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Exception taxonomy for an evaluation run.

Two families live here, and the difference between them matters:

  Run-level (fatal for the whole source file, raised before or instead of
  any candidate work): ExtractionError, UnsupportedFormatError,
  NoTestCasesError, ConfigurationError.

  Candidate-level (caught at the validate/benchmark boundary and turned into
  data: a failed summary, a failed case, a result with valid=False):
  CandidateLoadError, CandidateRuntimeError, BenchmarkLoadError.

Nothing candidate-level should ever escape an engine. If you see one in a
traceback, that's a bug in the engine, not in the candidate.
"""

from typing import Any


class EvaluationError(Exception):
    """Base for everything the evaluation core raises on purpose."""


class ExtractionError(EvaluationError):
    """
    The baseline function couldn't be located or executed.

    Messages always say which of the two situations we're in: the file has
    no functions/exports at all, or it has some but not the one asked for.
    """


class UnsupportedFormatError(EvaluationError):
    """A source file, test-case file, or recording is in a shape we can't read."""


class NoTestCasesError(EvaluationError):
    """Every candidate location was searched and zero test cases came back."""


class ConfigurationError(EvaluationError):
    """
    The run is misconfigured: a missing recording with recording disabled,
    a mode the adapter can't support, an unknown mode name.
    """


class CandidateLoadError(EvaluationError):
    """A candidate failed to compile or import. Scope: that candidate only."""


class CandidateRuntimeError(EvaluationError):
    """
    A candidate blew up while running one test case (crash, timeout, killed
    child). Scope: that case only. The next case still runs.

    `completed` holds whatever observations the child managed to report
    before it went down, so the caller can keep them and resume after the
    case that broke.
    """

    def __init__(self, message: str, completed: list[Any] | None = None) -> None:
        super().__init__(message)
        self.completed = list(completed or [])


class BenchmarkLoadError(EvaluationError):
    """A file couldn't be loaded or timed during benchmarking."""
