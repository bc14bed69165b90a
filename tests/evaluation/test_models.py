# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for the evaluation data models."""

from dataclasses import FrozenInstanceError

import pytest

from llmbench.evaluation.errors import CandidateRuntimeError, EvaluationError, ExtractionError
from llmbench.evaluation.models import (
    Candidate,
    Observation,
    Parameter,
    Signature,
    TestCase,
    ValidationResult,
    ValidationSummary,
)


def _result(case_id: str, passed: bool) -> ValidationResult:
    return ValidationResult(case_id=case_id, passed=passed, input=[1], expected=1)


class TestValidationSummary:
    def test_all_passing(self) -> None:
        summary = ValidationSummary.from_results("a.b", "static", [_result("1", True), _result("2", True)], 4.0)

        assert summary.passed
        assert (summary.total_cases, summary.passed_cases, summary.failed_cases) == (2, 2, 0)

    def test_one_failure_fails_the_candidate(self) -> None:
        summary = ValidationSummary.from_results("a.b", "static", [_result("1", True), _result("2", False)], 4.0)

        assert not summary.passed
        assert (summary.passed_cases, summary.failed_cases) == (1, 1)

    def test_no_results_is_not_a_pass(self) -> None:
        assert not ValidationSummary.from_results("a.b", "static", [], 0.0).passed

    def test_candidate_error_is_not_a_pass(self) -> None:
        summary = ValidationSummary.from_results("a.b", "static", [_result("1", True)], 1.0, error="load failed")
        assert not summary.passed

    def test_results_list_is_copied(self) -> None:
        results = [_result("1", True)]
        summary = ValidationSummary.from_results("a.b", "static", results, 1.0)
        results.append(_result("2", False))
        assert summary.total_cases == 1


class TestSmallTypes:
    def test_signature_arity(self) -> None:
        signature = Signature(name="f", params=(Parameter("a"), Parameter("b", optional=True, default="2")))
        assert signature.arity == 2

    def test_observation_raised(self) -> None:
        assert Observation(error="ValueError: x").raised
        assert not Observation(actual=None).raised

    def test_candidate_identity(self) -> None:
        assert Candidate(code="", provider_id="openai", model_id="gpt-4.1").identity == "openai.gpt-4.1"

    def test_frozen(self) -> None:
        case = TestCase(id="x", input=[1], output=2)
        with pytest.raises(FrozenInstanceError):
            case.output = 3  # type: ignore[misc]


class TestErrors:
    def test_hierarchy(self) -> None:
        assert issubclass(ExtractionError, EvaluationError)
        assert issubclass(CandidateRuntimeError, EvaluationError)

    def test_runtime_error_keeps_completed_work(self) -> None:
        err = CandidateRuntimeError("crashed", completed=[Observation(actual=1)])
        assert str(err) == "crashed"
        assert err.completed == [Observation(actual=1)]
        assert CandidateRuntimeError("crashed").completed == []
