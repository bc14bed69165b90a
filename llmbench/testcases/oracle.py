# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Building an oracle by running the baseline.

Record-replay and property-based modes both get their expected outputs the
same way: generate inputs from the signature, run the baseline on them in
a child process, and take whatever it returns (or raises) as the truth. A
baseline that raises on an input produces an expected-error case for that
input, so a candidate only passes it by raising too.
"""

from pathlib import Path
from typing import Any

from llmbench.adapters.base import LanguageAdapter
from llmbench.evaluation.errors import CandidateLoadError, ConfigurationError, ExtractionError
from llmbench.evaluation.models import Signature, TestCase
from llmbench.logging.logger import get_logger

logger = get_logger(__name__)


def generated_inputs(
    adapter: LanguageAdapter,
    signature: Signature,
    count: int,
    seed: int,
) -> list[list[Any]]:
    if not adapter.supports_input_generation:
        raise ConfigurationError(
            f"The {adapter.language_id} adapter cannot generate test inputs"
        )
    return adapter.generate_test_inputs(signature, count, seed)


def observe_baseline(
    adapter: LanguageAdapter,
    baseline: Path,
    inputs: list[list[Any]],
    signature: Signature,
    id_prefix: str,
) -> list[TestCase]:
    """
    Run the baseline on `inputs` and turn each observation into a case.

    Raises ExtractionError when the baseline can't even be loaded: without
    it there's no oracle to build.
    """
    try:
        observations = adapter.observe(baseline, inputs, signature.name)
    except CandidateLoadError as exc:
        raise ExtractionError(f"Baseline {baseline.name} could not be executed: {exc}") from exc

    cases = [
        TestCase(
            id=f"{id_prefix}_{index}",
            input=list(args),
            output=observation.actual,
            error=observation.error,
        )
        for index, (args, observation) in enumerate(zip(inputs, observations))
    ]

    raised = sum(1 for case in cases if case.error is not None)
    if raised:
        logger.warning(
            "Baseline raised on some generated inputs",
            extra={"baseline": baseline.name, "raised": raised, "total": len(cases)},
        )
    return cases


def build_property_cases(
    adapter: LanguageAdapter,
    baseline: Path,
    signature: Signature,
    count: int,
    seed: int,
) -> list[TestCase]:
    """A fresh oracle from generated inputs. Nothing is written to disk."""
    inputs = generated_inputs(adapter, signature, count, seed)
    cases = observe_baseline(adapter, baseline, inputs, signature, id_prefix="property")
    logger.info(
        "Built property-based test cases",
        extra={"baseline": baseline.name, "cases": len(cases), "seed": seed},
    )
    return cases
