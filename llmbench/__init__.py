# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
llmbench: validate and benchmark LLM-generated function variants.

Given a baseline source file and variants of it written by different
models, llmbench checks each variant against an oracle of test cases and
then times the ones that behave identically.

Subsystems:
  - adapters: per-language extraction, execution and timing
  - testcases: static, record-replay and property-based oracles
  - validation: running candidates against the oracle
  - benchmark: timing candidates against the baseline
  - evaluation: the end-to-end pipeline and its result types
"""

__version__ = "0.1.0"
