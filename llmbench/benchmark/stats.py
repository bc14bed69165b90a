# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Turning raw timings into benchmark metrics.

Two entry points, depending on what the child could measure:

  summarize_samples:   one duration per iteration. Everything is measured:
                       mean, standard deviation, true p95/p99 order
                       statistics, relative margin of error.

  summarize_aggregate: only the total time of the whole loop. Mean is exact,
                       but p95/p99 are APPROXIMATIONS (mean × 1.96 and
                       mean × 2.58) and the metrics say so via
                       `percentiles_approximated=True`. Std dev and margin
                       of error are unknown and reported as 0.

Everything here is a pure function. No I/O, no clocks.
"""

import math
import statistics

from llmbench.evaluation.models import BenchMetrics

# Multipliers for the aggregate-only path. These are not statistics of the
# data. They're the normal-distribution z-values applied to the mean.
APPROX_P95_MULTIPLIER = 1.96
APPROX_P99_MULTIPLIER = 2.58

# z-value for the 95% confidence interval of the mean.
_Z_95 = 1.96

_NS_PER_MS = 1_000_000


def percentile(sorted_values: list[float], q: float) -> float:
    """
    The q-th percentile (0–100) of an already-sorted list, with linear
    interpolation between the two closest ranks.
    """
    if not sorted_values:
        raise ValueError("Cannot take a percentile of an empty sample")
    if not 0 <= q <= 100:
        raise ValueError(f"Percentile must be in [0, 100], got {q}")

    if len(sorted_values) == 1:
        return sorted_values[0]

    position = (len(sorted_values) - 1) * (q / 100)
    lower = math.floor(position)
    upper = math.ceil(position)
    if lower == upper:
        return sorted_values[lower]
    weight = position - lower
    return sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight


def summarize_samples(
    samples_ns: list[int],
    max_rss_kb: int | None = None,
    gc_collections: int | None = None,
) -> BenchMetrics:
    """
    Compute metrics from per-iteration durations in nanoseconds.

    Zero-length samples (possible on coarse clocks) are clamped to 1ns so
    ops/sec stays finite.
    """
    if not samples_ns:
        raise ValueError("No timing samples to summarize")

    durations_ms = sorted(max(s, 1) / _NS_PER_MS for s in samples_ns)
    n = len(durations_ms)
    mean_ms = statistics.fmean(durations_ms)
    std_dev_ms = statistics.stdev(durations_ms) if n > 1 else 0.0
    standard_error = std_dev_ms / math.sqrt(n)

    return BenchMetrics(
        ops_per_sec=1000.0 / mean_ms,
        mean_ms=mean_ms,
        std_dev_ms=std_dev_ms,
        p95_ms=percentile(durations_ms, 95),
        p99_ms=percentile(durations_ms, 99),
        relative_margin_of_error=_Z_95 * standard_error / mean_ms * 100,
        samples=n,
        max_rss_kb=max_rss_kb,
        gc_collections=gc_collections,
        percentiles_approximated=False,
    )


def summarize_aggregate(
    total_ns: int,
    iterations: int,
    max_rss_kb: int | None = None,
    gc_collections: int | None = None,
) -> BenchMetrics:
    """Compute metrics from a single loop total. Percentiles are approximated."""
    if iterations < 1:
        raise ValueError(f"Iteration count must be positive, got {iterations}")

    mean_ms = max(total_ns, 1) / iterations / _NS_PER_MS
    return BenchMetrics(
        ops_per_sec=1000.0 / mean_ms,
        mean_ms=mean_ms,
        std_dev_ms=0.0,
        p95_ms=mean_ms * APPROX_P95_MULTIPLIER,
        p99_ms=mean_ms * APPROX_P99_MULTIPLIER,
        relative_margin_of_error=0.0,
        samples=iterations,
        max_rss_kb=max_rss_kb,
        gc_collections=gc_collections,
        percentiles_approximated=True,
    )


def compute_improvement(candidate_ops: float, baseline_ops: float) -> float:
    """Percentage change in throughput relative to the baseline."""
    if baseline_ops <= 0:
        raise ValueError(f"Baseline throughput must be positive, got {baseline_ops}")
    return (candidate_ops - baseline_ops) / baseline_ops * 100
