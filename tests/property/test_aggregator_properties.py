"""
Property-based tests for latency aggregation.

Tests properties related to:
- Mean lies between min and max and matches an exact reference
- Nearest-rank percentiles are actual samples and monotone in pct
- Counts equal the number of appends regardless of interleaving
"""

import math

from hypothesis import given, settings
from hypothesis import strategies as st

from sqlload.engine.aggregator import EMPTY_SENTINEL, LatencyAggregator

latency = st.floats(min_value=0.0, max_value=60.0, allow_nan=False, allow_infinity=False)
samples_list = st.lists(latency, min_size=1, max_size=200)
phase_name = st.sampled_from(["create", "save", "commit"])


def filled(samples: list[float], phase: str = "commit") -> LatencyAggregator:
    aggregator = LatencyAggregator()
    for value in samples:
        aggregator.append(phase, value)
    return aggregator


@given(samples=samples_list)
def test_mean_is_bounded_by_min_and_max(samples: list[float]):
    """The mean of the samples lies within [min, max]."""
    mean = filled(samples).mean_of("commit")

    assert min(samples) - 1e-12 <= mean <= max(samples) + 1e-12


@given(samples=samples_list)
def test_mean_matches_exact_sum(samples: list[float]):
    """The mean equals the correctly rounded sum divided by the count."""
    mean = filled(samples).mean_of("commit")

    assert math.isclose(mean, math.fsum(samples) / len(samples), rel_tol=1e-12, abs_tol=1e-15)


@given(samples=samples_list, pct=st.floats(min_value=0.01, max_value=100.0))
def test_percentile_is_a_sample(samples: list[float], pct: float):
    """A nearest-rank percentile always returns one of the recorded samples."""
    assert filled(samples).percentile("commit", pct) in samples


@given(samples=samples_list, low=st.floats(min_value=0.01, max_value=100.0),
       high=st.floats(min_value=0.01, max_value=100.0))
def test_percentile_is_monotone(samples: list[float], low: float, high: float):
    """Higher percentiles never return smaller values."""
    if low > high:
        low, high = high, low
    aggregator = filled(samples)

    assert aggregator.percentile("commit", low) <= aggregator.percentile("commit", high)


@given(samples=samples_list)
def test_hundredth_percentile_is_max(samples: list[float]):
    """p100 is the largest sample."""
    assert filled(samples).percentile("commit", 100) == max(samples)


@given(appends=st.lists(st.tuples(phase_name, latency), max_size=300))
@settings(max_examples=50)
def test_counts_match_appends(appends: list[tuple[str, float]]):
    """Per-phase counts equal the number of appends for that phase."""
    aggregator = LatencyAggregator()
    for phase, value in appends:
        aggregator.append(phase, value)

    for phase in ("create", "save", "commit"):
        expected = sum(1 for p, _ in appends if p == phase)
        assert aggregator.count(phase) == expected
        if expected == 0:
            assert aggregator.mean_of(phase) == EMPTY_SENTINEL
    assert aggregator.total_count() == len(appends)
