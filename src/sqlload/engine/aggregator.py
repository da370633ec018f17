"""
Thread-safe latency sample accumulation.

Every worker appends its phase timings here concurrently. All samples are
kept for the whole run; means and percentiles are computed on demand at
report time.
"""

import math
import threading
from collections import defaultdict

PHASE_CREATE = "create"
PHASE_SAVE = "save"
PHASE_COMMIT = "commit"
PHASES = (PHASE_CREATE, PHASE_SAVE, PHASE_COMMIT)

# Returned for statistics over a phase that has no samples
EMPTY_SENTINEL = 0.0


class LatencyAggregator:
    """
    Accumulates named latency samples behind a single lock.

    Example:
        >>> aggregator = LatencyAggregator()
        >>> aggregator.append("create", 0.002)
        >>> aggregator.append("create", 0.004)
        >>> aggregator.mean_of("create")
        0.003
        >>> aggregator.mean_of("commit")
        0.0
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._samples: dict[str, list[float]] = defaultdict(list)

    def append(self, phase: str, elapsed: float) -> None:
        """
        Record one sample.

        Raises:
            ValueError: If elapsed is negative or not a finite number
        """
        if not math.isfinite(elapsed) or elapsed < 0:
            raise ValueError(f"elapsed must be a non-negative finite number, got {elapsed}")

        with self._lock:
            self._samples[phase].append(elapsed)

    def mean_of(self, phase: str) -> float:
        """Arithmetic mean of the samples for `phase`, EMPTY_SENTINEL if none."""
        with self._lock:
            samples = self._samples.get(phase)
            if not samples:
                return EMPTY_SENTINEL
            return math.fsum(samples) / len(samples)

    def count(self, phase: str) -> int:
        with self._lock:
            return len(self._samples.get(phase, ()))

    def total_count(self) -> int:
        with self._lock:
            return sum(len(samples) for samples in self._samples.values())

    def percentile(self, phase: str, pct: float) -> float:
        """
        Nearest-rank percentile of the samples for `phase`.

        Args:
            phase: Phase name
            pct: Percentile in (0, 100]

        Returns:
            The sample at the requested rank, EMPTY_SENTINEL if there are none
        """
        if not 0 < pct <= 100:
            raise ValueError(f"pct must be in (0, 100], got {pct}")

        with self._lock:
            samples = sorted(self._samples.get(phase, ()))

        if not samples:
            return EMPTY_SENTINEL

        rank = math.ceil(pct / 100 * len(samples))
        return samples[rank - 1]

    def means(self, phases: tuple[str, ...] = PHASES) -> dict[str, float]:
        return {phase: self.mean_of(phase) for phase in phases}

    def counts(self, phases: tuple[str, ...] = PHASES) -> dict[str, int]:
        return {phase: self.count(phase) for phase in phases}

    def snapshot(self) -> dict[str, list[float]]:
        """Copy of every sample recorded so far, keyed by phase."""
        with self._lock:
            return {phase: list(samples) for phase, samples in self._samples.items()}
