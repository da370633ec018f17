"""
Final run report.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .aggregator import PHASES, LatencyAggregator


@dataclass(frozen=True)
class RunSummary:
    """
    Aggregate outcome of one run, computed once when the deadline fires.

    `abandoned` counts workers that were dispatched but whose completion was
    not consumed before the deadline; they may still have committed.
    """

    dispatched: int
    succeeded: int
    failed: int
    duration_seconds: float
    mean_latency: dict[str, float] = field(default_factory=dict)
    p95_latency: dict[str, float] = field(default_factory=dict)
    sample_counts: dict[str, int] = field(default_factory=dict)
    state: str = "draining"
    started_at: str = ""
    finished_at: str = ""

    @property
    def abandoned(self) -> int:
        return max(self.dispatched - self.succeeded - self.failed, 0)

    @property
    def throughput_per_second(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return self.succeeded / self.duration_seconds

    @classmethod
    def from_run(
        cls,
        dispatched: int,
        succeeded: int,
        failed: int,
        aggregator: LatencyAggregator,
        duration_seconds: float,
        started_at: datetime,
        finished_at: datetime,
        state: str = "draining",
        phases: tuple[str, ...] = PHASES,
    ) -> "RunSummary":
        return cls(
            dispatched=dispatched,
            succeeded=succeeded,
            failed=failed,
            duration_seconds=duration_seconds,
            mean_latency=aggregator.means(phases),
            p95_latency={phase: aggregator.percentile(phase, 95) for phase in phases},
            sample_counts=aggregator.counts(phases),
            state=state,
            started_at=started_at.isoformat(),
            finished_at=finished_at.isoformat(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "dispatched": self.dispatched,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "abandoned": self.abandoned,
            "duration_seconds": round(self.duration_seconds, 6),
            "throughput_per_second": round(self.throughput_per_second, 6),
            "mean_latency": dict(self.mean_latency),
            "p95_latency": dict(self.p95_latency),
            "sample_counts": dict(self.sample_counts),
            "state": self.state,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }

    def to_log_fields(self) -> dict[str, Any]:
        """Fields of the "Load finished" log line."""
        return {
            "count": self.dispatched,
            "success": self.succeeded,
            "failed": self.failed,
            "abandoned": self.abandoned,
            "mean": {
                phase.capitalize(): f"{value:.6f}"
                for phase, value in self.mean_latency.items()
            },
        }
