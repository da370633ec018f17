"""
Unit tests for sqlload.engine.summary
"""

from datetime import UTC, datetime, timedelta

import pytest

from sqlload.engine.aggregator import PHASE_COMMIT, PHASE_CREATE, PHASE_SAVE, LatencyAggregator
from sqlload.engine.summary import RunSummary


@pytest.fixture
def filled_aggregator() -> LatencyAggregator:
    aggregator = LatencyAggregator()
    for value in (0.001, 0.002, 0.003):
        aggregator.append(PHASE_CREATE, value)
        aggregator.append(PHASE_SAVE, value * 2)
        aggregator.append(PHASE_COMMIT, value * 4)
    return aggregator


class TestRunSummary:
    """Test RunSummary construction and rendering"""

    def test_from_run(self, filled_aggregator):
        """Test that from_run pulls means, p95 and counts from the aggregator"""
        # Arrange
        started = datetime(2024, 1, 1, tzinfo=UTC)
        finished = started + timedelta(seconds=2)

        # Act
        summary = RunSummary.from_run(
            dispatched=4,
            succeeded=3,
            failed=0,
            aggregator=filled_aggregator,
            duration_seconds=2.0,
            started_at=started,
            finished_at=finished,
        )

        # Assert
        assert summary.mean_latency[PHASE_CREATE] == pytest.approx(0.002)
        assert summary.mean_latency[PHASE_SAVE] == pytest.approx(0.004)
        assert summary.mean_latency[PHASE_COMMIT] == pytest.approx(0.008)
        assert summary.p95_latency[PHASE_COMMIT] == pytest.approx(0.012)
        assert summary.sample_counts == {PHASE_CREATE: 3, PHASE_SAVE: 3, PHASE_COMMIT: 3}
        assert summary.started_at == "2024-01-01T00:00:00+00:00"
        assert summary.state == "draining"

    def test_abandoned(self):
        """Test that abandoned counts unconsumed dispatches"""
        summary = RunSummary(dispatched=10, succeeded=6, failed=2, duration_seconds=1.0)

        assert summary.abandoned == 2

    def test_abandoned_never_negative(self):
        """Test abandoned clamps at zero"""
        summary = RunSummary(dispatched=1, succeeded=1, failed=1, duration_seconds=1.0)

        assert summary.abandoned == 0

    def test_throughput(self):
        """Test committed transactions per second"""
        summary = RunSummary(dispatched=20, succeeded=20, failed=0, duration_seconds=2.0)

        assert summary.throughput_per_second == pytest.approx(10.0)

    def test_throughput_zero_duration(self):
        """Test that a zero duration does not divide by zero"""
        summary = RunSummary(dispatched=0, succeeded=0, failed=0, duration_seconds=0.0)

        assert summary.throughput_per_second == 0.0

    def test_empty_run_reports_sentinels(self):
        """Test that a run without samples reports 0.0 means"""
        summary = RunSummary.from_run(
            dispatched=0,
            succeeded=0,
            failed=0,
            aggregator=LatencyAggregator(),
            duration_seconds=1.0,
            started_at=datetime.now(UTC),
            finished_at=datetime.now(UTC),
        )

        assert summary.mean_latency == {PHASE_CREATE: 0.0, PHASE_SAVE: 0.0, PHASE_COMMIT: 0.0}
        assert summary.p95_latency == {PHASE_CREATE: 0.0, PHASE_SAVE: 0.0, PHASE_COMMIT: 0.0}

    def test_to_dict(self, filled_aggregator):
        """Test the serializable form"""
        summary = RunSummary(
            dispatched=5,
            succeeded=4,
            failed=1,
            duration_seconds=1.0,
            mean_latency=filled_aggregator.means(),
        )

        data = summary.to_dict()

        assert data["dispatched"] == 5
        assert data["succeeded"] == 4
        assert data["failed"] == 1
        assert data["abandoned"] == 0
        assert data["throughput_per_second"] == 4.0
        assert data["mean_latency"][PHASE_SAVE] == pytest.approx(0.004)
        assert data["state"] == "draining"

    def test_to_log_fields(self, filled_aggregator):
        """Test the fields of the final log line"""
        summary = RunSummary(
            dispatched=3,
            succeeded=3,
            failed=0,
            duration_seconds=1.0,
            mean_latency=filled_aggregator.means(),
        )

        fields = summary.to_log_fields()

        assert fields["count"] == 3
        assert fields["success"] == 3
        assert fields["failed"] == 0
        assert fields["mean"] == {"Create": "0.002000", "Save": "0.004000", "Commit": "0.008000"}

    def test_is_frozen(self):
        """Test that a summary cannot be modified after creation"""
        summary = RunSummary(dispatched=1, succeeded=1, failed=0, duration_seconds=1.0)

        with pytest.raises(AttributeError):
            summary.succeeded = 2
