"""
Unit tests for sqlload.engine.controller

Tests the Idle -> Running -> Draining lifecycle, deadline termination with
slow workers, tallying of consumed completions and the bounded drain.
"""

import threading
import time

import pytest

from sqlload.engine.aggregator import PHASE_COMMIT, LatencyAggregator
from sqlload.engine.controller import RunController, RunState


def recording_task(aggregator: LatencyAggregator, result: bool = True):
    def task(seq):
        if result:
            aggregator.append(PHASE_COMMIT, 0.001)
        return result

    return task


class TestRunControllerLifecycle:
    """Test state transitions"""

    def test_initial_state_is_idle(self, make_config, aggregator):
        """Test that a new controller is idle with no summary"""
        controller = RunController(make_config(), lambda seq: True, aggregator)

        assert controller.state is RunState.IDLE
        assert controller.summary is None

    def test_run_ends_in_draining(self, make_config, aggregator):
        """Test that run() leaves the controller in the terminal Draining state"""
        controller = RunController(make_config(), lambda seq: True, aggregator)

        summary = controller.run()

        assert controller.state is RunState.DRAINING
        assert summary.state == "draining"
        assert controller.summary is summary

    def test_run_twice_raises(self, make_config, aggregator):
        """Test that a controller runs at most once"""
        controller = RunController(make_config(), lambda seq: True, aggregator)
        controller.run()

        with pytest.raises(RuntimeError, match="cannot run from state 'draining'"):
            controller.run()

    def test_drain_before_run_raises(self, make_config, aggregator):
        """Test that drain() needs a finished run"""
        controller = RunController(make_config(), lambda seq: True, aggregator)

        with pytest.raises(RuntimeError, match="only valid after run"):
            controller.drain(1.0)

    def test_state_is_running_during_run(self, make_config, aggregator):
        """Test that the state reads Running while the deadline is pending"""
        observed = []
        holder = {}

        def task(seq):
            observed.append(holder["controller"].state)
            return True

        controller = RunController(make_config(rate=5), task, aggregator)
        holder["controller"] = controller
        controller.run()
        controller.drain(2.0)

        assert observed
        assert RunState.RUNNING in observed


class TestRunControllerTallies:
    """Test success/failure counting"""

    def test_all_successful(self, make_config, aggregator):
        """Test rate 10 for 1 second: about 10 dispatched, all succeeded"""
        # Arrange
        controller = RunController(
            make_config(rate=10, duration=1), recording_task(aggregator), aggregator
        )

        # Act
        summary = controller.run()

        # Assert
        assert 9 <= summary.dispatched <= 11
        assert summary.failed == 0
        assert summary.succeeded + summary.abandoned == summary.dispatched
        assert summary.succeeded >= summary.dispatched - 1
        assert summary.mean_latency[PHASE_COMMIT] == pytest.approx(0.001)

    def test_all_failed(self, make_config, aggregator):
        """Test that failing tasks are tallied as failures with sentinel means"""
        controller = RunController(
            make_config(rate=10), recording_task(aggregator, result=False), aggregator
        )

        summary = controller.run()

        assert summary.succeeded == 0
        assert summary.failed >= summary.dispatched - 1
        assert summary.mean_latency[PHASE_COMMIT] == 0.0

    def test_raising_task_counts_as_failure(self, make_config, aggregator):
        """Test that exceptions escaping the task become failures"""
        def task(seq):
            raise RuntimeError("boom")

        controller = RunController(make_config(rate=10), task, aggregator)

        summary = controller.run()

        assert summary.succeeded == 0
        assert summary.failed >= 1

    def test_mixed_results(self, make_config, aggregator):
        """Test that successes and failures are counted separately"""
        controller = RunController(
            make_config(rate=20), lambda seq: seq % 2 == 0, aggregator
        )

        summary = controller.run()
        total = summary.succeeded + summary.failed

        assert total >= summary.dispatched - 1
        assert abs(summary.succeeded - summary.failed) <= 2


class TestRunControllerDeadline:
    """Test deadline termination with in-flight work"""

    def test_deadline_fires_despite_slow_workers(self, make_config, aggregator):
        """Test that run() returns at the deadline while workers are still running"""
        # Arrange
        release = threading.Event()

        def slow_task(seq):
            release.wait(timeout=10.0)
            return True

        controller = RunController(make_config(rate=10, duration=1), slow_task, aggregator)

        # Act
        started = time.monotonic()
        summary = controller.run()
        elapsed = time.monotonic() - started
        release.set()

        # Assert
        assert elapsed < 1.5
        assert summary.succeeded == 0
        assert summary.failed == 0
        assert summary.abandoned == summary.dispatched
        assert summary.dispatched >= 9

    def test_late_completions_are_not_tallied(self, make_config, aggregator):
        """Test that completions consumed after the deadline do not change the summary"""
        release = threading.Event()
        controller = RunController(
            make_config(rate=10), lambda seq: release.wait(timeout=10.0), aggregator
        )

        summary = controller.run()
        release.set()
        assert controller.drain(5.0) is True

        assert controller.succeeded == 0
        assert summary.succeeded == 0

    def test_drain_times_out_on_stuck_workers(self, make_config, aggregator):
        """Test that drain gives up after its timeout and reports not idle"""
        release = threading.Event()
        controller = RunController(
            make_config(rate=10), lambda seq: release.wait(timeout=10.0), aggregator
        )
        controller.run()

        try:
            started = time.monotonic()
            assert controller.drain(0.2) is False
            assert time.monotonic() - started < 1.0
        finally:
            release.set()

    def test_zero_drain_timeout_does_not_wait(self, make_config, aggregator):
        """Test that a zero drain timeout only reports the in-flight state"""
        release = threading.Event()
        controller = RunController(
            make_config(rate=10), lambda seq: release.wait(timeout=10.0), aggregator
        )
        controller.run()

        try:
            assert controller.drain(0) is False
        finally:
            release.set()

    def test_bounded_mode(self, make_config, aggregator):
        """Test that max_in_flight runs the whole load on the executor"""
        controller = RunController(
            make_config(rate=20, max_in_flight=2), lambda seq: True, aggregator
        )

        summary = controller.run()

        assert summary.succeeded >= summary.dispatched - 1
