"""
Run lifecycle: start dispatching, tally completions until the deadline,
then stop and summarize.

The controller thread is the only writer of the success/failure tallies.
When the deadline passes it stops consuming completions; workers still in
flight are neither joined nor cancelled and their results are not counted.
"""

import logging
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from queue import Empty, Queue

from sqlload.config import LoadConfig

from .aggregator import LatencyAggregator
from .dispatcher import ConcurrentDispatcher
from .scheduler import RateScheduler
from .summary import RunSummary

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"


class RunController:
    """
    Owns one run: Idle -> Running -> Draining.

    Example:
        >>> controller = RunController(config, worker, aggregator)
        >>> summary = controller.run()
        >>> controller.drain(timeout=5.0)
    """

    def __init__(
        self,
        config: LoadConfig,
        task: Callable[[int], bool],
        aggregator: LatencyAggregator,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.task = task
        self.aggregator = aggregator
        self._clock = clock

        self._state = RunState.IDLE
        self._state_lock = threading.Lock()
        self.succeeded = 0
        self.failed = 0
        self.dispatcher: ConcurrentDispatcher | None = None
        self.summary: RunSummary | None = None

    @property
    def state(self) -> RunState:
        with self._state_lock:
            return self._state

    def run(self) -> RunSummary:
        """
        Execute the run and return its summary.

        Raises:
            RuntimeError: If this controller has already run
        """
        with self._state_lock:
            if self._state is not RunState.IDLE:
                raise RuntimeError(f"RunController cannot run from state '{self._state.value}'")
            self._state = RunState.RUNNING

        completions: Queue[bool] = Queue()
        dispatcher = ConcurrentDispatcher(
            self.task, completions, max_in_flight=self.config.max_in_flight
        )
        scheduler = RateScheduler(self.config.rate, dispatcher.dispatch)
        self.dispatcher = dispatcher

        started_at = datetime.now(UTC)
        started = self._clock()
        deadline = started + self.config.duration

        logger.info(
            "Start loading...",
            extra={
                "rate": self.config.rate,
                "duration": self.config.duration,
                "max_in_flight": self.config.max_in_flight or "unbounded",
                "end_at": started_at.timestamp() + self.config.duration,
            },
        )

        scheduler.start()
        try:
            self._consume(completions, deadline)
        finally:
            with self._state_lock:
                self._state = RunState.DRAINING
            scheduler.stop()
            dispatcher.shutdown()

        elapsed = self._clock() - started
        self.summary = RunSummary.from_run(
            dispatched=dispatcher.dispatched,
            succeeded=self.succeeded,
            failed=self.failed,
            aggregator=self.aggregator,
            duration_seconds=elapsed,
            started_at=started_at,
            finished_at=datetime.now(UTC),
            state=RunState.DRAINING.value,
        )

        if self.summary.abandoned:
            logger.info(
                f"Deadline reached with {self.summary.abandoned} worker(s) still in flight"
            )
        return self.summary

    def _consume(self, completions: Queue, deadline: float) -> None:
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                return

            try:
                result = completions.get(timeout=remaining)
            except Empty:
                continue

            if result:
                self.succeeded += 1
            else:
                self.failed += 1
            logger.debug(f"Worker exec success: {result}")

    def drain(self, timeout: float) -> bool:
        """
        Give in-flight workers up to `timeout` seconds to finish.

        Completions seen while draining are not added to the summary.

        Returns:
            True if no worker is left in flight
        """
        if self.state is not RunState.DRAINING or self.dispatcher is None:
            raise RuntimeError("drain() is only valid after run()")

        if timeout <= 0:
            return self.dispatcher.in_flight == 0

        idle = self.dispatcher.wait_idle(timeout=timeout)
        if not idle:
            logger.warning(
                f"{self.dispatcher.in_flight} worker(s) still in flight after "
                f"{timeout}s drain, abandoning them"
            )
        return idle
