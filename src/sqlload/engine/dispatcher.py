"""
Tick-driven worker launch.

Each tick launches one worker as an independent thread and returns at once;
the dispatcher never waits for a previous worker. With `max_in_flight=0`
(default) every tick gets a fresh thread and in-flight work is unbounded.
With `max_in_flight=N` workers run on a ThreadPoolExecutor of N threads and
excess ticks queue in the executor.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from queue import Queue

from .metrics import COMPLETIONS_TOTAL, DISPATCHED_TOTAL, IN_FLIGHT_WORKERS

logger = logging.getLogger(__name__)


class ConcurrentDispatcher:
    """
    Launches `task(sequence)` once per dispatch and reports each result.

    Every launched task produces exactly one boolean on `completions`, also
    when the task raises or its thread cannot be started.
    """

    def __init__(
        self,
        task: Callable[[int], bool],
        completions: Queue | None = None,
        max_in_flight: int = 0,
    ):
        """
        Args:
            task: Unit of work; receives the 1-based dispatch sequence number
                and returns True on success
            completions: Queue receiving one bool per finished task
            max_in_flight: Executor size, 0 for one unbounded thread per tick
        """
        if max_in_flight < 0:
            raise ValueError("max_in_flight must be >= 0")

        self._task = task
        self.completions: Queue[bool] = completions if completions is not None else Queue()
        self.max_in_flight = max_in_flight

        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._dispatched = 0
        self._in_flight = 0
        self._closed = False
        self._executor: ThreadPoolExecutor | None = None

        if max_in_flight:
            self._executor = ThreadPoolExecutor(
                max_workers=max_in_flight, thread_name_prefix="load-worker"
            )

    @property
    def dispatched(self) -> int:
        with self._lock:
            return self._dispatched

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    def dispatch(self) -> None:
        """Launch one task without waiting for it."""
        with self._lock:
            if self._closed:
                raise RuntimeError("Dispatcher is shut down")
            self._dispatched += 1
            self._in_flight += 1
            sequence = self._dispatched

        DISPATCHED_TOTAL.inc()
        IN_FLIGHT_WORKERS.inc()

        try:
            if self._executor is not None:
                self._executor.submit(self._run_task, sequence)
            else:
                threading.Thread(
                    target=self._run_task,
                    args=(sequence,),
                    name=f"load-worker-{sequence}",
                    daemon=True,
                ).start()
        except RuntimeError as e:
            # Thread creation fails once the process runs out of threads
            logger.error(f"Failed to launch worker {sequence}: {e}")
            self._finish(False)

    def _run_task(self, sequence: int) -> None:
        result = False
        try:
            result = bool(self._task(sequence))
        except Exception:
            logger.exception(f"Worker {sequence} raised an unhandled exception")
        finally:
            self._finish(result)

    def _finish(self, result: bool) -> None:
        COMPLETIONS_TOTAL.labels(result="success" if result else "failure").inc()
        IN_FLIGHT_WORKERS.dec()

        with self._lock:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.notify_all()

        self.completions.put(result)

    def wait_idle(self, timeout: float | None = None) -> bool:
        """
        Block until no task is in flight.

        Returns:
            True if idle, False if the timeout expired first
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._in_flight == 0, timeout=timeout)

    def shutdown(self) -> None:
        """Refuse further dispatches. Running tasks are left to finish on their own."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if self._executor is not None:
            self._executor.shutdown(wait=False)
