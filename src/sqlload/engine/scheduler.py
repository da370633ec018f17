"""
APScheduler-based fixed-rate tick source.

The tick job runs on an IntervalTrigger, whose fire times sit on an absolute
timeline (start + k * interval). Late ticks are never coalesced or dropped
as misfires, so callback time and wakeup overshoot do not turn into rate
drift.
"""

import logging
import threading
from collections.abc import Callable
from datetime import timezone

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from sqlload.config import MAX_RATE

logger = logging.getLogger(__name__)

TICK_JOB_ID = "rate-tick"

# Late ticks queued in the executor count as running instances
MAX_PENDING_TICKS = 10_000


class RateScheduler:
    """
    Calls `on_tick` every 1/rate seconds until stopped.

    The first tick fires one interval after `start()`. Ticks run one at a
    time on a single executor thread; if a callback overruns several
    intervals, the missed ticks fire back to back on return.
    """

    def __init__(self, rate: int, on_tick: Callable[[], None]):
        """
        Args:
            rate: Ticks per second, must be >= 1
            on_tick: Callback run on the tick thread for every tick
        """
        if rate < 1:
            raise ValueError(f"rate must be >= 1, got {rate}")
        if rate > MAX_RATE:
            raise ValueError(f"rate must be <= {MAX_RATE}, got {rate}")

        self.rate = rate
        self.interval = 1.0 / rate
        self._on_tick = on_tick
        self._lock = threading.Lock()
        self._ticks = 0
        self._started = False

        self.scheduler = BackgroundScheduler(
            timezone=timezone.utc,
            executors={"default": ThreadPoolExecutor(max_workers=1)},
            job_defaults={
                "coalesce": False,
                "misfire_grace_time": None,
                "max_instances": MAX_PENDING_TICKS,
            },
        )

    @property
    def ticks(self) -> int:
        """Ticks fired so far."""
        with self._lock:
            return self._ticks

    def start(self) -> None:
        if self._started:
            raise RuntimeError("RateScheduler already started")
        self._started = True

        trigger = IntervalTrigger(seconds=self.interval, timezone=timezone.utc)
        self.scheduler.add_job(self._fire, trigger=trigger, id=TICK_JOB_ID)
        self.scheduler.start()
        logger.debug(f"Rate scheduler started: rate={self.rate}/s interval={self.interval:.6f}s")

    def _fire(self) -> None:
        try:
            self._on_tick()
        except Exception:
            logger.exception("Tick callback failed")

        with self._lock:
            self._ticks += 1

    def stop(self) -> None:
        """Stop ticking and wait for a tick in progress to return."""
        if not self.scheduler.running:
            return

        self.scheduler.shutdown(wait=True)
        logger.debug(f"Rate scheduler stopped after {self.ticks} tick(s)")

    def is_running(self) -> bool:
        return self.scheduler.running
