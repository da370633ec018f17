"""
Concurrent rate-controlled dispatch engine.

A RateScheduler ticks at the configured rate; every tick makes the
ConcurrentDispatcher launch one TransactionWorker on its own thread. Workers
record phase latencies in a shared LatencyAggregator and report success or
failure on a completion queue that the RunController drains until the
deadline, after which it renders the RunSummary.
"""

from .aggregator import (
    EMPTY_SENTINEL,
    PHASE_COMMIT,
    PHASE_CREATE,
    PHASE_SAVE,
    PHASES,
    LatencyAggregator,
)
from .controller import RunController, RunState
from .dispatcher import ConcurrentDispatcher
from .runner import LoadRun, prepare_account, run_load
from .scheduler import RateScheduler
from .summary import RunSummary
from .worker import TransactionWorker

__all__ = [
    "ConcurrentDispatcher",
    "EMPTY_SENTINEL",
    "LatencyAggregator",
    "LoadRun",
    "PHASES",
    "PHASE_COMMIT",
    "PHASE_CREATE",
    "PHASE_SAVE",
    "RateScheduler",
    "RunController",
    "RunState",
    "RunSummary",
    "TransactionWorker",
    "prepare_account",
    "run_load",
]
