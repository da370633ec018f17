"""
One unit of synthetic transactional load.

A worker borrows a connection, opens a transaction, inserts a transaction
log row ("create"), atomically increments the shared account ("save") and
commits. "commit" is the time of the whole operation including connection
acquisition. Any failure rolls the transaction back and yields False; no
exception leaves the worker.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from opentelemetry import trace

from sqlload.store import Account, BaseStore, TransactionRecord
from sqlload.utils.logging import ContextLogger
from sqlload.utils.tracing import add_span_event, trace_operation

from .aggregator import PHASE_COMMIT, PHASE_CREATE, PHASE_SAVE, LatencyAggregator
from .metrics import PHASE_LATENCY

PHASE_BEGIN = "begin"


class TransactionWorker:
    """
    Executes the create/save/commit transaction against the shared account.

    The instance is stateless between calls and is shared by every
    dispatched thread; call it with the dispatch sequence number.
    """

    def __init__(
        self,
        store: BaseStore,
        account: Account,
        aggregator: LatencyAggregator,
        amount: float = 1.0,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.store = store
        self.account = account
        self.aggregator = aggregator
        self.amount = amount
        self._clock = clock
        self._logger = ContextLogger(__name__, user_id=account.id)

    def __call__(self, sequence: int = 0) -> bool:
        log = self._logger.bind(worker=sequence)
        started = self._clock()

        with trace_operation(
            "load_transaction", kind=trace.SpanKind.CLIENT, worker=sequence
        ) as span:
            try:
                with self.store.connection() as conn:
                    success = self._execute(conn, started, log)
            except Exception as e:
                # Connection could not be acquired or returned
                log.warning(f"Transaction failed: {type(e).__name__}: {e}")
                success = False

            span.set_attribute("success", success)
            return success

    def _execute(self, conn: Any, started: float, log: ContextLogger) -> bool:
        phase = PHASE_BEGIN
        try:
            self.store.begin(conn)

            phase = PHASE_CREATE
            record = TransactionRecord(user_id=self.account.id, amount=self.amount)
            step_started = self._clock()
            self.store.insert_transaction(conn, record)
            self._record(PHASE_CREATE, self._clock() - step_started, log)

            phase = PHASE_SAVE
            step_started = self._clock()
            store_balance = self.store.increment_balance(conn, self.account.id, self.amount)
            self._record(PHASE_SAVE, self._clock() - step_started, log)

            phase = PHASE_COMMIT
            self.store.commit(conn)
        except Exception as e:
            self._rollback(conn, log)
            add_span_event("rollback", phase=phase)
            log.warning(
                f"Transaction failed during {phase}: {type(e).__name__}: {e}",
                phase=phase,
            )
            return False

        self._record(PHASE_COMMIT, self._clock() - started, log)
        self.account.apply_committed(self.amount)
        if log.isEnabledFor(logging.DEBUG):
            log.debug("Transaction committed", balance=store_balance)
        return True

    def _record(self, phase: str, elapsed: float, log: ContextLogger) -> None:
        elapsed = max(elapsed, 0.0)
        self.aggregator.append(phase, elapsed)
        PHASE_LATENCY.labels(phase=phase).observe(elapsed)
        if log.isEnabledFor(logging.DEBUG):
            log.debug(f"tx.{phase.capitalize()} SECS: {elapsed:.6f}", phase=phase)

    def _rollback(self, conn: Any, log: ContextLogger) -> None:
        try:
            self.store.rollback(conn)
        except Exception as e:
            # The pool resets the connection on release as well
            log.warning(f"Rollback failed: {type(e).__name__}: {e}")
