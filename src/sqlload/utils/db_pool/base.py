"""
Base classes and functionality for database connection pooling.

The pool mirrors the knobs a load test needs to vary: a hard cap on open
connections, a cap on how many are kept idle between transactions, and a
maximum connection lifetime. Workers that cannot get a connection within the
acquire timeout fail instead of queueing forever.
"""

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from queue import Empty, Queue
from typing import Any

from opentelemetry import trace
from prometheus_client import Counter, Gauge, Histogram

from sqlload.utils.metrics import get_or_create_metric
from sqlload.utils.tracing import trace_operation

logger = logging.getLogger(__name__)

# Poll slice while waiting for a connection; capacity freed by a discarded
# connection is not signalled through the idle queue
WAIT_SLICE_SECONDS = 0.05

POOL_LABELS = ["database_type", "pool_name"]

CONNECTION_POOL_OPEN = get_or_create_metric(
    lambda: Gauge(
        "sqlload_db_pool_open_connections",
        "Open connections (idle + in use)",
        POOL_LABELS,
    ),
    "sqlload_db_pool_open_connections",
)

CONNECTION_POOL_IDLE = get_or_create_metric(
    lambda: Gauge(
        "sqlload_db_pool_idle_connections",
        "Idle connections kept in the pool",
        POOL_LABELS,
    ),
    "sqlload_db_pool_idle_connections",
)

CONNECTION_POOL_WAITS = get_or_create_metric(
    lambda: Counter(
        "sqlload_db_pool_waits_total",
        "Acquisitions that had to wait for a connection",
        POOL_LABELS,
    ),
    "sqlload_db_pool_waits_total",
)

CONNECTION_POOL_TIMEOUTS = get_or_create_metric(
    lambda: Counter(
        "sqlload_db_pool_timeouts_total",
        "Acquisitions that gave up after the acquire timeout",
        POOL_LABELS,
    ),
    "sqlload_db_pool_timeouts_total",
)

CONNECTION_POOL_ERRORS = get_or_create_metric(
    lambda: Counter(
        "sqlload_db_pool_errors_total",
        "Connection pool errors",
        POOL_LABELS + ["error_type"],
    ),
    "sqlload_db_pool_errors_total",
)

CONNECTION_ACQUIRE_TIME = get_or_create_metric(
    lambda: Histogram(
        "sqlload_db_pool_acquire_seconds",
        "Time to acquire a connection from the pool",
        POOL_LABELS,
        buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    ),
    "sqlload_db_pool_acquire_seconds",
)


@dataclass
class PooledConnection:
    """Wrapper for a pooled database connection with metadata."""

    connection: Any
    created_at: float = field(default_factory=time.monotonic)
    last_used: float = field(default_factory=time.monotonic)
    use_count: int = 0

    def mark_used(self) -> None:
        """Mark connection as used and update timestamp."""
        self.last_used = time.monotonic()
        self.use_count += 1

    def age(self) -> float:
        return time.monotonic() - self.created_at


class ConnectionPoolError(Exception):
    """Base exception for connection pool errors."""


class PoolExhaustedError(ConnectionPoolError):
    """Raised when no connection becomes available within the acquire timeout."""


class PoolClosedError(ConnectionPoolError):
    """Raised when attempting to use a closed pool."""


class BaseConnectionPool:
    """
    Bounded, thread-safe connection pool.

    Subclasses provide the driver specific hooks: `_create_connection`,
    `_is_connection_healthy`, `_reset_connection`, `_close_connection` and
    `_get_db_type`.
    """

    def __init__(
        self,
        max_size: int = 10,
        max_idle: int = 2,
        max_lifetime: float = 0,
        acquire_timeout: float = 30.0,
        pool_name: str = "default",
    ):
        """
        Initialize connection pool.

        Args:
            max_size: Maximum number of open connections
            max_idle: Maximum number of idle connections kept on release
            max_lifetime: Seconds after which a connection is recycled (0 = never)
            acquire_timeout: Seconds to wait for a connection before failing
            pool_name: Name of the pool for metrics
        """
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        if max_idle < 0:
            raise ValueError("max_idle must be >= 0")

        self.max_size = max_size
        self.max_idle = min(max_idle, max_size)
        self.max_lifetime = max_lifetime
        self.acquire_timeout = acquire_timeout
        self.pool_name = pool_name

        self._idle: Queue[PooledConnection] = Queue()
        self._all_connections: list[PooledConnection] = []
        self._opening = 0
        self._lock = threading.Lock()
        self._closed = False

        logger.info(
            f"Initialized {self.__class__.__name__} '{pool_name}' "
            f"(max={max_size}, idle={self.max_idle}, lifetime={max_lifetime or 'unlimited'})"
        )

    def _create_connection(self) -> Any:
        """Create a new database connection. Must be implemented by subclasses."""
        raise NotImplementedError

    def _is_connection_healthy(self, conn: Any) -> bool:
        """Cheap liveness check. Must be implemented by subclasses."""
        raise NotImplementedError

    def _reset_connection(self, conn: Any) -> None:
        """Abort any transaction left open by the borrower."""
        raise NotImplementedError

    def _close_connection(self, conn: Any) -> None:
        """Close a database connection. Must be implemented by subclasses."""
        raise NotImplementedError

    def _get_db_type(self) -> str:
        """Get database type for metrics. Must be implemented by subclasses."""
        raise NotImplementedError

    def _labels(self) -> dict[str, str]:
        return {"database_type": self._get_db_type(), "pool_name": self.pool_name}

    def _is_expired(self, pooled_conn: PooledConnection) -> bool:
        return bool(self.max_lifetime) and pooled_conn.age() > self.max_lifetime

    def _open_if_capacity(self) -> PooledConnection | None:
        """Open a new connection if the pool is below max_size."""
        with self._lock:
            if self._closed:
                raise PoolClosedError("Connection pool is closed")
            if len(self._all_connections) + self._opening >= self.max_size:
                return None
            self._opening += 1

        pooled_conn = None
        try:
            pooled_conn = PooledConnection(connection=self._create_connection())
            logger.debug("Opened new connection for pool")
            return pooled_conn
        except Exception as e:
            CONNECTION_POOL_ERRORS.labels(**self._labels(), error_type="creation").inc()
            raise ConnectionPoolError(f"Failed to open connection: {e}") from e
        finally:
            with self._lock:
                self._opening -= 1
                if pooled_conn is not None:
                    self._all_connections.append(pooled_conn)
            self._update_metrics()

    def _discard(self, pooled_conn: PooledConnection) -> None:
        """Close a connection and forget it."""
        try:
            self._close_connection(pooled_conn.connection)
        except Exception as e:
            logger.warning(f"Error closing connection: {e}")
        finally:
            with self._lock:
                if pooled_conn in self._all_connections:
                    self._all_connections.remove(pooled_conn)
            self._update_metrics()

    def _checkout(self, start_time: float) -> PooledConnection:
        waited = False

        while True:
            elapsed = time.monotonic() - start_time
            if elapsed >= self.acquire_timeout:
                CONNECTION_POOL_TIMEOUTS.labels(**self._labels()).inc()
                raise PoolExhaustedError(
                    f"No connection available within {self.acquire_timeout}s"
                )

            if self._closed:
                raise PoolClosedError("Connection pool is closed")

            try:
                pooled_conn = self._idle.get_nowait()
            except Empty:
                pooled_conn = self._open_if_capacity()
                if pooled_conn is None:
                    if not waited:
                        CONNECTION_POOL_WAITS.labels(**self._labels()).inc()
                        waited = True
                    remaining = self.acquire_timeout - elapsed
                    try:
                        pooled_conn = self._idle.get(
                            timeout=min(remaining, WAIT_SLICE_SECONDS)
                        )
                    except Empty:
                        continue

            if self._is_expired(pooled_conn):
                logger.debug("Connection exceeded max lifetime, recycling")
                self._discard(pooled_conn)
                continue

            if not self._is_connection_healthy(pooled_conn.connection):
                logger.info("Connection unhealthy, recycling and retrying")
                CONNECTION_POOL_ERRORS.labels(**self._labels(), error_type="health_check").inc()
                self._discard(pooled_conn)
                continue

            return pooled_conn

    def _release(self, pooled_conn: PooledConnection) -> None:
        try:
            self._reset_connection(pooled_conn.connection)
        except Exception as e:
            logger.warning(f"Failed to reset connection, discarding: {e}")
            self._discard(pooled_conn)
            return

        with self._lock:
            keep = (
                not self._closed
                and not self._is_expired(pooled_conn)
                and self._idle.qsize() < self.max_idle
            )
            if keep:
                self._idle.put_nowait(pooled_conn)

        if keep:
            self._update_metrics()
        else:
            self._discard(pooled_conn)

    def _update_metrics(self) -> None:
        with self._lock:
            open_size = len(self._all_connections)
        CONNECTION_POOL_OPEN.labels(**self._labels()).set(open_size)
        CONNECTION_POOL_IDLE.labels(**self._labels()).set(self._idle.qsize())

    @contextmanager
    def acquire(self) -> Iterator[Any]:
        """
        Borrow a connection for the duration of the block.

        Yields:
            Database connection

        Raises:
            PoolClosedError: If pool is closed
            PoolExhaustedError: If no connection available within timeout
            ConnectionPoolError: If a new connection could not be opened
        """
        if self._closed:
            raise PoolClosedError("Connection pool is closed")

        start_time = time.monotonic()

        with trace_operation(
            "db_pool_acquire",
            kind=trace.SpanKind.CLIENT,
            database_type=self._get_db_type(),
            pool_name=self.pool_name,
        ):
            pooled_conn = self._checkout(start_time)

        pooled_conn.mark_used()
        CONNECTION_ACQUIRE_TIME.labels(**self._labels()).observe(
            time.monotonic() - start_time
        )

        try:
            yield pooled_conn.connection
        finally:
            self._release(pooled_conn)

    def close(self) -> None:
        """
        Close idle connections and refuse further acquisitions.

        Connections still borrowed are closed when they are released.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

        logger.info(f"Closing connection pool '{self.pool_name}'")

        while True:
            try:
                pooled_conn = self._idle.get_nowait()
            except Empty:
                break
            self._discard(pooled_conn)

        logger.info(f"Connection pool '{self.pool_name}' closed")

    @property
    def closed(self) -> bool:
        return self._closed

    def get_stats(self) -> dict[str, Any]:
        """Get pool statistics."""
        with self._lock:
            total_size = len(self._all_connections)
            idle_size = self._idle.qsize()

            return {
                "pool_name": self.pool_name,
                "total_connections": total_size,
                "idle_connections": idle_size,
                "active_connections": total_size - idle_size,
                "max_size": self.max_size,
                "max_idle": self.max_idle,
                "closed": self._closed,
            }
