"""PostgreSQL connection pool implementation."""

from typing import Any

import psycopg2
import psycopg2.extensions
from opentelemetry import trace

from sqlload.utils.tracing import trace_operation

from .base import BaseConnectionPool


class PostgresConnectionPool(BaseConnectionPool):
    """Connection pool for PostgreSQL databases (psycopg2)."""

    def __init__(self, dsn: str, connect_timeout: int = 10, **kwargs: Any):
        """
        Initialize PostgreSQL connection pool.

        Args:
            dsn: libpq connection string or postgresql:// URL
            connect_timeout: Seconds to wait when opening a connection
            **kwargs: Additional arguments for BaseConnectionPool
        """
        self.dsn = dsn
        self.connect_timeout = connect_timeout

        super().__init__(**kwargs)

    def _create_connection(self) -> psycopg2.extensions.connection:
        with trace_operation("postgres_connect", kind=trace.SpanKind.CLIENT):
            conn = psycopg2.connect(self.dsn, connect_timeout=self.connect_timeout)
            # Transactions are explicit: begin on first statement, commit/rollback by the caller
            conn.set_session(autocommit=False)
            return conn

    def _is_connection_healthy(self, conn: psycopg2.extensions.connection) -> bool:
        return conn is not None and conn.closed == 0

    def _reset_connection(self, conn: psycopg2.extensions.connection) -> None:
        if conn.closed == 0 and conn.status != psycopg2.extensions.STATUS_READY:
            conn.rollback()

    def _close_connection(self, conn: psycopg2.extensions.connection) -> None:
        if conn is not None and not conn.closed:
            conn.close()

    def _get_db_type(self) -> str:
        return "postgresql"
