"""SQLite connection pool implementation."""

import sqlite3
from typing import Any

from .base import BaseConnectionPool


class SQLiteConnectionPool(BaseConnectionPool):
    """
    Connection pool for SQLite database files.

    Connections run in autocommit mode (`isolation_level=None`) so the
    caller controls transactions with explicit BEGIN/COMMIT/ROLLBACK.
    Writers serialize on the database lock and wait up to `busy_timeout`
    seconds for it.
    """

    def __init__(self, path: str, busy_timeout: float = 30.0, **kwargs: Any):
        if path in ("", ":memory:"):
            # Every connection would get its own private database
            raise ValueError("SQLite pool requires a database file path")

        self.path = path
        self.busy_timeout = busy_timeout

        super().__init__(**kwargs)

    def _create_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.path,
            timeout=self.busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _is_connection_healthy(self, conn: sqlite3.Connection) -> bool:
        try:
            conn.total_changes
        except sqlite3.ProgrammingError:
            # Raised once the connection has been closed
            return False
        return True

    def _reset_connection(self, conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    def _close_connection(self, conn: sqlite3.Connection) -> None:
        conn.close()

    def _get_db_type(self) -> str:
        return "sqlite"
