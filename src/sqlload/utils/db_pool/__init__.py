"""
Database connection pooling for PostgreSQL and SQLite.

Provides thread-safe bounded pools with idle and lifetime limits, acquire
timeouts and Prometheus metrics.
"""

from .base import (
    BaseConnectionPool,
    ConnectionPoolError,
    PoolClosedError,
    PooledConnection,
    PoolExhaustedError,
)
from .postgres import PostgresConnectionPool
from .sqlite import SQLiteConnectionPool

__all__ = [
    "BaseConnectionPool",
    "PostgresConnectionPool",
    "SQLiteConnectionPool",
    "PooledConnection",
    "ConnectionPoolError",
    "PoolExhaustedError",
    "PoolClosedError",
]
