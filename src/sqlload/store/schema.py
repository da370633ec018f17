"""
Table definitions for the load workload.

`users` holds the shared account; `transaction_logs` is append-only and is
indexed on date and amount so inserts pay realistic index maintenance cost.
"""

from typing import Any

POSTGRES_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id SERIAL PRIMARY KEY,
        email VARCHAR(255) NOT NULL,
        nickname VARCHAR(64) NOT NULL,
        amount NUMERIC(10, 2) NOT NULL DEFAULT 0
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_users_nickname ON users (nickname)",
    """
    CREATE TABLE IF NOT EXISTS transaction_logs (
        id SERIAL PRIMARY KEY,
        user_id INTEGER NOT NULL REFERENCES users (id),
        callback_id VARCHAR(255),
        date TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
        reference VARCHAR(255),
        type VARCHAR(16),
        ref VARCHAR(16),
        data VARCHAR(255),
        comment VARCHAR(255),
        tenant VARCHAR(255),
        amount NUMERIC(10, 2)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_transaction_logs_date ON transaction_logs (date)",
    "CREATE INDEX IF NOT EXISTS idx_transaction_logs_amount ON transaction_logs (amount)",
)

SQLITE_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT NOT NULL,
        nickname TEXT NOT NULL,
        amount REAL NOT NULL DEFAULT 0
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_users_nickname ON users (nickname)",
    """
    CREATE TABLE IF NOT EXISTS transaction_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users (id),
        callback_id TEXT,
        date TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
        reference TEXT,
        type TEXT,
        ref TEXT,
        data TEXT,
        comment TEXT,
        tenant TEXT,
        amount REAL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_transaction_logs_date ON transaction_logs (date)",
    "CREATE INDEX IF NOT EXISTS idx_transaction_logs_amount ON transaction_logs (amount)",
)

SCHEMAS = {
    "postgresql": POSTGRES_SCHEMA,
    "sqlite": SQLITE_SCHEMA,
}


def apply_schema(cursor: Any, dialect: str) -> None:
    """Execute the DDL for `dialect` on an open cursor."""
    try:
        statements = SCHEMAS[dialect]
    except KeyError:
        raise ValueError(f"No schema for dialect '{dialect}'") from None

    for statement in statements:
        cursor.execute(statement)
