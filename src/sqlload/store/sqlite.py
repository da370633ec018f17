"""SQLite store backend."""

import sqlite3
from typing import Any

from .base import INSERT_COLUMNS, BaseStore, StoreError, TransactionRecord


class SQLiteStore(BaseStore):
    """
    Store over a SQLiteConnectionPool.

    Transactions start with BEGIN IMMEDIATE so a worker takes the write lock
    up front instead of failing on lock upgrade halfway through.
    """

    dialect = "sqlite"
    placeholder = "?"
    driver_errors = (sqlite3.Error,)

    def begin(self, conn: sqlite3.Connection) -> None:
        conn.execute("BEGIN IMMEDIATE")

    def commit(self, conn: sqlite3.Connection) -> None:
        conn.execute("COMMIT")

    def rollback(self, conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    def insert_transaction(self, conn: sqlite3.Connection, record: TransactionRecord) -> int:
        cursor = conn.execute(
            f"INSERT INTO transaction_logs ({INSERT_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            record.as_params(),
        )
        return cursor.lastrowid

    def increment_balance(self, conn: sqlite3.Connection, account_id: int, amount: float) -> float:
        cursor = conn.execute(
            "UPDATE users SET amount = amount + ? WHERE id = ?", (amount, account_id)
        )
        if cursor.rowcount == 0:
            raise StoreError(f"Account {account_id} does not exist")
        row = conn.execute("SELECT amount FROM users WHERE id = ?", (account_id,)).fetchone()
        return float(row[0])

    def _insert_account(self, cursor: Any, email: str, nickname: str) -> int:
        cursor.execute(
            "INSERT INTO users (email, nickname, amount) VALUES (?, ?, 0)",
            (email, nickname),
        )
        return cursor.lastrowid
