"""PostgreSQL store backend (psycopg2)."""

from typing import Any

import psycopg2
import psycopg2.extensions

from .base import INSERT_COLUMNS, BaseStore, StoreError, TransactionRecord


class PostgresStore(BaseStore):
    """Store over a PostgresConnectionPool; uses RETURNING for read-back."""

    dialect = "postgresql"
    placeholder = "%s"
    driver_errors = (psycopg2.Error,)

    def begin(self, conn: psycopg2.extensions.connection) -> None:
        # psycopg2 opens the transaction implicitly on the first statement
        pass

    def insert_transaction(
        self, conn: psycopg2.extensions.connection, record: TransactionRecord
    ) -> int:
        with conn.cursor() as cursor:
            cursor.execute(
                f"INSERT INTO transaction_logs ({INSERT_COLUMNS}) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s) RETURNING id",
                record.as_params(),
            )
            return cursor.fetchone()[0]

    def increment_balance(
        self, conn: psycopg2.extensions.connection, account_id: int, amount: float
    ) -> float:
        with conn.cursor() as cursor:
            cursor.execute(
                "UPDATE users SET amount = amount + %s WHERE id = %s RETURNING amount",
                (amount, account_id),
            )
            row = cursor.fetchone()
        if row is None:
            raise StoreError(f"Account {account_id} does not exist")
        return float(row[0])

    def _insert_account(self, cursor: Any, email: str, nickname: str) -> int:
        cursor.execute(
            "INSERT INTO users (email, nickname, amount) VALUES (%s, %s, 0) RETURNING id",
            (email, nickname),
        )
        return cursor.fetchone()[0]
