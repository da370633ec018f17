"""
Store interface shared by the PostgreSQL and SQLite backends.

Workers drive transactions explicitly (begin, insert, increment, commit or
rollback) on a pooled connection so each step can be timed separately. The
account balance is always changed with an atomic `amount = amount + ?`
expression; the value read back inside the transaction is the store's view,
never a client-side read-modify-write.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from sqlload.utils.db_pool import BaseConnectionPool, ConnectionPoolError

from .schema import apply_schema

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the store cannot be used to start or verify a run."""


class MigrationError(StoreError):
    """Raised when the schema cannot be created."""


@dataclass
class Account:
    """
    The single account row every worker increments.

    `balance` caches the committed store value. It is only advanced through
    `apply_committed`, after the transaction carrying the increment has
    committed, so rolled back work never leaks into it.
    """

    id: int
    email: str
    nickname: str
    balance: float = 0.0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def apply_committed(self, amount: float) -> float:
        """Add a committed increment to the cached balance and return it."""
        with self._lock:
            self.balance += amount
            return self.balance

    def cached_balance(self) -> float:
        with self._lock:
            return self.balance


@dataclass(frozen=True)
class TransactionRecord:
    """One append-only transaction log row."""

    user_id: int
    amount: float = 1.0
    callback_id: str = "qwerty12345"
    reference: str = "10101"
    type: str = "py"
    ref: str = "heloshka"
    data: str = "some meta info"
    comment: str = "some comment info"
    tenant: str = "tur za tushur"

    def as_params(self) -> tuple:
        return (
            self.user_id,
            self.callback_id,
            self.reference,
            self.type,
            self.ref,
            self.data,
            self.comment,
            self.tenant,
            self.amount,
        )


INSERT_COLUMNS = (
    "user_id, callback_id, reference, type, ref, data, comment, tenant, amount"
)


class BaseStore:
    """
    Common store behaviour over a connection pool.

    Subclasses set `dialect`, `placeholder` and the driver specific
    `driver_errors`, and implement `begin`, `insert_transaction` and
    `increment_balance`.
    """

    dialect = ""
    placeholder = "?"
    driver_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, pool: BaseConnectionPool):
        self.pool = pool

    def _sql(self, statement: str) -> str:
        return statement.replace("?", self.placeholder)

    def errors(self) -> tuple[type[BaseException], ...]:
        """Exceptions that mean the store itself is unusable."""
        return (ConnectionPoolError, *self.driver_errors)

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Borrow a pooled connection."""
        with self.pool.acquire() as conn:
            yield conn

    def begin(self, conn: Any) -> None:
        raise NotImplementedError

    def commit(self, conn: Any) -> None:
        conn.commit()

    def rollback(self, conn: Any) -> None:
        conn.rollback()

    def insert_transaction(self, conn: Any, record: TransactionRecord) -> int:
        """Insert a transaction log row and return its id."""
        raise NotImplementedError

    def increment_balance(self, conn: Any, account_id: int, amount: float) -> float:
        """Atomically add `amount` to the account and return the new balance."""
        raise NotImplementedError

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """Run a block in one transaction; commit on success, roll back on error."""
        with self.connection() as conn:
            self.begin(conn)
            try:
                cursor = conn.cursor()
                try:
                    yield cursor
                finally:
                    cursor.close()
                self.commit(conn)
            except BaseException:
                self.rollback(conn)
                raise

    def migrate(self) -> None:
        """Create the users and transaction_logs tables if they are missing."""
        try:
            with self.transaction() as cursor:
                apply_schema(cursor, self.dialect)
        except self.errors() as e:
            raise MigrationError(f"Failed to create schema: {e}") from e
        logger.info("Schema ready", extra={"dialect": self.dialect})

    def ping(self) -> None:
        """Verify that a connection can be opened and used."""
        try:
            with self.transaction() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
        except self.errors() as e:
            raise StoreError(f"Store is unreachable: {e}") from e

    def first_or_create_account(self, email: str, nickname: str) -> Account:
        """Fetch the account with this email and nickname, creating it if absent."""
        try:
            with self.transaction() as cursor:
                cursor.execute(
                    self._sql(
                        "SELECT id, email, nickname, amount FROM users "
                        "WHERE email = ? AND nickname = ? ORDER BY id LIMIT 1"
                    ),
                    (email, nickname),
                )
                row = cursor.fetchone()
                if row is None:
                    account_id = self._insert_account(cursor, email, nickname)
                    row = (account_id, email, nickname, 0)
        except self.errors() as e:
            raise StoreError(f"Failed to establish account: {e}") from e

        return Account(id=row[0], email=row[1], nickname=row[2], balance=float(row[3]))

    def _insert_account(self, cursor: Any, email: str, nickname: str) -> int:
        raise NotImplementedError

    def fetch_balance(self, account_id: int) -> float:
        """Read the committed balance of an account."""
        try:
            with self.transaction() as cursor:
                cursor.execute(
                    self._sql("SELECT amount FROM users WHERE id = ?"), (account_id,)
                )
                row = cursor.fetchone()
        except self.errors() as e:
            raise StoreError(f"Failed to read balance: {e}") from e

        if row is None:
            raise StoreError(f"Account {account_id} does not exist")
        return float(row[0])

    def count_transactions(self, account_id: int) -> int:
        """Number of committed transaction log rows for an account."""
        try:
            with self.transaction() as cursor:
                cursor.execute(
                    self._sql("SELECT COUNT(*) FROM transaction_logs WHERE user_id = ?"),
                    (account_id,),
                )
                return int(cursor.fetchone()[0])
        except self.errors() as e:
            raise StoreError(f"Failed to count transactions: {e}") from e

    def close(self) -> None:
        self.pool.close()
