"""
SQLite Database Adapter (P1 Implementation).

Implements the subscription store ports using SQLite.
Designed to be Postgres-compatible (uses standard SQL patterns).

Transactions:
- Standalone repositories open a connection per call and commit writes
  immediately.
- SQLiteUnitOfWork opens one connection, starts `BEGIN IMMEDIATE` (takes the
  database write lock up front) and hands that connection to its
  repositories, so their writes commit or roll back together. Concurrent
  units of work are serialized by SQLite's locking, waiting up to
  busy_timeout_seconds.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from datetime import datetime
from typing import Any
from uuid import UUID

from src.core.entities import Subscriber, SubscriberStatus
from src.core.ports.db import (
    StoreConflictError,
    StoreUnavailableError,
    TransactionAbortedError,
    UnitOfWorkClosedError,
)

DEFAULT_BUSY_TIMEOUT_SECONDS = 5.0

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def connect(
    db_path: str,
    busy_timeout_seconds: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
    autocommit: bool = False,
) -> sqlite3.Connection:
    """
    Open a configured connection.

    With autocommit=True the driver never issues an implicit BEGIN, leaving
    transaction control to the caller.
    """
    if autocommit:
        conn = sqlite3.connect(db_path, timeout=busy_timeout_seconds, isolation_level=None)
    else:
        conn = sqlite3.connect(db_path, timeout=busy_timeout_seconds)
    conn.row_factory = dict_factory
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate driver errors into StoreUnavailableError tagged with the operation."""
    try:
        yield
    except sqlite3.IntegrityError as e:
        raise StoreConflictError(operation, type(e).__name__) from e
    except sqlite3.Error as e:
        raise StoreUnavailableError(operation, type(e).__name__) from e


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(
        self,
        db_path: str,
        connection: sqlite3.Connection | None = None,
        busy_timeout_seconds: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
    ):
        self.db_path = db_path
        self.busy_timeout_seconds = busy_timeout_seconds
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn
        return connect(self.db_path, self.busy_timeout_seconds)

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None


# -----------------------------------------------------------------------------
# Subscription Tokens
# -----------------------------------------------------------------------------


class SQLiteSubscriptionTokenRepo(SQLiteRepoBase):
    """SQLite implementation of SubscriptionTokenRepoPort."""

    def get_subscriber_id(self, token: str) -> UUID | None:
        with store_errors("get_subscriber_id_from_token"):
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT subscriber_id FROM subscription_tokens WHERE subscription_token = ?",
                    (token,),
                ).fetchone()
                return UUID(row["subscriber_id"]) if row else None
            finally:
                if self._should_close():
                    conn.close()

    def get_for_subscriber(self, subscriber_id: UUID) -> str | None:
        with store_errors("get_token_for_subscriber"):
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT subscription_token FROM subscription_tokens WHERE subscriber_id = ?",
                    (str(subscriber_id),),
                ).fetchone()
                return row["subscription_token"] if row else None
            finally:
                if self._should_close():
                    conn.close()

    def add(self, token: str, subscriber_id: UUID) -> None:
        with store_errors("store_token"):
            conn = self._get_conn()
            try:
                conn.execute(
                    "INSERT INTO subscription_tokens (subscription_token, subscriber_id) "
                    "VALUES (?, ?)",
                    (token, str(subscriber_id)),
                )
                if self._should_close():
                    conn.commit()
            finally:
                if self._should_close():
                    conn.close()

    def delete_for_subscriber(self, subscriber_id: UUID) -> int:
        with store_errors("delete_old_token"):
            conn = self._get_conn()
            try:
                cursor = conn.execute(
                    "DELETE FROM subscription_tokens WHERE subscriber_id = ?",
                    (str(subscriber_id),),
                )
                if self._should_close():
                    conn.commit()
                return cursor.rowcount
            finally:
                if self._should_close():
                    conn.close()


# -----------------------------------------------------------------------------
# Subscribers
# -----------------------------------------------------------------------------


class SQLiteSubscriberRepo(SQLiteRepoBase):
    """SQLite implementation of SubscriberRepoPort."""

    def get_by_id(self, subscriber_id: UUID) -> Subscriber | None:
        with store_errors("get_subscriber"):
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT * FROM subscriptions WHERE id = ?", (str(subscriber_id),)
                ).fetchone()
                return self._map_row(row) if row else None
            finally:
                if self._should_close():
                    conn.close()

    def get_by_email(self, email: str) -> Subscriber | None:
        with store_errors("get_subscriber_by_email"):
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT * FROM subscriptions WHERE email = ?", (email,)
                ).fetchone()
                return self._map_row(row) if row else None
            finally:
                if self._should_close():
                    conn.close()

    def add(self, subscriber: Subscriber) -> Subscriber:
        with store_errors("insert_subscriber"):
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO subscriptions (id, email, name, subscribed_at, status)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        str(subscriber.id),
                        subscriber.email,
                        subscriber.name,
                        subscriber.subscribed_at.isoformat(),
                        subscriber.status.value,
                    ),
                )
                if self._should_close():
                    conn.commit()
                return subscriber
            finally:
                if self._should_close():
                    conn.close()

    def is_confirmed(self, subscriber_id: UUID) -> bool:
        with store_errors("is_user_confirmed"):
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT status FROM subscriptions WHERE id = ?", (str(subscriber_id),)
                ).fetchone()
                return bool(row) and row["status"] == SubscriberStatus.CONFIRMED.value
            finally:
                if self._should_close():
                    conn.close()

    def mark_confirmed(self, subscriber_id: UUID) -> bool:
        with store_errors("confirm_subscriber"):
            conn = self._get_conn()
            try:
                cursor = conn.execute(
                    "UPDATE subscriptions SET status = ? WHERE id = ? AND status = ?",
                    (
                        SubscriberStatus.CONFIRMED.value,
                        str(subscriber_id),
                        SubscriberStatus.PENDING_CONFIRMATION.value,
                    ),
                )
                if self._should_close():
                    conn.commit()
                return cursor.rowcount == 1
            finally:
                if self._should_close():
                    conn.close()

    def _map_row(self, row: dict[str, Any]) -> Subscriber:
        return Subscriber(
            id=UUID(row["id"]),
            email=row["email"],
            name=row["name"],
            status=SubscriberStatus(row["status"]),
            subscribed_at=datetime.fromisoformat(row["subscribed_at"]),
        )


# -----------------------------------------------------------------------------
# Unit of Work
# -----------------------------------------------------------------------------


class SQLiteUnitOfWork:
    """
    SQLite Unit of Work implementation.

    Provides transaction management and access to the repositories that
    must change together. Uses a shared connection for all operations
    within the transaction.

    Usage:
        with SQLiteUnitOfWork(db_path) as uow:
            uow.subscribers.mark_confirmed(subscriber_id)
            uow.tokens.delete_for_subscriber(subscriber_id)
            uow.commit()

    Leaving the block without commit() rolls back. commit() and rollback()
    each close the transaction; calling either a second time raises
    UnitOfWorkClosedError.
    """

    def __init__(
        self,
        db_path: str,
        busy_timeout_seconds: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
    ):
        self.db_path = db_path
        self.busy_timeout_seconds = busy_timeout_seconds
        self._conn: sqlite3.Connection | None = None
        self._open = False

        # Lazy-initialized repositories
        self._tokens: SQLiteSubscriptionTokenRepo | None = None
        self._subscribers: SQLiteSubscriberRepo | None = None

    def __enter__(self) -> SQLiteUnitOfWork:
        with store_errors("begin_transaction"):
            self._conn = connect(self.db_path, self.busy_timeout_seconds, autocommit=True)
            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error:
                self._conn.close()
                self._conn = None
                raise
        self._open = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._open:
                self.rollback()
        finally:
            if self._conn:
                self._conn.close()
                self._conn = None

    @property
    def is_open(self) -> bool:
        return self._open

    def commit(self) -> None:
        if not self._open or self._conn is None:
            raise UnitOfWorkClosedError("commit")
        self._open = False
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            with suppress(sqlite3.Error):
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
            raise TransactionAbortedError("commit", type(e).__name__) from e

    def rollback(self) -> None:
        if not self._open or self._conn is None:
            raise UnitOfWorkClosedError("rollback")
        self._open = False
        with store_errors("rollback"):
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")

    def _require_conn(self) -> sqlite3.Connection:
        if not self._open or self._conn is None:
            raise UnitOfWorkClosedError("repository access")
        return self._conn

    @property
    def tokens(self) -> SQLiteSubscriptionTokenRepo:
        if self._tokens is None:
            self._tokens = SQLiteSubscriptionTokenRepo(self.db_path, self._require_conn())
        return self._tokens

    @property
    def subscribers(self) -> SQLiteSubscriberRepo:
        if self._subscribers is None:
            self._subscribers = SQLiteSubscriberRepo(self.db_path, self._require_conn())
        return self._subscribers
