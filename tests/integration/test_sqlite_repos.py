"""
SQLite store integration tests.

Runs the repositories and SQLiteUnitOfWork against a migrated database.
"""

import sqlite3
from uuid import uuid4

import pytest

from src.adapters.sqlite_db import (
    SQLiteSubscriberRepo,
    SQLiteSubscriptionTokenRepo,
    SQLiteUnitOfWork,
)
from src.core.entities import Subscriber, SubscriberStatus
from src.core.ports.db import (
    StoreConflictError,
    StoreUnavailableError,
    TransactionAbortedError,
    UnitOfWorkClosedError,
)


class Cancelled(BaseException):
    """Stands in for a cancellation that is not an Exception."""


@pytest.fixture
def subscriber(subscriber_repo):
    return subscriber_repo.add(Subscriber(email="ursula@example.com", name="Ursula"))


class TestSubscriberRepo:
    def test_add_and_get(self, subscriber_repo, subscriber):
        by_id = subscriber_repo.get_by_id(subscriber.id)
        by_email = subscriber_repo.get_by_email("ursula@example.com")

        assert by_id == by_email
        assert by_id.name == "Ursula"
        assert by_id.status == SubscriberStatus.PENDING_CONFIRMATION
        assert by_id.subscribed_at == subscriber.subscribed_at

    def test_missing_subscriber(self, subscriber_repo):
        assert subscriber_repo.get_by_id(uuid4()) is None
        assert subscriber_repo.get_by_email("nobody@example.com") is None
        assert subscriber_repo.is_confirmed(uuid4()) is False

    def test_duplicate_email_conflicts(self, subscriber_repo, subscriber):
        with pytest.raises(StoreConflictError) as exc_info:
            subscriber_repo.add(Subscriber(email="ursula@example.com", name="Other"))

        assert exc_info.value.operation == "insert_subscriber"

    def test_mark_confirmed_is_conditional(self, subscriber_repo, subscriber):
        assert subscriber_repo.mark_confirmed(subscriber.id) is True
        assert subscriber_repo.is_confirmed(subscriber.id) is True

        # Second transition finds no pending row
        assert subscriber_repo.mark_confirmed(subscriber.id) is False
        assert subscriber_repo.mark_confirmed(uuid4()) is False


class TestTokenRepo:
    def test_add_resolve_delete(self, token_repo, subscriber):
        token_repo.add("abc123", subscriber.id)

        assert token_repo.get_subscriber_id("abc123") == subscriber.id
        assert token_repo.get_for_subscriber(subscriber.id) == "abc123"

        assert token_repo.delete_for_subscriber(subscriber.id) == 1
        assert token_repo.get_subscriber_id("abc123") is None
        assert token_repo.get_for_subscriber(subscriber.id) is None

    def test_delete_is_idempotent(self, token_repo, subscriber):
        assert token_repo.delete_for_subscriber(subscriber.id) == 0

    def test_unknown_token_is_none(self, token_repo):
        assert token_repo.get_subscriber_id("zzz") is None

    def test_token_must_reference_subscriber(self, token_repo):
        with pytest.raises(StoreConflictError):
            token_repo.add("orphan", uuid4())

    def test_unreachable_store_is_unavailable(self, tmp_path):
        # A directory cannot be opened as a database file
        repo = SQLiteSubscriptionTokenRepo(str(tmp_path))

        with pytest.raises(StoreUnavailableError) as exc_info:
            repo.get_subscriber_id("abc123")

        assert exc_info.value.operation == "get_subscriber_id_from_token"
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)


class TestUnitOfWork:
    def test_commit_persists_all_writes(self, db_path, subscriber_repo, token_repo):
        new = Subscriber(email="ada@example.com", name="Ada")

        with SQLiteUnitOfWork(db_path) as uow:
            uow.subscribers.add(new)
            uow.tokens.add("tok-ada", new.id)
            uow.commit()

        assert subscriber_repo.get_by_id(new.id) is not None
        assert token_repo.get_subscriber_id("tok-ada") == new.id

    def test_leaving_without_commit_rolls_back(self, db_path, subscriber_repo, subscriber):
        with SQLiteUnitOfWork(db_path) as uow:
            uow.subscribers.mark_confirmed(subscriber.id)

        assert subscriber_repo.is_confirmed(subscriber.id) is False

    def test_exception_rolls_back(self, db_path, subscriber_repo, token_repo, subscriber):
        token_repo.add("abc123", subscriber.id)

        with pytest.raises(RuntimeError):
            with SQLiteUnitOfWork(db_path) as uow:
                uow.subscribers.mark_confirmed(subscriber.id)
                uow.tokens.delete_for_subscriber(subscriber.id)
                raise RuntimeError("boom")

        assert subscriber_repo.is_confirmed(subscriber.id) is False
        assert token_repo.get_subscriber_id("abc123") == subscriber.id

    def test_cancellation_rolls_back(self, db_path, subscriber_repo, subscriber):
        with pytest.raises(Cancelled):
            with SQLiteUnitOfWork(db_path) as uow:
                uow.subscribers.mark_confirmed(subscriber.id)
                raise Cancelled()

        assert subscriber_repo.is_confirmed(subscriber.id) is False

    def test_explicit_rollback(self, db_path, subscriber_repo, subscriber):
        with SQLiteUnitOfWork(db_path) as uow:
            uow.subscribers.mark_confirmed(subscriber.id)
            uow.rollback()
            assert uow.is_open is False

        assert subscriber_repo.is_confirmed(subscriber.id) is False

    def test_commit_twice_raises(self, db_path):
        with SQLiteUnitOfWork(db_path) as uow:
            uow.commit()
            with pytest.raises(UnitOfWorkClosedError):
                uow.commit()

    def test_repositories_unavailable_after_commit(self, db_path):
        with SQLiteUnitOfWork(db_path) as uow:
            uow.commit()
            with pytest.raises(UnitOfWorkClosedError):
                _ = uow.tokens

    def test_other_writers_wait_for_the_lock(self, db_path, subscriber):
        """BEGIN IMMEDIATE holds the write lock until commit."""
        with SQLiteUnitOfWork(db_path) as uow:
            uow.subscribers.mark_confirmed(subscriber.id)

            contender = SQLiteSubscriberRepo(db_path, busy_timeout_seconds=0.05)
            with pytest.raises(StoreUnavailableError):
                contender.add(Subscriber(email="late@example.com", name="Late"))

            uow.commit()

    def test_begin_failure_is_unavailable(self, tmp_path):
        with pytest.raises(StoreUnavailableError) as exc_info:
            with SQLiteUnitOfWork(str(tmp_path)):
                pass

        assert exc_info.value.operation == "begin_transaction"

    def test_commit_failure_survives_failing_rollback(self, db_path):
        """A rollback error after a failed COMMIT does not replace the typed error."""

        class BrokenConnection:
            in_transaction = True

            def __init__(self, conn):
                self._conn = conn

            def execute(self, sql, *args):
                raise sqlite3.OperationalError("disk I/O error")

            def close(self):
                self._conn.close()

        with SQLiteUnitOfWork(db_path) as uow:
            uow._conn = BrokenConnection(uow._conn)
            with pytest.raises(TransactionAbortedError) as exc_info:
                uow.commit()

        assert exc_info.value.operation == "commit"
        assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
