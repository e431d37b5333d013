import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite_db import (
    SQLiteSubscriberRepo,
    SQLiteSubscriptionTokenRepo,
    SQLiteUnitOfWork,
)
from src.config.models import EmailClientSettings, Settings


@pytest.fixture
def db_path(tmp_path):
    """
    Temporary SQLite database with all migrations applied.
    """
    path = str(tmp_path / "newsletter.db")
    SQLiteMigrator(path, "migrations").run_migrations()
    return path


@pytest.fixture
def token_repo(db_path):
    return SQLiteSubscriptionTokenRepo(db_path)


@pytest.fixture
def subscriber_repo(db_path):
    return SQLiteSubscriberRepo(db_path)


@pytest.fixture
def unit_of_work(db_path):
    def factory():
        return SQLiteUnitOfWork(db_path)

    return factory


@pytest.fixture
def settings(db_path):
    return Settings(
        database={"path": db_path},
        email_client=EmailClientSettings(sender_email="newsletter@example.com"),
    )
