"""Shared pytest fixtures for all tests."""

import sqlite3

import pytest

from config import Config, get_migrations_dir, get_seed_dir
from db.migrator import seed_default_categories
from services.base import Services
from tests.helpers import InMemoryDatabaseManager, run_migrations


@pytest.fixture
def test_db():
    """In-memory SQLite database with foreign keys enforced.

    check_same_thread is off so report tests may hand the connection to a
    worker thread.
    """
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.execute("PRAGMA foreign_keys = ON")
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Configuration rooted in a temporary directory."""
    base_dir = tmp_path / "bajeti"
    return Config(
        base_dir=base_dir,
        db_data_dir=base_dir / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=base_dir / "logs",
        reports_dir=base_dir / "reports",
    )


@pytest.fixture
def db_manager_with_schema(test_db):
    """InMemoryDatabaseManager with every migration applied and no categories."""
    run_migrations(test_db, get_migrations_dir())
    return InMemoryDatabaseManager(test_db)


@pytest.fixture
def services(test_config, db_manager_with_schema):
    """Services container backed by the in-memory database."""
    return Services(test_config, db_manager=db_manager_with_schema)


@pytest.fixture
def seeded_services(services, test_db):
    """Services container whose database holds the default categories."""
    seed_default_categories(test_db, get_seed_dir())
    return services


@pytest.fixture
def categories(services):
    """One category of each kind, keyed by kind."""
    return {
        "income": services.categories.create("Salary", "income"),
        "expense": services.categories.create("Rent", "expense"),
        "investment": services.categories.create("Stocks", "investment"),
    }
