"""Helper utilities for tests."""

from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from pathlib import Path
import sqlite3

from config import get_migrations_dir
from db import migrator
from models.budget import Budget
from models.transaction import Expense, Income, Investment


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Bring an empty database to the latest schema without seeding it."""
    migrator.migrate(conn, 0, migrator.schema_version(migrations_dir), migrations_dir)


class InMemoryDatabaseManager:
    """Stands in for DatabaseManager, handing out one shared connection.

    Tests can then inspect or seed the same in-memory database the
    services write to.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @contextmanager
    def connect(self):
        yield self.conn

    def get_db_path(self):
        return Path(":memory:")

    def get_migrations_dir(self):
        return get_migrations_dir()


def make_income(category_id, amount="100.00", on=date(2024, 1, 15), note=None):
    return Income(amount=Decimal(amount), category_id=category_id, date=on, note=note)


def make_expense(category_id, amount="50.00", on=date(2024, 1, 16), note=None):
    return Expense(amount=Decimal(amount), category_id=category_id, date=on, note=note)


def make_investment(category_id, amount="1000.00", on=date(2024, 1, 10), **kwargs):
    return Investment(
        amount=Decimal(amount), category_id=category_id, date=on, **kwargs
    )


def make_budget(
    category_id,
    amount="500.00",
    start=date(2024, 1, 1),
    end=date(2024, 1, 31),
    period="monthly",
    is_active=True,
):
    return Budget(
        category_id=category_id,
        amount=Decimal(amount),
        period=period,
        start_date=start,
        end_date=end,
        is_active=is_active,
    )
