import sqlite3

import pytest

from config import get_migrations_dir, get_seed_dir
from db import migrator
from db.manager import DatabaseManager
from errors import StoreUnavailableError
from tests.helpers import make_expense


def _table_names(conn):
    return {
        row[0]
        for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    }


class TestDatabaseManagerOpen:
    """Tests for DatabaseManager.open."""

    def test_open_bootstraps_schema_and_seeds(self, test_config):
        """Test that a new database gets every table and default categories."""
        manager = DatabaseManager(test_config).open()

        with manager.connect() as conn:
            tables = _table_names(conn)
            assert {"categories", "income", "expenses", "investments", "budgets"} <= tables
            assert migrator.current_version(conn) == migrator.schema_version(
                get_migrations_dir()
            )
            kinds = dict(
                conn.execute(
                    "SELECT type, COUNT(*) FROM categories GROUP BY type"
                ).fetchall()
            )

        assert kinds == {"income": 5, "expense": 9, "investment": 6}
        assert test_config.db_path.exists()

    def test_reopen_keeps_data_and_does_not_reseed(self, test_config):
        """Test that opening an up-to-date database changes nothing."""
        manager = DatabaseManager(test_config).open()
        with manager.connect() as conn:
            conn.execute("DELETE FROM categories WHERE name = 'Travel'")
            conn.commit()

        DatabaseManager(test_config).open()

        with manager.connect() as conn:
            count = conn.execute("SELECT COUNT(*) FROM categories").fetchone()[0]
        assert count == 19

    def test_foreign_keys_enforced(self, test_config):
        """Test that connections enforce foreign keys."""
        manager = DatabaseManager(test_config).open()

        with manager.connect() as conn:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO expenses (amount, category_id, date, created_at, updated_at) "
                    "VALUES (1.0, 9999, '2024-01-01', '2024-01-01', '2024-01-01')"
                )

    def test_context_manager_closes(self, test_config):
        """Test open/close lifecycle via the context manager."""
        with DatabaseManager(test_config) as manager:
            with manager.connect() as conn:
                conn.execute("SELECT 1")

        with pytest.raises(StoreUnavailableError):
            with manager.connect():
                pass

    def test_unknown_version_without_rebuild_fails(self, test_config):
        """Test that a version with no migration path is fatal by default."""
        manager = DatabaseManager(test_config).open()
        with manager.connect() as conn:
            conn.execute(
                "INSERT INTO schema_migrations (migration_file) VALUES ('0099_future.sql')"
            )
            conn.commit()

        with pytest.raises(StoreUnavailableError, match="No migration defined"):
            DatabaseManager(test_config).open()

    def test_unknown_version_with_rebuild_recreates(self, test_config):
        """Test destructive rebuild when explicitly allowed."""
        from services.base import Services

        manager = DatabaseManager(test_config).open()
        services = Services(test_config, db_manager=manager)
        bills = services.categories.find_by_name("Bills & Utilities", "expense")
        services.expenses.create(make_expense(bills.id))
        with manager.connect() as conn:
            conn.execute(
                "INSERT INTO schema_migrations (migration_file) VALUES ('0099_future.sql')"
            )
            conn.commit()

        test_config.allow_destructive_rebuild = True
        DatabaseManager(test_config).open()

        assert services.expenses.find_all() == []
        assert len(services.categories.find_all()) == 20

    def test_ddl_failure_is_fatal(self, test_config, tmp_path, monkeypatch):
        """Test that a broken migration raises StoreUnavailableError."""
        bad_dir = tmp_path / "migrations"
        bad_dir.mkdir()
        (bad_dir / "0001_broken.sql").write_text("CREATE TABLE (;")

        manager = DatabaseManager(test_config)
        monkeypatch.setattr(manager, "get_migrations_dir", lambda: bad_dir)

        with pytest.raises(StoreUnavailableError, match="0001_broken.sql"):
            manager.open()

    def test_unreadable_seed_data_is_fatal_and_retried(self, test_config, tmp_path, monkeypatch):
        """Test that a failed first seeding raises and completes on the next open."""
        import db.manager

        monkeypatch.setattr(db.manager, "get_seed_dir", lambda: tmp_path / "no_seed")

        with pytest.raises(StoreUnavailableError, match="seed data"):
            DatabaseManager(test_config).open()

        monkeypatch.undo()
        manager = DatabaseManager(test_config).open()

        with manager.connect() as conn:
            count = conn.execute("SELECT COUNT(*) FROM categories").fetchone()[0]
            assert migrator.is_seeded(conn)
        assert count == 20

    def test_emptied_categories_are_not_reseeded(self, test_config):
        """Test that deleting every category survives a reopen."""
        manager = DatabaseManager(test_config).open()
        with manager.connect() as conn:
            conn.execute("DELETE FROM categories")
            conn.commit()

        DatabaseManager(test_config).open()

        with manager.connect() as conn:
            assert conn.execute("SELECT COUNT(*) FROM categories").fetchone()[0] == 0

    def test_unwritable_location_is_fatal(self, test_config, tmp_path):
        """Test that an unusable database path raises StoreUnavailableError."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        test_config.db_data_dir = blocker / "db"

        with pytest.raises(StoreUnavailableError):
            DatabaseManager(test_config).open()


class TestMigrator:
    """Tests for the migration functions."""

    def test_migrate_step_by_step_keeps_data(self, test_db):
        """Test that forward migrations preserve existing rows."""
        migrations_dir = get_migrations_dir()
        migrator.migrate(test_db, 0, 1, migrations_dir)
        test_db.execute(
            "INSERT INTO categories (name, type, created_at, updated_at) "
            "VALUES ('Salary', 'income', '2024-01-01', '2024-01-01')"
        )
        test_db.commit()

        applied = migrator.migrate(test_db, 1, 2, migrations_dir)

        assert applied == ["0002_add_indexes.sql"]
        assert migrator.current_version(test_db) == 2
        indexes = {
            row[0]
            for row in test_db.execute(
                "SELECT name FROM sqlite_master WHERE type = 'index'"
            )
        }
        assert "idx_expenses_date" in indexes
        assert test_db.execute("SELECT COUNT(*) FROM categories").fetchone()[0] == 1

    def test_migrate_downwards_fails(self, test_db):
        with pytest.raises(migrator.MissingMigrationError):
            migrator.migrate(test_db, 2, 1, get_migrations_dir())

    def test_migrate_missing_version_fails(self, test_db):
        with pytest.raises(migrator.MissingMigrationError, match="version 4"):
            migrator.migrate(test_db, 0, 4, get_migrations_dir())

    def test_pending_migrations(self, test_db):
        migrations_dir = get_migrations_dir()
        migrator.init_schema_migrations_table(test_db)

        assert migrator.get_pending_migrations(test_db, migrations_dir) == [
            "0001_initial_schema.sql",
            "0002_add_indexes.sql",
            "0003_add_seed_state.sql",
        ]

        migrator.migrate(test_db, 0, 3, migrations_dir)

        assert migrator.get_pending_migrations(test_db, migrations_dir) == []

    def test_rebuild_drops_data(self, test_db):
        migrations_dir = get_migrations_dir()
        migrator.bootstrap(test_db, migrations_dir, get_seed_dir())
        test_db.execute("DELETE FROM categories")
        test_db.commit()

        version = migrator.rebuild(test_db, migrations_dir, get_seed_dir())

        assert version == migrator.schema_version(migrations_dir)
        assert test_db.execute("SELECT COUNT(*) FROM categories").fetchone()[0] == 20

    def test_migration_version_requires_prefix(self):
        assert migrator.migration_version("0007_add_things.sql") == 7
        with pytest.raises(StoreUnavailableError):
            migrator.migration_version("add_things.sql")

    def test_failed_migration_leaves_no_partial_schema(self, test_db, tmp_path):
        """Test that a migration failing halfway rolls back its earlier statements."""
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "0001_half_broken.sql").write_text(
            "CREATE TABLE first_half (id INTEGER PRIMARY KEY);\n"
            "INSERT INTO first_half (id) VALUES (1);\n"
            "CREATE TABLE (;\n"
        )

        with pytest.raises(StoreUnavailableError, match="0001_half_broken.sql"):
            migrator.migrate(test_db, 0, 1, migrations_dir)

        assert "first_half" not in _table_names(test_db)
        assert migrator.current_version(test_db) == 0

    def test_seed_state_backfilled_for_seeded_databases(self, test_db):
        """Test that upgrading an already seeded database does not seed again."""
        migrations_dir = get_migrations_dir()
        migrator.migrate(test_db, 0, 2, migrations_dir)
        test_db.execute(
            "INSERT INTO categories (name, type, created_at, updated_at) "
            "VALUES ('Salary', 'income', '2024-01-01', '2024-01-01')"
        )
        test_db.commit()

        migrator.migrate(test_db, 2, 3, migrations_dir)

        assert migrator.is_seeded(test_db)
        assert migrator.ensure_seeded(test_db, get_seed_dir()) is False
        assert test_db.execute("SELECT COUNT(*) FROM categories").fetchone()[0] == 1
