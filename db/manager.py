"""Database manager for SQLite connections, paths and schema lifecycle."""

import sqlite3
from contextlib import contextmanager

from config import Config, get_migrations_dir, get_seed_dir
from db import migrator
from errors import StoreUnavailableError
from logger import get_logger

logger = get_logger()


class DatabaseManager:
    """Manages database connections, paths and the open/close lifecycle.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: Config):
        """Initialize the database manager.

        Args:
            config: Config object containing database configuration.
        """
        self.config = config
        self._closed = False

    @contextmanager
    def connect(self):
        """Get a database connection with automatic cleanup.

        Foreign key enforcement is enabled on every connection.

        Yields:
            sqlite3.Connection: Database connection.

        Raises:
            StoreUnavailableError: If the manager was closed or the database
                file cannot be opened.
        """
        if self._closed:
            raise StoreUnavailableError("Database manager has been closed")

        db_path = self.config.db_path
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(db_path)
            conn.execute("PRAGMA foreign_keys = ON")
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"Cannot open database {db_path}: {e}") from e

        try:
            yield conn
        finally:
            conn.close()

    def open(self) -> "DatabaseManager":
        """Bring the database schema to the declared version.

        A new database is bootstrapped and seeded with default categories. An
        existing one is migrated forward, and seeded if an earlier bootstrap
        stopped before seeding finished. When no migration is defined from
        the stored version, the database is rebuilt only if
        allow_destructive_rebuild is set in the configuration.

        Returns:
            This manager, ready for use.

        Raises:
            StoreUnavailableError: If the schema cannot be brought up to date.
        """
        self._closed = False
        migrations_dir = self.get_migrations_dir()
        target = migrator.schema_version(migrations_dir)

        with self.connect() as conn:
            try:
                migrator.init_schema_migrations_table(conn)
                current = migrator.current_version(conn)

                if current == 0:
                    migrator.bootstrap(conn, migrations_dir, get_seed_dir())
                elif current != target:
                    logger.info(f"Migrating database from version {current} to {target}")
                    try:
                        migrator.migrate(conn, current, target, migrations_dir)
                    except migrator.MissingMigrationError:
                        if not self.config.allow_destructive_rebuild:
                            raise
                        migrator.rebuild(conn, migrations_dir, get_seed_dir())

                # Finishes a bootstrap that stopped before seeding completed.
                migrator.ensure_seeded(conn, get_seed_dir())
            except (sqlite3.Error, OSError) as e:
                logger.error(f"Error opening database {self.get_db_path()}: {e}")
                raise StoreUnavailableError(f"Cannot initialize database: {e}") from e
            except StoreUnavailableError as e:
                logger.error(f"Error opening database {self.get_db_path()}: {e}")
                raise

        logger.debug(f"Database ready at schema version {target}")
        return self

    def close(self) -> None:
        """Mark the manager closed; further connect() calls fail."""
        self._closed = True

    def __enter__(self) -> "DatabaseManager":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def get_db_path(self):
        """Get the current database path.

        Returns:
            Path: Path to the database file.
        """
        return self.config.db_path

    def get_migrations_dir(self):
        """Get the migrations directory path.

        Returns:
            Path: Path to the migrations directory.
        """
        return get_migrations_dir()
