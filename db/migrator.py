"""Schema versioning: SQL migration files, bootstrap, seeding and rebuild.

Migrations live in db/migrations as NNNN_description.sql. The number prefix
is the schema version the file brings the database to. Applied files are
recorded in the schema_migrations table.
"""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Set

from errors import StoreUnavailableError
from logger import get_logger

logger = get_logger()


class MissingMigrationError(StoreUnavailableError):
    """Raised when no migration is defined between two schema versions."""


def init_schema_migrations_table(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            migration_file TEXT PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)
    conn.commit()


def migration_version(migration_file: str) -> int:
    """Get the schema version encoded in a migration file name.

    Raises:
        StoreUnavailableError: If the name has no numeric prefix.
    """
    prefix = migration_file.split("_", 1)[0]
    if not prefix.isdigit():
        raise StoreUnavailableError(
            f"Migration file {migration_file} has no numeric version prefix"
        )
    return int(prefix)


def get_applied_migrations(conn: sqlite3.Connection) -> Set[str]:
    cursor = conn.execute(
        "SELECT migration_file FROM schema_migrations ORDER BY migration_file"
    )
    return {row[0] for row in cursor.fetchall()}


def get_available_migrations(migrations_dir: Path) -> List[str]:
    if not migrations_dir.exists():
        return []
    return sorted(path.name for path in migrations_dir.glob("*.sql"))


def get_pending_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> List[str]:
    applied = get_applied_migrations(conn)
    return [m for m in get_available_migrations(migrations_dir) if m not in applied]


def schema_version(migrations_dir: Path) -> int:
    """Get the declared schema version: the highest migration number present."""
    versions = [migration_version(m) for m in get_available_migrations(migrations_dir)]
    return max(versions, default=0)


def current_version(conn: sqlite3.Connection) -> int:
    """Get the schema version the database is currently at (0 when empty)."""
    applied = get_applied_migrations(conn)
    return max((migration_version(m) for m in applied), default=0)


def apply_migration(
    conn: sqlite3.Connection, migration_file: str, migrations_dir: Path
) -> None:
    """Apply one migration file and record it, in a single transaction.

    Either every statement in the file runs and the file is recorded, or
    nothing changes.

    Raises:
        StoreUnavailableError: If the file cannot be read or a statement fails.
    """
    try:
        with open(migrations_dir / migration_file, "r") as f:
            sql = f.read()
    except OSError as e:
        raise StoreUnavailableError(
            f"Cannot read migration {migration_file}: {e}"
        ) from e

    try:
        # executescript commits anything pending first, then runs the script as is.
        conn.executescript(f"BEGIN;\n{sql}")
        conn.execute(
            "INSERT INTO schema_migrations (migration_file) VALUES (?)",
            (migration_file,),
        )
        conn.commit()
        logger.info(f"Applied migration: {migration_file}")
    except sqlite3.Error as e:
        conn.rollback()
        logger.error(f"Error applying migration {migration_file}: {e}")
        raise StoreUnavailableError(
            f"Migration {migration_file} failed: {e}"
        ) from e


def migrate(
    conn: sqlite3.Connection,
    from_version: int,
    to_version: int,
    migrations_dir: Path,
) -> List[str]:
    """Apply every migration with a version in (from_version, to_version].

    Args:
        conn: Open database connection.
        from_version: Version the database is currently at.
        to_version: Version to bring the database to.
        migrations_dir: Directory holding the .sql migration files.

    Returns:
        Names of the migration files applied, in order.

    Raises:
        MissingMigrationError: If to_version is below from_version or a
            version in between has no migration file.
        StoreUnavailableError: If a migration fails to apply.
    """
    if to_version < from_version:
        raise MissingMigrationError(
            f"No migration defined from version {from_version} down to {to_version}"
        )

    by_version = {}
    for migration in get_available_migrations(migrations_dir):
        by_version.setdefault(migration_version(migration), []).append(migration)

    steps = []
    for version in range(from_version + 1, to_version + 1):
        if version not in by_version:
            raise MissingMigrationError(
                f"No migration defined for schema version {version}"
            )
        steps.extend(by_version[version])

    init_schema_migrations_table(conn)
    applied = get_applied_migrations(conn)
    for migration in steps:
        if migration not in applied:
            apply_migration(conn, migration, migrations_dir)

    return steps


SEED_CATEGORIES = "categories"


def is_seeded(conn: sqlite3.Connection, name: str = SEED_CATEGORIES) -> bool:
    """Check whether a seed data set has been loaded."""
    row = conn.execute("SELECT 1 FROM seed_state WHERE name = ?", (name,)).fetchone()
    return row is not None


def seed_default_categories(conn: sqlite3.Connection, seed_dir: Path) -> int:
    """Insert the default categories for each kind and mark them seeded.

    The inserts and the seed_state record commit together.

    Returns:
        Number of categories inserted.

    Raises:
        StoreUnavailableError: If the seed file cannot be read or parsed, or
            the inserts fail.
    """
    seed_file = seed_dir / "categories.json"
    try:
        with open(seed_file, "r") as f:
            categories = json.load(f)
        rows = [
            (c["name"], c["type"], c.get("icon"), c.get("color"))
            for c in categories
        ]
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Cannot load seed data {seed_file}: {e}")
        raise StoreUnavailableError(f"Cannot load seed data {seed_file}: {e}") from e

    now = datetime.now().isoformat()
    try:
        cursor = conn.executemany(
            """
            INSERT OR IGNORE INTO categories
                (name, type, icon, color, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [row + (now, now) for row in rows],
        )
        inserted = cursor.rowcount
        conn.execute(
            "INSERT OR IGNORE INTO seed_state (name) VALUES (?)", (SEED_CATEGORIES,)
        )
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise StoreUnavailableError(f"Seeding default categories failed: {e}") from e

    logger.info(f"Seeded {inserted} default categories")
    return inserted


def ensure_seeded(conn: sqlite3.Connection, seed_dir: Path) -> bool:
    """Seed the default categories unless that already completed.

    Returns:
        True if seeding ran.
    """
    if is_seeded(conn):
        return False
    seed_default_categories(conn, seed_dir)
    return True


def bootstrap(conn: sqlite3.Connection, migrations_dir: Path, seed_dir: Path) -> int:
    """Create the schema from scratch and seed default data.

    Returns:
        The schema version reached.
    """
    target = schema_version(migrations_dir)
    logger.info(f"Bootstrapping database schema at version {target}")
    migrate(conn, 0, target, migrations_dir)
    ensure_seeded(conn, seed_dir)
    return target


def rebuild(conn: sqlite3.Connection, migrations_dir: Path, seed_dir: Path) -> int:
    """Drop every table and bootstrap again. All data is lost.

    Returns:
        The schema version reached.
    """
    logger.warning("Rebuilding database: all existing data will be dropped")
    try:
        conn.execute("PRAGMA foreign_keys = OFF")
        tables = [
            row[0]
            for row in conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
            ).fetchall()
        ]
        for table in tables:
            conn.execute(f'DROP TABLE IF EXISTS "{table}"')
        conn.commit()
        conn.execute("PRAGMA foreign_keys = ON")
    except sqlite3.Error as e:
        conn.rollback()
        raise StoreUnavailableError(f"Dropping tables failed: {e}") from e

    init_schema_migrations_table(conn)
    return bootstrap(conn, migrations_dir, seed_dir)
