#!/usr/bin/env python3

from cli.common import confirm
from config import get_seed_dir
from db import migrator
from logger import get_logger

logger = get_logger()


def cmd_status(args, db_manager):
    """Show migration status."""
    db_path = db_manager.get_db_path()

    if not db_path.exists():
        logger.info(
            "Database does not exist. Run 'python -m cli migrate apply' to create it."
        )
        return

    migrations_dir = db_manager.get_migrations_dir()
    with db_manager.connect() as conn:
        migrator.init_schema_migrations_table(conn)
        applied = migrator.get_applied_migrations(conn)
        available = migrator.get_available_migrations(migrations_dir)

        logger.info("Migration Status:")
        logger.info("================")

        if not available:
            logger.info("No migrations found.")
            return

        for migration in available:
            status_text = "APPLIED" if migration in applied else "PENDING"
            logger.info(f"{migration}: {status_text}")

        pending_count = len([m for m in available if m not in applied])
        logger.info(f"\nSchema version: {migrator.current_version(conn)}")
        logger.info(f"Declared version: {migrator.schema_version(migrations_dir)}")
        logger.info(f"Applied: {len(applied)}")
        logger.info(f"Pending: {pending_count}")


def cmd_apply(args, db_manager):
    """Bootstrap or migrate the database to the declared schema version."""
    with db_manager.connect() as conn:
        migrator.init_schema_migrations_table(conn)
        pending = migrator.get_pending_migrations(conn, db_manager.get_migrations_dir())

    if not pending:
        logger.info("No pending migrations.")
        return

    logger.info(f"Applying {len(pending)} migration(s)...")
    db_manager.open()
    logger.info(f"Successfully applied {len(pending)} migration(s).")


def cmd_rebuild(args, db_manager):
    """Drop all tables and recreate the schema with default categories."""
    if not args.yes and not confirm(
        f"This will delete ALL data in {db_manager.get_db_path()}. Continue?"
    ):
        logger.info("Rebuild cancelled.")
        return

    with db_manager.connect() as conn:
        version = migrator.rebuild(conn, db_manager.get_migrations_dir(), get_seed_dir())
    logger.info(f"Database rebuilt at schema version {version}.")


def setup_parser(subparsers):
    """Setup migrate subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "migrate",
        help="Database migrations",
        description="Manage database schema migrations",
    )

    migrate_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available migration commands",
        dest="subcommand",
        required=True,
    )

    status_parser = migrate_subparsers.add_parser(
        "status", help="Show migration status"
    )
    status_parser.set_defaults(func=cmd_status)

    apply_parser = migrate_subparsers.add_parser(
        "apply", help="Apply pending migrations"
    )
    apply_parser.set_defaults(func=cmd_apply)

    rebuild_parser = migrate_subparsers.add_parser(
        "rebuild", help="Drop all data and recreate the schema"
    )
    rebuild_parser.add_argument("--yes", action="store_true", help="Skip confirmation")
    rebuild_parser.set_defaults(func=cmd_rebuild)
