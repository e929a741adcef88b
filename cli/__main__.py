#!/usr/bin/env python3
"""
Bajeti CLI - Command-line interface for tracking income, expenses,
investments and budgets.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   Manage categories
    income       Manage income records
    expenses     Manage expense records
    investments  Manage investment records
    budgets      Manage budgets and check budget status
    reports      Summaries, recent activity and report export
    migrate      Database migrations

Examples:
    python -m cli categories list --kind expense
    python -m cli expenses add --amount 12.50 --category "Food & Dining" --date 2024-01-16
    python -m cli budgets add --category "Food & Dining" --amount 500 --period monthly --start 2024-01-01
    python -m cli reports export financial --start 2024-01-01 --end 2024-01-31
    python -m cli migrate status
"""

import sys
import argparse
from cli import budgets, categories, migrate, reports, transactions
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from errors import BajetiError
from logger import get_logger, setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Bajeti - Personal finance tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    # Register each command's subparser
    categories.setup_parser(subparsers)
    transactions.setup_parser(subparsers)
    budgets.setup_parser(subparsers)
    reports.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config()
        setup_logging(config)
        db_manager = DatabaseManager(config)

        # Migrate commands work on the raw database, before it is opened
        if args.command == "migrate":
            args.func(args, db_manager)
            return

        with db_manager:
            services = Services(config, db_manager=db_manager)
            args.func(args, services)
    except BajetiError as e:
        get_logger().error(f"Error: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
