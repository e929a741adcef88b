#!/usr/bin/env python3
"""Wipe Bajeti's data and start over with a freshly bootstrapped database.

Only runs when enable_reset is true in ~/.config/bajeti.toml. Saved reports
are kept unless --all is given.
"""

import argparse
import shutil
import sys

from config import load_config
from db import migrator
from db.manager import DatabaseManager


def _targets(config, wipe_all):
    if wipe_all:
        return [config.base_dir]
    return [config.db_data_dir, config.log_dir]


def reset(wipe_all=False, assume_yes=False):
    config = load_config()

    if not config.enable_reset:
        print("Reset is disabled (enable_reset = false in ~/.config/bajeti.toml).")
        sys.exit(1)

    targets = [path for path in _targets(config, wipe_all) if path.exists()]
    print("Bajeti reset")
    for path in targets:
        print(f"  will delete: {path}")
    if not wipe_all:
        print(f"  keeping reports in: {config.reports_dir}")

    if not assume_yes:
        response = input("This deletes all stored records. Continue? (yes/no): ")
        if response.lower() != "yes":
            print("Reset cancelled.")
            sys.exit(0)

    for path in targets:
        shutil.rmtree(path)

    with DatabaseManager(config) as db_manager:
        with db_manager.connect() as conn:
            version = migrator.current_version(conn)
            category_count = conn.execute("SELECT COUNT(*) FROM categories").fetchone()[0]

    print(f"Database recreated at {config.db_path}")
    print(f"Schema version {version}, {category_count} default categories")


def main():
    parser = argparse.ArgumentParser(description="Reset Bajeti data")
    parser.add_argument(
        "--all", dest="wipe_all", action="store_true",
        help="Also delete saved reports (the whole data directory)",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args()
    reset(wipe_all=args.wipe_all, assume_yes=args.yes)


if __name__ == "__main__":
    main()
