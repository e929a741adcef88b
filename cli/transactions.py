#!/usr/bin/env python3
"""Commands shared by the income, expenses and investments stores."""

from cli.common import confirm, decimal_amount, iso_date, resolve_category
from logger import get_logger
from models.transaction import Expense, Income, Investment
from tools.summaries import get_category_names

logger = get_logger()

# command name -> (services attribute, record class)
STORES = {
    "income": ("income", Income),
    "expenses": ("expenses", Expense),
    "investments": ("investments", Investment),
}


def _store(args, services):
    return getattr(services, STORES[args.command][0])


def _print_records(records, services):
    names = get_category_names(services)
    for r in records:
        line = (
            f"{r.id:>5}  {r.date.date().isoformat()}  {r.amount:>12.2f}  "
            f"{names.get(r.category_id, 'Unknown')}"
        )
        if isinstance(r, Investment):
            line += f"  [{r.investment_type}, value {r.current_value:.2f}]"
        if r.note:
            line += f"  - {r.note}"
        logger.info(line)


def _build_record(args, services):
    record_cls = STORES[args.command][1]
    category_id = resolve_category(services, args.category, record_cls.kind)
    fields = dict(
        amount=args.amount,
        category_id=category_id,
        date=args.date,
        note=args.note,
    )
    if record_cls is Investment:
        fields.update(
            investment_type=args.type,
            expected_return=args.expected_return,
            current_value=args.current_value,
        )
    return record_cls(**fields)


def cmd_list(args, services):
    """List records, optionally within a date range."""
    store = _store(args, services)
    if args.start or args.end:
        if not (args.start and args.end):
            logger.error("Both --start and --end are required to filter by date.")
            return
        records = store.find_by_date_range(args.start, args.end)
    else:
        records = store.find_all()

    if not records:
        logger.info(f"No {args.command} records found.")
        return

    _print_records(records, services)
    logger.info(f"\nTotal records: {len(records)}")


def cmd_recent(args, services):
    """Show the most recent records."""
    limit = args.limit if args.limit is not None else services.config.recent_limit
    records = _store(args, services).find_recent(limit)
    if not records:
        logger.info(f"No {args.command} records found.")
        return
    _print_records(records, services)


def cmd_add(args, services):
    """Add a record."""
    record = _store(args, services).create(_build_record(args, services))
    logger.info(f"✓ Created {record.kind} record with ID: {record.id}")


def cmd_update(args, services):
    """Replace a record."""
    record = _store(args, services).update(args.record_id, _build_record(args, services))
    logger.info(f"✓ Updated {record.kind} record {record.id}")


def cmd_delete(args, services):
    """Delete a record by ID."""
    store = _store(args, services)
    if not args.yes and not confirm(f"Delete {store.kind} record {args.record_id}?"):
        logger.info("Deletion cancelled.")
        return
    store.delete(args.record_id)
    logger.info(f"✓ Deleted {store.kind} record {args.record_id}")


def _add_record_arguments(parser, record_cls):
    parser.add_argument("--amount", type=decimal_amount, required=True, help="Positive amount")
    parser.add_argument(
        "--category", required=True, help="Category ID or name (of matching kind)"
    )
    parser.add_argument("--date", type=iso_date, required=True, help="YYYY-MM-DD")
    parser.add_argument("--note", help="Optional note")
    if record_cls is Investment:
        parser.add_argument("--type", default="other", help="Investment type, e.g. stocks")
        parser.add_argument(
            "--expected-return", type=decimal_amount, help="Expected return (percent)"
        )
        parser.add_argument(
            "--current-value", type=decimal_amount, help="Current value (defaults to amount)"
        )


def setup_parser(subparsers):
    """Setup the income, expenses and investments subcommand parsers.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    for name, (_, record_cls) in STORES.items():
        parser = subparsers.add_parser(
            name,
            help=f"Manage {name} records",
            description=f"Add, list, update and delete {name} records",
        )
        store_subparsers = parser.add_subparsers(
            title="subcommands",
            description=f"Available {name} commands",
            dest="subcommand",
            required=True,
        )

        list_parser = store_subparsers.add_parser("list", help="List records")
        list_parser.add_argument("--start", type=iso_date, help="First day (inclusive)")
        list_parser.add_argument("--end", type=iso_date, help="Last day (inclusive)")
        list_parser.set_defaults(func=cmd_list)

        recent_parser = store_subparsers.add_parser("recent", help="Most recent records")
        recent_parser.add_argument("-n", "--limit", type=int, help="Number of records")
        recent_parser.set_defaults(func=cmd_recent)

        add_parser = store_subparsers.add_parser("add", help="Add a record")
        _add_record_arguments(add_parser, record_cls)
        add_parser.set_defaults(func=cmd_add)

        update_parser = store_subparsers.add_parser("update", help="Replace a record")
        update_parser.add_argument("record_id", type=int, help="ID of the record")
        _add_record_arguments(update_parser, record_cls)
        update_parser.set_defaults(func=cmd_update)

        delete_parser = store_subparsers.add_parser("delete", help="Delete a record")
        delete_parser.add_argument("record_id", type=int, help="ID of the record")
        delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")
        delete_parser.set_defaults(func=cmd_delete)
