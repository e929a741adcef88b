#!/usr/bin/env python3

from cli.common import confirm, decimal_amount, iso_date, resolve_category
from logger import get_logger
from models.budget import BUDGET_PERIODS, Budget, period_end
from tools.summaries import get_budget_status, get_category_names

logger = get_logger()


def cmd_list(args, services):
    """List budgets."""
    budgets = services.budgets.find_all(active_only=args.active)
    if not budgets:
        logger.info("No budgets found.")
        return

    names = get_category_names(services)
    logger.info("\nBudgets:")
    logger.info("=" * 80)
    for b in budgets:
        logger.info(
            f"{b.id:>4}  {names.get(b.category_id, 'Unknown'):<20}  {b.period:<8}  "
            f"{b.start_date.date().isoformat()} to {b.end_date.date().isoformat()}  "
            f"{b.amount:>10.2f}  {'active' if b.is_active else 'inactive'}"
        )
    logger.info(f"\nTotal budgets: {len(budgets)}")


def cmd_add(args, services):
    """Add a budget for an expense category."""
    category_id = resolve_category(services, args.category, "expense")
    end = args.end or period_end(args.start, args.period)
    budget = services.budgets.create(
        Budget(
            category_id=category_id,
            amount=args.amount,
            period=args.period,
            start_date=args.start,
            end_date=end,
        )
    )
    logger.info(f"✓ Budget created with ID: {budget.id}")
    logger.info(f"  {budget.start_date.date()} to {budget.end_date.date()}: {budget.amount}")


def cmd_deactivate(args, services):
    """Deactivate a budget without deleting it."""
    budget = services.budgets.set_active(args.budget_id, False)
    logger.info(f"✓ Budget {budget.id} deactivated")


def cmd_activate(args, services):
    """Reactivate a budget (fails if it would overlap an active one)."""
    budget = services.budgets.set_active(args.budget_id, True)
    logger.info(f"✓ Budget {budget.id} activated")


def cmd_delete(args, services):
    """Delete a budget by ID."""
    if not args.yes and not confirm(f"Delete budget {args.budget_id}?"):
        logger.info("Deletion cancelled.")
        return
    services.budgets.delete(args.budget_id)
    logger.info(f"✓ Budget {args.budget_id} deleted")


def cmd_status(args, services):
    """Show spending against each active budget."""
    statuses = get_budget_status(services, active_only=not args.all)
    if not statuses:
        logger.info("No budgets found.")
        return

    names = get_category_names(services)
    for s in statuses:
        logger.info(
            f"{names.get(s.budget.category_id, 'Unknown'):<20}  "
            f"budget {s.budget.amount:>10.2f}  spent {s.spent:>10.2f}  "
            f"remaining {s.remaining:>10.2f}  {s.status}"
        )


def setup_parser(subparsers):
    """Setup budgets subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "budgets",
        help="Manage budgets",
        description="Create, list, deactivate and delete budgets; check budget status",
    )

    budgets_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available budget commands",
        dest="subcommand",
        required=True,
    )

    list_parser = budgets_subparsers.add_parser("list", help="List budgets")
    list_parser.add_argument("--active", action="store_true", help="Only active budgets")
    list_parser.set_defaults(func=cmd_list)

    add_parser = budgets_subparsers.add_parser("add", help="Add a budget")
    add_parser.add_argument("--category", required=True, help="Expense category ID or name")
    add_parser.add_argument("--amount", type=decimal_amount, required=True)
    add_parser.add_argument("--period", choices=BUDGET_PERIODS, default="monthly")
    add_parser.add_argument("--start", type=iso_date, required=True, help="First day")
    add_parser.add_argument(
        "--end", type=iso_date, help="Last day (defaults to the end of one period)"
    )
    add_parser.set_defaults(func=cmd_add)

    deactivate_parser = budgets_subparsers.add_parser(
        "deactivate", help="Deactivate a budget"
    )
    deactivate_parser.add_argument("budget_id", type=int)
    deactivate_parser.set_defaults(func=cmd_deactivate)

    activate_parser = budgets_subparsers.add_parser("activate", help="Reactivate a budget")
    activate_parser.add_argument("budget_id", type=int)
    activate_parser.set_defaults(func=cmd_activate)

    delete_parser = budgets_subparsers.add_parser("delete", help="Delete a budget")
    delete_parser.add_argument("budget_id", type=int)
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)

    status_parser = budgets_subparsers.add_parser(
        "status", help="Spending against each budget"
    )
    status_parser.add_argument("--all", action="store_true", help="Include inactive budgets")
    status_parser.set_defaults(func=cmd_status)
