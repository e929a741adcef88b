#!/usr/bin/env python3

from datetime import datetime

from cli.common import iso_date
from logger import get_logger
from reports import ReportRunner, get_exporter, save_report
from reports.builder import REPORT_KINDS, build_report
from tools.summaries import get_recent_activity, get_summary

logger = get_logger()


def cmd_summary(args, services):
    """Show totals and net worth."""
    summary = get_summary(services, args.start, args.end)

    if args.start and args.end:
        logger.info(f"\nSummary {args.start} to {args.end}")
    else:
        logger.info("\nSummary (all time)")
    logger.info("=" * 40)
    logger.info(f"Total income:      {summary.total_income:>14.2f}")
    logger.info(f"Total expenses:    {summary.total_expenses:>14.2f}")
    logger.info(f"Total investments: {summary.total_investments:>14.2f}")
    logger.info(f"Net worth:         {summary.net_worth:>14.2f}")


def cmd_recent(args, services):
    """Show recent income and expenses merged, newest first."""
    limit = args.limit if args.limit is not None else services.config.recent_limit
    entries = get_recent_activity(services, limit)
    if not entries:
        logger.info("No recent transactions.")
        return

    for entry in entries:
        logger.info(
            f"{entry.date.date().isoformat()}  {entry.kind:<8}  "
            f"{entry.signed_amount:>+12.2f}  {entry.category_label}"
        )


def cmd_export(args, services):
    """Render a report in the background and save it."""
    exporter = get_exporter(services.config)
    report = build_report(services, args.kind, args.start, args.end)

    output = args.output or (
        services.config.reports_dir
        / f"{args.kind}_report_{datetime.now():%Y%m%d%H%M%S}.{exporter.file_extension}"
    )

    with ReportRunner(exporter) as runner:
        task = runner.submit(report)
        try:
            data = task.result()
        except KeyboardInterrupt:
            task.cancel()
            logger.info("Report export cancelled.")
            return

    path = save_report(data, output)
    logger.info(f"✓ {report.title} saved to {path}")


def setup_parser(subparsers):
    """Setup reports subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "reports",
        help="Summaries and report export",
        description="Show summaries and recent activity, export reports",
    )

    reports_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available report commands",
        dest="subcommand",
        required=True,
    )

    summary_parser = reports_subparsers.add_parser("summary", help="Totals and net worth")
    summary_parser.add_argument("--start", type=iso_date, help="First day (inclusive)")
    summary_parser.add_argument("--end", type=iso_date, help="Last day (inclusive)")
    summary_parser.set_defaults(func=cmd_summary)

    recent_parser = reports_subparsers.add_parser("recent", help="Recent activity")
    recent_parser.add_argument("-n", "--limit", type=int, help="Number of entries")
    recent_parser.set_defaults(func=cmd_recent)

    export_parser = reports_subparsers.add_parser("export", help="Export a report")
    export_parser.add_argument("kind", choices=REPORT_KINDS)
    export_parser.add_argument("--start", type=iso_date, required=True)
    export_parser.add_argument("--end", type=iso_date, required=True)
    export_parser.add_argument("--output", help="Output file path")
    export_parser.set_defaults(func=cmd_export)
