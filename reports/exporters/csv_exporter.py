"""CSV report exporter."""

import csv
import io
import threading
from decimal import Decimal
from typing import Optional

from reports.builder import Report
from reports.exporters.base import ReportExporter, check_cancelled

# Rows written between cancellation checks
_CHECK_EVERY = 500


def _money(value: Optional[Decimal]) -> str:
    if value is None:
        return ""
    return f"{value:.2f}"


class CsvReportExporter(ReportExporter):
    """Writes a report as sectioned CSV (UTF-8).

    Each section starts with a single-cell title row, followed by a header
    row and data rows; sections are separated by a blank row.
    """

    file_extension = "csv"

    def render(
        self, report: Report, cancel_event: Optional[threading.Event] = None
    ) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer)

        writer.writerow([report.title])
        writer.writerow(["Period", report.start.isoformat(), report.end.isoformat()])
        writer.writerow(["Generated", report.generated_at.isoformat(timespec="seconds")])

        if report.summary is not None:
            check_cancelled(cancel_event)
            summary = report.summary
            self._section(writer, "Summary", ["Metric", "Amount"])
            writer.writerow(["Total Income", _money(summary.total_income)])
            writer.writerow(["Total Expenses", _money(summary.total_expenses)])
            writer.writerow(["Total Investments", _money(summary.total_investments)])
            writer.writerow(["Net Worth", _money(summary.net_worth)])

        if report.entries:
            self._section(writer, "Transactions", ["Date", "Type", "Category", "Amount", "Note"])
            for i, entry in enumerate(report.entries):
                if i % _CHECK_EVERY == 0:
                    check_cancelled(cancel_event)
                writer.writerow([
                    entry.date.date().isoformat(),
                    entry.kind.capitalize(),
                    entry.category_label,
                    _money(entry.signed_amount),
                    entry.payload.note or "",
                ])

        if report.budget_statuses:
            check_cancelled(cancel_event)
            self._section(
                writer,
                "Budgets",
                ["Category", "Period", "Start", "End", "Budget", "Spent", "Remaining", "Status"],
            )
            for status in report.budget_statuses:
                budget = status.budget
                writer.writerow([
                    report.category_names.get(budget.category_id, "Unknown"),
                    budget.period,
                    budget.start_date.date().isoformat(),
                    budget.end_date.date().isoformat(),
                    _money(budget.amount),
                    _money(status.spent),
                    _money(status.remaining),
                    status.status,
                ])

        if report.kind == "financial" and report.investments:
            self._section(
                writer,
                "Investments",
                ["Date", "Category", "Type", "Amount", "Current Value", "Expected Return"],
            )
            for i, investment in enumerate(report.investments):
                if i % _CHECK_EVERY == 0:
                    check_cancelled(cancel_event)
                writer.writerow([
                    investment.date.date().isoformat(),
                    report.category_names.get(investment.category_id, "Unknown"),
                    investment.investment_type,
                    _money(investment.amount),
                    _money(investment.current_value),
                    _money(investment.expected_return),
                ])

        check_cancelled(cancel_event)
        return buffer.getvalue().encode("utf-8")

    def _section(self, writer, title, header):
        writer.writerow([])
        writer.writerow([title])
        writer.writerow(header)
