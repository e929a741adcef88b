"""Report building, export and background generation."""

from reports.builder import (
    Report,
    build_budget_report,
    build_financial_report,
    build_transactions_report,
)
from reports.factory import get_exporter
from reports.tasks import ReportRunner, ReportTask, save_report

__all__ = [
    "Report",
    "build_budget_report",
    "build_financial_report",
    "build_transactions_report",
    "get_exporter",
    "ReportRunner",
    "ReportTask",
    "save_report",
]
