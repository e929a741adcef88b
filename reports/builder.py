"""Build immutable report snapshots from the stores.

Every transaction list goes through the same date-range filter before it is
aggregated, so the figures in a report match what the filter selects.
Budgets are reported as a whole; the expenses charged against them are
filtered to the report range.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Optional, Tuple

from errors import ValidationError
from logger import get_logger
from models.budget import Budget
from models.common import DateLike, day_of
from models.entry import UnifiedEntry
from models.transaction import Expense, Income, Investment
from tools.aggregation import (
    BudgetStatus,
    FinancialSummary,
    budget_analysis,
    merge_transactions_sorted,
    summarize,
)
from tools.report_filter import filter_by_date_range
from tools.summaries import get_category_names

logger = get_logger()

REPORT_KINDS = ("financial", "transactions", "budget")


@dataclass(frozen=True)
class Report:
    """A fully aggregated report, ready to hand to an exporter."""

    kind: str
    title: str
    start: date
    end: date
    generated_at: datetime
    summary: Optional[FinancialSummary] = None
    entries: Tuple[UnifiedEntry, ...] = ()
    budget_statuses: Tuple[BudgetStatus, ...] = ()
    incomes: Tuple[Income, ...] = ()
    expenses: Tuple[Expense, ...] = ()
    investments: Tuple[Investment, ...] = ()
    budgets: Tuple[Budget, ...] = ()
    category_names: Dict[int, str] = field(default_factory=dict)


def _check_range(start: DateLike, end: DateLike) -> Tuple[date, date]:
    if start is None or end is None:
        raise ValidationError("Report start and end dates are required", field="start")
    start_day, end_day = day_of(start), day_of(end)
    if end_day < start_day:
        raise ValidationError(
            f"Report end {end_day} is before start {start_day}", field="end"
        )
    return start_day, end_day


def build_financial_report(
    services, start: DateLike, end: DateLike, title: Optional[str] = None
) -> Report:
    """Build the comprehensive report: summary, transactions, budgets, investments."""
    start_day, end_day = _check_range(start, end)
    names = get_category_names(services)

    incomes = filter_by_date_range(services.income.find_all(), start_day, end_day)
    expenses = filter_by_date_range(services.expenses.find_all(), start_day, end_day)
    investments = filter_by_date_range(
        services.investments.find_all(), start_day, end_day
    )
    budgets = services.budgets.find_all()

    logger.info(
        f"Building financial report {start_day} to {end_day}: "
        f"{len(incomes)} income, {len(expenses)} expenses, "
        f"{len(investments)} investments, {len(budgets)} budgets"
    )
    return Report(
        kind="financial",
        title=title or "Financial Report",
        start=start_day,
        end=end_day,
        generated_at=datetime.now(),
        summary=summarize(incomes, expenses, investments),
        entries=tuple(merge_transactions_sorted(incomes, expenses, names)),
        budget_statuses=tuple(budget_analysis(budgets, expenses)),
        incomes=tuple(incomes),
        expenses=tuple(expenses),
        investments=tuple(investments),
        budgets=tuple(budgets),
        category_names=names,
    )


def build_transactions_report(services, start: DateLike, end: DateLike) -> Report:
    """Build the transactions-only report: income and expenses merged, newest first."""
    start_day, end_day = _check_range(start, end)
    names = get_category_names(services)

    incomes = filter_by_date_range(services.income.find_all(), start_day, end_day)
    expenses = filter_by_date_range(services.expenses.find_all(), start_day, end_day)

    logger.info(
        f"Building transactions report {start_day} to {end_day}: "
        f"{len(incomes) + len(expenses)} entries"
    )
    return Report(
        kind="transactions",
        title="Transaction Report",
        start=start_day,
        end=end_day,
        generated_at=datetime.now(),
        entries=tuple(merge_transactions_sorted(incomes, expenses, names)),
        incomes=tuple(incomes),
        expenses=tuple(expenses),
        category_names=names,
    )


def build_budget_report(services, start: DateLike, end: DateLike) -> Report:
    """Build the budget report: every budget against expenses in the range."""
    start_day, end_day = _check_range(start, end)
    names = get_category_names(services)

    budgets = services.budgets.find_all()
    expenses = filter_by_date_range(services.expenses.find_all(), start_day, end_day)

    logger.info(
        f"Building budget report {start_day} to {end_day}: {len(budgets)} budgets"
    )
    return Report(
        kind="budget",
        title="Budget Report",
        start=start_day,
        end=end_day,
        generated_at=datetime.now(),
        budget_statuses=tuple(budget_analysis(budgets, expenses)),
        expenses=tuple(expenses),
        budgets=tuple(budgets),
        category_names=names,
    )


def build_report(services, kind: str, start: DateLike, end: DateLike) -> Report:
    """Build a report by kind name.

    Raises:
        ValidationError: If kind is not one of REPORT_KINDS.
    """
    if kind == "financial":
        return build_financial_report(services, start, end)
    if kind == "transactions":
        return build_transactions_report(services, start, end)
    if kind == "budget":
        return build_budget_report(services, start, end)
    raise ValidationError(
        f"Report kind must be one of {', '.join(REPORT_KINDS)}, got {kind!r}",
        field="kind",
    )
