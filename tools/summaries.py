"""Summaries recomputed from the stores on demand."""

from typing import Dict, List, Optional

from models.common import DateLike
from models.entry import UnifiedEntry
from tools.aggregation import (
    BudgetStatus,
    FinancialSummary,
    budget_analysis,
    merge_transactions_sorted,
    summarize,
)
from tools.report_filter import filter_by_date_range


def get_category_names(services) -> Dict[int, str]:
    """Map every category ID to its name."""
    return {c.id: c.name for c in services.categories.find_all()}


def get_summary(
    services, start: Optional[DateLike] = None, end: Optional[DateLike] = None
) -> FinancialSummary:
    """Get income, expense, investment totals and net worth.

    Args:
        services: Services container.
        start: Optional first day; both bounds are required to filter.
        end: Optional last day.

    Returns:
        FinancialSummary over all records, or over [start, end] when given.
    """
    if start is not None and end is not None:
        return summarize(
            services.income.find_by_date_range(start, end),
            services.expenses.find_by_date_range(start, end),
            services.investments.find_by_date_range(start, end),
        )
    return summarize(
        services.income.find_all(),
        services.expenses.find_all(),
        services.investments.find_all(),
    )


def get_budget_status(services, active_only: bool = True) -> List[BudgetStatus]:
    """Analyse each budget against the expenses inside its own interval.

    Returns:
        One BudgetStatus per budget, ordered like BudgetService.find_all.
    """
    budgets = services.budgets.find_all(active_only=active_only)
    if not budgets:
        return []

    expenses = services.expenses.find_all()
    results = []
    for budget in budgets:
        in_period = filter_by_date_range(expenses, budget.start_date, budget.end_date)
        results.extend(budget_analysis([budget], in_period))
    return results


def get_recent_activity(services, limit: int) -> List[UnifiedEntry]:
    """Get the latest income and expense records merged into one feed.

    Args:
        services: Services container.
        limit: Maximum number of entries.

    Returns:
        Up to limit UnifiedEntry objects, newest first.
    """
    if limit <= 0:
        return []
    entries = merge_transactions_sorted(
        services.income.find_recent(limit),
        services.expenses.find_recent(limit),
        get_category_names(services),
    )
    return entries[:limit]
