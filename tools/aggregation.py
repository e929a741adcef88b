"""Aggregation engine: pure functions over already-fetched records.

Nothing here touches the database, so every function can run on any thread
against snapshots handed over by the caller.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from models.budget import Budget
from models.entry import UnifiedEntry
from models.transaction import Expense, Income, Investment, Transaction

ON_TRACK = "On Track"
OVER_BUDGET = "Over Budget"
UNKNOWN_CATEGORY = "Unknown"


@dataclass(frozen=True)
class FinancialSummary:
    total_income: Decimal
    total_expenses: Decimal
    total_investments: Decimal
    net_worth: Decimal


@dataclass(frozen=True)
class BudgetStatus:
    budget: Budget
    spent: Decimal
    remaining: Decimal
    status: str  # ON_TRACK or OVER_BUDGET


def total(records: Iterable[Transaction]) -> Decimal:
    """Sum the amounts of a set of records (zero when empty)."""
    return sum((r.amount for r in records), Decimal("0"))


def summarize(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    investments: Iterable[Investment],
) -> FinancialSummary:
    """Compute totals and net worth.

    net_worth = total_income - total_expenses + total_investments. Empty
    inputs give an all-zero summary.
    """
    total_income = total(incomes)
    total_expenses = total(expenses)
    total_investments = total(investments)
    return FinancialSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        total_investments=total_investments,
        net_worth=total_income - total_expenses + total_investments,
    )


def budget_analysis(
    budgets: Iterable[Budget], expenses: Sequence[Expense]
) -> List[BudgetStatus]:
    """Compare each budget against matching expenses.

    The expenses are assumed to be already filtered to the period of
    interest. Spending exactly the budget amount is still on track.

    Args:
        budgets: Budgets to analyse.
        expenses: Expense records to charge against the budgets.

    Returns:
        One BudgetStatus per budget, in input order.
    """
    spent_by_category = totals_by_category(expenses)
    results = []
    for budget in budgets:
        spent = spent_by_category.get(budget.category_id, Decimal("0"))
        remaining = budget.amount - spent
        results.append(
            BudgetStatus(
                budget=budget,
                spent=spent,
                remaining=remaining,
                status=ON_TRACK if remaining >= 0 else OVER_BUDGET,
            )
        )
    return results


def totals_by_category(records: Iterable[Transaction]) -> Dict[int, Decimal]:
    """Sum record amounts per category_id."""
    totals: Dict[int, Decimal] = {}
    for record in records:
        totals[record.category_id] = (
            totals.get(record.category_id, Decimal("0")) + record.amount
        )
    return totals


def to_entry(
    record: Transaction, category_names: Optional[Mapping[int, str]] = None
) -> UnifiedEntry:
    """Tag a record for the merged activity feed. Expenses are negative."""
    sign = -1 if record.kind == "expense" else 1
    label = (category_names or {}).get(record.category_id, UNKNOWN_CATEGORY)
    return UnifiedEntry(
        kind=record.kind,
        payload=record,
        signed_amount=sign * record.amount,
        category_label=label,
        date=record.date,
    )


def merge_transactions_sorted(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    category_names: Optional[Mapping[int, str]] = None,
) -> List[UnifiedEntry]:
    """Merge income and expenses into one feed, newest first.

    Both the recent-activity view and the transactions report use this, so
    they always agree on ordering. Entries on the same date are ordered by
    creation time, newest first, then by ID.

    Args:
        incomes: Income records (positive entries).
        expenses: Expense records (negative entries).
        category_names: Optional category_id -> name mapping for labels.

    Returns:
        List of UnifiedEntry sorted by date descending.
    """
    entries = [to_entry(r, category_names) for r in incomes]
    entries.extend(to_entry(r, category_names) for r in expenses)
    entries.sort(key=_entry_sort_key, reverse=True)
    return entries


def _entry_sort_key(entry: UnifiedEntry):
    record = entry.payload
    return (entry.date, record.created_at or datetime.min, record.id or 0)
