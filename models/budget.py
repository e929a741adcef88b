"""Budget model: a spending ceiling for one expense category over an interval."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from models.common import DateLike, as_timestamp

BUDGET_PERIODS = ("weekly", "monthly", "yearly")

_PERIOD_STEPS = {
    "weekly": relativedelta(weeks=1),
    "monthly": relativedelta(months=1),
    "yearly": relativedelta(years=1),
}


@dataclass
class Budget:
    """Represents a budget.

    Attributes:
        category_id: Expense category the ceiling applies to.
        amount: Positive spending ceiling.
        period: Recurrence granularity, one of BUDGET_PERIODS.
        start_date: First day of the budget interval (inclusive).
        end_date: Last day of the budget interval (inclusive).
        is_active: Inactive budgets are kept but ignored by overlap checks.
        id: Unique identifier (auto-generated).
    """

    category_id: int
    amount: Decimal
    period: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    is_active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.amount is not None and not isinstance(self.amount, Decimal):
            self.amount = Decimal(str(self.amount))
        self.start_date = as_timestamp(self.start_date)
        self.end_date = as_timestamp(self.end_date)

    @classmethod
    def for_period(
        cls, category_id: int, amount: Decimal, period: str, start: DateLike
    ) -> "Budget":
        """Create a budget covering exactly one period starting at start."""
        return cls(
            category_id=category_id,
            amount=amount,
            period=period,
            start_date=start,
            end_date=period_end(start, period),
        )


def period_end(start: DateLike, period: str) -> date:
    """Get the inclusive last day of one period beginning on start.

    Examples:
        period_end(date(2024, 1, 1), "monthly") -> date(2024, 1, 31)
        period_end(date(2024, 1, 15), "weekly") -> date(2024, 1, 21)

    Raises:
        ValueError: If period is not one of BUDGET_PERIODS.
    """
    if period not in _PERIOD_STEPS:
        raise ValueError(f"Unknown budget period: {period}")
    if isinstance(start, datetime):
        start = start.date()
    return start + _PERIOD_STEPS[period] - timedelta(days=1)
