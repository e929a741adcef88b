"""Unified activity entry combining income and expense records."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from models.transaction import Transaction


@dataclass(frozen=True)
class UnifiedEntry:
    """A tagged transaction for the merged activity feed and reports.

    Attributes:
        kind: "income", "expense" or "investment".
        payload: The underlying record.
        signed_amount: Positive for income, negative for expenses.
        category_label: Display name of the record's category.
        date: Date of the underlying record.
    """

    kind: str
    payload: Transaction
    signed_amount: Decimal
    category_label: str
    date: datetime
