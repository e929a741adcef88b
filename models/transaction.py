from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Optional

from models.common import as_timestamp

TRANSACTION_KINDS = ("income", "expense", "investment")


def _as_decimal(value) -> Optional[Decimal]:
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass
class Transaction:
    """A dated money movement referencing a category of the same kind."""

    kind: ClassVar[str] = ""

    amount: Decimal  # always positive
    category_id: int
    date: Optional[datetime]
    note: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.amount = _as_decimal(self.amount)
        self.date = as_timestamp(self.date)


@dataclass
class Income(Transaction):
    kind: ClassVar[str] = "income"


@dataclass
class Expense(Transaction):
    kind: ClassVar[str] = "expense"


@dataclass
class Investment(Transaction):
    kind: ClassVar[str] = "investment"

    investment_type: str = "other"  # e.g. "stocks", "bonds"
    expected_return: Optional[Decimal] = None  # percent
    current_value: Optional[Decimal] = None  # defaults to amount

    def __post_init__(self):
        super().__post_init__()
        self.expected_return = _as_decimal(self.expected_return)
        self.current_value = _as_decimal(self.current_value)
        if self.current_value is None:
            self.current_value = self.amount
