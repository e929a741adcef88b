"""Category model for classifying income, expenses and investments."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

CATEGORY_KINDS = ("income", "expense", "investment")


@dataclass
class Category:
    """Represents a user-defined category.

    Attributes:
        id: Unique identifier (auto-generated).
        name: Category name, unique within its kind.
        kind: One of CATEGORY_KINDS. Fixed once the category is created.
        icon: Optional display icon name.
        color: Optional display colour (e.g. "#4CAF50").
        created_at: Timestamp when the category was created.
        updated_at: Timestamp of the last update.
    """

    id: int
    name: str
    kind: str
    icon: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
