"""Argument helpers shared by the CLI commands."""

import argparse
from datetime import date
from decimal import Decimal, InvalidOperation

from errors import ValidationError


def iso_date(value: str) -> date:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def decimal_amount(value: str) -> Decimal:
    """argparse type for decimal amounts."""
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Invalid amount '{value}'")


def resolve_category(services, value: str, kind: str) -> int:
    """Resolve a category given by name within a kind, or by ID.

    A name match wins, so a category named "2024" is found by name.

    Raises:
        ValidationError: If no such category exists.
    """
    category = services.categories.find_by_name(value, kind)
    if category is None and value.isdigit():
        return int(value)
    if category is None:
        raise ValidationError(f"No {kind} category named '{value}'", field="category_id")
    return category.id


def confirm(prompt: str) -> bool:
    return input(f"{prompt} (yes/no): ").strip().lower() == "yes"
