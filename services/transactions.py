"""Income, expense and investment services for database operations.

The three stores share one implementation; each binds it to its own table,
record class and category kind.
"""

import sqlite3
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from errors import NotFoundError, ValidationError
from logger import get_logger
from models.common import DateLike, day_of, format_timestamp, parse_timestamp
from models.transaction import Expense, Income, Investment, Transaction
from services.categories import require_category_kind
from services.events import ChangeNotifier

logger = get_logger()

_BASE_FIELDS = ("amount", "category_id", "date", "note")


def _as_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _as_decimal(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


class TransactionService:
    """Service for managing one kind of dated money-movement record."""

    table = ""
    record_cls = Transaction
    extra_fields: Tuple[str, ...] = ()

    def __init__(self, db_manager, notifier: Optional[ChangeNotifier] = None):
        """Initialize the service.

        Args:
            db_manager: Database manager instance for database operations.
            notifier: Optional change notifier published to after each write.
        """
        self.db_manager = db_manager
        self.notifier = notifier or ChangeNotifier()

        fields = _BASE_FIELDS + self.extra_fields
        self._select_fields = ", ".join(("id",) + fields + ("created_at", "updated_at"))
        self._write_fields = fields + ("created_at", "updated_at")

    @property
    def kind(self) -> str:
        return self.record_cls.kind

    def create(self, record: Transaction) -> Transaction:
        """Validate and insert a record.

        Args:
            record: Record to insert. Its id and timestamps are populated.

        Returns:
            The same record with id, created_at and updated_at set.

        Raises:
            ValidationError: If the amount is not positive, the date is
                missing or the category is missing or of another kind.
        """
        now = datetime.now()
        with self.db_manager.connect() as conn:
            self._validate(conn, record)
            record.created_at = now
            record.updated_at = now

            placeholders = ", ".join(["?"] * len(self._write_fields))
            try:
                cursor = conn.execute(
                    f"""
                    INSERT INTO {self.table} ({', '.join(self._write_fields)})
                    VALUES ({placeholders})
                    """,
                    self._record_values(record),
                )
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise ValidationError(
                    f"Could not save {self.kind} record: {e}", field="category_id"
                ) from e
            record.id = cursor.lastrowid

        logger.info(
            f"Created {self.kind} {record.id}: {record.amount} "
            f"on {record.date.date().isoformat()}"
        )
        self.notifier.publish(self.table, "create", record.id)
        return record

    def update(self, record_id: int, record: Transaction) -> Transaction:
        """Replace every field of an existing record.

        Args:
            record_id: ID of the record to replace.
            record: New field values. Its id and timestamps are overwritten.

        Returns:
            The updated record.

        Raises:
            NotFoundError: If no record has this ID.
            ValidationError: If the new values are invalid.
        """
        now = datetime.now()
        with self.db_manager.connect() as conn:
            existing = self._find(conn, record_id)
            if existing is None:
                raise NotFoundError(self.kind.capitalize(), record_id)
            self._validate(conn, record)

            record.id = record_id
            record.created_at = existing.created_at
            record.updated_at = now

            set_clause = ", ".join(f"{field} = ?" for field in self._write_fields)
            try:
                conn.execute(
                    f"UPDATE {self.table} SET {set_clause} WHERE id = ?",
                    self._record_values(record) + (record_id,),
                )
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise ValidationError(
                    f"Could not update {self.kind} {record_id}: {e}", field="category_id"
                ) from e

        logger.info(f"Updated {self.kind} {record_id}")
        self.notifier.publish(self.table, "update", record_id)
        return record

    def delete(self, record_id: int) -> None:
        """Permanently delete a record.

        Raises:
            NotFoundError: If no record has this ID.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (record_id,))
            conn.commit()
            if cursor.rowcount == 0:
                raise NotFoundError(self.kind.capitalize(), record_id)

        logger.info(f"Deleted {self.kind} {record_id}")
        self.notifier.publish(self.table, "delete", record_id)

    def find(self, record_id: int) -> Optional[Transaction]:
        with self.db_manager.connect() as conn:
            return self._find(conn, record_id)

    def find_all(self) -> List[Transaction]:
        """Get every record, newest first (ties broken by newest ID)."""
        return self._query("")

    def find_by_category(self, category_id: int) -> List[Transaction]:
        return self._query("WHERE category_id = ?", (category_id,))

    def find_by_date_range(self, start: DateLike, end: DateLike) -> List[Transaction]:
        """Get records dated within [start, end], inclusive at day granularity.

        Time of day is ignored on both the bounds and the stored dates.

        Args:
            start: First day of the range.
            end: Last day of the range.

        Returns:
            Records ordered by date (newest first), ties by newest ID.
        """
        after = (day_of(start) - timedelta(days=1)).isoformat()
        before = (day_of(end) + timedelta(days=1)).isoformat()
        return self._query(
            "WHERE substr(date, 1, 10) > ? AND substr(date, 1, 10) < ?",
            (after, before),
        )

    def find_recent(self, limit: int) -> List[Transaction]:
        """Get the most recent records.

        Args:
            limit: Maximum number of records to return.

        Returns:
            Up to limit records ordered by date descending; among records
            with the same date the most recently created comes first.
        """
        if limit <= 0:
            return []
        return self._query("LIMIT ?", (limit,), order_first=True)

    def _query(self, clause: str, params: tuple = (), order_first=False):
        order = "ORDER BY date DESC, id DESC"
        if order_first:
            query = f"SELECT {self._select_fields} FROM {self.table} {order} {clause}"
        else:
            query = f"SELECT {self._select_fields} FROM {self.table} {clause} {order}"

        with self.db_manager.connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_record(row) for row in rows]

    def _find(self, conn, record_id: int) -> Optional[Transaction]:
        row = conn.execute(
            f"SELECT {self._select_fields} FROM {self.table} WHERE id = ?",
            (record_id,),
        ).fetchone()
        return self._row_to_record(row) if row else None

    def _validate(self, conn, record: Transaction) -> None:
        if not isinstance(record, self.record_cls):
            raise ValidationError(
                f"Expected a {self.record_cls.__name__} record, "
                f"got {type(record).__name__}",
                field="kind",
            )
        amount = record.amount
        if amount is None or not amount.is_finite() or amount <= 0:
            self._reject(f"amount must be greater than zero, got {amount}", "amount")
        if record.date is None:
            self._reject("date is required", "date")
        try:
            require_category_kind(conn, record.category_id, self.kind)
        except ValidationError as e:
            logger.warning(f"Rejected {self.kind} record: {e}")
            raise

    def _reject(self, message: str, field: str) -> None:
        logger.warning(f"Rejected {self.kind} record: {message}")
        raise ValidationError(f"{self.kind.capitalize()} {message}", field=field)

    def _record_values(self, record: Transaction) -> tuple:
        return (
            float(record.amount),
            record.category_id,
            format_timestamp(record.date),
            record.note,
        ) + self._extra_values(record) + (
            format_timestamp(record.created_at),
            format_timestamp(record.updated_at),
        )

    def _extra_values(self, record: Transaction) -> tuple:
        return ()

    def _row_to_record(self, row: tuple) -> Transaction:
        extra_end = 5 + len(self.extra_fields)
        record = self.record_cls(
            amount=Decimal(str(row[1])),
            category_id=row[2],
            date=parse_timestamp(row[3]),
            note=row[4],
            id=row[0],
            created_at=parse_timestamp(row[extra_end]),
            updated_at=parse_timestamp(row[extra_end + 1]),
            **self._extra_kwargs(row[5:extra_end]),
        )
        return record

    def _extra_kwargs(self, values: tuple) -> dict:
        return {}


class IncomeService(TransactionService):
    """Service for managing income records."""

    table = "income"
    record_cls = Income


class ExpenseService(TransactionService):
    """Service for managing expense records."""

    table = "expenses"
    record_cls = Expense


class InvestmentService(TransactionService):
    """Service for managing investment records.

    Investments carry a free-form investment type plus optional expected
    return and current value. Current value defaults to the invested amount.
    """

    table = "investments"
    record_cls = Investment
    extra_fields = ("type", "expected_return", "current_value")

    def _validate(self, conn, record: Investment) -> None:
        super()._validate(conn, record)
        if not record.investment_type or not record.investment_type.strip():
            self._reject("type cannot be empty", "investment_type")
        if record.current_value is not None and record.current_value < 0:
            self._reject(
                f"current value cannot be negative, got {record.current_value}",
                "current_value",
            )

    def _extra_values(self, record: Investment) -> tuple:
        return (
            record.investment_type.strip(),
            _as_float(record.expected_return),
            _as_float(record.current_value),
        )

    def _extra_kwargs(self, values: tuple) -> dict:
        return {
            "investment_type": values[0],
            "expected_return": _as_decimal(values[1]),
            "current_value": _as_decimal(values[2]),
        }
