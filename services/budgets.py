"""Budget service for database operations."""

import dataclasses
import threading
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from errors import NotFoundError, OverlapError, ValidationError
from logger import get_logger
from models.budget import BUDGET_PERIODS, Budget
from models.common import DateLike, day_of, format_timestamp, parse_timestamp
from services.categories import require_category_kind
from services.events import ChangeNotifier

logger = get_logger()

_BUDGET_SELECT_FIELDS = """id, category_id, amount, period, start_date, end_date,
       is_active, created_at, updated_at"""


def intervals_overlap(
    start: DateLike, end: DateLike, other_start: DateLike, other_end: DateLike
) -> bool:
    """Check whether two closed day intervals share at least one day.

    Touching endpoints count as overlapping.
    """
    return day_of(start) <= day_of(other_end) and day_of(end) >= day_of(other_start)


class BudgetService:
    """Service for managing budgets.

    No two active budgets for the same category may have overlapping
    [start_date, end_date] intervals. Writes are serialized so the overlap
    check and the write it gates cannot interleave with another write.
    """

    def __init__(self, db_manager, notifier: Optional[ChangeNotifier] = None):
        """Initialize the budget service.

        Args:
            db_manager: Database manager instance for database operations.
            notifier: Optional change notifier published to after each write.
        """
        self.db_manager = db_manager
        self.notifier = notifier or ChangeNotifier()
        self._write_lock = threading.Lock()

    def find_all(self, active_only: bool = False) -> List[Budget]:
        """Get all budgets.

        Args:
            active_only: If True, only budgets with is_active set.

        Returns:
            List of Budget objects ordered by start date (newest first).
        """
        query = f"SELECT {_BUDGET_SELECT_FIELDS} FROM budgets"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY start_date DESC, id DESC"

        with self.db_manager.connect() as conn:
            rows = conn.execute(query).fetchall()
            return [self._row_to_budget(row) for row in rows]

    def find(self, budget_id: int) -> Optional[Budget]:
        with self.db_manager.connect() as conn:
            return self._find(conn, budget_id)

    def find_by_category(self, category_id: int) -> List[Budget]:
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_BUDGET_SELECT_FIELDS}
                FROM budgets
                WHERE category_id = ?
                ORDER BY start_date DESC, id DESC
                """,
                (category_id,),
            ).fetchall()
            return [self._row_to_budget(row) for row in rows]

    def exists_overlapping(
        self,
        category_id: int,
        start: DateLike,
        end: DateLike,
        exclude_id: Optional[int] = None,
    ) -> bool:
        """Check whether an active budget for the category overlaps [start, end].

        Args:
            category_id: Category to check.
            start: First day of the candidate interval.
            end: Last day of the candidate interval.
            exclude_id: Budget to ignore, typically the one being updated.

        Returns:
            True if at least one active budget overlaps.
        """
        with self.db_manager.connect() as conn:
            return bool(self._overlapping_ids(conn, category_id, start, end, exclude_id))

    def create(self, budget: Budget) -> Budget:
        """Validate and insert a budget.

        Returns:
            The same budget with id and timestamps populated.

        Raises:
            ValidationError: If any field is invalid.
            OverlapError: If the budget is active and overlaps an active
                budget of the same category.
        """
        now = datetime.now()
        with self._write_lock, self.db_manager.connect() as conn:
            try:
                self._begin(conn)
                self._validate(conn, budget)
                self._check_overlap(conn, budget, exclude_id=None)

                budget.created_at = now
                budget.updated_at = now
                cursor = conn.execute(
                    """
                    INSERT INTO budgets (category_id, amount, period, start_date,
                        end_date, is_active, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    self._budget_values(budget),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            budget.id = cursor.lastrowid

        logger.info(
            f"Created {budget.period} budget {budget.id} for category "
            f"{budget.category_id}: {budget.amount} "
            f"({day_of(budget.start_date)} to {day_of(budget.end_date)})"
        )
        self.notifier.publish("budgets", "create", budget.id)
        return budget

    def update(self, budget_id: int, budget: Budget) -> Budget:
        """Replace every field of an existing budget.

        Setting is_active to False is the non-destructive alternative to
        delete; an inactive budget is ignored by overlap checks.

        Raises:
            NotFoundError: If no budget has this ID.
            ValidationError: If any field is invalid.
            OverlapError: If the budget is active and overlaps another
                active budget of the same category.
        """
        return self._replace(budget_id, lambda existing: budget)

    def set_active(self, budget_id: int, is_active: bool) -> Budget:
        """Activate or deactivate a budget, keeping every other field."""
        return self._replace(
            budget_id, lambda existing: dataclasses.replace(existing, is_active=is_active)
        )

    def _replace(self, budget_id: int, build) -> Budget:
        # The current row is read under the same lock and transaction as the write.
        now = datetime.now()
        with self._write_lock, self.db_manager.connect() as conn:
            try:
                self._begin(conn)
                existing = self._find(conn, budget_id)
                if existing is None:
                    raise NotFoundError("Budget", budget_id)
                budget = build(existing)
                self._validate(conn, budget)
                self._check_overlap(conn, budget, exclude_id=budget_id)

                budget.id = budget_id
                budget.created_at = existing.created_at
                budget.updated_at = now
                conn.execute(
                    """
                    UPDATE budgets
                    SET category_id = ?, amount = ?, period = ?, start_date = ?,
                        end_date = ?, is_active = ?, created_at = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    self._budget_values(budget) + (budget_id,),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.info(f"Updated budget {budget_id} (active: {budget.is_active})")
        self.notifier.publish("budgets", "update", budget_id)
        return budget

    def delete(self, budget_id: int) -> None:
        """Permanently delete a budget.

        Raises:
            NotFoundError: If no budget has this ID.
        """
        with self._write_lock, self.db_manager.connect() as conn:
            cursor = conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
            conn.commit()
            if cursor.rowcount == 0:
                raise NotFoundError("Budget", budget_id)

        logger.info(f"Deleted budget {budget_id}")
        self.notifier.publish("budgets", "delete", budget_id)

    def _begin(self, conn) -> None:
        # Take the database write lock before the overlap check reads.
        if not conn.in_transaction:
            conn.execute("BEGIN IMMEDIATE")

    def _check_overlap(self, conn, budget: Budget, exclude_id: Optional[int]) -> None:
        if not budget.is_active:
            return
        conflicts = self._overlapping_ids(
            conn, budget.category_id, budget.start_date, budget.end_date, exclude_id
        )
        if conflicts:
            logger.warning(
                f"Rejected budget for category {budget.category_id}: "
                f"overlaps {conflicts}"
            )
            raise OverlapError(budget.category_id, conflicts)

    def _overlapping_ids(
        self, conn, category_id, start, end, exclude_id
    ) -> List[int]:
        rows = conn.execute(
            """
            SELECT id, start_date, end_date
            FROM budgets
            WHERE category_id = ? AND is_active = 1 AND id IS NOT ?
            ORDER BY id
            """,
            (category_id, exclude_id),
        ).fetchall()
        return [
            row[0]
            for row in rows
            if intervals_overlap(
                start, end, parse_timestamp(row[1]), parse_timestamp(row[2])
            )
        ]

    def _validate(self, conn, budget: Budget) -> None:
        amount = budget.amount
        if amount is None or not amount.is_finite() or amount <= 0:
            self._reject(f"amount must be greater than zero, got {amount}", "amount")
        if budget.period not in BUDGET_PERIODS:
            self._reject(
                f"period must be one of {', '.join(BUDGET_PERIODS)}, "
                f"got {budget.period!r}",
                "period",
            )
        if budget.start_date is None:
            self._reject("start_date is required", "start_date")
        if budget.end_date is None:
            self._reject("end_date is required", "end_date")
        if day_of(budget.end_date) <= day_of(budget.start_date):
            self._reject(
                f"end_date {day_of(budget.end_date)} must be after "
                f"start_date {day_of(budget.start_date)}",
                "end_date",
            )
        try:
            require_category_kind(conn, budget.category_id, "expense")
        except ValidationError as e:
            logger.warning(f"Rejected budget: {e}")
            raise

    def _reject(self, message: str, field: str) -> None:
        logger.warning(f"Rejected budget: {message}")
        raise ValidationError(f"Budget {message}", field=field)

    def _budget_values(self, budget: Budget) -> tuple:
        return (
            budget.category_id,
            float(budget.amount),
            budget.period,
            format_timestamp(budget.start_date),
            format_timestamp(budget.end_date),
            1 if budget.is_active else 0,
            format_timestamp(budget.created_at),
            format_timestamp(budget.updated_at),
        )

    def _find(self, conn, budget_id: int) -> Optional[Budget]:
        row = conn.execute(
            f"SELECT {_BUDGET_SELECT_FIELDS} FROM budgets WHERE id = ?",
            (budget_id,),
        ).fetchone()
        return self._row_to_budget(row) if row else None

    def _row_to_budget(self, row: tuple) -> Budget:
        return Budget(
            id=row[0],
            category_id=row[1],
            amount=Decimal(str(row[2])),
            period=row[3],
            start_date=parse_timestamp(row[4]),
            end_date=parse_timestamp(row[5]),
            is_active=bool(row[6]),
            created_at=parse_timestamp(row[7]),
            updated_at=parse_timestamp(row[8]),
        )
