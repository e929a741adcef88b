"""Category service for database operations."""

import sqlite3
from datetime import datetime
from typing import Dict, List, Optional

from errors import NotFoundError, ReferentialIntegrityError, ValidationError
from logger import get_logger
from models.category import CATEGORY_KINDS, Category
from models.common import parse_timestamp
from services.events import ChangeNotifier

logger = get_logger()

_CATEGORY_SELECT_FIELDS = "id, name, type, icon, color, created_at, updated_at"

# Tables holding a category_id foreign key
DEPENDENT_TABLES = ("income", "expenses", "investments", "budgets")


def get_category_kind(conn: sqlite3.Connection, category_id) -> Optional[str]:
    """Get the kind of a category, or None if the category does not exist."""
    if category_id is None:
        return None
    row = conn.execute(
        "SELECT type FROM categories WHERE id = ?", (category_id,)
    ).fetchone()
    return row[0] if row else None


def require_category_kind(
    conn: sqlite3.Connection, category_id, expected_kind: str
) -> None:
    """Check that category_id refers to a category of expected_kind.

    Raises:
        ValidationError: If the category is missing or of another kind.
    """
    kind = get_category_kind(conn, category_id)
    if kind is None:
        raise ValidationError(
            f"category_id {category_id} does not refer to an existing category",
            field="category_id",
        )
    if kind != expected_kind:
        raise ValidationError(
            f"category_id {category_id} is a {kind} category, expected {expected_kind}",
            field="category_id",
        )


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db_manager, notifier: Optional[ChangeNotifier] = None):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
            notifier: Optional change notifier published to after each write.
        """
        self.db_manager = db_manager
        self.notifier = notifier or ChangeNotifier()

    def find_all(self, kind: Optional[str] = None) -> List[Category]:
        """Get all categories, optionally only those of one kind.

        Args:
            kind: Optional kind to filter by ("income", "expense", "investment").

        Returns:
            List of Category objects, ordered by kind then name.
        """
        query = f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories"
        params = []
        if kind is not None:
            _validate_kind(kind)
            query += " WHERE type = ?"
            params.append(kind)
        query += " ORDER BY type, name"

        with self.db_manager.connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_category(row) for row in rows]

    def find(self, category_id: int) -> Optional[Category]:
        """Get a single category by ID.

        Args:
            category_id: The category ID to find.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            return self._find(conn, category_id)

    def find_by_name(self, name: str, kind: str) -> Optional[Category]:
        """Get a single category by name within a kind.

        Args:
            name: The category name to find (case-sensitive).
            kind: The kind the category belongs to.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories "
                "WHERE name = ? AND type = ?",
                (name, kind),
            ).fetchone()
            return self._row_to_category(row) if row else None

    def create(
        self,
        name: str,
        kind: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        """Create a new category.

        Args:
            name: Category name, unique within its kind.
            kind: One of "income", "expense" or "investment".
            icon: Optional display icon.
            color: Optional display colour.

        Returns:
            The created Category object with id populated.

        Raises:
            ValidationError: If the name is empty, the kind is unknown or
                the (name, kind) pair already exists.
        """
        name = _validate_name(name)
        _validate_kind(kind)
        now = datetime.now()

        with self.db_manager.connect() as conn:
            self._check_unique(conn, name, kind)
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO categories (name, type, icon, color, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (name, kind, icon, color, now.isoformat(), now.isoformat()),
                )
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise ValidationError(
                    f"Category '{name}' ({kind}) could not be created: {e}",
                    field="name",
                ) from e

        category = Category(
            id=cursor.lastrowid,
            name=name,
            kind=kind,
            icon=icon,
            color=color,
            created_at=now,
            updated_at=now,
        )
        logger.info(f"Created {kind} category '{name}' (ID: {category.id})")
        self.notifier.publish("categories", "create", category.id)
        return category

    def update(
        self,
        category_id: int,
        name: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> Category:
        """Replace the mutable fields of an existing category.

        Args:
            category_id: The category ID to update.
            name: New category name.
            icon: New icon (can be None).
            color: New colour (can be None).
            kind: Optional; must equal the current kind if given.

        Returns:
            The updated Category object.

        Raises:
            NotFoundError: If the category does not exist.
            ValidationError: If the name is empty or duplicated, or kind differs.
        """
        name = _validate_name(name)
        now = datetime.now()

        with self.db_manager.connect() as conn:
            existing = self._find(conn, category_id)
            if existing is None:
                raise NotFoundError("Category", category_id)
            if kind is not None and kind != existing.kind:
                logger.warning(
                    f"Rejected kind change for category {category_id}: "
                    f"{existing.kind} -> {kind}"
                )
                raise ValidationError(
                    f"Category {category_id} kind cannot change from "
                    f"{existing.kind} to {kind}",
                    field="kind",
                )
            self._check_unique(conn, name, existing.kind, exclude_id=category_id)

            conn.execute(
                """
                UPDATE categories
                SET name = ?, icon = ?, color = ?, updated_at = ?
                WHERE id = ?
                """,
                (name, icon, color, now.isoformat(), category_id),
            )
            conn.commit()

        logger.info(f"Updated category {category_id}")
        self.notifier.publish("categories", "update", category_id)
        return Category(
            id=category_id,
            name=name,
            kind=existing.kind,
            icon=icon,
            color=color,
            created_at=existing.created_at,
            updated_at=now,
        )

    def delete(self, category_id: int) -> None:
        """Delete a category that nothing references.

        Args:
            category_id: The category ID to delete.

        Raises:
            NotFoundError: If the category does not exist.
            ReferentialIntegrityError: If any income, expense, investment or
                budget still references the category.
        """
        with self.db_manager.connect() as conn:
            if self._find(conn, category_id) is None:
                raise NotFoundError("Category", category_id)

            references = self._reference_counts(conn, category_id)
            if any(references.values()):
                logger.warning(
                    f"Refused to delete category {category_id}: {references}"
                )
                raise ReferentialIntegrityError(category_id, references)

            try:
                conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise ReferentialIntegrityError(
                    category_id, self._reference_counts(conn, category_id)
                ) from e

        logger.info(f"Deleted category {category_id}")
        self.notifier.publish("categories", "delete", category_id)

    def reference_counts(self, category_id: int) -> Dict[str, int]:
        """Count the records referencing a category, per dependent table."""
        with self.db_manager.connect() as conn:
            return self._reference_counts(conn, category_id)

    def _reference_counts(self, conn, category_id: int) -> Dict[str, int]:
        return {
            table: conn.execute(
                f"SELECT COUNT(*) FROM {table} WHERE category_id = ?", (category_id,)
            ).fetchone()[0]
            for table in DEPENDENT_TABLES
        }

    def _check_unique(self, conn, name: str, kind: str, exclude_id=None) -> None:
        row = conn.execute(
            "SELECT id FROM categories WHERE name = ? AND type = ? AND id IS NOT ?",
            (name, kind, exclude_id),
        ).fetchone()
        if row:
            logger.warning(f"Rejected duplicate {kind} category '{name}'")
            raise ValidationError(
                f"A {kind} category named '{name}' already exists (ID: {row[0]})",
                field="name",
            )

    def _find(self, conn, category_id: int) -> Optional[Category]:
        row = conn.execute(
            f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ?",
            (category_id,),
        ).fetchone()
        return self._row_to_category(row) if row else None

    def _row_to_category(self, row: tuple) -> Category:
        return Category(
            id=row[0],
            name=row[1],
            kind=row[2],
            icon=row[3],
            color=row[4],
            created_at=parse_timestamp(row[5]),
            updated_at=parse_timestamp(row[6]),
        )


def _validate_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationError("Category name cannot be empty", field="name")
    return name.strip()


def _validate_kind(kind: str) -> None:
    if kind not in CATEGORY_KINDS:
        raise ValidationError(
            f"Category kind must be one of {', '.join(CATEGORY_KINDS)}, got {kind!r}",
            field="kind",
        )
