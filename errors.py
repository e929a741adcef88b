"""Error types raised at the store boundary."""

from typing import Dict, Iterable, Optional


class BajetiError(Exception):
    """Base class for all Bajeti errors."""


class ValidationError(BajetiError, ValueError):
    """Raised when input is malformed or out of range. Nothing is persisted."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(BajetiError, LookupError):
    """Raised when an update or delete targets a nonexistent record."""

    def __init__(self, entity: str, record_id: int):
        super().__init__(f"{entity} with ID {record_id} not found")
        self.entity = entity
        self.record_id = record_id


class ReferentialIntegrityError(BajetiError):
    """Raised when deleting a category that is still referenced."""

    def __init__(self, category_id: int, references: Dict[str, int]):
        details = ", ".join(
            f"{count} in {table}" for table, count in references.items() if count
        )
        super().__init__(
            f"Category with ID {category_id} is still referenced ({details}); "
            "reassign or remove those records first"
        )
        self.category_id = category_id
        self.references = references


class OverlapError(BajetiError):
    """Raised when an active budget would overlap another for the same category."""

    def __init__(self, category_id: int, conflicting_ids: Iterable[int]):
        self.category_id = category_id
        self.conflicting_ids = list(conflicting_ids)
        ids = ", ".join(str(i) for i in self.conflicting_ids)
        super().__init__(
            f"Budget for category ID {category_id} overlaps active budget(s) {ids}"
        )


class StoreUnavailableError(BajetiError):
    """Raised when the database cannot be opened or migrated. Fatal."""


class ReportCancelledError(BajetiError):
    """Raised inside a report task once cancellation has been requested."""
