"""Change notification for store writes.

Presentation code subscribes to recompute summaries when a store changes.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from logger import get_logger

logger = get_logger()


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    action: str  # "create", "update" or "delete"
    record_id: int
    ts: str


class ChangeNotifier:
    """Publishes a ChangeEvent to every subscriber after a successful write."""

    def __init__(self):
        self._subscribers: List[Callable[[ChangeEvent], None]] = []

    def subscribe(self, handler: Callable[[ChangeEvent], None]) -> None:
        if handler not in self._subscribers:
            self._subscribers.append(handler)

    def unsubscribe(self, handler: Callable[[ChangeEvent], None]) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def publish(self, table: str, action: str, record_id: int) -> Optional[ChangeEvent]:
        if not self._subscribers:
            return None

        event = ChangeEvent(
            table=table,
            action=action,
            record_id=record_id,
            ts=datetime.now().isoformat(),
        )
        for handler in list(self._subscribers):
            # Runs after commit; subscriber errors never reach the caller.
            try:
                handler(event)
            except Exception:
                logger.exception(
                    f"Change subscriber {handler!r} failed on {table} {action} {record_id}"
                )
        return event
