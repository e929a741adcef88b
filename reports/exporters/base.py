"""Base interface for report exporters."""

import threading
from abc import ABC, abstractmethod
from typing import Optional

from errors import ReportCancelledError
from reports.builder import Report


def check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    """Raise ReportCancelledError if cancellation has been requested."""
    if cancel_event is not None and cancel_event.is_set():
        raise ReportCancelledError("Report generation was cancelled")


class ReportExporter(ABC):
    """Abstract base class for report exporters.

    An exporter turns an aggregated Report into an opaque serialized
    artifact. It never reads the stores itself.
    """

    file_extension = ""

    @abstractmethod
    def render(
        self, report: Report, cancel_event: Optional[threading.Event] = None
    ) -> bytes:
        """Serialize a report.

        Args:
            report: Report snapshot to serialize.
            cancel_event: Optional event; implementations call
                check_cancelled between sections and stop when it is set.

        Returns:
            The serialized report.

        Raises:
            ReportCancelledError: If cancel_event was set during rendering.
        """
        pass
