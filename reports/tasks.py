"""Background report generation with cancellation.

Rendering runs on a worker thread so interactive reads are never blocked.
A cancelled task never yields output, and save_report only ever leaves a
complete file behind.
"""

import os
import tempfile
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from errors import ReportCancelledError
from logger import get_logger
from reports.builder import Report
from reports.exporters.base import ReportExporter, check_cancelled

logger = get_logger()


class ReportTask:
    """Handle to a report being rendered in the background."""

    def __init__(self, name: str, future: Future, cancel_event: threading.Event):
        self.name = name
        self._future = future
        self._cancel_event = cancel_event

    def cancel(self) -> bool:
        """Request cancellation.

        Returns:
            False if the task had already finished, True otherwise.
        """
        if self._future.done():
            return False
        self._cancel_event.set()
        self._future.cancel()
        logger.info(f"Cancellation requested for report {self.name}")
        return True

    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> bytes:
        """Wait for the rendered report.

        Args:
            timeout: Seconds to wait; None waits indefinitely.

        Returns:
            The serialized report.

        Raises:
            ReportCancelledError: If the task was cancelled.
            TimeoutError: If the timeout expires first.
        """
        try:
            data = self._future.result(timeout=timeout)
        except CancelledError as e:
            raise ReportCancelledError(f"Report {self.name} was cancelled") from e
        if self._cancel_event.is_set():
            raise ReportCancelledError(f"Report {self.name} was cancelled")
        return data


class ReportRunner:
    """Runs report exporters on a background thread pool.

    Args:
        exporter: Exporter used to render every submitted report.
        max_workers: Number of worker threads.
    """

    def __init__(self, exporter: ReportExporter, max_workers: int = 1):
        self.exporter = exporter
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="report"
        )

    def submit(self, report: Report, name: Optional[str] = None) -> ReportTask:
        """Start rendering a report in the background.

        Args:
            report: Aggregated report snapshot.
            name: Optional task name used in log messages.

        Returns:
            ReportTask handle.
        """
        name = name or f"{report.kind}-{report.start.isoformat()}-{report.end.isoformat()}"
        cancel_event = threading.Event()
        future = self._executor.submit(self._render, name, report, cancel_event)
        return ReportTask(name, future, cancel_event)

    def _render(self, name: str, report: Report, cancel_event: threading.Event) -> bytes:
        check_cancelled(cancel_event)
        logger.debug(f"Rendering report {name}")
        data = self.exporter.render(report, cancel_event)
        # Discard output finished after a late cancellation request.
        check_cancelled(cancel_event)
        logger.info(f"Rendered report {name} ({len(data)} bytes)")
        return data

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def __enter__(self) -> "ReportRunner":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()


def save_report(data: bytes, path: Path) -> Path:
    """Write a rendered report atomically.

    The data is written to a temporary file in the target directory and
    renamed into place, so a partially written report never appears.

    Returns:
        The path written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise

    logger.info(f"Saved report to {path}")
    return path
