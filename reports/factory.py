"""Factory for creating report exporter instances."""

from config import Config
from logger import get_logger
from reports.exporters.base import ReportExporter
from reports.exporters.csv_exporter import CsvReportExporter

logger = get_logger()


def get_exporter(config: Config) -> ReportExporter:
    """Create a report exporter based on configuration.

    Args:
        config: Application configuration.

    Returns:
        ReportExporter instance for config.report_format.

    Raises:
        ValueError: If the configured format is unknown.
    """
    report_format = config.report_format

    if report_format == "csv":
        logger.debug("Using CSV report exporter")
        return CsvReportExporter()

    raise ValueError(f"Unknown report format: {report_format}")
