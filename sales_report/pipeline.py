"""
pipeline.py — Report pipeline orchestrator.

ReportPipeline wires one DataSource, one ReportFormatter and one ReportSender
passed in explicitly by the caller, and runs the stages in strict order:

    fetch -> compute metrics -> format -> send

Every intermediate value lives in the scope of a single `generate_and_send`
call, so one pipeline instance can be shared between concurrent callers.
Failures in any stage propagate to the caller; nothing is retried.
"""

import logging

from sales_report.config import DEFAULT_SEED
from sales_report.data_source import DataSource
from sales_report.formatters import ReportFormatter
from sales_report.metrics import compute_metrics
from sales_report.models import Period
from sales_report.senders import ReportSender

logger = logging.getLogger(__name__)


class ReportPipeline:
    """Generates a monthly sales report and delivers it.

    Args:
        data_source: Provides the records for a period.
        formatter: Renders records and metrics into report text.
        sender: Delivers the report text.
        growth_seed: Seed for placeholder growth figures.
        compare_previous_period: Fetch the prior month as well and report
            real period-over-period growth instead of the placeholder.
    """

    def __init__(
        self,
        data_source: DataSource,
        formatter: ReportFormatter,
        sender: ReportSender,
        *,
        growth_seed: int = DEFAULT_SEED,
        compare_previous_period: bool = False,
    ) -> None:
        self.data_source = data_source
        self.formatter = formatter
        self.sender = sender
        self.growth_seed = growth_seed
        self.compare_previous_period = compare_previous_period

    def generate_and_send(self, month: int, year: int, destination: str) -> str:
        """Run the full pipeline for one period.

        Args:
            month: Month number, 1-12.
            year: Year.
            destination: Sender-specific destination (address, path, channel).

        Returns:
            The report text that was sent.

        Raises:
            InvalidPeriodError: If month/year is not a valid period. Raised
                before anything is fetched.
            SalesReportError: Any delivery or destination error from the sender.
        """
        period = Period(month, year)
        logger.info("Generating sales report for %s -> %s", period.label, destination)

        records = self.data_source.fetch(period)
        previous = None
        if self.compare_previous_period:
            previous = self.data_source.fetch(period.previous())

        metrics = compute_metrics(records, previous, seed=self.growth_seed)
        report = self.formatter.format(
            records, metrics.total_sales, metrics.growth_by_category
        )
        if not records:
            logger.warning("No sales records for %s — sending no-data report", period.label)

        self.sender.send(report, destination)
        logger.info("Report for %s delivered (%d chars)", period.label, len(report))
        return report
