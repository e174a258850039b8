"""
test_pipeline.py — Unit and integration tests for ReportPipeline.

Collaborators are replaced with mocks to verify the fetch -> compute ->
format -> send sequence, then the real variants are wired end to end.
"""

import io
import sys
from datetime import date
from pathlib import Path
from unittest.mock import Mock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from sales_report.data_source import SyntheticDataSource
from sales_report.formatters import (
    NO_DATA_MESSAGE,
    HtmlReportFormatter,
    PdfReportFormatter,
    PlainTextReportFormatter,
)
from sales_report.models import DeliveryError, InvalidPeriodError, Period, SalesRecord
from sales_report.pipeline import ReportPipeline
from sales_report.senders import ConsoleEmailReportSender, FileReportSender

RECIPIENT = "test@example.com"


def _mock_pipeline(records, report="Test Report", **kwargs):
    data_source = Mock()
    data_source.fetch.return_value = records
    formatter = Mock()
    formatter.format.return_value = report
    sender = Mock()
    return ReportPipeline(data_source, formatter, sender, **kwargs), data_source, formatter, sender


class TestReportPipelineInteractions:
    """Interactions between the pipeline and its collaborators."""

    def test_generate_and_send(self):
        records = [SalesRecord("Electronics", 500.0, date(2023, 5, 15))]
        pipeline, data_source, formatter, sender = _mock_pipeline(records)

        result = pipeline.generate_and_send(5, 2023, RECIPIENT)

        data_source.fetch.assert_called_once_with(Period(5, 2023))
        passed_records, total, growth = formatter.format.call_args.args
        assert passed_records == records
        assert total == 500.0
        assert set(growth) == {"Electronics"}
        sender.send.assert_called_once_with("Test Report", RECIPIENT)
        assert result == "Test Report"

    def test_empty_data_is_still_sent(self):
        pipeline, _, formatter, sender = _mock_pipeline([], report="nothing")

        pipeline.generate_and_send(5, 2023, RECIPIENT)

        formatter.format.assert_called_once_with([], 0.0, {})
        sender.send.assert_called_once_with("nothing", RECIPIENT)

    def test_empty_data_with_real_formatter_sends_no_data_message(self):
        data_source = Mock()
        data_source.fetch.return_value = []
        sender = Mock()
        pipeline = ReportPipeline(data_source, PlainTextReportFormatter(), sender)

        pipeline.generate_and_send(5, 2023, RECIPIENT)

        sender.send.assert_called_once_with(NO_DATA_MESSAGE, RECIPIENT)

    @pytest.mark.parametrize("month", [0, 13])
    def test_invalid_period_rejected_before_fetch(self, month):
        pipeline, data_source, formatter, sender = _mock_pipeline([])

        with pytest.raises(InvalidPeriodError):
            pipeline.generate_and_send(month, 2023, RECIPIENT)

        data_source.fetch.assert_not_called()
        formatter.format.assert_not_called()
        sender.send.assert_not_called()

    def test_delivery_error_propagates(self):
        pipeline, _, _, sender = _mock_pipeline([])
        sender.send.side_effect = DeliveryError("smtp down")

        with pytest.raises(DeliveryError, match="smtp down"):
            pipeline.generate_and_send(5, 2023, RECIPIENT)

    def test_fetch_error_aborts_before_send(self):
        pipeline, data_source, _, sender = _mock_pipeline([])
        data_source.fetch.side_effect = FileNotFoundError("sales.csv")

        with pytest.raises(FileNotFoundError):
            pipeline.generate_and_send(5, 2023, RECIPIENT)
        sender.send.assert_not_called()

    def test_compare_previous_period_fetches_prior_month(self):
        current = [SalesRecord("Books", 150.0, date(2023, 1, 10))]
        previous = [SalesRecord("Books", 100.0, date(2022, 12, 10))]
        data_source = Mock()
        data_source.fetch.side_effect = lambda period: (
            current if period == Period(1, 2023) else previous
        )
        formatter = Mock()
        formatter.format.return_value = "r"
        pipeline = ReportPipeline(
            data_source, formatter, Mock(), compare_previous_period=True
        )

        pipeline.generate_and_send(1, 2023, RECIPIENT)

        assert [c.args[0] for c in data_source.fetch.call_args_list] == [
            Period(1, 2023), Period(12, 2022),
        ]
        _, _, growth = formatter.format.call_args.args
        assert growth == {"Books": pytest.approx(50.0)}

    def test_no_per_call_state_on_instance(self):
        pipeline, *_ = _mock_pipeline([SalesRecord("Food", 1.0, date(2023, 5, 1))])
        before = set(vars(pipeline))
        pipeline.generate_and_send(5, 2023, RECIPIENT)
        assert set(vars(pipeline)) == before


class TestReportPipelineIntegration:
    """Real data source, formatters and senders wired together."""

    def test_february_2023_to_file(self, tmp_path):
        destination = tmp_path / "feb_2023.txt"
        pipeline = ReportPipeline(
            SyntheticDataSource(seed=42),
            PlainTextReportFormatter(),
            FileReportSender(stream=io.StringIO()),
        )

        report = pipeline.generate_and_send(2, 2023, str(destination))

        assert destination.read_text(encoding="utf-8") == report
        assert "February 2023" in report.splitlines()[0]

    def test_swapping_formatter_keeps_metrics(self):
        seen = []
        for formatter in (PlainTextReportFormatter(), PdfReportFormatter(), HtmlReportFormatter()):
            spy = Mock(wraps=formatter)
            ReportPipeline(SyntheticDataSource(), spy, Mock()).generate_and_send(2, 2023, RECIPIENT)
            _, total, growth = spy.format.call_args.args
            seen.append((total, growth))
        assert seen[0] == seen[1] == seen[2]

    def test_swapping_sender_keeps_report(self, tmp_path):
        email_out, file_out = io.StringIO(), io.StringIO()
        target = tmp_path / "reports" / "feb.txt"

        by_email = ReportPipeline(
            SyntheticDataSource(), PlainTextReportFormatter(),
            ConsoleEmailReportSender(stream=email_out),
        ).generate_and_send(2, 2023, RECIPIENT)
        by_file = ReportPipeline(
            SyntheticDataSource(), PlainTextReportFormatter(),
            FileReportSender(stream=file_out),
        ).generate_and_send(2, 2023, str(target))

        assert by_email == by_file
        assert by_email in email_out.getvalue()
        assert by_file in file_out.getvalue()
        assert target.read_text(encoding="utf-8") == by_file

    def test_repeat_invocations_are_independent(self):
        sender = Mock()
        pipeline = ReportPipeline(SyntheticDataSource(), PlainTextReportFormatter(), sender)

        feb = pipeline.generate_and_send(2, 2023, RECIPIENT)
        mar = pipeline.generate_and_send(3, 2023, RECIPIENT)
        feb_again = pipeline.generate_and_send(2, 2023, RECIPIENT)

        assert "March 2023" in mar
        assert feb == feb_again
