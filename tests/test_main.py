"""
test_main.py — Tests for configuration loading, CLI composition and the
monthly scheduler job.
"""

import logging
import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

import main
import scheduler
from sales_report.config import DEFAULTS, load_config
from sales_report.data_source import CsvDataSource, SyntheticDataSource
from sales_report.formatters import HtmlReportFormatter, PdfReportFormatter, PlainTextReportFormatter
from sales_report.models import Period
from sales_report.senders import (
    ConsoleEmailReportSender,
    FileReportSender,
    PdfFileReportSender,
    SlackReportSender,
    SmtpEmailReportSender,
)

logger = logging.getLogger("test_main")


@pytest.fixture
def cfg(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"))
    config["data_source"]["csv_path"] = str(tmp_path / "data" / "sales.csv")
    return config


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class TestLoadConfig:

    def test_missing_file_returns_defaults(self, tmp_path):
        assert load_config(str(tmp_path / "none.yaml")) == DEFAULTS

    def test_partial_file_is_merged_over_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("formatter:\n  kind: html\ndata_source:\n  seed: 7\n")
        config = load_config(str(path))
        assert config["formatter"]["kind"] == "html"
        assert config["data_source"]["seed"] == 7
        assert config["data_source"]["categories"] == DEFAULTS["data_source"]["categories"]
        assert config["sender"]["kind"] == "email"

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_repo_config_loads(self):
        config = load_config(str(Path(__file__).parent.parent / "config.yaml"))
        assert config["data_source"]["seed"] == 42
        assert config["formatter"]["kind"] == "text"


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

class TestComposition:

    @pytest.mark.parametrize("kind, expected", [
        ("text", PlainTextReportFormatter),
        ("pdf", PdfReportFormatter),
        ("html", HtmlReportFormatter),
    ])
    def test_build_formatter(self, kind, expected):
        assert isinstance(main.build_formatter(kind), expected)

    @pytest.mark.parametrize("kind, expected", [
        ("email", ConsoleEmailReportSender),
        ("file", FileReportSender),
        ("pdf", PdfFileReportSender),
        ("smtp", SmtpEmailReportSender),
        ("slack", SlackReportSender),
    ])
    def test_build_sender(self, cfg, kind, expected):
        assert isinstance(main.build_sender(kind, cfg), expected)

    def test_build_data_source(self, cfg):
        assert isinstance(main.build_data_source("synthetic", cfg), SyntheticDataSource)
        assert isinstance(main.build_data_source("csv", cfg), CsvDataSource)

    @pytest.mark.parametrize("builder", [
        lambda cfg: main.build_formatter("xml"),
        lambda cfg: main.build_sender("fax", cfg),
        lambda cfg: main.build_data_source("oracle", cfg),
    ])
    def test_unknown_kind_rejected(self, cfg, builder):
        with pytest.raises(ValueError, match="Unknown"):
            builder(cfg)

    def test_build_pipeline_uses_config_defaults(self, cfg):
        pipeline = main.build_pipeline(cfg)
        assert isinstance(pipeline.data_source, SyntheticDataSource)
        assert isinstance(pipeline.formatter, PlainTextReportFormatter)
        assert isinstance(pipeline.sender, ConsoleEmailReportSender)
        assert pipeline.compare_previous_period is False

    def test_build_pipeline_overrides(self, cfg):
        pipeline = main.build_pipeline(cfg, formatter="html", sender="file", compare_previous=True)
        assert isinstance(pipeline.formatter, HtmlReportFormatter)
        assert isinstance(pipeline.sender, FileReportSender)
        assert pipeline.compare_previous_period is True

    def test_default_period_is_previous_month(self):
        assert main.default_period(date(2023, 1, 15)) == Period(12, 2022)
        assert main.default_period(date(2023, 6, 1)) == Period(5, 2023)

    def test_default_destination(self, cfg):
        assert main.default_destination("slack", cfg) == cfg["distribution"]["slack_channel"]
        assert main.default_destination(None, cfg) == cfg["report"]["destination"]

    def test_sample_periods(self):
        assert main._sample_periods(Period(2, 2023), 3) == [
            Period(12, 2022), Period(1, 2023), Period(2, 2023),
        ]


# ---------------------------------------------------------------------------
# CLI runs
# ---------------------------------------------------------------------------

class TestRunPipeline:

    def test_report_to_file(self, cfg, tmp_path):
        destination = tmp_path / "out" / "feb.txt"
        args = main._parse_args([
            "--month", "2", "--year", "2023",
            "--sender", "file", "--destination", str(destination),
        ])
        assert main.run_pipeline(args, cfg, logger) == 0
        assert destination.read_text(encoding="utf-8").startswith(
            "Monthly Sales Report - February 2023"
        )

    def test_invalid_month_fails(self, cfg):
        args = main._parse_args(["--month", "13", "--year", "2023"])
        assert main.run_pipeline(args, cfg, logger) == 1

    def test_csv_source_without_data_fails(self, cfg):
        args = main._parse_args(["--month", "2", "--year", "2023", "--source", "csv"])
        assert main.run_pipeline(args, cfg, logger) == 1

    def test_generate_then_report_from_csv(self, cfg, tmp_path):
        gen_args = main._parse_args(["--generate-data", "--month", "3", "--year", "2023"])
        assert main.run_pipeline(gen_args, cfg, logger) == 0
        assert Path(cfg["data_source"]["csv_path"]).exists()

        destination = tmp_path / "mar.txt"
        args = main._parse_args([
            "--month", "3", "--year", "2023", "--source", "csv",
            "--compare-previous", "--sender", "file", "--destination", str(destination),
        ])
        assert main.run_pipeline(args, cfg, logger) == 0
        assert "March 2023" in destination.read_text(encoding="utf-8")

    def test_unknown_cli_choice_exits(self):
        with pytest.raises(SystemExit):
            main._parse_args(["--formatter", "xml"])


# ---------------------------------------------------------------------------
# Scheduler job
# ---------------------------------------------------------------------------

class TestScheduledReport:

    def test_reports_previous_month(self, cfg, tmp_path):
        destination = tmp_path / "scheduled.txt"
        cfg["sender"]["kind"] = "file"
        cfg["scheduler"]["destination"] = str(destination)

        assert scheduler.run_scheduled_report(cfg, today=date(2023, 3, 1)) is True
        assert "February 2023" in destination.read_text(encoding="utf-8")

    def test_failure_is_logged_not_raised(self, cfg, caplog):
        cfg["scheduler"]["destination"] = ""
        with caplog.at_level(logging.ERROR):
            assert scheduler.run_scheduled_report(cfg, today=date(2023, 3, 1)) is False
        assert "failed" in caplog.text
