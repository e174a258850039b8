"""
main.py — Monthly Sales Report Generator — CLI Entry Point.

The single place where concrete data source, formatter and sender variants
are chosen and wired into a ReportPipeline. CLI flags override config.yaml.

Usage:
    python main.py                                         # previous month, config defaults
    python main.py --month 2 --year 2023 --destination manager@example.com
    python main.py --month 2 --year 2023 --formatter pdf --sender file --destination out/feb.txt
    python main.py --generate-data --month 3 --year 2023   # write data/raw/sales.csv
    python main.py --month 3 --year 2023 --source csv --compare-previous
"""

import argparse
import logging
import logging.handlers
import os
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from sales_report.config import load_config
from sales_report.data_source import CsvDataSource, SyntheticDataSource, write_sample_csv
from sales_report.formatters import (
    HtmlReportFormatter,
    PdfReportFormatter,
    PlainTextReportFormatter,
)
from sales_report.models import Period
from sales_report.pipeline import ReportPipeline
from sales_report.senders import (
    ConsoleEmailReportSender,
    FileReportSender,
    PdfFileReportSender,
    SlackReportSender,
    SmtpEmailReportSender,
)

SOURCES = ("synthetic", "csv")
FORMATTERS = ("text", "pdf", "html")
SENDERS = ("email", "file", "pdf", "smtp", "slack")

SAMPLE_MONTHS = 13


def _configure_logging(log_dir: str = "logs", level: str = "INFO") -> None:
    """Configure rotating file handler + stream handler.

    Args:
        log_dir: Directory for log files.
        level: Log level string.
    """
    effective_level = os.environ.get("LOG_LEVEL", level).upper()
    numeric = getattr(logging, effective_level, logging.INFO)

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_file = Path(log_dir) / f"pipeline_{datetime.today().strftime('%Y%m%d')}.log"

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)-35s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    fh = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=10 * 1024 * 1024, backupCount=7, encoding="utf-8"
    )
    fh.setFormatter(fmt)
    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(numeric)
    root.addHandler(fh)
    root.addHandler(sh)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sales-report",
        description="Monthly Sales Report Generator — fetch, compute, format and send.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --month 2 --year 2023
  python main.py --month 2 --year 2023 --formatter pdf --sender file --destination out/feb.txt
  python main.py --generate-data --month 3 --year 2023
  python main.py --month 3 --year 2023 --source csv --compare-previous
        """,
    )
    parser.add_argument("--config", default="config.yaml",
                        help="Path to config.yaml (default: config.yaml)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    period = parser.add_argument_group("Reporting Period")
    period.add_argument("--month", type=int, help="Month 1-12 (default: previous month)")
    period.add_argument("--year", type=int, help="Year (default: year of previous month)")

    wiring = parser.add_argument_group("Pipeline Components")
    wiring.add_argument("--source", choices=SOURCES, help="Sales data source")
    wiring.add_argument("--formatter", choices=FORMATTERS, help="Report format")
    wiring.add_argument("--sender", choices=SENDERS, help="Delivery channel")
    wiring.add_argument("--destination",
                        help="Email address, file path or Slack channel for the sender")
    wiring.add_argument("--compare-previous", action="store_true", default=None,
                        help="Compute growth against the previous month's records")

    parser.add_argument("--generate-data", action="store_true",
                        help="Write a synthetic CSV dataset for the 13 months up to the period")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

def default_period(today: Optional[date] = None) -> Period:
    """Return the last complete calendar month before `today`."""
    today = today or date.today()
    return Period(today.month, today.year).previous()


def default_destination(sender: Optional[str], cfg: dict[str, Any]) -> str:
    """Slack posts to the configured channel; every other sender uses report.destination."""
    if (sender or cfg["sender"]["kind"]) == "slack":
        return cfg["distribution"]["slack_channel"]
    return cfg["report"]["destination"]


def build_data_source(kind: str, cfg: dict[str, Any]):
    src_cfg = cfg["data_source"]
    if kind == "synthetic":
        return SyntheticDataSource(seed=src_cfg["seed"], categories=src_cfg["categories"])
    if kind == "csv":
        return CsvDataSource(src_cfg["csv_path"])
    raise ValueError(f"Unknown data source: {kind!r} (expected one of {', '.join(SOURCES)})")


def build_formatter(kind: str):
    if kind == "text":
        return PlainTextReportFormatter()
    if kind == "pdf":
        return PdfReportFormatter()
    if kind == "html":
        return HtmlReportFormatter()
    raise ValueError(f"Unknown formatter: {kind!r} (expected one of {', '.join(FORMATTERS)})")


def build_sender(kind: str, cfg: dict[str, Any]):
    dist_cfg = cfg["distribution"]
    if kind == "email":
        return ConsoleEmailReportSender()
    if kind == "file":
        return FileReportSender()
    if kind == "pdf":
        return PdfFileReportSender()
    if kind == "smtp":
        return SmtpEmailReportSender(subject_template=dist_cfg["email_subject"])
    if kind == "slack":
        return SlackReportSender(
            username=dist_cfg["slack_username"],
            icon_emoji=dist_cfg["slack_icon_emoji"],
        )
    raise ValueError(f"Unknown sender: {kind!r} (expected one of {', '.join(SENDERS)})")


def build_pipeline(
    cfg: dict[str, Any],
    source: Optional[str] = None,
    formatter: Optional[str] = None,
    sender: Optional[str] = None,
    compare_previous: Optional[bool] = None,
) -> ReportPipeline:
    """Construct a ReportPipeline from config, with optional overrides.

    Args:
        cfg: Full configuration dict from load_config().
        source: Data source kind; config value when None.
        formatter: Formatter kind; config value when None.
        sender: Sender kind; config value when None.
        compare_previous: Real prior-period growth; config value when None.

    Returns:
        Ready-to-run ReportPipeline.
    """
    metrics_cfg = cfg["metrics"]
    if compare_previous is None:
        compare_previous = bool(metrics_cfg["compare_previous_period"])
    return ReportPipeline(
        build_data_source(source or cfg["data_source"]["kind"], cfg),
        build_formatter(formatter or cfg["formatter"]["kind"]),
        build_sender(sender or cfg["sender"]["kind"], cfg),
        growth_seed=metrics_cfg["growth_seed"],
        compare_previous_period=compare_previous,
    )


def _first_set(*values):
    return next(v for v in values if v is not None)


def _sample_periods(end: Period, months: int = SAMPLE_MONTHS) -> list[Period]:
    """Return `months` consecutive periods ending with `end`, oldest first."""
    periods = [end]
    for _ in range(months - 1):
        periods.append(periods[-1].previous())
    return list(reversed(periods))


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------

def run_pipeline(args: argparse.Namespace, cfg: dict[str, Any], logger: logging.Logger) -> int:
    """Execute the requested stages.

    Args:
        args: Parsed CLI arguments.
        cfg: Full configuration dict.
        logger: Configured logger.

    Returns:
        0 on success, 1 on error.
    """
    report_cfg = cfg["report"]
    fallback = default_period()
    month = _first_set(args.month, report_cfg["month"], fallback.month)
    year = _first_set(args.year, report_cfg["year"], fallback.year)

    if args.generate_data:
        logger.info("=" * 65)
        logger.info("STAGE: Data Generation")
        logger.info("=" * 65)
        try:
            src_cfg = cfg["data_source"]
            path = write_sample_csv(
                src_cfg["csv_path"],
                _sample_periods(Period(month, year)),
                seed=src_cfg["seed"],
                categories=src_cfg["categories"],
            )
            logger.info("Data generation complete -- %s", path)
        except Exception as exc:
            logger.error("Data generation failed: %s", exc, exc_info=True)
            return 1
        return 0

    logger.info("=" * 65)
    logger.info("STAGE: Report Generation (%02d/%d)", month, year)
    logger.info("=" * 65)
    try:
        pipeline = build_pipeline(
            cfg,
            source=args.source,
            formatter=args.formatter,
            sender=args.sender,
            compare_previous=args.compare_previous,
        )
        destination = args.destination or default_destination(args.sender, cfg)
        pipeline.generate_and_send(month, year, destination)
    except FileNotFoundError as exc:
        logger.error("Dataset missing. Run --generate-data first.\n%s", exc)
        return 1
    except Exception as exc:
        logger.error("Report pipeline failed: %s", exc, exc_info=True)
        return 1

    logger.info("PIPELINE COMPLETE")
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    """Parse args, configure logging, and run pipeline."""
    args = _parse_args(argv)
    cfg = load_config(args.config)

    _configure_logging(log_dir=cfg["paths"]["log_dir"], level=args.log_level)
    logger = logging.getLogger(__name__)

    logger.info(
        "Monthly Sales Report Generator v1.0 | %s",
        datetime.today().strftime("%Y-%m-%d %H:%M:%S"),
    )
    sys.exit(run_pipeline(args, cfg, logger))


if __name__ == "__main__":
    main()
