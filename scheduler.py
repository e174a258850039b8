"""
scheduler.py — Monthly Sales Report Scheduler.

Runs the report pipeline once a month (default: the 1st at 06:00 London
time) for the calendar month that has just closed.

Usage:
    python scheduler.py              # Start daemon (blocking)
    python scheduler.py --run-now   # One immediate run, then exit
    python scheduler.py --config custom.yaml
"""

import argparse
import logging
import logging.handlers
import signal
import sys
from datetime import date
from pathlib import Path
from typing import Any, Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from sales_report.config import load_config


logger = logging.getLogger(__name__)


def _configure_logging(log_dir: str) -> None:
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)-35s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    fh = logging.handlers.RotatingFileHandler(
        Path(log_dir) / "scheduler.log",
        maxBytes=5 * 1024 * 1024, backupCount=14, encoding="utf-8",
    )
    fh.setFormatter(fmt)
    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(fmt)
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(fh)
    root.addHandler(sh)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def run_scheduled_report(cfg: dict[str, Any], today: Optional[date] = None) -> bool:
    """Generate and send the report for the month before `today`.

    Failures are logged rather than raised so one bad run does not stop
    the scheduler; the next run fires on schedule.

    Args:
        cfg: Full configuration dict.
        today: Run date; defaults to the current date.

    Returns:
        True if the report was delivered.
    """
    from main import build_pipeline, default_period

    period = default_period(today)
    destination = cfg["scheduler"]["destination"]
    logger.info("Starting scheduled sales report run for %s", period.label)

    try:
        pipeline = build_pipeline(cfg)
        pipeline.generate_and_send(period.month, period.year, destination)
    except Exception as exc:
        logger.error("Scheduled run for %s failed: %s", period.label, exc, exc_info=True)
        return False

    logger.info("Scheduled run for %s succeeded", period.label)
    return True


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="scheduler",
        description="Monthly Sales Report scheduler (previous month, once a month).",
    )
    parser.add_argument("--config", default="config.yaml")
    parser.add_argument("--run-now", action="store_true",
                        help="Run immediately then exit (testing)")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    cfg = load_config(args.config)

    _configure_logging(cfg["paths"]["log_dir"])

    sched_cfg = cfg["scheduler"]
    run_day = sched_cfg["run_day"]
    run_time = sched_cfg["run_time"]
    timezone = sched_cfg["timezone"]

    run_hour, run_minute = map(int, run_time.split(":"))

    if args.run_now:
        logger.info("--run-now: executing pipeline immediately")
        ok = run_scheduled_report(cfg)
        sys.exit(0 if ok else 1)

    scheduler = BlockingScheduler(timezone=timezone)
    scheduler.add_job(
        run_scheduled_report,
        trigger=CronTrigger(
            day=run_day,
            hour=run_hour,
            minute=run_minute,
            timezone=timezone,
        ),
        kwargs={"cfg": cfg},
        id="monthly_sales_report",
        name="Monthly Sales Report Generation",
        replace_existing=True,
        misfire_grace_time=600,
    )

    def _shutdown(sig, frame):
        logger.info("Shutdown signal — stopping scheduler")
        scheduler.shutdown(wait=False)
        sys.exit(0)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    logger.info(
        "Scheduler started -- monthly run: day %s at %s (%s)",
        run_day, run_time, timezone,
    )
    scheduler.start()


if __name__ == "__main__":
    main()
