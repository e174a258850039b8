"""
data_source.py — Sales record providers.

Every provider satisfies the DataSource protocol: given a Period it returns
the SalesRecords dated inside it. Absence of data is an empty list.

    SyntheticDataSource  — seeded NumPy generator, one record per day × category
    CsvDataSource        — reads category,amount,date rows from a CSV file

`write_sample_csv` persists synthetic records so the CSV source can be
exercised without a real extract.
"""

import logging
from pathlib import Path
from typing import Iterable, Protocol, Sequence

import numpy as np
import pandas as pd

from sales_report.config import DEFAULT_CATEGORIES, DEFAULT_SEED
from sales_report.models import Period, SalesRecord

logger = logging.getLogger(__name__)

MIN_AMOUNT = 100.0
MAX_AMOUNT = 1000.0

CSV_COLUMNS = ["category", "amount", "date"]


class DataSource(Protocol):
    """Produces the sales records for a reporting period."""

    def fetch(self, period: Period) -> list[SalesRecord]:
        ...


class SyntheticDataSource:
    """Reproducible synthetic sales data.

    The generator is re-seeded on every fetch, so the same period always
    yields the same records. Draws are consumed day by day (ascending) and,
    within a day, category by category in the configured order.

    Args:
        seed: Seed for ``np.random.default_rng``.
        categories: Ordered category labels.
    """

    def __init__(
        self,
        seed: int = DEFAULT_SEED,
        categories: Sequence[str] = DEFAULT_CATEGORIES,
    ) -> None:
        if not categories:
            raise ValueError("SyntheticDataSource needs at least one category")
        self.seed = seed
        self.categories = tuple(categories)

    def fetch(self, period: Period) -> list[SalesRecord]:
        rng = np.random.default_rng(self.seed)
        days = period.days_in_month
        # Row-major: one row per day, one column per category
        draws = rng.random((days, len(self.categories)))
        amounts = MIN_AMOUNT + draws * (MAX_AMOUNT - MIN_AMOUNT)

        records = []
        for day_idx in range(days):
            day = period.first_day.replace(day=day_idx + 1)
            for cat_idx, category in enumerate(self.categories):
                records.append(SalesRecord(category, float(amounts[day_idx, cat_idx]), day))

        logger.info("Fetched %d sales records for %s", len(records), period.label)
        return records


class CsvDataSource:
    """Sales records read from a CSV extract.

    The file must have ``category``, ``amount`` and ``date`` (ISO) columns.
    Rows outside the requested period are ignored; file order is kept.
    """

    def __init__(self, csv_path: str | Path) -> None:
        self.csv_path = Path(csv_path)

    def _load(self) -> pd.DataFrame:
        if not self.csv_path.exists():
            raise FileNotFoundError(
                f"Sales dataset not found at {self.csv_path}. Run --generate-data first."
            )
        # Labels such as "NA" or "None" are real categories, not missing values
        df = pd.read_csv(self.csv_path, dtype=str, keep_default_na=False)
        missing = [c for c in CSV_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"{self.csv_path} is missing column(s): {', '.join(missing)}")
        for column in CSV_COLUMNS:
            blank = df[column].str.strip() == ""
            if blank.any():
                line = int(blank.to_numpy().argmax()) + 2
                raise ValueError(
                    f"{self.csv_path} has an empty {column!r} value on line {line}"
                )
        df["amount"] = pd.to_numeric(df["amount"])
        df["date"] = pd.to_datetime(df["date"]).dt.date
        logger.debug("Loaded %s: %d rows", self.csv_path, len(df))
        return df

    def fetch(self, period: Period) -> list[SalesRecord]:
        df = self._load()
        in_period = df[df["date"].map(period.contains).astype(bool)]

        records = [
            SalesRecord(str(row.category), float(row.amount), row.date)
            for row in in_period.itertuples(index=False)
        ]
        logger.info(
            "Fetched %d sales records for %s from %s",
            len(records), period.label, self.csv_path,
        )
        return records


def records_to_frame(records: Iterable[SalesRecord]) -> pd.DataFrame:
    """Convert records to a DataFrame with the CSV column layout."""
    rows = [
        {"category": r.category, "amount": r.amount, "date": r.date.isoformat()}
        for r in records
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def write_sample_csv(
    csv_path: str | Path,
    periods: Iterable[Period],
    seed: int = DEFAULT_SEED,
    categories: Sequence[str] = DEFAULT_CATEGORIES,
) -> Path:
    """Generate synthetic records for each period and write them to one CSV.

    Each period is offset from the base seed by its position so consecutive
    months differ, which gives period-over-period growth something to show.

    Args:
        csv_path: Output file path (parent directories are created).
        periods: Periods to generate, written in the given order.
        seed: Base seed.
        categories: Ordered category labels.

    Returns:
        Path to the written CSV.
    """
    frames = []
    for offset, period in enumerate(periods):
        source = SyntheticDataSource(seed=seed + offset, categories=categories)
        frames.append(records_to_frame(source.fetch(period)))

    df = pd.concat(frames, ignore_index=True) if frames else records_to_frame([])

    path = Path(csv_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logger.info("Written sales dataset: %d rows -> %s", len(df), path)
    return path
