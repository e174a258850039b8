"""
metrics.py — Sales KPI calculations.

Pure functions over a sequence of SalesRecords:

    total_sales         — exact sum of every record amount
    sales_by_category   — summed amount per category (first-appearance order)
    growth_by_category  — signed % change per category vs a baseline

Growth has two modes. With a prior-period record sequence it is the real
period-over-period change. Without one it falls back to a seeded placeholder
in [-20, +50) per category, which is what the demo data source pairs with.

`compute_metrics` bundles all three into a `MetricsResult` for the pipeline.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from sales_report.config import DEFAULT_SEED
from sales_report.models import SalesRecord

logger = logging.getLogger(__name__)

PLACEHOLDER_GROWTH_MIN = -20.0
PLACEHOLDER_GROWTH_MAX = 50.0

# Reported when the prior-period baseline for a category is zero
NO_BASELINE_GROWTH = 0.0


# ---------------------------------------------------------------------------
# Data structure
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricsResult:
    """Metrics for one pipeline invocation."""
    total_sales: float
    growth_by_category: dict[str, float] = field(default_factory=dict)
    sales_by_category: dict[str, float] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Calculators
# ---------------------------------------------------------------------------

def total_sales(records: Sequence[SalesRecord]) -> float:
    """Sum of all record amounts; 0.0 for an empty sequence."""
    return float(sum(r.amount for r in records))


def sales_by_category(records: Sequence[SalesRecord]) -> dict[str, float]:
    """Group records by category and sum their amounts.

    Args:
        records: Sales records in any order.

    Returns:
        Dict of category → summed amount, keyed in order of first appearance.
    """
    if not records:
        return {}
    df = pd.DataFrame(
        {"category": [r.category for r in records], "amount": [r.amount for r in records]}
    )
    totals = df.groupby("category", sort=False)["amount"].sum()
    return {str(cat): float(amount) for cat, amount in totals.items()}


def _placeholder_growth(categories: list[str], seed: int) -> dict[str, float]:
    rng = np.random.default_rng(seed)
    span = PLACEHOLDER_GROWTH_MAX - PLACEHOLDER_GROWTH_MIN
    return {cat: PLACEHOLDER_GROWTH_MIN + float(rng.random()) * span for cat in categories}


def _pct_change(current: float, previous: float) -> float:
    if previous == 0:
        return NO_BASELINE_GROWTH
    return (current - previous) / previous * 100


def growth_by_category(
    records: Sequence[SalesRecord],
    previous_records: Optional[Sequence[SalesRecord]] = None,
    seed: int = DEFAULT_SEED,
) -> dict[str, float]:
    """Percentage growth per category present in `records`.

    Args:
        records: Current-period records.
        previous_records: Prior-period records. When given, growth is
            ``(current - previous) / previous * 100`` per category, with
            `NO_BASELINE_GROWTH` where the prior total is zero or missing.
            When None, a seeded placeholder is drawn per category.
        seed: Seed for the placeholder generator.

    Returns:
        Dict with exactly one entry per distinct category in `records`.
    """
    current = sales_by_category(records)
    if not current:
        return {}

    if previous_records is None:
        return _placeholder_growth(list(current), seed)

    previous = sales_by_category(previous_records)
    return {
        cat: _pct_change(amount, previous.get(cat, 0.0))
        for cat, amount in current.items()
    }


def compute_metrics(
    records: Sequence[SalesRecord],
    previous_records: Optional[Sequence[SalesRecord]] = None,
    seed: int = DEFAULT_SEED,
) -> MetricsResult:
    """Compute every metric the report needs from one record sequence.

    Args:
        records: Current-period records.
        previous_records: Optional prior-period records for real growth.
        seed: Seed for placeholder growth.

    Returns:
        MetricsResult for this invocation.
    """
    result = MetricsResult(
        total_sales=total_sales(records),
        growth_by_category=growth_by_category(records, previous_records, seed),
        sales_by_category=sales_by_category(records),
    )
    logger.info(
        "Metrics computed — %d records | total sales: $%.2f | %d categories | baseline: %s",
        len(records),
        result.total_sales,
        len(result.growth_by_category),
        "prior period" if previous_records is not None else "placeholder",
    )
    return result
