"""
formatters.py — Report renderers.

All formatters share one contract:

    format(records, total_sales, growth_by_category) -> str

The period label comes from the first record's date, so callers pass records
from a single month. Empty input renders a fixed "no data" message instead
of failing. Totals are rendered as given; no validation happens here.

Variants:
    PlainTextReportFormatter  — deterministic text report
    PdfReportFormatter        — text report with PDF-style header/footer and
                                a generation timestamp
    HtmlReportFormatter       — standalone HTML document
"""

import html
import logging
from datetime import datetime
from typing import Callable, Mapping, Protocol, Sequence

from sales_report.metrics import sales_by_category
from sales_report.models import SalesRecord, period_label

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No sales data available for the specified period."
PDF_MARKER = "[PDF REPORT]"

RULE = "=" * 43
GROWTH_HEADING = "Growth Percentages (compared to previous period):"


class ReportFormatter(Protocol):
    """Renders records and computed metrics into report text."""

    def format(
        self,
        records: Sequence[SalesRecord],
        total_sales: float,
        growth_by_category: Mapping[str, float],
    ) -> str:
        ...


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def _usd(value: float) -> str:
    """Format an amount as dollars with 2 decimals: 1234.5 → '$1234.50'."""
    return f"${value:.2f}"


def _pct(value: float) -> str:
    """Format a percentage with explicit sign: 12.345 → '+12.35%'."""
    return f"{value:+.2f}%"


def _text_body(
    records: Sequence[SalesRecord],
    total: float,
    growth: Mapping[str, float],
) -> list[str]:
    label = period_label(records[0].date)
    logger.debug("Rendering report body for %s (%d records)", label, len(records))
    lines = [
        f"Monthly Sales Report - {label}",
        RULE,
        "",
        f"Total Sales: {_usd(total)}",
        "",
        "Sales by Category:",
        "-" * 18,
    ]
    for category, amount in sales_by_category(records).items():
        lines.append(f"{category:<12}: {_usd(amount)}")

    lines += ["", GROWTH_HEADING, "-" * 48]
    for category, pct in growth.items():
        lines.append(f"{category:<12}: {_pct(pct)}")
    return lines


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

class PlainTextReportFormatter:
    """Plain-text report. Identical inputs always give identical output."""

    def format(
        self,
        records: Sequence[SalesRecord],
        total_sales: float,
        growth_by_category: Mapping[str, float],
    ) -> str:
        if not records:
            return NO_DATA_MESSAGE
        return "\n".join(_text_body(records, total_sales, growth_by_category)) + "\n"


class PdfReportFormatter:
    """Paginated-style report with a PDF marker and generation footer.

    Args:
        clock: Returns the generation time; injectable for tests.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    def format(
        self,
        records: Sequence[SalesRecord],
        total_sales: float,
        growth_by_category: Mapping[str, float],
    ) -> str:
        if not records:
            return f"[PDF] {NO_DATA_MESSAGE}"

        generated = self._clock().strftime("%Y-%m-%d")
        lines = [PDF_MARKER]
        lines += _text_body(records, total_sales, growth_by_category)
        lines += [
            "",
            RULE,
            f"This PDF report was generated on {generated}",
            RULE,
        ]
        return "\n".join(lines) + "\n"


class HtmlReportFormatter:
    """Standalone HTML report with one table per section."""

    def format(
        self,
        records: Sequence[SalesRecord],
        total_sales: float,
        growth_by_category: Mapping[str, float],
    ) -> str:
        if not records:
            return f"<html><body><p>{html.escape(NO_DATA_MESSAGE)}</p></body></html>"

        label = html.escape(period_label(records[0].date))
        category_rows = "".join(
            f"<tr><td>{html.escape(cat)}</td><td>{_usd(amount)}</td></tr>"
            for cat, amount in sales_by_category(records).items()
        )
        growth_rows = "".join(
            f"<tr><td>{html.escape(cat)}</td><td>{_pct(pct)}</td></tr>"
            for cat, pct in growth_by_category.items()
        )

        return f"""<html>
<head><meta charset="utf-8"><title>Monthly Sales Report - {label}</title></head>
<body style="font-family:Arial,sans-serif;color:#2D3748;max-width:700px;margin:auto;">
<h1>Monthly Sales Report - {label}</h1>
<p><strong>Total Sales:</strong> {_usd(total_sales)}</p>
<h2>Sales by Category</h2>
<table>{category_rows}</table>
<h2>{html.escape(GROWTH_HEADING)}</h2>
<table>{growth_rows}</table>
</body>
</html>
"""
