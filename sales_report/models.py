"""
models.py — Core value objects for the sales report pipeline.

    SalesRecord  — one dated, categorised sale
    Period       — the (month, year) reporting window

Also defines the error hierarchy shared by every pipeline stage.
"""

import calendar
from dataclasses import dataclass
from datetime import date


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class SalesReportError(Exception):
    """Base class for all pipeline errors."""


class InvalidPeriodError(SalesReportError, ValueError):
    """Raised when a month/year pair is not a valid reporting period."""


class InvalidDestinationError(SalesReportError, ValueError):
    """Raised by a sender when the destination string is malformed."""


class DeliveryError(SalesReportError, RuntimeError):
    """Raised by a sender when the report could not be delivered."""


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SalesRecord:
    """A single observed sale."""
    category: str
    amount: float
    date: date

    def __post_init__(self) -> None:
        if not self.category:
            raise ValueError("SalesRecord.category must be a non-empty label")
        if not self.amount >= 0:
            raise ValueError(f"SalesRecord.amount must be >= 0, got {self.amount}")


@dataclass(frozen=True)
class Period:
    """A calendar month used as the reporting window.

    Args:
        month: Month number, 1-12.
        year: Positive year (proleptic Gregorian calendar).

    Raises:
        InvalidPeriodError: If month or year is out of range.
    """
    month: int
    year: int

    def __post_init__(self) -> None:
        if not isinstance(self.month, int) or not 1 <= self.month <= 12:
            raise InvalidPeriodError(f"Month must be between 1 and 12, got {self.month!r}")
        if not isinstance(self.year, int) or not 1 <= self.year <= 9999:
            raise InvalidPeriodError(f"Year must be a positive integer, got {self.year!r}")

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    @property
    def label(self) -> str:
        """Human-readable label, e.g. 'February 2023'."""
        return period_label(self.first_day)

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month

    def previous(self) -> "Period":
        """Return the calendar month immediately before this one."""
        if self.month == 1:
            return Period(12, self.year - 1)
        return Period(self.month - 1, self.year)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def period_label(day: date) -> str:
    """Return the 'Month YYYY' label for the month containing `day`."""
    return f"{calendar.month_name[day.month]} {day.year}"
