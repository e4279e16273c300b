"""Calendar month and date range value types.

Every date in propledger is a naive ``datetime.date`` read as a UTC calendar
day. Month arithmetic goes through ``YearMonth`` so that schedule and report
code never parse ``YYYY-MM`` strings on their own.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, UTC
from typing import Iterator, Optional

MIN_YEAR = 1900
MAX_YEAR = 2200
MAX_DUE_DAY = 28

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


class PeriodError(ValueError):
    """Invalid month or date range.

    ``reason`` uses the same codes as domain validation errors
    (``invalid_month``, ``invalid_range``).
    """

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


def utc_today() -> date:
    """Current calendar day in UTC."""
    return datetime.now(UTC).date()


@dataclass(frozen=True, order=True)
class YearMonth:
    """A calendar month, ordered by ``year * 12 + month index``."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not MIN_YEAR <= self.year <= MAX_YEAR:
            raise PeriodError(
                f"Year {self.year} is outside {MIN_YEAR}..{MAX_YEAR}", reason="invalid_month"
            )
        if not 1 <= self.month <= 12:
            raise PeriodError(f"Month {self.month} is outside 1..12", reason="invalid_month")

    @classmethod
    def parse(cls, value: str) -> "YearMonth":
        """Parse a ``YYYY-MM`` string.

        Raises:
            PeriodError: If the string is not a valid month (reason ``invalid_month``)
        """
        match = _MONTH_RE.match(value.strip()) if isinstance(value, str) else None
        if match is None:
            raise PeriodError(f"Invalid month '{value}', expected YYYY-MM", reason="invalid_month")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_date(cls, value: date) -> "YearMonth":
        return cls(value.year, value.month)

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "YearMonth":
        return cls(ordinal // 12, ordinal % 12 + 1)

    @classmethod
    def current(cls) -> "YearMonth":
        """Current month in UTC."""
        return cls.from_date(utc_today())

    @property
    def ordinal(self) -> int:
        return self.year * 12 + (self.month - 1)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def add(self, months: int) -> "YearMonth":
        return YearMonth.from_ordinal(self.ordinal + months)

    def day(self, day_of_month: int) -> date:
        """Date in this month at ``day_of_month``, clamped to 1..28."""
        return date(self.year, self.month, min(max(day_of_month, 1), MAX_DUE_DAY))

    def date_range(self) -> "DateRange":
        return DateRange(self.first_day, self.last_day)

    @staticmethod
    def range_inclusive(start: "YearMonth", end: "YearMonth") -> list["YearMonth"]:
        """All months from ``start`` through ``end``; empty when ``end < start``."""
        return [YearMonth.from_ordinal(o) for o in range(start.ordinal, end.ordinal + 1)]

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def days_in_year(year: int) -> int:
    """Number of days in a Gregorian year."""
    return 366 if calendar.isleap(year) else 365


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise PeriodError(
                f"Range start {self.start} is after end {self.end}", reason="invalid_range"
            )

    @classmethod
    def ordered(cls, first: date, second: date) -> "DateRange":
        """Build a range from two bounds in either order."""
        if first > second:
            first, second = second, first
        return cls(first, second)

    @classmethod
    def for_year(cls, year: int) -> "DateRange":
        return cls(date(year, 1, 1), date(year, 12, 31))

    @classmethod
    def for_month(cls, month: YearMonth) -> "DateRange":
        return month.date_range()

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end

    def clip(self, other: "DateRange") -> Optional["DateRange"]:
        """Intersection with ``other``, or None when they do not overlap."""
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if start > end:
            return None
        return DateRange(start, end)

    def years(self) -> list[int]:
        return list(range(self.start.year, self.end.year + 1))

    def months(self) -> list[YearMonth]:
        return YearMonth.range_inclusive(YearMonth.from_date(self.start), YearMonth.from_date(self.end))

    def month_count(self) -> int:
        return len(self.months())

    def iter_month_slices(self) -> Iterator[tuple[YearMonth, "DateRange"]]:
        """Yield each month touched by the range with the part of the range inside it."""
        for month in self.months():
            piece = self.clip(month.date_range())
            if piece is not None:
                yield month, piece

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


def overlap_days(first: DateRange, second: DateRange) -> int:
    """Whole days shared by two inclusive ranges (0 when disjoint)."""
    piece = first.clip(second)
    return piece.days if piece is not None else 0
