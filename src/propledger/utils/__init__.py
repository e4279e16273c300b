"""Utility functions for propledger."""

from propledger.utils.date_parser import get_date_range, parse_date
from propledger.utils.amount_parser import format_cents, parse_amount_cents
from propledger.utils.periods import DateRange, PeriodError, YearMonth

__all__ = ["parse_date", "get_date_range", "parse_amount_cents", "format_cents", "DateRange", "PeriodError", "YearMonth"]
