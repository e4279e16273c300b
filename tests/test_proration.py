"""Tests for day-weighted proration."""

import pytest
from datetime import date
from decimal import Decimal

from propledger.domain.proration import divide_cents, prorate, round_cents
from propledger.utils.periods import DateRange, YearMonth


def test_full_year_returns_amount_unchanged():
    """A full calendar year never drifts, whatever the amount."""
    for amount in (120000, -2400, 1, 99999, 0):
        assert prorate(amount, 2023, DateRange.for_year(2023)) == amount
        assert prorate(amount, 2024, DateRange.for_year(2024)) == amount


def test_range_covering_more_than_the_year():
    r = DateRange(date(2023, 6, 1), date(2025, 6, 1))
    assert prorate(120000, 2024, r) == 120000


def test_no_overlap_is_zero():
    r = DateRange(date(2025, 1, 1), date(2025, 3, 31))
    assert prorate(120000, 2024, r) == 0


def test_leap_year_february():
    r = DateRange(date(2024, 2, 1), date(2024, 2, 29))
    assert prorate(120000, 2024, r) == 9508


def test_single_day():
    r = DateRange(date(2023, 7, 4), date(2023, 7, 4))
    # 36500 * 1 / 365
    assert prorate(36500, 2023, r) == 100


def test_negative_amounts_round_symmetrically():
    r = DateRange(date(2024, 2, 1), date(2024, 2, 29))
    assert prorate(-120000, 2024, r) == -9508


def test_range_straddling_year_boundary_counts_only_days_in_year():
    r = DateRange(date(2023, 12, 1), date(2024, 1, 31))
    # 31 days of 2024
    assert prorate(36600, 2024, r) == 3100


@pytest.mark.parametrize("year", [2023, 2024])
@pytest.mark.parametrize("amount", [100000, -123457, 7])
def test_monthly_shares_approximate_the_year(year, amount):
    """Twelve monthly shares differ from the annual amount by at most six cents."""
    months = YearMonth.range_inclusive(YearMonth(year, 1), YearMonth(year, 12))
    total = sum(prorate(amount, year, m.date_range()) for m in months)
    assert abs(total - amount) <= 6


def test_round_cents_is_half_even():
    assert round_cents(Decimal("2.5")) == 2
    assert round_cents(Decimal("3.5")) == 4
    assert round_cents(Decimal("-2.5")) == -2


def test_divide_cents():
    assert divide_cents(1000, 3) == 333
    assert divide_cents(-1000, 3) == -333
    assert divide_cents(5, 2) == 2
    with pytest.raises(ValueError):
        divide_cents(100, 0)
