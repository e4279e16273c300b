"""Day-weighted proration of annual lump sums.

This is the only place in the engine that rounds money: everything else
adds and compares integer cents.
"""

from decimal import Decimal, ROUND_HALF_EVEN

from propledger.utils.periods import DateRange, days_in_year, overlap_days

ROUNDING = ROUND_HALF_EVEN


def round_cents(value: Decimal) -> int:
    """Round an exact cent value to a whole cent with the engine-wide rule."""
    return int(value.quantize(Decimal(1), rounding=ROUNDING))


def prorate(amount_cents: int, year: int, date_range: DateRange) -> int:
    """Share of an annual amount attributable to ``date_range``.

    The share is ``amount * overlap_days / days_in_year``, where the overlap is
    counted in whole, inclusive calendar days between the range and the year.

    Args:
        amount_cents: Annual amount in cents (any sign)
        year: Calendar year the amount belongs to
        date_range: Query range

    Returns:
        Prorated share in cents; 0 when the range misses the year, and
        exactly ``amount_cents`` when the range covers the whole year
    """
    year_range = DateRange.for_year(year)
    overlap = overlap_days(date_range, year_range)
    if overlap == 0:
        return 0
    total_days = days_in_year(year)
    if overlap == total_days:
        return amount_cents
    return round_cents(Decimal(amount_cents) * overlap / total_days)


def divide_cents(amount_cents: int, parts: int) -> int:
    """Divide cents into ``parts`` equal shares, rounded with the engine-wide rule."""
    if parts <= 0:
        raise ValueError("parts must be positive")
    return round_cents(Decimal(amount_cents) / parts)
