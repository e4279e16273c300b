"""CLI helpers for date range resolution."""

from datetime import date

import click

from propledger.utils.date_parser import get_date_range, parse_date
from propledger.utils.periods import DateRange

PERIOD_NAMES = ("this-month", "this-year", "ytd", "last-month", "last-year")


def period_options(command):
    """Attach --start-date/--end-date and the period flags to a command."""
    options = [
        click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')"),
        click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')"),
        click.option("--this-month", is_flag=True, help="Current calendar month"),
        click.option("--this-year", is_flag=True, help="Current calendar year"),
        click.option("--ytd", is_flag=True, help="January 1 of this year through today"),
        click.option("--last-month", is_flag=True, help="Previous calendar month"),
        click.option("--last-year", is_flag=True, help="Previous calendar year"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def period_flags_from(kwargs: dict) -> dict[str, bool]:
    """Pop the period flags out of a command's keyword arguments."""
    return {name: bool(kwargs.pop(name.replace("-", "_"), False)) for name in PERIOD_NAMES}


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    period_count = sum(1 for is_set in period_flags.values() if is_set)

    if period_count > 1:
        click.echo(
            "Error: Only one period option (--this-month, --this-year, --ytd, --last-month, --last-year) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --this-year, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    start = None
    end = None

    if period_count == 1:
        for period, is_set in period_flags.items():
            if is_set:
                start, end = get_date_range(period)
                break
    else:
        if start_date:
            try:
                start = parse_date(start_date)
            except ValueError as e:
                click.echo(f"Error: Invalid start date: {e}", err=True)
                ctx.exit(1)

        if end_date:
            try:
                end = parse_date(end_date)
            except ValueError as e:
                click.echo(f"Error: Invalid end date: {e}", err=True)
                ctx.exit(1)

        if start is None and end is None and default_range is not None:
            start, end = default_range

    return start, end


def resolve_report_range(ctx, *, start_date: str | None, end_date: str | None, period_flags: dict[str, bool]) -> DateRange:
    """Resolve a closed report range, defaulting to the current year.

    A missing bound is taken from the default range; reversed bounds are swapped.
    """
    default_start, default_end = get_date_range("this-year")
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags,
        default_range=(default_start, default_end),
    )
    return DateRange.ordered(start or default_start, end or default_end)
