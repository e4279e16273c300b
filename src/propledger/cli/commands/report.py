"""Report commands."""

import click

from propledger.cli.date_filters import period_flags_from, period_options, resolve_report_range
from propledger.cli.error_handling import handle_domain_error
from propledger.cli.resolution import resolve_property_or_exit
from propledger.domain.entities import CategoryTotalRow, PropertyStatus
from propledger.domain.errors import DomainError
from propledger.domain.property import PropertyService
from propledger.domain.reports import CategoryReport, KindTotals, ReportService
from propledger.utils.amount_parser import format_cents

INDENT_SIZE = 4
STATUS_CHOICES = [s.value for s in PropertyStatus]


def _service(ctx) -> ReportService:
    return ReportService(ctx.obj["db"], ctx.obj.get("sign_policy"))


def _property_id(ctx, property_ref: str | None) -> int | None:
    if property_ref is None:
        return None
    return resolve_property_or_exit(ctx, PropertyService(ctx.obj["db"]), property_ref).id


def _range(ctx, start_date, end_date, period):
    return resolve_report_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags_from(period)
    )


def _money(cents: int) -> str:
    return format_cents(cents) if cents != 0 else "-"


def _echo_corrections(count: int) -> None:
    if count:
        click.echo(f"\nNote: {count} amount(s) had the wrong sign for their category kind and were corrected.")


def _echo_totals_header(label: str) -> None:
    click.echo(f"{label:<20} {'Income':>16} {'Expense':>16} {'Net':>16}")
    click.echo("-" * 71)


def _echo_totals_row(label: str, totals: KindTotals) -> None:
    click.echo(
        f"{label:<20} {_money(totals.income_cents):>16} {_money(totals.expense_cents):>16} "
        f"{_money(totals.net_cents):>16}"
    )


def _echo_hierarchy(rows: tuple[CategoryTotalRow, ...] | list[CategoryTotalRow]) -> None:
    for row in rows:
        indent_str = " " * (INDENT_SIZE * row.depth)
        category_width = 50 - (INDENT_SIZE * row.depth)
        click.echo(f"{indent_str}{row.name:<{category_width}} {format_cents(row.amount_cents):>20}")


def _echo_category_report(title: str, report: CategoryReport) -> None:
    click.echo(f"\n{title} ({report.date_range}):")
    click.echo("-" * 71)
    if not report.rows:
        click.echo("No activity found.")
    _echo_hierarchy(report.rows)
    click.echo("-" * 71)
    click.echo(f"{'TOTAL':<50} {_money(report.total_cents):>20}")
    _echo_corrections(report.sign_corrections)


@click.group()
def report_group():
    """Show reports."""
    pass


@report_group.command("by-month")
@click.option("--property", "property_ref", help="Property name or ID (default: all)")
@click.option("--include-transfers", is_flag=True, help="Include transfer categories")
@click.option("--no-annual", is_flag=True, help="Leave annual amounts out")
@period_options
@click.pass_context
def by_month(ctx, property_ref, include_transfers, no_annual, start_date, end_date, **period):
    """Profit and loss per calendar month."""
    date_range = _range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).profit_loss_by_month(
            date_range,
            property_id=_property_id(ctx, property_ref),
            include_transfers=include_transfers,
            include_annual=not no_annual,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nProfit & Loss by Month ({date_range}):")
    _echo_totals_header("Month")
    for row in report.rows:
        _echo_totals_row(str(row.month), row.totals)
    click.echo("-" * 71)
    _echo_totals_row("TOTAL", report.totals)
    _echo_corrections(report.sign_corrections)


@report_group.command("by-property")
@click.option("--include-transfers", is_flag=True, help="Include transfer categories")
@period_options
@click.pass_context
def by_property(ctx, include_transfers, start_date, end_date, **period):
    """Profit and loss per property."""
    date_range = _range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).profit_loss_by_property(date_range, include_transfers=include_transfers)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nProfit & Loss by Property ({date_range}):")
    _echo_totals_header("Property")
    for row in report.rows:
        _echo_totals_row(row.name[:20], row.totals)
    click.echo("-" * 71)
    _echo_totals_row("TOTAL", report.totals)
    _echo_corrections(report.sign_corrections)


@report_group.command("expenses")
@click.option("--property", "property_ref", help="Property name or ID (default: all)")
@click.option("--include-transfers", is_flag=True, help="Include transfer categories")
@period_options
@click.pass_context
def expenses(ctx, property_ref, include_transfers, start_date, end_date, **period):
    """Expenses by category, rolled up the category tree."""
    date_range = _range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).expenses_by_category(
            date_range, property_id=_property_id(ctx, property_ref), include_transfers=include_transfers
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    _echo_category_report("Expenses by Category", report)


@report_group.command("income")
@click.option("--property", "property_ref", help="Property name or ID (default: all)")
@click.option("--include-transfers", is_flag=True, help="Include transfer categories")
@period_options
@click.pass_context
def income(ctx, property_ref, include_transfers, start_date, end_date, **period):
    """Income by category, rolled up the category tree."""
    date_range = _range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).income_by_category(
            date_range, property_id=_property_id(ctx, property_ref), include_transfers=include_transfers
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    _echo_category_report("Income by Category", report)


@report_group.command("expenses-by-property")
@click.option("--include-transfers", is_flag=True, help="Include transfer categories")
@click.option("--status", type=click.Choice(STATUS_CHOICES, case_sensitive=False), help="Only properties with this status")
@period_options
@click.pass_context
def expenses_by_property(ctx, include_transfers, status, start_date, end_date, **period):
    """Transactional and annual expenses per property."""
    date_range = _range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).expenses_by_property(
            date_range,
            include_transfers=include_transfers,
            status=PropertyStatus(status.lower()) if status else None,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nExpenses by Property ({date_range}):")
    click.echo(f"{'Property':<30} {'Transactional':>16} {'Annual':>16} {'Total':>16}")
    click.echo("-" * 81)
    for row in report.rows:
        click.echo(
            f"{row.name[:30]:<30} {_money(row.transactional_cents):>16} "
            f"{_money(row.annual_cents):>16} {_money(row.total_cents):>16}"
        )
    click.echo("-" * 81)
    click.echo(f"{'TOTAL':<64} {_money(report.total_cents):>16}")
    _echo_corrections(report.sign_corrections)


@report_group.command("rental-income")
@click.option("--property", "property_ref", help="Property name or ID (default: all)")
@click.option("--include-transfers", is_flag=True, help="Include transfer categories (with --include-other-income)")
@click.option("--include-other-income", is_flag=True, help="Count all income, not only rent")
@period_options
@click.pass_context
def rental_income(ctx, property_ref, include_transfers, include_other_income, start_date, end_date, **period):
    """Rental income per property, highest first."""
    date_range = _range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).rental_income_by_property(
            date_range,
            property_id=_property_id(ctx, property_ref),
            include_transfers=include_transfers,
            include_other_income=include_other_income,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    title = "Income by Property" if include_other_income else "Rental Income by Property"
    click.echo(f"\n{title} ({date_range}):")
    if not report.rows:
        click.echo("No income found.")
        return
    click.echo(f"{'Property':<30} {'Transactional':>16} {'Annual':>16} {'Total':>16}")
    click.echo("-" * 81)
    for row in report.rows:
        click.echo(
            f"{row.name[:30]:<30} {_money(row.transactional_cents):>16} "
            f"{_money(row.annual_cents):>16} {_money(row.total_cents):>16}"
        )
    click.echo("-" * 81)
    click.echo(
        f"{'TOTAL':<30} {_money(report.transactional_cents):>16} "
        f"{_money(report.annual_cents):>16} {_money(report.total_cents):>16}"
    )
    _echo_corrections(report.sign_corrections)


@report_group.command("by-year")
@click.option("--property", "property_ref", help="Property name or ID (default: all)")
@click.pass_context
def by_year(ctx, property_ref):
    """Income versus expenses for every year with activity."""
    try:
        report = _service(ctx).income_vs_expenses_by_year(property_id=_property_id(ctx, property_ref))
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nIncome vs Expenses by Year:")
    if not report.rows:
        click.echo("No activity found.")
        return
    _echo_totals_header("Year")
    for row in report.rows:
        _echo_totals_row(str(row.year), KindTotals(row.income_cents, row.expense_cents))
    _echo_corrections(report.sign_corrections)


@report_group.command("annual")
@click.option("--start-year", type=int, required=True, help="First year")
@click.option("--end-year", type=int, help="Last year (default: same as --start-year)")
@click.option("--property", "property_ref", help="Property name or ID (default: all)")
@click.option("--include-transfers", is_flag=True, help="Include transfer categories")
@click.option("--expand", is_flag=True, help="Show category rows for each year")
@click.pass_context
def annual(ctx, start_year, end_year, property_ref, include_transfers, expand):
    """Annual profit and loss summary."""
    try:
        report = _service(ctx).annual_summary(
            start_year,
            end_year if end_year is not None else start_year,
            property_id=_property_id(ctx, property_ref),
            include_transfers=include_transfers,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nAnnual Summary ({report.start_year}-{report.end_year}):")
    _echo_totals_header("Year")
    for year in report.years:
        _echo_totals_row(str(year.year), year.totals)
        if expand and year.rows:
            _echo_hierarchy(year.rows)
            click.echo()
    click.echo("-" * 71)
    _echo_totals_row("TOTAL", report.totals)
    _echo_corrections(report.sign_corrections)


@report_group.command("leaderboard")
@click.option("--status", type=click.Choice(STATUS_CHOICES, case_sensitive=False), help="Only properties with this status")
@click.option("--include-transfers", is_flag=True, help="Include transfer categories")
@period_options
@click.pass_context
def leaderboard(ctx, status, include_transfers, start_date, end_date, **period):
    """Properties ranked by net cash flow."""
    date_range = _range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).portfolio_leaderboard(
            date_range,
            status=PropertyStatus(status.lower()) if status else None,
            include_transfers=include_transfers,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nPortfolio Leaderboard ({date_range}, {report.month_count} months):")
    click.echo(f"{'#':<4} {'Property':<26} {'Net cash flow':>16} {'Avg / month':>14} {'Yield on cost':>14}")
    click.echo("-" * 78)
    for rank, row in enumerate(report.rows, start=1):
        yield_str = f"{row.yield_on_cost_pct:.2f}%" if row.yield_on_cost_pct is not None else "-"
        click.echo(
            f"{rank:<4} {row.name[:26]:<26} {_money(row.net_cash_flow_cents):>16} "
            f"{_money(row.avg_monthly_cash_flow_cents):>14} {yield_str:>14}"
        )
    _echo_corrections(report.sign_corrections)


@report_group.command("cash-vs-accrual")
@click.option("--property", "property_ref", help="Property name or ID (default: all)")
@click.option("--include-transfers", is_flag=True, help="Include transfer categories")
@click.option("--by-category", is_flag=True, help="Show per-category rows")
@period_options
@click.pass_context
def cash_vs_accrual(ctx, property_ref, include_transfers, by_category, start_date, end_date, **period):
    """Compare cash basis with accrual (statement month) basis."""
    date_range = _range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).cash_vs_accrual(
            date_range, property_id=_property_id(ctx, property_ref), include_transfers=include_transfers
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nCash vs Accrual ({date_range}, accrual mode: {report.accrual_mode}):")
    _echo_totals_header("Basis")
    _echo_totals_row("Cash", report.cash)
    _echo_totals_row("Accrual", report.accrual)
    click.echo("-" * 71)
    _echo_totals_row("Delta", report.delta)

    if by_category and report.rows:
        click.echo(f"\n{'Category':<36} {'Cash':>16} {'Accrual':>16}")
        click.echo("-" * 70)
        for row in report.rows:
            click.echo(f"{row.name[:36]:<36} {_money(row.cash_cents):>16} {_money(row.accrual_cents):>16}")
    _echo_corrections(report.sign_corrections)


@report_group.command("recurring")
@click.option("--property", "property_ref", help="Property name or ID (default: all)")
@click.option("--include-inactive", is_flag=True, help="Include inactive definitions")
@period_options
@click.pass_context
def recurring(ctx, property_ref, include_inactive, start_date, end_date, **period):
    """Expected versus posted recurring expenses."""
    date_range = _range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).recurring_overview(
            date_range, property_id=_property_id(ctx, property_ref), include_inactive=include_inactive
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nRecurring Expenses ({date_range}):")
    if not report.rows:
        click.echo("No recurring expenses in range.")
        return
    click.echo(f"{'ID':<6} {'Property':<18} {'Category':<20} {'Expected':>14} {'Posted':>14} {'Variance':>12}")
    click.echo("-" * 89)
    for row in report.rows:
        click.echo(
            f"{row.definition_id:<6} {row.property_name[:18]:<18} {row.category_name[:20]:<20} "
            f"{_money(row.expected_total_cents):>14} {_money(row.posted_total_cents):>14} "
            f"{_money(row.variance_cents):>12}"
        )
        if row.missing_months:
            click.echo(f"       missing: {', '.join(str(m) for m in row.missing_months)}")
    click.echo("-" * 89)
    click.echo(
        f"{'TOTAL':<46} {_money(report.expected_total_cents):>14} "
        f"{_money(report.posted_total_cents):>14} {_money(report.variance_cents):>12}"
    )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
