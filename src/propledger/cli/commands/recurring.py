"""Recurring definition and posting commands."""

import click

from propledger.cli.error_handling import handle_domain_error
from propledger.cli.resolution import (
    parse_month_or_exit,
    resolve_category_or_exit,
    resolve_property_or_exit,
)
from propledger.domain.category import CategoryService
from propledger.domain.entities import PostingResult
from propledger.domain.errors import DomainError
from propledger.domain.posting import PostingService
from propledger.domain.property import PropertyService
from propledger.domain.recurring import RecurringService
from propledger.utils.amount_parser import format_cents, parse_amount_cents
from propledger.utils.periods import YearMonth


def _month_or_current(ctx, value: str | None) -> YearMonth:
    month = parse_month_or_exit(ctx, value, "month")
    return month if month is not None else YearMonth.current()


def _echo_posting_result(result: PostingResult) -> None:
    click.echo(f"{result.month}: posted {result.posted_count}")
    for item in result.skipped:
        click.echo(f"  skipped definition {item.definition_id}: {item.reason}")


@click.group()
def recurring_group():
    """Manage recurring transactions."""
    pass


@recurring_group.command("create")
@click.option("--property", "property_ref", required=True, help="Property name or ID")
@click.option("--category", required=True, help="Category path or ID")
@click.option("--amount", required=True, help="Monthly amount, positive (sign follows the category kind)")
@click.option("--day", "day_of_month", type=int, required=True, help="Due day of month (1-28)")
@click.option("--start-month", required=True, help="First month (YYYY-MM)")
@click.option("--end-month", help="Last month (YYYY-MM); open-ended if omitted")
@click.option("--memo", help="Memo used on posted transactions")
@click.pass_context
def create_definition(
    ctx,
    property_ref: str,
    category: str,
    amount: str,
    day_of_month: int,
    start_month: str,
    end_month: str | None,
    memo: str | None,
):
    """Create a recurring definition.

    Examples:
        propledger recurring create --property "Elm St" --category "HOA" --amount 250 --day 1 --start-month 2024-01
    """
    db = ctx.obj["db"]
    prop = resolve_property_or_exit(ctx, PropertyService(db), property_ref)
    cat = resolve_category_or_exit(ctx, CategoryService(db), category)

    try:
        amount_cents = parse_amount_cents(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        definition_id = RecurringService(db).create_definition(
            property_id=prop.id,
            category_id=cat.id,
            amount_cents=amount_cents,
            day_of_month=day_of_month,
            start_month=start_month,
            end_month=end_month,
            memo=memo,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created recurring definition {definition_id} for '{prop.name}'")


@recurring_group.command("list")
@click.option("--property", "property_ref", help="Property name or ID")
@click.option("--active-only", is_flag=True, help="Hide inactive definitions")
@click.pass_context
def list_definitions(ctx, property_ref: str | None, active_only: bool):
    """List recurring definitions."""
    db = ctx.obj["db"]
    category_service = CategoryService(db)
    property_id = None
    if property_ref is not None:
        property_id = resolve_property_or_exit(ctx, PropertyService(db), property_ref).id

    try:
        definitions = RecurringService(db).list_definitions(property_id=property_id, active_only=active_only)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not definitions:
        click.echo("No recurring definitions found.")
        return

    click.echo(f"{'ID':<6} {'Day':<4} {'Window':<18} {'Amount':>12}  {'Category':<28} {'Memo'}")
    click.echo("-" * 90)
    for d in definitions:
        window = f"{d.start_month}..{d.end_month or ''}"
        inactive = " [inactive]" if not d.is_active else ""
        path = category_service.format_category_path(d.category_id)
        click.echo(
            f"{d.id:<6} {d.day_of_month:<4} {window:<18} {format_cents(d.amount_cents):>12}  "
            f"{path:<28} {d.memo or ''}{inactive}"
        )


@recurring_group.command("scheduled")
@click.option("--property", "property_ref", required=True, help="Property name or ID")
@click.option("--month", help="Month (YYYY-MM); defaults to the current month")
@click.option("--include-inactive", is_flag=True, help="Also list inactive definitions")
@click.pass_context
def scheduled(ctx, property_ref: str, month: str | None, include_inactive: bool):
    """Show which recurring items are due in a month and whether they are posted."""
    db = ctx.obj["db"]
    prop = resolve_property_or_exit(ctx, PropertyService(db), property_ref)
    target = _month_or_current(ctx, month)

    try:
        items = RecurringService(db).scheduled_for_month(prop.id, target, include_inactive=include_inactive)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not items:
        click.echo(f"Nothing scheduled for '{prop.name}' in {target}.")
        return

    click.echo(f"\nScheduled for '{prop.name}' in {target}:")
    for item in items:
        state = "posted" if item.already_posted else "due"
        memo = item.definition.memo or ""
        click.echo(
            f"  {item.due_date.isoformat()}  #{item.definition.id:<5} "
            f"{format_cents(item.definition.amount_cents):>12}  {state:<7} {memo}"
        )


@recurring_group.command("post")
@click.option("--property", "property_ref", required=True, help="Property name or ID")
@click.option("--month", help="Month (YYYY-MM); defaults to the current month")
@click.pass_context
def post(ctx, property_ref: str, month: str | None):
    """Post due recurring items for one month (safe to repeat)."""
    db = ctx.obj["db"]
    prop = resolve_property_or_exit(ctx, PropertyService(db), property_ref)
    target = _month_or_current(ctx, month)

    try:
        result = PostingService(db).post_for_month(prop.id, target)
    except DomainError as e:
        handle_domain_error(ctx, e)
    _echo_posting_result(result)


@recurring_group.command("catch-up")
@click.option("--property", "property_ref", required=True, help="Property name or ID")
@click.option("--through", "through_month", help="Last month to post (YYYY-MM); defaults to the current month")
@click.pass_context
def catch_up(ctx, property_ref: str, through_month: str | None):
    """Post every month from the earliest definition start through a month."""
    db = ctx.obj["db"]
    prop = resolve_property_or_exit(ctx, PropertyService(db), property_ref)
    target = _month_or_current(ctx, through_month)

    try:
        result = PostingService(db).post_catch_up(prop.id, target)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for month_result in result.months:
        if month_result.posted_count or month_result.skipped:
            _echo_posting_result(month_result)
    click.echo(f"Posted {result.posted_count} transaction(s) through {target}")


@recurring_group.command("deactivate")
@click.argument("definition_id", type=int)
@click.pass_context
def deactivate(ctx, definition_id: int):
    """Stop posting a recurring definition."""
    try:
        RecurringService(ctx.obj["db"]).set_active(definition_id, False)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated recurring definition {definition_id}")


@recurring_group.command("delete")
@click.argument("definition_id", type=int)
@click.confirmation_option(prompt="Delete this definition and its posting records? Ledger transactions are kept.")
@click.pass_context
def delete(ctx, definition_id: int):
    """Delete a recurring definition; posted ledger transactions are kept."""
    try:
        RecurringService(ctx.obj["db"]).delete_definition(definition_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted recurring definition {definition_id}")


def register_commands(cli):
    """Register recurring commands with main CLI."""
    cli.add_command(recurring_group, name="recurring")
