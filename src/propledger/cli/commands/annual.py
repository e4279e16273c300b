"""Annual lump-sum commands."""

import click

from propledger.cli.error_handling import handle_domain_error
from propledger.cli.resolution import resolve_category_or_exit, resolve_property_or_exit
from propledger.domain.category import CategoryService
from propledger.domain.errors import DomainError
from propledger.domain.property import PropertyService
from propledger.domain.transaction import TransactionService
from propledger.utils.amount_parser import format_cents, parse_amount_cents


@click.group()
def annual_group():
    """Manage annual category amounts."""
    pass


@annual_group.command("set")
@click.option("--property", "property_ref", required=True, help="Property name or ID")
@click.option("--year", type=int, required=True, help="Calendar year")
@click.option("--category", required=True, help="Income or expense category path or ID")
@click.option("--amount", required=True, help="Signed annual amount (e.g., -2400.00)")
@click.option("--owner", help="Ownership reference (part of the key)")
@click.option("--note", help="Note")
@click.pass_context
def set_annual(ctx, property_ref: str, year: int, category: str, amount: str, owner: str | None, note: str | None):
    """Create or replace an annual amount for (property, year, category, owner)."""
    db = ctx.obj["db"]
    prop = resolve_property_or_exit(ctx, PropertyService(db), property_ref)
    cat = resolve_category_or_exit(ctx, CategoryService(db), category)

    try:
        amount_cents = parse_amount_cents(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        row_id = TransactionService(db).set_annual_amount(
            property_id=prop.id,
            year=year,
            category_id=cat.id,
            amount_cents=amount_cents,
            ownership_ref=owner,
            note=note,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Set {year} {cat.name} for '{prop.name}' to {format_cents(amount_cents)} (ID: {row_id})")


@annual_group.command("list")
@click.option("--property", "property_ref", help="Property name or ID")
@click.option("--year", type=int, multiple=True, help="Year (repeatable)")
@click.pass_context
def list_annual(ctx, property_ref: str | None, year: tuple[int, ...]):
    """List annual amounts."""
    db = ctx.obj["db"]
    category_service = CategoryService(db)
    property_id = None
    if property_ref is not None:
        property_id = resolve_property_or_exit(ctx, PropertyService(db), property_ref).id

    try:
        rows = TransactionService(db).list_annual_amounts(property_id=property_id, years=list(year) or None)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not rows:
        click.echo("No annual amounts found.")
        return

    click.echo(f"{'ID':<6} {'Year':<6} {'Property':<10} {'Category':<32} {'Owner':<12} {'Amount':>14}")
    click.echo("-" * 85)
    for row in rows:
        path = category_service.format_category_path(row.category_id)
        click.echo(
            f"{row.id:<6} {row.year:<6} {row.property_id:<10} {path:<32} "
            f"{row.ownership_ref or '-':<12} {format_cents(row.amount_cents):>14}"
        )


def register_commands(cli):
    """Register annual amount commands with main CLI."""
    cli.add_command(annual_group, name="annual")
