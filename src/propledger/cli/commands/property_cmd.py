"""Property management commands."""

import click

from propledger.cli.error_handling import handle_domain_error
from propledger.domain.entities import PropertyStatus
from propledger.domain.errors import DomainError
from propledger.domain.property import PropertyService
from propledger.utils.amount_parser import format_cents, parse_amount_cents

STATUS_CHOICES = [s.value for s in PropertyStatus]


@click.group()
def property_group():
    """Manage properties."""
    pass


@property_group.command("create")
@click.argument("name")
@click.option("--status", type=click.Choice(STATUS_CHOICES, case_sensitive=False), default="active", help="Property status (default: active)")
@click.option("--purchase-price", help="Purchase price (e.g., 250000 or 250,000.00)")
@click.pass_context
def create_property(ctx, name: str, status: str, purchase_price: str | None):
    """Create a new property."""
    service = PropertyService(ctx.obj["db"])

    price_cents = None
    if purchase_price is not None:
        try:
            price_cents = parse_amount_cents(purchase_price)
        except ValueError as e:
            click.echo(f"Error: Invalid purchase price: {e}", err=True)
            ctx.exit(1)

    try:
        property_id = service.create_property(
            name=name, status=PropertyStatus(status.lower()), purchase_price_cents=price_cents
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created property '{name}' (ID: {property_id})")


@property_group.command("list")
@click.option("--status", type=click.Choice(STATUS_CHOICES, case_sensitive=False), help="Only properties with this status")
@click.pass_context
def list_properties(ctx, status: str | None):
    """List properties."""
    service = PropertyService(ctx.obj["db"])
    try:
        properties = service.list_properties(status=PropertyStatus(status.lower()) if status else None)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not properties:
        click.echo("No properties found.")
        return

    click.echo(f"{'ID':<6} {'Name':<40} {'Status':<10} {'Purchase price':>16}")
    click.echo("-" * 75)
    for prop in properties:
        price = format_cents(prop.purchase_price_cents) if prop.purchase_price_cents is not None else "-"
        click.echo(f"{prop.id:<6} {prop.name:<40} {prop.status.value:<10} {price:>16}")


def register_commands(cli):
    """Register property commands with main CLI."""
    cli.add_command(property_group, name="property")
