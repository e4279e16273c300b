"""Ledger transaction commands."""

import click

from propledger.cli.date_filters import resolve_cli_date_range
from propledger.cli.error_handling import handle_domain_error
from propledger.cli.resolution import (
    parse_month_or_exit,
    resolve_category_or_exit,
    resolve_property_or_exit,
)
from propledger.domain.category import CategoryService
from propledger.domain.errors import DomainError
from propledger.domain.property import PropertyService
from propledger.domain.transaction import TransactionService
from propledger.utils.amount_parser import format_cents, parse_amount_cents
from propledger.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """Manage ledger transactions."""
    pass


@transaction_group.command("add")
@click.option("--property", "property_ref", required=True, help="Property name or ID")
@click.option("--category", required=True, help="Category path (e.g., 'Expenses > Utilities') or ID")
@click.option("--date", "date_str", required=True, help="Transaction date (YYYY-MM-DD or relative like 'today')")
@click.option("--amount", required=True, help="Signed amount (e.g., 1500.00 or -123.45)")
@click.option("--memo", help="Memo")
@click.option("--statement-month", help="Accrual month (YYYY-MM) the transaction belongs to")
@click.pass_context
def add_transaction(
    ctx,
    property_ref: str,
    category: str,
    date_str: str,
    amount: str,
    memo: str | None,
    statement_month: str | None,
):
    """Add a ledger transaction.

    Examples:
        propledger txn add --property "Elm St" --category "Rent" --date 2024-01-05 --amount 1500
        propledger txn add --property 1 --category "Expenses > Utilities" --date today --amount -84.12
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    prop = resolve_property_or_exit(ctx, PropertyService(db), property_ref)
    cat = resolve_category_or_exit(ctx, CategoryService(db), category)

    try:
        txn_date = parse_date(date_str)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        amount_cents = parse_amount_cents(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    month = parse_month_or_exit(ctx, statement_month, "statement month")

    try:
        transaction_id = service.create_transaction(
            property_id=prop.id,
            category_id=cat.id,
            date=txn_date,
            amount_cents=amount_cents,
            memo=memo,
            statement_month=month,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created transaction {transaction_id}: {txn_date} {format_cents(amount_cents)} ({cat.name})")


@transaction_group.command("list")
@click.option("--property", "property_ref", help="Property name or ID")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative)")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative)")
@click.option("--include-deleted", is_flag=True, help="Also show soft-deleted transactions")
@click.pass_context
def list_transactions(ctx, property_ref: str | None, start_date: str | None, end_date: str | None, include_deleted: bool):
    """List ledger transactions, newest first."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    category_service = CategoryService(db)

    property_id = None
    if property_ref is not None:
        property_id = resolve_property_or_exit(ctx, PropertyService(db), property_ref).id

    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period_flags={})

    try:
        transactions = service.list_transactions(
            property_id=property_id, start_date=start, end_date=end, include_deleted=include_deleted
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"{'ID':<6} {'Date':<12} {'Amount':>14}  {'Category':<32} {'Memo'}")
    click.echo("-" * 90)
    for txn in transactions:
        path = category_service.format_category_path(txn.category_id)
        deleted = " [deleted]" if txn.is_deleted else ""
        click.echo(
            f"{txn.id:<6} {txn.date.isoformat():<12} {format_cents(txn.amount_cents):>14}  "
            f"{path:<32} {txn.memo or ''}{deleted}"
        )


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.pass_context
def delete_transaction(ctx, transaction_id: int):
    """Soft-delete a transaction."""
    service = TransactionService(ctx.obj["db"])
    try:
        service.delete_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("restore")
@click.argument("transaction_id", type=int)
@click.pass_context
def restore_transaction(ctx, transaction_id: int):
    """Restore a soft-deleted transaction."""
    service = TransactionService(ctx.obj["db"])
    try:
        service.restore_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Restored transaction {transaction_id}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="txn")
