"""Main CLI entry point."""

import logging

import click

from propledger.database.factories import create_database
from propledger.domain.errors import DomainError
from propledger.domain.signs import SIGN_POLICY_ENV, SignPolicy, SignPolicyMode
from propledger.cli.error_handling import handle_domain_error

# Import and register all commands at module level
from propledger.cli.commands import (
    annual,
    category,
    property_cmd,
    recurring,
    report,
    transaction,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides PROPLEDGER_DB_PATH environment variable)",
    envvar="PROPLEDGER_DB_PATH",
)
@click.option(
    "--database-url",
    help="SQLAlchemy database URL; takes precedence over --db-path",
    envvar="PROPLEDGER_DATABASE_URL",
)
@click.option(
    "--sign-policy",
    type=click.Choice([m.value for m in SignPolicyMode], case_sensitive=False),
    default=SignPolicyMode.CORRECT.value,
    show_default=True,
    envvar=SIGN_POLICY_ENV,
    help="How amounts with the wrong sign for their category kind are handled",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="PROPLEDGER_LOG_LEVEL",
    help="Logging level",
)
@click.pass_context
def cli(ctx, db_path: str | None, database_url: str | None, sign_policy: str, log_level: str):
    """Propledger - rental property ledger.

    Prorates annual amounts, rolls totals up the category tree and posts
    recurring obligations exactly once per month.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(database_url=database_url, database_path=db_path)
        db.connect()
        ctx.obj["db"] = db
        ctx.obj["sign_policy"] = SignPolicy.from_env(sign_policy)
        ctx.call_on_close(db.disconnect)


@cli.command("init-db")
@click.pass_context
def init_db(ctx):
    """Create the database schema (safe to run more than once)."""
    db = ctx.obj["db"]
    try:
        db.initialize_schema()
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo("Database schema is ready.")


# Register all commands
property_cmd.register_commands(cli)
category.register_commands(cli)
transaction.register_commands(cli)
annual.register_commands(cli)
recurring.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
