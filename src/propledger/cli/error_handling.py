"""CLI error handling helpers."""

import logging

import click

from propledger.domain.errors import DomainError, StorageUnavailableError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    if isinstance(error, StorageUnavailableError):
        logger.error("storage unavailable: %s", error)
        click.echo("Error: storage unavailable. Run 'propledger init-db' to create the schema.", err=True)
        ctx.exit(1)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
