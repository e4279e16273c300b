"""CLI helpers for resolving properties, categories and months from user input."""

from __future__ import annotations

import click

from propledger.cli.error_handling import handle_domain_error
from propledger.domain.entities import Category, Property
from propledger.domain.category import CategoryService
from propledger.domain.property import PropertyService
from propledger.utils.periods import PeriodError, YearMonth


def resolve_property(property_service: PropertyService, value: str | int) -> Property:
    """Resolve a property name or ID.

    Raises:
        ValueError: If no property matches
    """
    if isinstance(value, int) or str(value).isdigit():
        return property_service.get_property(int(value))

    for prop in property_service.list_properties():
        if prop.name == value:
            return prop
    raise ValueError(f"Property '{value}' not found")


def resolve_category(category_service: CategoryService, value: str | int) -> Category:
    """Resolve a category path or ID.

    Raises:
        ValueError: If no category matches
    """
    if isinstance(value, int) or str(value).isdigit():
        category = category_service.get_category(int(value))
        if category is None:
            raise ValueError(f"Category ID {value} not found")
        return category
    return category_service.require_category_by_path(str(value))


def resolve_property_or_exit(ctx: click.Context, property_service: PropertyService, value: str | int) -> Property:
    """Resolve property name or ID, or exit with a CLI error."""
    try:
        return resolve_property(property_service, value)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def resolve_category_or_exit(ctx: click.Context, category_service: CategoryService, value: str | int) -> Category:
    """Resolve category path or ID, or exit with a CLI error."""
    try:
        return resolve_category(category_service, value)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def parse_month_or_exit(ctx: click.Context, value: str | None, option: str) -> YearMonth | None:
    """Parse a ``YYYY-MM`` option value, or exit with a CLI error."""
    if value is None:
        return None
    try:
        return YearMonth.parse(value)
    except PeriodError as exc:
        click.echo(f"Error: Invalid {option}: {exc}", err=True)
        ctx.exit(1)
