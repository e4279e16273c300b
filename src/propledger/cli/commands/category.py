"""Category management commands."""

import click

from propledger.cli.error_handling import handle_domain_error
from propledger.cli.resolution import resolve_category_or_exit
from propledger.domain.category import CategoryService
from propledger.domain.category_tree import CategoryTreeIndex
from propledger.domain.entities import CategoryKind
from propledger.domain.errors import DomainError

KIND_CHOICES = [k.value for k in CategoryKind]


def print_category_tree(tree: CategoryTreeIndex, category_ids: list[int], indent: int = 0) -> None:
    """Recursively print category tree."""
    for category_id in category_ids:
        cat = tree.get(category_id)
        prefix = "  " * indent
        inactive = "" if cat.active else " [inactive]"
        click.echo(f"{prefix}{cat.name} ({cat.kind.value}, ID: {cat.id}){inactive}")
        print_category_tree(tree, tree.children(category_id), indent + 1)


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.option("--kind", type=click.Choice(KIND_CHOICES, case_sensitive=False), help="Only categories of this kind")
@click.pass_context
def list_categories(ctx, kind: str | None):
    """List all categories in tree format."""
    service = CategoryService(ctx.obj["db"])
    try:
        tree = service.get_tree(kinds=[CategoryKind(kind.lower())] if kind else None)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not len(tree):
        click.echo("No categories found. Use 'category create' to add one.")
        return

    click.echo("\nCategories:")
    print_category_tree(tree, tree.root_ids)


@category_group.command("create")
@click.argument("name")
@click.option("--parent", help="Parent category path (e.g., 'Expenses')")
@click.option("--kind", type=click.Choice(KIND_CHOICES, case_sensitive=False), default="expense", help="Category kind (default: expense)")
@click.pass_context
def create_category(ctx, name: str, parent: str | None, kind: str):
    """Create a new category."""
    service = CategoryService(ctx.obj["db"])
    try:
        category_id = service.create_category(name=name, kind=CategoryKind(kind.lower()), parent_path=parent)
    except DomainError as e:
        handle_domain_error(ctx, e)
    parent_str = f" under '{parent}'" if parent else ""
    click.echo(f"Created category '{name}'{parent_str} (ID: {category_id})")


def _set_active(ctx, category: str, active: bool) -> None:
    service = CategoryService(ctx.obj["db"])
    cat = resolve_category_or_exit(ctx, service, category)
    try:
        service.set_active(cat.id, active)
    except DomainError as e:
        handle_domain_error(ctx, e)
    state = "Activated" if active else "Deactivated"
    click.echo(f"{state} category '{service.format_category_path(cat.id)}'")


@category_group.command("deactivate")
@click.argument("category")
@click.pass_context
def deactivate_category(ctx, category: str):
    """Deactivate a category (by path or ID); its history still counts in reports."""
    _set_active(ctx, category, False)


@category_group.command("activate")
@click.argument("category")
@click.pass_context
def activate_category(ctx, category: str):
    """Re-activate a category (by path or ID)."""
    _set_active(ctx, category, True)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
