"""Category commands."""

import click

from ledgerkeep.cli.error_handling import handle_domain_error
from ledgerkeep.domain.category import CategoryService
from ledgerkeep.domain.entities import CATEGORY_TYPES, EXPENSE
from ledgerkeep.domain.errors import DomainError


def echo_category_tree(nodes: list[dict], depth: int = 0) -> None:
    """Print tree nodes, children indented two spaces per level."""
    for node in nodes:
        click.echo(f"{'  ' * depth}{node['name']} [{node['category_type']}] (ID: {node['id']})")
        echo_category_tree(node["children"], depth + 1)


@click.group()
def category_group():
    """Browse and seed categories."""
    pass


@category_group.command("list")
@click.option("--shadow", is_flag=True, help="Include system balance-adjustment categories")
@click.pass_context
def list_categories(ctx, shadow: bool):
    """Show the category tree."""
    tree = CategoryService(ctx.obj["db"]).get_category_tree(include_shadow=shadow)
    if not tree:
        click.echo("No categories found. Run 'init-categories' to create default categories.")
        return

    click.echo("\nCategories:")
    echo_category_tree(tree)


@category_group.command("create")
@click.argument("name")
@click.option("--parent", help="Parent category path (e.g., 'Food > Restaurants')")
@click.option(
    "--type",
    "category_type",
    type=click.Choice(CATEGORY_TYPES, case_sensitive=False),
    default=EXPENSE,
    show_default=True,
    help="Category type; must match the parent's",
)
@click.option("--icon", help="Icon name")
@click.pass_context
def create_category(ctx, name: str, parent: str | None, category_type: str, icon: str | None):
    """Add a category to the tree.

    Examples:
        ledgerkeep category create Bakery --parent "Food > Groceries"
        ledgerkeep category create Dividends --type income
    """
    service = CategoryService(ctx.obj["db"])

    try:
        category_id = service.create_category(
            name=name, category_type=category_type.lower(), parent_path=parent, icon=icon
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    location = f" under '{parent}'" if parent else ""
    click.echo(f"Created category '{name}'{location} (ID: {category_id})")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
