"""Initialize default categories."""

import click

from ledgerkeep.cli.error_handling import handle_domain_error
from ledgerkeep.domain.category import CategoryService
from ledgerkeep.domain.entities import CATEGORY_TYPES, EXPENSE, INCOME
from ledgerkeep.domain.errors import DomainError

# (name, type, parent path) with parents listed before their children
DEFAULT_CATEGORIES = [
    ("Salary", INCOME, None),
    ("Business", INCOME, None),
    ("Gifts", INCOME, None),
    ("Other Income", INCOME, None),
    ("Bonus", INCOME, "Salary"),
    ("Food", EXPENSE, None),
    ("Transport", EXPENSE, None),
    ("Housing", EXPENSE, None),
    ("Health", EXPENSE, None),
    ("Entertainment", EXPENSE, None),
    ("Shopping", EXPENSE, None),
    ("Other", EXPENSE, None),
    ("Groceries", EXPENSE, "Food"),
    ("Restaurants", EXPENSE, "Food"),
    ("Coffee", EXPENSE, "Food > Restaurants"),
    ("Public Transit", EXPENSE, "Transport"),
    ("Fuel", EXPENSE, "Transport"),
    ("Taxi", EXPENSE, "Transport"),
    ("Rent", EXPENSE, "Housing"),
    ("Utilities", EXPENSE, "Housing"),
    ("Internet", EXPENSE, "Housing > Utilities"),
    ("Pharmacy", EXPENSE, "Health"),
    ("Clothing", EXPENSE, "Shopping"),
    ("Electronics", EXPENSE, "Shopping"),
]


@click.command("init-categories")
@click.pass_context
def init_categories(ctx):
    """Initialize database with the default category tree.

    Also creates the system categories used for balance adjustments.
    Categories that already exist are left alone.
    """
    service = CategoryService(ctx.obj["db"])

    click.echo("Creating default category tree...")
    created = 0
    skipped = 0
    for name, category_type, parent_path in DEFAULT_CATEGORIES:
        path = f"{parent_path} > {name}" if parent_path else name
        if service.get_category_by_path(path) is not None:
            skipped += 1
            continue
        try:
            service.create_category(name=name, category_type=category_type, parent_path=parent_path)
        except DomainError as e:
            handle_domain_error(ctx, e)
        created += 1

    for category_type in CATEGORY_TYPES:
        service.get_or_create_shadow_category(category_type)

    if skipped:
        click.echo(f"Created {created} categories ({skipped} already existed).")
    else:
        click.echo(f"Successfully created {created} categories.")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
