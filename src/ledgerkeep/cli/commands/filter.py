"""Saved operation filter commands."""

import click

from ledgerkeep.cli.account_resolution import resolve_account_or_exit, resolve_category_or_exit
from ledgerkeep.cli.date_filters import period_option, resolve_cli_date_range
from ledgerkeep.cli.error_handling import handle_domain_error
from ledgerkeep.domain.account import AccountService
from ledgerkeep.domain.category import CategoryService
from ledgerkeep.domain.entities import OPERATION_TYPES
from ledgerkeep.domain.errors import DomainError
from ledgerkeep.domain.filters import AmountRange, DateRange, OperationFilter
from ledgerkeep.domain.preferences import FilterPreferences
from ledgerkeep.utils.amount_parser import parse_amount


@click.group()
def filter_group():
    """Manage the saved operation filter used by 'operation list'."""
    pass


@filter_group.command("show")
@click.pass_context
def show_filter(ctx):
    """Show the saved filter."""
    db = ctx.obj["db"]
    active = FilterPreferences(db).load()
    if not active.is_active:
        click.echo("No filter set.")
        return

    accounts = {acc.id: acc.name for acc in AccountService(db).list_accounts()}
    category_service = CategoryService(db)

    click.echo(f"Active filter groups: {active.active_filter_count}")
    if active.types:
        click.echo(f"  Types: {', '.join(sorted(active.types))}")
    if active.account_ids:
        names = [accounts.get(acc_id, f"#{acc_id}") for acc_id in sorted(active.account_ids)]
        click.echo(f"  Accounts: {', '.join(names)}")
    if active.category_ids:
        paths = [category_service.format_category_path(cat_id) or f"#{cat_id}" for cat_id in sorted(active.category_ids)]
        click.echo(f"  Categories: {', '.join(paths)}")
    if active.has_search_text:
        click.echo(f"  Search: {active.search_text}")
    if active.date_range.is_set:
        click.echo(f"  Dates: {active.date_range.start or '...'} to {active.date_range.end or '...'}")
    if active.amount_range.is_set:
        click.echo(f"  Amounts: {active.amount_range.min or '...'} to {active.amount_range.max or '...'}")


@filter_group.command("set")
@click.option("--type", "types", multiple=True, type=click.Choice(OPERATION_TYPES, case_sensitive=False), help="Operation type (repeatable)")
@click.option("--account", "accounts", multiple=True, help="Account name or ID (repeatable)")
@click.option("--category", "categories", multiple=True, help="Category path, includes subcategories (repeatable)")
@click.option("--search", help="Text to find in descriptions or category names")
@click.option("--start-date", help="Earliest date (YYYY-MM-DD or relative)")
@click.option("--end-date", help="Latest date (YYYY-MM-DD or relative)")
@period_option
@click.option("--min-amount", help="Smallest amount")
@click.option("--max-amount", help="Largest amount")
@click.pass_context
def set_filter(
    ctx,
    types: tuple[str, ...],
    accounts: tuple[str, ...],
    categories: tuple[str, ...],
    search: str | None,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    min_amount: str | None,
    max_amount: str | None,
):
    """Replace the saved filter.

    Examples:
        ledgerkeep filter set --type expense --category Food
        ledgerkeep filter set --search coffee --period this-month
        ledgerkeep filter set --account Wallet --min-amount 100
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    category_service = CategoryService(db)

    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    try:
        low = parse_amount(min_amount) if min_amount is not None else None
        high = parse_amount(max_amount) if max_amount is not None else None
    except ValueError as e:
        click.echo(f"Error: Invalid amount: {e}", err=True)
        ctx.exit(1)

    try:
        new_filter = OperationFilter(
            types={t.lower() for t in types},
            account_ids={resolve_account_or_exit(ctx, account_service, acc) for acc in accounts},
            category_ids={resolve_category_or_exit(ctx, category_service, path) for path in categories},
            search_text=search or "",
            date_range=DateRange(start=start, end=end),
            amount_range=AmountRange(min=low, max=high),
        )
        FilterPreferences(db).save(new_filter)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Saved filter with {new_filter.active_filter_count} active group(s)")


@filter_group.command("clear")
@click.pass_context
def clear_filter(ctx):
    """Remove the saved filter."""
    FilterPreferences(ctx.obj["db"]).save(OperationFilter.empty())
    click.echo("Filter cleared.")


def register_commands(cli):
    """Register filter commands with main CLI."""
    cli.add_command(filter_group, name="filter")
