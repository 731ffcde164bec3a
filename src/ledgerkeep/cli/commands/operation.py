"""Operation management commands."""

import asyncio
from datetime import date
from typing import Any, Optional

import click

from ledgerkeep.cli.account_resolution import resolve_account_or_exit, resolve_category_or_exit
from ledgerkeep.cli.date_filters import parse_date_or_exit
from ledgerkeep.cli.error_handling import handle_domain_error
from ledgerkeep.cli.formatting import echo_operation, echo_operation_table
from ledgerkeep.domain.account import AccountService
from ledgerkeep.domain.category import CategoryService
from ledgerkeep.domain.entities import OPERATION_TYPES
from ledgerkeep.domain.errors import DomainError
from ledgerkeep.domain.feed import OperationsFeed
from ledgerkeep.domain.filters import OperationFilter
from ledgerkeep.domain.operation import OperationService
from ledgerkeep.utils.amount_parser import parse_positive_amount


@click.group()
def operation_group():
    """Manage operations."""
    pass


async def _load_window(
    feed: OperationsFeed, weeks: int, from_date: Optional[date], ignore_filters: bool
) -> None:
    if from_date is not None:
        await feed.jump_to_date(from_date)
    else:
        await feed.load_initial(OperationFilter.empty() if ignore_filters else None)
    for _ in range(weeks - 1):
        if not feed.has_more_operations:
            break
        await feed.load_more()


@operation_group.command("list")
@click.option("--weeks", type=click.IntRange(min=1), default=1, show_default=True, help="Number of weekly pages to load")
@click.option("--from", "from_str", help="Show everything from this date up to today")
@click.option("--no-filter", "ignore_filters", is_flag=True, help="Ignore the saved filter for this listing")
@click.pass_context
def list_operations(ctx, weeks: int, from_str: str | None, ignore_filters: bool):
    """List recent operations, newest first.

    The saved filter (see 'filter set') applies unless --no-filter is given.
    Each page covers the week of the next older operation, so quiet weeks
    are skipped.

    Examples:
        ledgerkeep operation list
        ledgerkeep operation list --weeks 4
        ledgerkeep operation list --from 2024-01-01
    """
    db = ctx.obj["db"]
    account_service = AccountService(db, ctx.obj["events"])
    category_service = CategoryService(db)
    feed = OperationsFeed(db, events=ctx.obj["events"])
    from_date = parse_date_or_exit(ctx, from_str, "date")

    asyncio.run(_load_window(feed, weeks, from_date, ignore_filters))

    if feed.filters_active:
        click.echo(f"Filters active: {feed.active_filter_count} (use 'filter show' for details)")

    operations = feed.operations
    if not operations:
        click.echo("No operations found.")
        return

    accounts = {acc.id: acc for acc in account_service.list_accounts()}
    click.echo(f"\n{feed.oldest_loaded_date} .. {feed.newest_loaded_date}: {len(operations)} operation(s)")
    echo_operation_table(operations, accounts, category_service)
    if feed.has_more_operations:
        click.echo("Older operations may exist; use --weeks to load more.")


@operation_group.command("show")
@click.argument("operation_id", type=int)
@click.pass_context
def show_operation(ctx, operation_id: int):
    """Show a single operation."""
    db = ctx.obj["db"]
    operation = OperationService(db).get_operation(operation_id)
    if operation is None:
        click.echo(f"Error: Operation {operation_id} not found", err=True)
        ctx.exit(1)

    accounts = {acc.id: acc for acc in AccountService(db).list_accounts()}
    click.echo(f"Operation {operation.id}")
    echo_operation(operation, accounts, CategoryService(db))


@operation_group.command("update")
@click.argument("operation_id", type=int)
@click.option("--type", "operation_type", type=click.Choice(OPERATION_TYPES, case_sensitive=False), help="Operation type")
@click.option("--amount", help="Operation amount")
@click.option("--account", help="Account name or ID")
@click.option("--to-account", help="Destination account name or ID (transfers only)")
@click.option("--category", help="Category path (e.g., 'Food > Groceries')")
@click.option("--date", "date_str", help="Operation date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--description", help="Operation description (empty string to clear)")
@click.option("--rate", help="Exchange rate (transfers between currencies)")
@click.option("--destination-amount", help="Amount received (transfers between currencies)")
@click.pass_context
def update_operation(
    ctx,
    operation_id: int,
    operation_type: str | None,
    amount: str | None,
    account: str | None,
    to_account: str | None,
    category: str | None,
    date_str: str | None,
    description: str | None,
    rate: str | None,
    destination_amount: str | None,
) -> None:
    """Update an operation.

    Updates only the fields that are provided; balances of every affected
    account are corrected in the same transaction.

    Examples:
        ledgerkeep operation update 7 --amount 45.00
        ledgerkeep operation update 9 --destination-amount 90.00
    """
    db = ctx.obj["db"]
    events = ctx.obj["events"]
    account_service = AccountService(db, events)
    operation_service = OperationService(db, events)

    patch: dict[str, Any] = {}
    if operation_type is not None:
        patch["type"] = operation_type.lower()
    if account is not None:
        patch["account_id"] = resolve_account_or_exit(ctx, account_service, account)
    if to_account is not None:
        patch["to_account_id"] = resolve_account_or_exit(ctx, account_service, to_account)
    if category is not None:
        patch["category_id"] = resolve_category_or_exit(ctx, CategoryService(db), category)
    if date_str is not None:
        patch["date"] = parse_date_or_exit(ctx, date_str, "date")
    if description is not None:
        patch["description"] = description or None

    for field_name, value in (("amount", amount), ("exchange_rate", rate), ("destination_amount", destination_amount)):
        if value is None:
            continue
        try:
            patch[field_name] = parse_positive_amount(value)
        except ValueError as e:
            click.echo(f"Error: Invalid {field_name.replace('_', ' ')}: {e}", err=True)
            ctx.exit(1)

    if not patch:
        click.echo("Nothing to update.")
        return

    try:
        operation = operation_service.update_operation(operation_id, patch)
    except DomainError as e:
        handle_domain_error(ctx, e)

    accounts = {acc.id: acc for acc in account_service.list_accounts()}
    click.echo(f"Updated operation {operation_id}")
    echo_operation(operation, accounts, CategoryService(db))


@operation_group.command("delete")
@click.argument("operation_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_operation(ctx, operation_id: int, yes: bool) -> None:
    """Delete an operation and reverse its effect on balances.

    Examples:
        ledgerkeep operation delete 7
    """
    db = ctx.obj["db"]
    operation_service = OperationService(db, ctx.obj["events"])

    operation = operation_service.get_operation(operation_id)
    if operation is None:
        click.echo(f"Error: Operation {operation_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Delete {operation.type} {operation.amount} on {operation.date}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        operation_service.delete_operation(operation_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted operation {operation_id}")


def register_commands(cli):
    """Register operation commands with main CLI."""
    cli.add_command(operation_group, name="operation")
