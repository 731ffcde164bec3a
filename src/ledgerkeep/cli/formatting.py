"""Shared rendering of operations for CLI output."""

import click

from ledgerkeep.domain.category import CategoryService
from ledgerkeep.domain.currency import display_amount
from ledgerkeep.domain.entities import Account, INCOME, Operation

OPERATION_TABLE_WIDTH = 104


def signed_amount(operation: Operation, accounts: dict[int, Account]) -> str:
    """Amount as seen from the source account, with a sign for the direction."""
    account = accounts.get(operation.account_id)
    currency = account.currency if account is not None else ""
    sign = "+" if operation.type == INCOME else "-"
    return f"{sign}{display_amount(operation.amount, currency)}"


def describe_target(
    operation: Operation, accounts: dict[int, Account], category_service: CategoryService
) -> str:
    """Category path for expenses and income, destination for transfers."""
    if operation.is_transfer:
        destination = accounts.get(operation.to_account_id)
        name = destination.name if destination is not None else f"#{operation.to_account_id}"
        if operation.is_multi_currency and destination is not None:
            received = display_amount(operation.destination_amount, destination.currency)
            return f"-> {name} ({received} @ {operation.exchange_rate})"
        return f"-> {name}"
    if operation.category_id is None:
        return ""
    return category_service.format_category_path(operation.category_id)


def echo_operation_table(
    operations: list[Operation], accounts: dict[int, Account], category_service: CategoryService
) -> None:
    click.echo("-" * OPERATION_TABLE_WIDTH)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Type':<9} {'Amount':>14}  "
        f"{'Account':<16} {'Category / To':<28} {'Description':<14}"
    )
    click.echo("-" * OPERATION_TABLE_WIDTH)
    for op in operations:
        account = accounts.get(op.account_id)
        account_name = account.name if account is not None else "Unknown"
        click.echo(
            f"{op.id:<6} {str(op.date):<12} {op.type:<9} {signed_amount(op, accounts):>14}  "
            f"{account_name[:16]:<16} {describe_target(op, accounts, category_service)[:28]:<28} "
            f"{(op.description or '')[:14]:<14}"
        )


def echo_operation(operation: Operation, accounts: dict[int, Account], category_service: CategoryService) -> None:
    """Print the details of a single operation."""
    account = accounts.get(operation.account_id)
    click.echo(f"  Type: {operation.type}")
    click.echo(f"  Date: {operation.date}")
    click.echo(f"  Amount: {display_amount(operation.amount, account.currency if account else '')}")
    click.echo(f"  Account: {account.name if account else 'Unknown'} (ID: {operation.account_id})")
    if operation.is_transfer:
        click.echo(f"  To: {describe_target(operation, accounts, category_service)[3:]}")
    else:
        click.echo(f"  Category: {describe_target(operation, accounts, category_service) or 'None'}")
    if operation.description:
        click.echo(f"  Description: {operation.description}")
