"""Add operation command."""

from datetime import date
from decimal import Decimal

import click

from ledgerkeep.cli.account_resolution import resolve_account_or_exit, resolve_category_or_exit
from ledgerkeep.cli.date_filters import parse_date_or_exit
from ledgerkeep.cli.error_handling import handle_domain_error
from ledgerkeep.cli.formatting import echo_operation
from ledgerkeep.domain.account import AccountService
from ledgerkeep.domain.category import CategoryService
from ledgerkeep.domain.entities import EXPENSE, OPERATION_TYPES, OperationDraft
from ledgerkeep.domain.errors import DomainError
from ledgerkeep.domain.operation import OperationService
from ledgerkeep.utils.amount_parser import parse_positive_amount


def _parse_optional_amount(ctx, value: str | None, label: str) -> Decimal | None:
    if value is None:
        return None
    try:
        return parse_positive_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@click.command("add")
@click.option(
    "--type",
    "operation_type",
    type=click.Choice(OPERATION_TYPES, case_sensitive=False),
    default=EXPENSE,
    show_default=True,
    help="Operation type",
)
@click.option("--amount", required=True, help="Operation amount (e.g., 123.45)")
@click.option("--account", help="Account name or ID (defaults to the last used account)")
@click.option("--to-account", help="Destination account name or ID (transfers only)")
@click.option("--category", help="Category path (e.g., 'Food > Groceries')")
@click.option("--date", "date_str", help="Operation date (YYYY-MM-DD or relative like 'yesterday'); defaults to today")
@click.option("--description", help="Operation description")
@click.option("--rate", help="Exchange rate for a transfer between currencies")
@click.option("--destination-amount", help="Amount received by the destination account")
@click.pass_context
def add_operation(
    ctx,
    operation_type: str,
    amount: str,
    account: str | None,
    to_account: str | None,
    category: str | None,
    date_str: str | None,
    description: str | None,
    rate: str | None,
    destination_amount: str | None,
):
    """Record an expense, income or transfer.

    For transfers between accounts in different currencies, give either
    --rate or --destination-amount; with neither, the bundled offline rate
    is used.

    Examples:
        ledgerkeep add --amount 12.50 --category "Food > Groceries"
        ledgerkeep add --type income --amount 3000 --account Checking --category Salary
        ledgerkeep add --type transfer --amount 100 --account Checking --to-account "Euro Savings" --rate 0.92
    """
    db = ctx.obj["db"]
    events = ctx.obj["events"]
    account_service = AccountService(db, events)
    category_service = CategoryService(db)
    operation_service = OperationService(db, events)

    if account is not None:
        account_id = resolve_account_or_exit(ctx, account_service, account)
    else:
        account_id = account_service.default_account_id()
        if account_id is None:
            click.echo("Error: No accounts found. Create one with 'account create'.", err=True)
            ctx.exit(1)

    to_account_id = resolve_account_or_exit(ctx, account_service, to_account) if to_account else None
    category_id = resolve_category_or_exit(ctx, category_service, category)
    operation_date = parse_date_or_exit(ctx, date_str, "date") or date.today()

    draft = OperationDraft(
        type=operation_type.lower(),
        amount=_parse_optional_amount(ctx, amount, "amount"),
        account_id=account_id,
        date=operation_date,
        category_id=category_id,
        description=description,
        to_account_id=to_account_id,
        exchange_rate=_parse_optional_amount(ctx, rate, "rate"),
        destination_amount=_parse_optional_amount(ctx, destination_amount, "destination amount"),
    )

    try:
        operation = operation_service.add_operation(draft)
    except DomainError as e:
        handle_domain_error(ctx, e)

    accounts = {acc.id: acc for acc in account_service.list_accounts()}
    click.echo(f"Created operation {operation.id}")
    echo_operation(operation, accounts, category_service)


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_operation)
