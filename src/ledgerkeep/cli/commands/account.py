"""Account management commands."""

import click

from ledgerkeep.cli.account_resolution import resolve_account_or_exit
from ledgerkeep.cli.date_filters import parse_date_or_exit
from ledgerkeep.cli.error_handling import handle_domain_error
from ledgerkeep.domain.account import AccountService
from ledgerkeep.domain.currency import display_amount
from ledgerkeep.domain.errors import DomainError
from ledgerkeep.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--currency", default="USD", show_default=True, help="Currency code")
@click.option("--balance", default="0", show_default=True, help="Opening balance")
@click.option("--hidden", is_flag=True, help="Hide the account from default listings")
@click.pass_context
def create_account(ctx, name: str, currency: str, balance: str, hidden: bool):
    """Create a new account.

    Examples:
        ledgerkeep account create "Wallet"
        ledgerkeep account create "Euro Savings" --currency EUR --balance 1500
    """
    service = AccountService(ctx.obj["db"], ctx.obj["events"])

    try:
        opening = parse_amount(balance)
        account_id = service.create_account(name=name, currency=currency, balance=opening, hidden=hidden)
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    account = service.get_account(account_id)
    click.echo(f"Created account '{account.name}' (ID: {account_id})")
    click.echo(f"  Balance: {display_amount(account.balance, account.currency)}")


@account_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include hidden accounts")
@click.pass_context
def list_accounts(ctx, show_all: bool):
    """List accounts with their balances."""
    service = AccountService(ctx.obj["db"], ctx.obj["events"])

    accounts = service.list_accounts(include_hidden=show_all)
    if not accounts:
        click.echo("No accounts found.")
        return

    default_id = service.default_account_id()
    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        marker = "*" if acc.id == default_id else " "
        hidden = " (hidden)" if acc.hidden else ""
        balance = display_amount(acc.balance, acc.currency)
        click.echo(f"{marker}ID: {acc.id:3d} | {acc.name:20s} | {acc.currency:4s} | {balance:>16s}{hidden}")


@account_group.command("hide")
@click.argument("account", metavar="ACCOUNT")
@click.option("--unhide", is_flag=True, help="Show the account again")
@click.pass_context
def hide_account(ctx, account: str, unhide: bool):
    """Hide an account from default listings (or show it with --unhide)."""
    service = AccountService(ctx.obj["db"], ctx.obj["events"])
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.set_hidden(account_id, not unhide)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Account {account_id} is now {'visible' if unhide else 'hidden'}")


@account_group.command("reorder")
@click.argument("accounts", nargs=-1, required=True, metavar="ACCOUNT...")
@click.pass_context
def reorder_accounts(ctx, accounts: tuple[str, ...]):
    """Set the display order of accounts.

    Examples:
        ledgerkeep account reorder "Wallet" "Checking" 3
    """
    service = AccountService(ctx.obj["db"], ctx.obj["events"])
    account_ids = [resolve_account_or_exit(ctx, service, acc) for acc in accounts]

    try:
        service.reorder_accounts(account_ids)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reordered {len(account_ids)} account(s)")


@account_group.command("adjust")
@click.argument("account", metavar="ACCOUNT")
@click.argument("balance", metavar="BALANCE")
@click.option("--date", "date_str", help="Adjustment date (defaults to today)")
@click.option("--description", help="Description for the adjustment operation")
@click.pass_context
def adjust_balance(ctx, account: str, balance: str, date_str: str | None, description: str | None):
    """Set an account balance by recording the difference as an operation.

    Examples:
        ledgerkeep account adjust "Wallet" 250.00
    """
    service = AccountService(ctx.obj["db"], ctx.obj["events"])
    account_id = resolve_account_or_exit(ctx, service, account)
    operation_date = parse_date_or_exit(ctx, date_str, "date")

    try:
        target = parse_amount(balance)
        operation = service.adjust_balance(account_id, target, operation_date, description)
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    updated = service.get_account(account_id)
    if operation is None:
        click.echo(f"Balance already {display_amount(updated.balance, updated.currency)}; nothing to adjust")
        return
    click.echo(f"Recorded {operation.type} {operation.amount} (operation {operation.id})")
    click.echo(f"  Balance: {display_amount(updated.balance, updated.currency)}")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--reassign-to", help="Move the account's operations to this account first")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, reassign_to: str | None, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID.

    An account with operations can only be deleted when --reassign-to names
    another account (in the same currency) that takes them over.

    Examples:
        ledgerkeep account delete "Old Wallet"
        ledgerkeep account delete 3 --reassign-to "Wallet"
    """
    service = AccountService(ctx.obj["db"], ctx.obj["events"])
    account_id = resolve_account_or_exit(ctx, service, account)
    target_id = resolve_account_or_exit(ctx, service, reassign_to) if reassign_to is not None else None
    account_obj = service.get_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        moved = service.delete_account(account_id, reassign_to=target_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if moved:
        click.echo(f"Moved {moved} operation(s) to account {target_id}")
    click.echo(f"Deleted account '{account_obj.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
