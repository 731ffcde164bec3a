"""Lookup of accounts by the name or ID a user typed."""

from ledgerkeep.domain.account import AccountService
from ledgerkeep.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Return the ID of the account matching ``account``.

    Digits are tried as an ID first and fall back to a name match, so an
    account literally named "2024" is still reachable. Hidden accounts
    resolve like any other.

    Raises:
        NotFoundError: If no account matches
    """
    text = str(account).strip()
    if isinstance(account, int) or text.isdigit():
        if account_service.get_account(int(text)) is not None:
            return int(text)
        if isinstance(account, int):
            raise NotFoundError(f"Account ID {account} not found")

    by_name = {acc.name: acc.id for acc in account_service.list_accounts(include_hidden=True)}
    if text in by_name:
        return by_name[text]
    raise NotFoundError(f"Account '{account}' not found")
