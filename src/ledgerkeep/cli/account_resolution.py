"""Name and path lookups shared by the commands; failures end the command."""

from __future__ import annotations

from typing import Optional

import click

from ledgerkeep.cli.error_handling import handle_domain_error
from ledgerkeep.domain.account import AccountService
from ledgerkeep.domain.category import CategoryService
from ledgerkeep.domain.errors import NotFoundError, category_path_not_found
from ledgerkeep.utils.account_resolver import resolve_account


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve an account name or ID, ending the command if none matches."""
    try:
        return resolve_account(account_service, account)
    except NotFoundError as exc:
        handle_domain_error(ctx, exc)


def resolve_category_or_exit(
    ctx: click.Context, category_service: CategoryService, path: Optional[str]
) -> Optional[int]:
    """Resolve a category path to its ID, or exit if it does not exist."""
    if path is None:
        return None
    category = category_service.get_category_by_path(path)
    if category is None:
        handle_domain_error(ctx, NotFoundError(category_path_not_found(path)))
    return category.id
