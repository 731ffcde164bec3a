"""Account domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerkeep.database.base import Database
from ledgerkeep.domain.category import CategoryService
from ledgerkeep.domain.currency import round_for_currency, to_decimal
from ledgerkeep.domain.entities import (
    Account as AccountEntity,
    EXPENSE,
    INCOME,
    Operation as OperationEntity,
    OperationDraft,
)
from ledgerkeep.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    account_delete_blocked,
    account_not_found,
    duplicate_account_name,
)
from ledgerkeep.domain.events import RELOAD_ALL, LedgerEvents
from ledgerkeep.domain.operation import OperationService
from ledgerkeep.domain.preferences import get_last_accessed_account, set_last_accessed_account

logger = logging.getLogger(__name__)

ADJUSTMENT_DESCRIPTION = "Balance adjustment"


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database, events: Optional[LedgerEvents] = None):
        """Initialize account service.

        Args:
            db: Database instance
            events: Optional event hub notified when balances are adjusted
        """
        self.db = db
        self.events = events

    def create_account(
        self,
        name: str,
        currency: str = "USD",
        balance: Decimal | str = Decimal("0"),
        hidden: bool = False,
    ) -> int:
        """Create a new account.

        Args:
            name: Account name
            currency: Currency code (e.g., "USD")
            balance: Opening balance
            hidden: Whether the account is hidden from default listings

        Returns:
            Account ID

        Raises:
            ValidationError: If name, currency or balance is invalid
            ConflictError: If account name already exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name is required")
        if not currency or not currency.strip():
            raise ValidationError("Currency is required")
        opening = to_decimal(balance)
        if opening is None:
            raise ValidationError(f"Invalid balance: '{balance}'")

        for acc in self.db.list_accounts():
            if acc.name == name:
                raise ConflictError(duplicate_account_name(name))

        currency = currency.strip().upper()
        account_id = self.db.create_account(
            name=name,
            currency=currency,
            balance=round_for_currency(opening, currency),
            hidden=hidden,
        )
        logger.info("Created account %s '%s' (%s)", account_id, name, currency)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def list_accounts(self, include_hidden: bool = True) -> list[AccountEntity]:
        """List accounts in display order.

        Args:
            include_hidden: Whether hidden accounts are included

        Returns:
            List of account entities
        """
        return self.db.list_accounts(include_hidden=include_hidden)

    def _require_account(self, account_id: int) -> AccountEntity:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def set_hidden(self, account_id: int, hidden: bool) -> None:
        """Hide or show an account."""
        self._require_account(account_id)
        self.db.update_account(account_id, hidden=hidden)

    def reorder_accounts(self, account_ids: list[int]) -> None:
        """Assign display order following the given sequence of account IDs.

        Raises:
            ValidationError: If an ID is repeated
            NotFoundError: If an ID does not exist
        """
        if len(set(account_ids)) != len(account_ids):
            raise ValidationError("Account order contains duplicates")
        for account_id in account_ids:
            self._require_account(account_id)
        for position, account_id in enumerate(account_ids, start=1):
            self.db.update_account(account_id, display_order=position)

    def delete_account(self, account_id: int, reassign_to: Optional[int] = None) -> int:
        """Delete an account.

        Args:
            account_id: Account ID to delete
            reassign_to: Optional account that takes over the operations first

        Returns:
            Number of operations moved to ``reassign_to``

        Raises:
            NotFoundError: If either account is missing
            DependencyError: If operations reference the account and no
                reassignment target is given
            ValidationError: If the reassignment target is the account itself
        """
        self._require_account(account_id)

        operation_count = self.db.get_account_operation_count(account_id)
        if operation_count > 0:
            if reassign_to is None:
                raise DependencyError(account_delete_blocked(account_id, operation_count))
            if reassign_to == account_id:
                raise ValidationError("Cannot reassign operations to the account being deleted")
            self._require_account(reassign_to)
        else:
            reassign_to = None

        moved = self.db.delete_account(account_id, reassign_to)
        logger.info("Deleted account %s", account_id)
        if moved and self.events is not None:
            self.events.emit(RELOAD_ALL, {"account_id": account_id, "reassigned_to": reassign_to})
        return moved

    def adjust_balance(
        self,
        account_id: int,
        target_balance: Decimal | str,
        operation_date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> Optional[OperationEntity]:
        """Bring an account to a target balance by recording the difference.

        The difference is booked as an income or expense operation against
        the shadow category of that type, so the balance invariant keeps
        holding.

        Args:
            account_id: Account to adjust
            target_balance: Balance the account should end up with
            operation_date: Date of the adjustment (defaults to today)
            description: Optional description (defaults to "Balance adjustment")

        Returns:
            The adjustment operation, or None if the balance already matches

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the target balance is not a number
        """
        account = self._require_account(account_id)
        target = to_decimal(target_balance)
        if target is None:
            raise ValidationError(f"Invalid balance: '{target_balance}'")

        difference = round_for_currency(target, account.currency) - account.balance
        if difference == 0:
            return None

        operation_type = INCOME if difference > 0 else EXPENSE
        shadow = CategoryService(self.db).get_or_create_shadow_category(operation_type)
        draft = OperationDraft(
            type=operation_type,
            amount=abs(difference),
            account_id=account_id,
            category_id=shadow.id,
            date=operation_date or date.today(),
            description=description or ADJUSTMENT_DESCRIPTION,
        )
        return OperationService(self.db, self.events).add_operation(draft)

    def default_account_id(self) -> Optional[int]:
        """Pick the account a new operation should use by default.

        A single account always wins. Otherwise the last accessed account is
        used while it still exists, falling back to the account whose ID
        sorts first as text.
        """
        accounts = self.db.list_accounts()
        if not accounts:
            return None
        if len(accounts) == 1:
            return accounts[0].id

        last_accessed = get_last_accessed_account(self.db)
        if last_accessed is not None and any(acc.id == last_accessed for acc in accounts):
            return last_accessed
        return min(accounts, key=lambda acc: str(acc.id)).id

    def set_last_accessed_account(self, account_id: int) -> None:
        """Remember the account the user worked with most recently."""
        self._require_account(account_id)
        set_last_accessed_account(self.db, account_id)
