"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerkeep.domain.entities import (
    Account,
    Category,
    Operation,
    OperationDraft,
)
from ledgerkeep.domain.filters import OperationFilter


class Database(ABC):
    """Abstract database interface for ledgerkeep.

    Operation writes are transactional: the row change and the balance
    adjustments of every implicated account commit together or not at all.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        currency: str,
        balance: Decimal = Decimal("0"),
        hidden: bool = False,
        display_order: Optional[int] = None,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, include_hidden: bool = True) -> list[Account]:
        """List accounts ordered by display order, then ID."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        hidden: Optional[bool] = None,
        display_order: Optional[int] = None,
    ) -> None:
        """Update account metadata. Balance is never updated here."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int, reassign_to: Optional[int] = None) -> int:
        """Delete an account, moving its operations to ``reassign_to`` first if given.

        The move and the delete are one transaction. Fails with
        DependencyError while operations still reference the account.
        Returns the number of operations moved.
        """
        pass

    @abstractmethod
    def get_account_operation_count(self, account_id: int) -> int:
        """Count operations referencing the account as source or destination."""
        pass

    @abstractmethod
    def reassign_operations(self, from_account_id: int, to_account_id: int) -> int:
        """Move every operation leg from one account to another, rebalancing both.

        Returns the number of operations moved.
        """
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self,
        name: str,
        category_type: str,
        parent_id: Optional[int] = None,
        icon: Optional[str] = None,
        is_shadow: bool = False,
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_path(self, path: str) -> Optional[Category]:
        """Get category by path (e.g., 'Food & Dining > Groceries')."""
        pass

    @abstractmethod
    def list_categories(self, parent_id: Optional[int] = None, all_levels: bool = False) -> list[Category]:
        """List categories under a parent (roots when None), or every category."""
        pass

    @abstractmethod
    def get_shadow_category(self, category_type: str) -> Optional[Category]:
        """Get the system shadow category used for balance adjustments."""
        pass

    # Operation operations
    @abstractmethod
    def create_operation(self, draft: OperationDraft) -> Operation:
        """Persist a new operation and apply its balance effect atomically."""
        pass

    @abstractmethod
    def get_operation(self, operation_id: int) -> Optional[Operation]:
        """Get operation by ID."""
        pass

    @abstractmethod
    def update_operation(self, operation_id: int, patch: dict[str, Any]) -> Operation:
        """Update an operation, reversing the old balance effect and applying the new."""
        pass

    @abstractmethod
    def delete_operation(self, operation_id: int) -> Operation:
        """Delete an operation and reverse its balance effect. Returns the deleted row."""
        pass

    @abstractmethod
    def get_operations_by_date_range(
        self, start_date: date, end_date: date, operation_filter: Optional[OperationFilter] = None
    ) -> list[Operation]:
        """Operations with start_date <= date <= end_date, newest first."""
        pass

    @abstractmethod
    def get_operations_by_week_offset(
        self, week_offset: int, operation_filter: Optional[OperationFilter] = None, today: Optional[date] = None
    ) -> list[Operation]:
        """Operations in the 7-day window ending ``7 * week_offset`` days before today."""
        pass

    @abstractmethod
    def get_operations_by_week_from_date(
        self, from_date: date, operation_filter: Optional[OperationFilter] = None
    ) -> list[Operation]:
        """Operations in the 7-day window ending at ``from_date`` (paging older)."""
        pass

    @abstractmethod
    def get_operations_by_week_to_date(
        self, to_date: date, operation_filter: Optional[OperationFilter] = None
    ) -> list[Operation]:
        """Operations in the 7-day window starting at ``to_date`` (paging newer)."""
        pass

    @abstractmethod
    def get_next_oldest_operation(
        self, before_date: date, operation_filter: Optional[OperationFilter] = None
    ) -> Optional[Operation]:
        """Most recent operation dated strictly before ``before_date``."""
        pass

    @abstractmethod
    def get_next_newest_operation(
        self, after_date: date, operation_filter: Optional[OperationFilter] = None
    ) -> Optional[Operation]:
        """Oldest operation dated strictly after ``after_date``."""
        pass

    # Preference operations
    @abstractmethod
    def get_preference(self, key: str) -> Optional[str]:
        """Get a stored preference value."""
        pass

    @abstractmethod
    def set_preference(self, key: str, value: Optional[str]) -> None:
        """Store a preference value."""
        pass
