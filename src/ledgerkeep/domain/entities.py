"""Domain model entities for ledgerkeep.

These are pure data classes representing business concepts, independent of
database schema. Money is always carried as Decimal; the store keeps it as
decimal strings.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional

EXPENSE = "expense"
INCOME = "income"
TRANSFER = "transfer"

OPERATION_TYPES = (EXPENSE, INCOME, TRANSFER)
CATEGORY_TYPES = (EXPENSE, INCOME)


@dataclass(frozen=True)
class Account:
    """Account domain entity."""

    id: int
    name: str
    balance: Decimal
    currency: str
    hidden: bool
    display_order: int
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Category domain entity with hierarchical structure."""

    id: int
    name: str
    category_type: str
    parent_id: Optional[int]
    icon: Optional[str]
    is_shadow: bool
    created_at: datetime


@dataclass(frozen=True)
class Operation:
    """A single ledger entry: expense, income or transfer."""

    id: int
    type: str
    amount: Decimal
    account_id: int
    category_id: Optional[int]
    date: date
    description: Optional[str]
    created_at: datetime
    to_account_id: Optional[int] = None
    exchange_rate: Optional[Decimal] = None
    destination_amount: Optional[Decimal] = None
    source_currency: Optional[str] = None
    destination_currency: Optional[str] = None

    @property
    def is_transfer(self) -> bool:
        return self.type == TRANSFER

    @property
    def is_multi_currency(self) -> bool:
        """True for transfers that carry their own destination amount."""
        return self.is_transfer and self.destination_amount is not None


@dataclass(frozen=True)
class OperationDraft:
    """Operation fields supplied by a caller before an ID is assigned.

    Fields are loosely typed on purpose: drafts come from user input and
    are checked by ``validate_operation`` before they reach the store.
    """

    type: Optional[str]
    amount: Optional[Decimal]
    account_id: Optional[int]
    date: Optional[date]
    category_id: Optional[int] = None
    description: Optional[str] = None
    to_account_id: Optional[int] = None
    exchange_rate: Optional[Decimal] = None
    destination_amount: Optional[Decimal] = None
    source_currency: Optional[str] = None
    destination_currency: Optional[str] = None


# Fields of an Operation a caller may change through update_operation.
PATCHABLE_FIELDS = frozenset(
    {
        "type",
        "amount",
        "account_id",
        "category_id",
        "date",
        "description",
        "to_account_id",
        "exchange_rate",
        "destination_amount",
        "source_currency",
        "destination_currency",
    }
)


@dataclass
class BalanceDelta:
    """Net balance change per account produced by one mutation."""

    changes: dict[int, Decimal] = field(default_factory=dict)

    def add(self, account_id: int, amount: Decimal) -> None:
        self.changes[account_id] = self.changes.get(account_id, Decimal("0")) + amount

    def merge(self, other: "BalanceDelta", sign: int = 1) -> None:
        for account_id, amount in other.changes.items():
            self.add(account_id, amount * sign)

    def nonzero(self) -> dict[int, Decimal]:
        return {acc: amt for acc, amt in self.changes.items() if amt != 0}
