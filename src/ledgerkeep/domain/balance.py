"""Balance reconciliation for ledger mutations.

The reconciler never touches the database directly. The store hands it an
``AccountBook`` bound to the transaction that performs the ledger write, so
the row change and the balance deltas commit or roll back together.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal

from ledgerkeep.domain.entities import (
    BalanceDelta,
    EXPENSE,
    INCOME,
    TRANSFER,
    Operation,
)

logger = logging.getLogger(__name__)


class AccountBook(ABC):
    """Balance access within a single storage transaction."""

    @abstractmethod
    def adjust_balance(self, account_id: int, delta: Decimal) -> Decimal:
        """Add ``delta`` to an account balance and return the new balance.

        Raises:
            ReferentialIntegrityError: If the account does not exist
        """
        pass


def balance_changes(operation: Operation) -> BalanceDelta:
    """Signed balance effect of an operation, per account.

    expense: source -= amount
    income: source += amount
    transfer: source -= amount; destination += destination_amount when the
    transfer is multi-currency, otherwise amount
    """
    delta = BalanceDelta()
    amount = operation.amount

    if operation.type == EXPENSE:
        delta.add(operation.account_id, -amount)
    elif operation.type == INCOME:
        delta.add(operation.account_id, amount)
    elif operation.type == TRANSFER:
        delta.add(operation.account_id, -amount)
        if operation.to_account_id is not None:
            received = operation.destination_amount if operation.destination_amount is not None else amount
            delta.add(operation.to_account_id, received)
    return delta


class BalanceReconciler:
    """Applies the balance side of create, update and delete."""

    def __init__(self, book: AccountBook):
        self.book = book

    def _commit(self, delta: BalanceDelta) -> BalanceDelta:
        for account_id, change in delta.nonzero().items():
            new_balance = self.book.adjust_balance(account_id, change)
            logger.debug("Account %s balance %+s -> %s", account_id, change, new_balance)
        return delta

    def apply_create(self, operation: Operation) -> BalanceDelta:
        return self._commit(balance_changes(operation))

    def apply_update(self, old: Operation, new: Operation) -> BalanceDelta:
        """Reverse the stored effect of ``old`` and apply ``new``.

        Both halves are folded into one delta per account, so an edit that
        changes amount, account or type cannot drift.
        """
        delta = BalanceDelta()
        delta.merge(balance_changes(old), sign=-1)
        delta.merge(balance_changes(new))
        return self._commit(delta)

    def apply_delete(self, operation: Operation) -> BalanceDelta:
        delta = BalanceDelta()
        delta.merge(balance_changes(operation), sign=-1)
        return self._commit(delta)
