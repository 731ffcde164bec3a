"""Operation domain service."""

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Optional

from ledgerkeep.database.base import Database
from ledgerkeep.domain.entities import (
    TRANSFER,
    Operation as OperationEntity,
    OperationDraft,
)
from ledgerkeep.domain.errors import NotFoundError, operation_not_found
from ledgerkeep.domain.events import OPERATION_CHANGED, LedgerEvents
from ledgerkeep.domain.filters import OperationFilter
from ledgerkeep.domain.preferences import set_last_accessed_account
from ledgerkeep.domain.rates import ExchangeRateTable
from ledgerkeep.domain.transfer import LastEditedField, TransferDraft, TransferReconciler
from ledgerkeep.domain.validation import require_valid_operation, validate_operation

logger = logging.getLogger(__name__)

TRANSFER_FIELDS = ("to_account_id", "exchange_rate", "destination_amount", "source_currency", "destination_currency")


class OperationService:
    """Service for recording and editing ledger operations."""

    def __init__(
        self,
        db: Database,
        events: Optional[LedgerEvents] = None,
        rates: Optional[ExchangeRateTable] = None,
    ):
        """Initialize operation service.

        Args:
            db: Database instance
            events: Optional event hub notified after every successful mutation
            rates: Offline rate table used to fill in multi-currency transfers
                (defaults to the bundled table)
        """
        self.db = db
        self.events = events
        self.rates = rates or ExchangeRateTable.bundled()
        self.transfers = TransferReconciler(self.rates.get_exchange_rate)

    def validate_operation(self, draft: OperationDraft | OperationEntity) -> Optional[str]:
        """Return the first validation message for an operation, or None if valid."""
        return validate_operation(draft)

    def _emit(self, action: str, operation: OperationEntity) -> None:
        if self.events is not None:
            self.events.emit(OPERATION_CHANGED, {"action": action, "operation": operation})

    def _transfer_currencies(
        self, account_id: Optional[int], to_account_id: Optional[int]
    ) -> tuple[Optional[str], Optional[str]]:
        source = self.db.get_account(account_id) if account_id is not None else None
        destination = self.db.get_account(to_account_id) if to_account_id is not None else None
        return (
            source.currency if source is not None else None,
            destination.currency if destination is not None else None,
        )

    def reconcile_transfer(
        self,
        draft: OperationDraft | OperationEntity,
        last_edited: Optional[LastEditedField] = None,
    ) -> OperationDraft | OperationEntity:
        """Derive the rate or destination amount of a multi-currency transfer.

        The field the caller supplied last wins: an explicit destination
        amount defines the rate, otherwise a rate (given or looked up in the
        offline table) defines the destination amount. Non-transfers and
        same-currency transfers come back with the conversion fields cleared.

        Args:
            draft: Operation or draft to reconcile
            last_edited: Field the user touched last; inferred from the
                populated fields when omitted

        Returns:
            A copy of ``draft`` with the transfer fields filled in
        """
        if draft.type != TRANSFER:
            return replace(draft, **{name: None for name in TRANSFER_FIELDS})

        source_currency, destination_currency = self._transfer_currencies(draft.account_id, draft.to_account_id)
        if last_edited is None:
            if draft.destination_amount is not None:
                last_edited = LastEditedField.DESTINATION_AMOUNT
            elif draft.exchange_rate is not None:
                last_edited = LastEditedField.EXCHANGE_RATE
            else:
                last_edited = LastEditedField.AMOUNT

        form = TransferDraft(
            source_currency=source_currency,
            destination_currency=destination_currency,
            amount="" if draft.amount is None else str(draft.amount),
            exchange_rate="" if draft.exchange_rate is None else str(draft.exchange_rate),
            destination_amount="" if draft.destination_amount is None else str(draft.destination_amount),
            last_edited=last_edited,
        )
        form = self.transfers.reconcile(form)
        fields = self.transfers.finalize(form)
        if fields["amount"] is None:
            # Leave an unparseable amount for validation to report
            del fields["amount"]
        return replace(draft, **fields)

    def add_operation(self, draft: OperationDraft) -> OperationEntity:
        """Record a new operation.

        Args:
            draft: Operation fields

        Returns:
            The stored operation

        Raises:
            ValidationError: If the operation is invalid
            ReferentialIntegrityError: If a referenced account or category is missing
        """
        require_valid_operation(draft)
        draft = self.reconcile_transfer(draft)
        operation = self.db.create_operation(draft)
        set_last_accessed_account(self.db, operation.account_id)
        self._emit("created", operation)
        return operation

    def get_operation(self, operation_id: int) -> Optional[OperationEntity]:
        """Get operation by ID.

        Args:
            operation_id: Operation ID

        Returns:
            Operation entity or None if not found
        """
        return self.db.get_operation(operation_id)

    def update_operation(self, operation_id: int, patch: dict[str, Any]) -> OperationEntity:
        """Update operation fields.

        Changing the type away from transfer drops the transfer fields. When
        the result is a transfer, the conversion fields are re-derived from
        whichever of amount, rate or destination amount the patch touches.

        Args:
            operation_id: Operation ID to update
            patch: Field name to new value

        Returns:
            The updated operation

        Raises:
            NotFoundError: If the operation doesn't exist
            ValidationError: If a field is unknown or the result is invalid
        """
        current = self.db.get_operation(operation_id)
        if current is None:
            raise NotFoundError(operation_not_found(operation_id))

        patch = dict(patch)
        new_type = patch.get("type", current.type)
        if new_type != TRANSFER:
            if current.type == TRANSFER:
                for name in TRANSFER_FIELDS:
                    patch.setdefault(name, None)
        elif {"amount", "exchange_rate", "destination_amount", "account_id", "to_account_id", "type"} & set(patch):
            patch.update(self._reconciled_transfer_patch(current, patch))

        operation = self.db.update_operation(operation_id, patch)
        set_last_accessed_account(self.db, operation.account_id)
        self._emit("updated", operation)
        return operation

    def _reconciled_transfer_patch(self, current: OperationEntity, patch: dict[str, Any]) -> dict[str, Any]:
        if "destination_amount" in patch:
            last_edited = LastEditedField.DESTINATION_AMOUNT
        elif "exchange_rate" in patch:
            last_edited = LastEditedField.EXCHANGE_RATE
        else:
            last_edited = LastEditedField.AMOUNT
            # A new amount or account pair re-derives the destination from the rate
            patch = {**patch, "destination_amount": None}
            if {"account_id", "to_account_id", "type"} & set(patch):
                patch["exchange_rate"] = None

        known = {name: value for name, value in patch.items() if name in OperationDraft.__dataclass_fields__}
        candidate = replace(current, **known)
        reconciled = self.reconcile_transfer(candidate, last_edited)
        return {name: getattr(reconciled, name) for name in ("amount",) + TRANSFER_FIELDS[1:]}

    def delete_operation(self, operation_id: int) -> OperationEntity:
        """Delete an operation.

        Args:
            operation_id: Operation ID to delete

        Returns:
            The deleted operation

        Raises:
            NotFoundError: If the operation doesn't exist
        """
        operation = self.db.delete_operation(operation_id)
        self._emit("deleted", operation)
        return operation

    def list_operations(
        self,
        start_date: date,
        end_date: date,
        operation_filter: Optional[OperationFilter] = None,
    ) -> list[OperationEntity]:
        """List operations in an inclusive date range, newest first."""
        return self.db.get_operations_by_date_range(start_date, end_date, operation_filter)
