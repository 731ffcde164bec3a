"""Structural validation for operations before they reach the store."""

from typing import Optional

from ledgerkeep.domain.currency import to_decimal
from ledgerkeep.domain.entities import OPERATION_TYPES, TRANSFER, Operation, OperationDraft
from ledgerkeep.domain.errors import ValidationError


def validate_operation(operation: OperationDraft | Operation) -> Optional[str]:
    """Return the first validation error message, or None if the operation is valid.

    Checks run in a fixed order so callers always see the same message for
    the same input: type, amount, account, transfer destination, category,
    date.
    """
    if not operation.type:
        return "Operation type is required"
    if operation.type not in OPERATION_TYPES:
        return f"Unknown operation type '{operation.type}'"

    amount = to_decimal(operation.amount)
    if amount is None or amount <= 0:
        return "Valid amount is required"

    if operation.account_id is None:
        return "Account is required"

    if operation.type == TRANSFER:
        if operation.to_account_id is None:
            return "Destination account is required for transfers"
        if operation.account_id == operation.to_account_id:
            return "Source and destination accounts must be different"
        if operation.destination_amount is not None:
            destination = to_decimal(operation.destination_amount)
            if destination is None or destination <= 0:
                return "Destination amount must be positive"
    elif operation.category_id is None:
        return "Category is required"

    if operation.date is None:
        return "Date is required"
    return None


def require_valid_operation(operation: OperationDraft | Operation) -> None:
    """Raise ValidationError if the operation is structurally invalid."""
    message = validate_operation(operation)
    if message is not None:
        raise ValidationError(message)
