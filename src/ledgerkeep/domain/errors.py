"""Error types raised by the ledger and the message builders they share."""


class DomainError(ValueError):
    """Base class for every error the ledger raises on purpose.

    Subclassing ValueError lets callers that only care about bad input catch
    one type.
    """


class ValidationError(DomainError):
    """An operation, account or filter failed a structural check."""


class NotFoundError(DomainError):
    """An account, category or operation looked up by the caller is missing."""


class ConflictError(DomainError):
    """A write collides with existing data, such as a taken account name."""


class DependencyError(DomainError):
    """A delete or move is blocked by operations that still reference the row."""


class ReferentialIntegrityError(DomainError):
    """An account or category referenced by a mutation vanished mid-transaction."""


class StorageError(DomainError):
    """The underlying database failed; nothing was committed."""


def account_not_found(account_id: int) -> str:
    return f"Account {account_id} not found"


def category_not_found(category_id: int) -> str:
    return f"Category {category_id} not found"


def category_path_not_found(path: str) -> str:
    return f"Category '{path}' not found"


def operation_not_found(operation_id: int) -> str:
    return f"Operation {operation_id} not found"


def duplicate_account_name(name: str) -> str:
    return f"Account with name '{name}' already exists"


def account_delete_blocked(account_id: int, operation_count: int) -> str:
    """Message for deleting an account that operations still point at."""
    noun = "operation" if operation_count == 1 else "operations"
    return (
        f"Cannot delete account {account_id}: it has {operation_count} {noun}. "
        "Please reassign or delete them first."
    )
