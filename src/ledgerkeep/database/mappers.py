"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic: decimal strings on disk become
Decimal values in the domain and back.
"""

from decimal import Decimal
from typing import Optional

from ledgerkeep.domain import entities as domain
from ledgerkeep.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    Operation as ORMOperation,
)


def _decimal_or_none(value: Optional[str]) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(value)


def decimal_to_column(value: Optional[Decimal]) -> Optional[str]:
    """Convert a Decimal to its stored string form."""
    if value is None:
        return None
    return str(value)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        balance=Decimal(orm_account.balance),
        currency=orm_account.currency,
        hidden=orm_account.hidden,
        display_order=orm_account.display_order,
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        category_type=orm_category.category_type,
        parent_id=orm_category.parent_id,
        icon=orm_category.icon,
        is_shadow=orm_category.is_shadow,
        created_at=orm_category.created_at,
    )


def operation_to_domain(orm_operation: ORMOperation) -> domain.Operation:
    """Convert SQLAlchemy Operation model to domain Operation entity."""
    return domain.Operation(
        id=orm_operation.id,
        type=orm_operation.type,
        amount=Decimal(orm_operation.amount),
        account_id=orm_operation.account_id,
        category_id=orm_operation.category_id,
        date=orm_operation.date,
        description=orm_operation.description,
        created_at=orm_operation.created_at,
        to_account_id=orm_operation.to_account_id,
        exchange_rate=_decimal_or_none(orm_operation.exchange_rate),
        destination_amount=_decimal_or_none(orm_operation.destination_amount),
        source_currency=orm_operation.source_currency,
        destination_currency=orm_operation.destination_currency,
    )


def apply_operation_fields(orm_operation: ORMOperation, operation: domain.Operation | domain.OperationDraft) -> None:
    """Copy domain operation fields onto an ORM row (ID and timestamps excluded)."""
    orm_operation.type = operation.type
    orm_operation.amount = decimal_to_column(operation.amount)
    orm_operation.account_id = operation.account_id
    orm_operation.category_id = operation.category_id
    orm_operation.to_account_id = operation.to_account_id
    orm_operation.date = operation.date
    orm_operation.description = operation.description
    orm_operation.exchange_rate = decimal_to_column(operation.exchange_rate)
    orm_operation.destination_amount = decimal_to_column(operation.destination_amount)
    orm_operation.source_currency = operation.source_currency
    orm_operation.destination_currency = operation.destination_currency
