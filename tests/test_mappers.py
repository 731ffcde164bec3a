"""Tests for database mappers."""

from datetime import datetime, date, UTC
from decimal import Decimal

from ledgerkeep.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    Operation as ORMOperation,
)
from ledgerkeep.database.mappers import (
    account_to_domain,
    apply_operation_fields,
    category_to_domain,
    decimal_to_column,
    operation_to_domain,
)
from ledgerkeep.domain.entities import (
    Account,
    Category,
    Operation,
    OperationDraft,
)


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        """Test converting ORM Account to domain Account."""
        orm_account = ORMAccount(
            id=1,
            name="Wallet",
            balance="1234.50",
            currency="USD",
            hidden=False,
            display_order=2,
            created_at=datetime.now(UTC),
        )
        domain_account = account_to_domain(orm_account)

        assert isinstance(domain_account, Account)
        assert domain_account.id == 1
        assert domain_account.name == "Wallet"
        assert domain_account.balance == Decimal("1234.50")
        assert domain_account.currency == "USD"
        assert domain_account.display_order == 2
        assert domain_account.created_at == orm_account.created_at


class TestCategoryMapper:
    """Tests for Category mapper."""

    def test_category_to_domain(self):
        """Test converting ORM Category to domain Category."""
        orm_category = ORMCategory(
            id=3,
            name="Groceries",
            category_type="expense",
            parent_id=1,
            icon="cart",
            is_shadow=False,
            created_at=datetime.now(UTC),
        )
        domain_category = category_to_domain(orm_category)

        assert isinstance(domain_category, Category)
        assert domain_category.parent_id == 1
        assert domain_category.category_type == "expense"
        assert domain_category.icon == "cart"
        assert domain_category.is_shadow is False


class TestOperationMapper:
    """Tests for Operation mapper."""

    def test_operation_to_domain(self):
        """Test converting a multi-currency transfer row."""
        orm_operation = ORMOperation(
            id=7,
            type="transfer",
            amount="100.00",
            account_id=1,
            to_account_id=2,
            category_id=None,
            date=date(2025, 3, 1),
            description="To savings",
            exchange_rate="0.92",
            destination_amount="92.00",
            source_currency="USD",
            destination_currency="EUR",
            created_at=datetime.now(UTC),
        )
        domain_operation = operation_to_domain(orm_operation)

        assert isinstance(domain_operation, Operation)
        assert domain_operation.amount == Decimal("100.00")
        assert domain_operation.exchange_rate == Decimal("0.92")
        assert domain_operation.destination_amount == Decimal("92.00")
        assert domain_operation.is_multi_currency is True

    def test_empty_conversion_fields(self):
        """Test that blank stored conversion fields map to None."""
        orm_operation = ORMOperation(
            id=8,
            type="expense",
            amount="5",
            account_id=1,
            category_id=4,
            date=date(2025, 3, 1),
            exchange_rate="",
            destination_amount=None,
            created_at=datetime.now(UTC),
        )
        domain_operation = operation_to_domain(orm_operation)

        assert domain_operation.exchange_rate is None
        assert domain_operation.destination_amount is None
        assert domain_operation.is_transfer is False

    def test_apply_operation_fields(self):
        """Test copying draft fields onto a row as decimal strings."""
        orm_operation = ORMOperation()
        draft = OperationDraft(
            type="income",
            amount=Decimal("12.30"),
            account_id=2,
            date=date(2025, 3, 2),
            category_id=5,
            description="Refund",
        )

        apply_operation_fields(orm_operation, draft)

        assert orm_operation.amount == "12.30"
        assert orm_operation.exchange_rate is None
        assert orm_operation.category_id == 5
        assert orm_operation.description == "Refund"


def test_decimal_to_column():
    assert decimal_to_column(Decimal("0.900000")) == "0.900000"
    assert decimal_to_column(None) is None
