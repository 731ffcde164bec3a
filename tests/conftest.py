"""Shared pytest fixtures for ledgerkeep tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from ledgerkeep.database.factories import create_sqlite_database
from ledgerkeep.domain.account import AccountService
from ledgerkeep.domain.category import CategoryService
from ledgerkeep.domain.entities import EXPENSE, INCOME, TRANSFER, OperationDraft
from ledgerkeep.domain.events import LedgerEvents
from ledgerkeep.domain.operation import OperationService
from ledgerkeep.domain.rates import ExchangeRateTable

TODAY = date(2025, 3, 19)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def events():
    return LedgerEvents()


@pytest.fixture
def rate_table():
    """Small fixed rate table so tests do not depend on the bundled data."""
    return ExchangeRateTable({"USD": {"EUR": "0.92", "GBP": "0.80"}}, last_updated="2025-01-01")


@pytest.fixture
def account_service(temp_db, events):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, events)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def operation_service(temp_db, events, rate_table):
    """Create an OperationService with a temporary database."""
    return OperationService(temp_db, events, rate_table)


@pytest.fixture
def sample_accounts(account_service):
    """A USD wallet with 100.00, a USD checking account and a EUR savings account."""
    wallet = account_service.create_account("Wallet", "USD", Decimal("100.00"))
    checking = account_service.create_account("Checking", "USD", Decimal("1000.00"))
    savings = account_service.create_account("Euro Savings", "EUR", Decimal("0"))
    return {"wallet": wallet, "checking": checking, "savings": savings}


@pytest.fixture
def sample_categories(category_service):
    """A small two-level category tree; returns IDs keyed by path."""
    ids = {}
    ids["Food"] = category_service.create_category("Food", EXPENSE)
    ids["Food > Groceries"] = category_service.create_category("Groceries", EXPENSE, parent_path="Food")
    ids["Food > Restaurants"] = category_service.create_category("Restaurants", EXPENSE, parent_path="Food")
    ids["Transport"] = category_service.create_category("Transport", EXPENSE)
    ids["Salary"] = category_service.create_category("Salary", INCOME)
    return ids


@pytest.fixture
def make_draft(sample_accounts, sample_categories):
    """Factory for operation drafts with sensible defaults."""

    def _make(
        type=EXPENSE,
        amount="10.00",
        account="wallet",
        category="Food > Groceries",
        on=TODAY,
        description=None,
        to_account=None,
        **extra,
    ):
        return OperationDraft(
            type=type,
            amount=Decimal(amount),
            account_id=sample_accounts[account],
            date=on,
            category_id=sample_categories[category] if category and type != TRANSFER else None,
            description=description,
            to_account_id=sample_accounts[to_account] if to_account else None,
            **extra,
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
