"""Tests for the account service."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerkeep.domain.account import ADJUSTMENT_DESCRIPTION
from ledgerkeep.domain.entities import EXPENSE, INCOME, TRANSFER
from ledgerkeep.domain.errors import ConflictError, DependencyError, NotFoundError, ValidationError
from ledgerkeep.domain.events import RELOAD_ALL

from conftest import TODAY


class TestCreateAccount:
    def test_create_account(self, account_service):
        account_id = account_service.create_account("Cash", "eur", "12.345")

        account = account_service.get_account(account_id)
        assert account.name == "Cash"
        assert account.currency == "EUR"
        assert account.balance == Decimal("12.35")
        assert account.hidden is False

    def test_balance_rounds_for_currency(self, account_service):
        account_id = account_service.create_account("Yen", "JPY", "1500.6")

        assert account_service.get_account(account_id).balance == Decimal("1501")

    def test_duplicate_name(self, account_service):
        account_service.create_account("Cash")

        with pytest.raises(ConflictError, match="already exists"):
            account_service.create_account("Cash", "EUR")

    @pytest.mark.parametrize(
        "name,currency,balance,message",
        [
            ("  ", "USD", "0", "Account name is required"),
            ("Cash", "", "0", "Currency is required"),
            ("Cash", "USD", "lots", "Invalid balance"),
        ],
    )
    def test_invalid_input(self, account_service, name, currency, balance, message):
        with pytest.raises(ValidationError, match=message):
            account_service.create_account(name, currency, balance)

    def test_list_in_display_order(self, account_service, sample_accounts):
        names = [acc.name for acc in account_service.list_accounts()]

        assert names == ["Wallet", "Checking", "Euro Savings"]


class TestVisibilityAndOrder:
    def test_hidden_accounts_excluded_on_request(self, account_service, sample_accounts):
        account_service.set_hidden(sample_accounts["checking"], True)

        visible = [acc.id for acc in account_service.list_accounts(include_hidden=False)]
        assert sample_accounts["checking"] not in visible
        assert len(account_service.list_accounts()) == 3

    def test_set_hidden_missing_account(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.set_hidden(99, True)

    def test_reorder(self, account_service, sample_accounts):
        order = [sample_accounts["savings"], sample_accounts["wallet"], sample_accounts["checking"]]

        account_service.reorder_accounts(order)

        assert [acc.id for acc in account_service.list_accounts()] == order

    def test_reorder_rejects_duplicates(self, account_service, sample_accounts):
        with pytest.raises(ValidationError):
            account_service.reorder_accounts([sample_accounts["wallet"], sample_accounts["wallet"]])


class TestDeleteAccount:
    def test_delete_unused_account(self, account_service, sample_accounts):
        assert account_service.delete_account(sample_accounts["savings"]) == 0
        assert account_service.get_account(sample_accounts["savings"]) is None

    def test_delete_with_operations_requires_target(self, account_service, operation_service, sample_accounts, make_draft):
        operation_service.add_operation(make_draft())

        with pytest.raises(DependencyError, match="1 operation\\."):
            account_service.delete_account(sample_accounts["wallet"])
        assert account_service.get_account(sample_accounts["wallet"]) is not None

    def test_delete_with_reassignment(self, account_service, operation_service, events, sample_accounts, make_draft):
        reloads = []
        events.subscribe(RELOAD_ALL, reloads.append)
        first = operation_service.add_operation(make_draft(amount="10.00"))
        second = operation_service.add_operation(make_draft(type=INCOME, amount="4.00", category="Salary"))

        moved = account_service.delete_account(sample_accounts["wallet"], reassign_to=sample_accounts["checking"])

        assert moved == 2
        assert operation_service.get_operation(first.id).account_id == sample_accounts["checking"]
        assert operation_service.get_operation(second.id).account_id == sample_accounts["checking"]
        assert account_service.get_account(sample_accounts["checking"]).balance == Decimal("994.00")
        assert reloads == [{"account_id": sample_accounts["wallet"], "reassigned_to": sample_accounts["checking"]}]

    def test_reassign_to_self_rejected(self, account_service, operation_service, sample_accounts, make_draft):
        operation_service.add_operation(make_draft())

        with pytest.raises(ValidationError):
            account_service.delete_account(sample_accounts["wallet"], reassign_to=sample_accounts["wallet"])

    def test_reassign_across_currencies_rejected(self, account_service, operation_service, sample_accounts, make_draft):
        operation_service.add_operation(make_draft())

        with pytest.raises(ValidationError):
            account_service.delete_account(sample_accounts["wallet"], reassign_to=sample_accounts["savings"])
        assert account_service.get_account(sample_accounts["wallet"]) is not None

    def test_reassign_that_would_self_transfer(self, account_service, operation_service, sample_accounts, make_draft):
        operation_service.add_operation(make_draft(type=TRANSFER, amount="5.00", to_account="checking"))

        with pytest.raises(DependencyError):
            account_service.delete_account(sample_accounts["wallet"], reassign_to=sample_accounts["checking"])

    def test_delete_missing_account(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.delete_account(42)


class TestAdjustBalance:
    def test_increase_records_income(self, account_service, temp_db, sample_accounts):
        operation = account_service.adjust_balance(sample_accounts["wallet"], "150.00", operation_date=TODAY)

        assert operation.type == INCOME
        assert operation.amount == Decimal("50.00")
        assert operation.description == ADJUSTMENT_DESCRIPTION
        assert temp_db.get_category(operation.category_id).is_shadow is True
        assert account_service.get_account(sample_accounts["wallet"]).balance == Decimal("150.00")

    def test_decrease_records_expense(self, account_service, sample_accounts):
        operation = account_service.adjust_balance(
            sample_accounts["wallet"], Decimal("62.5"), operation_date=date(2025, 1, 5), description="Recount"
        )

        assert operation.type == EXPENSE
        assert operation.amount == Decimal("37.50")
        assert operation.description == "Recount"
        assert operation.date == date(2025, 1, 5)
        assert account_service.get_account(sample_accounts["wallet"]).balance == Decimal("62.50")

    def test_no_difference_records_nothing(self, account_service, temp_db, sample_accounts):
        assert account_service.adjust_balance(sample_accounts["wallet"], "100") is None
        assert temp_db.get_account_operation_count(sample_accounts["wallet"]) == 0

    def test_shadow_category_is_reused(self, account_service, sample_accounts):
        first = account_service.adjust_balance(sample_accounts["wallet"], "90")
        second = account_service.adjust_balance(sample_accounts["wallet"], "80")

        assert first.category_id == second.category_id

    def test_invalid_target(self, account_service, sample_accounts):
        with pytest.raises(ValidationError):
            account_service.adjust_balance(sample_accounts["wallet"], "plenty")


class TestDefaultAccount:
    def test_no_accounts(self, account_service):
        assert account_service.default_account_id() is None

    def test_single_account_wins(self, account_service, temp_db):
        only = account_service.create_account("Only")
        temp_db.set_preference("last_accessed_account_id", "99")

        assert account_service.default_account_id() == only

    def test_last_accessed_account(self, account_service, sample_accounts):
        account_service.set_last_accessed_account(sample_accounts["savings"])

        assert account_service.default_account_id() == sample_accounts["savings"]

    def test_recording_an_operation_updates_last_accessed(self, account_service, operation_service, make_draft, sample_accounts):
        operation_service.add_operation(make_draft(account="checking"))

        assert account_service.default_account_id() == sample_accounts["checking"]

    def test_falls_back_when_last_accessed_is_gone(self, account_service, sample_accounts):
        account_service.set_last_accessed_account(sample_accounts["savings"])
        account_service.delete_account(sample_accounts["savings"])

        expected = min((sample_accounts["wallet"], sample_accounts["checking"]), key=str)
        assert account_service.default_account_id() == expected

    def test_set_last_accessed_missing_account(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.set_last_accessed_account(7)
