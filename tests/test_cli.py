"""End-to-end tests for the command line interface."""

import logging
from datetime import date, timedelta

import pytest

from ledgerkeep.cli.main import cli


@pytest.fixture(autouse=True)
def restore_root_logging():
    """The CLI reconfigures the root logger; put pytest's handlers back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def run(cli_runner, temp_db):
    def _run(*args, input=None):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], input=input)

    return _run


@pytest.fixture
def ledger(run):
    """Accounts and default categories created through the CLI."""
    assert run("init-categories").exit_code == 0
    assert run("account", "create", "Wallet", "--balance", "100").exit_code == 0
    assert run("account", "create", "Checking", "--balance", "1,000.00").exit_code == 0
    assert run("account", "create", "Euro Savings", "--currency", "eur").exit_code == 0


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "personal finance ledger" in result.output


class TestAccountCommands:
    def test_create_and_list(self, run):
        result = run("account", "create", "Wallet", "--balance", "$12.50")
        assert result.exit_code == 0
        assert "Created account 'Wallet' (ID: 1)" in result.output
        assert "Balance: $12.50" in result.output

        result = run("account", "list")
        assert result.exit_code == 0
        assert "*ID:   1 | Wallet" in result.output

    def test_list_empty(self, run):
        assert "No accounts found." in run("account", "list").output

    def test_duplicate_name(self, run):
        run("account", "create", "Wallet")

        result = run("account", "create", "Wallet")

        assert result.exit_code == 1
        assert "Error: Account with name 'Wallet' already exists" in result.output

    def test_hide_and_unhide(self, run, ledger):
        assert run("account", "hide", "Checking").exit_code == 0
        assert "Checking" not in run("account", "list").output
        assert "(hidden)" in run("account", "list", "--all").output

        run("account", "hide", "Checking", "--unhide")
        assert "Checking" in run("account", "list").output

    def test_reorder(self, run, ledger):
        assert run("account", "reorder", "Euro Savings", "Wallet", "Checking").exit_code == 0

        output = run("account", "list").output
        assert output.index("Euro Savings") < output.index("Wallet") < output.index("Checking")

    def test_unknown_account(self, run, ledger):
        result = run("account", "hide", "Piggy Bank")

        assert result.exit_code == 1
        assert "Account 'Piggy Bank' not found" in result.output

    def test_adjust(self, run, ledger):
        result = run("account", "adjust", "Wallet", "80")

        assert result.exit_code == 0
        assert "Recorded expense 20.00" in result.output
        assert "Balance: $80.00" in result.output
        assert "nothing to adjust" in run("account", "adjust", "Wallet", "80.00").output

    def test_delete_requires_reassignment(self, run, ledger):
        run("add", "--amount", "5", "--account", "Wallet", "--category", "Food")

        result = run("account", "delete", "Wallet", "--yes")
        assert result.exit_code == 1
        assert "Please reassign or delete them first" in result.output

        result = run("account", "delete", "Wallet", "--reassign-to", "Checking", "--yes")
        assert result.exit_code == 0
        assert "Moved 1 operation(s)" in result.output
        assert "$995.00" in run("account", "list").output

    def test_delete_cancelled(self, run, ledger):
        result = run("account", "delete", "Wallet", input="n\n")

        assert "Deletion cancelled." in result.output
        assert "Wallet" in run("account", "list").output


class TestCategoryCommands:
    def test_init_categories_is_idempotent(self, run):
        result = run("init-categories")
        assert result.exit_code == 0
        assert "Successfully created 24 categories." in result.output

        result = run("init-categories")
        assert "Created 0 categories (24 already existed)." in result.output

    def test_list_tree(self, run, ledger):
        output = run("category", "list").output

        assert "Food [expense]" in output
        assert "  Groceries [expense]" in output
        assert "    Coffee [expense]" in output
        assert "Balance adjustment" not in output
        assert "Balance adjustment (income) [income]" in run("category", "list", "--shadow").output

    def test_list_empty(self, run):
        assert "No categories found" in run("category", "list").output

    def test_create_under_parent(self, run, ledger):
        result = run("category", "create", "Bakery", "--parent", "Food > Groceries")

        assert result.exit_code == 0
        assert "Created category 'Bakery' under 'Food > Groceries'" in result.output

    def test_create_with_missing_parent(self, run):
        result = run("category", "create", "Bakery", "--parent", "Food")

        assert result.exit_code == 1
        assert "Parent category 'Food' not found" in result.output


class TestAddCommand:
    def test_add_expense(self, run, ledger):
        result = run(
            "add", "--amount", "12.50", "--account", "Wallet", "--category", "Food > Groceries",
            "--description", "Milk",
        )

        assert result.exit_code == 0
        assert "Created operation 1" in result.output
        assert "Category: Food > Groceries" in result.output
        assert "Description: Milk" in result.output
        assert "$87.50" in run("account", "list").output

    def test_defaults_to_last_used_account(self, run, ledger):
        run("add", "--amount", "1", "--account", "Checking", "--category", "Food")

        result = run("add", "--amount", "2", "--category", "Food")

        assert "Account: Checking" in result.output

    def test_multi_currency_transfer(self, run, ledger):
        result = run(
            "add", "--type", "transfer", "--amount", "100", "--account", "Checking",
            "--to-account", "Euro Savings", "--rate", "0.92",
        )

        assert result.exit_code == 0
        assert "To: Euro Savings (€92.00 @" in result.output
        assert "€92.00" in run("account", "list").output

    def test_transfer_with_destination_amount(self, run, ledger):
        result = run(
            "add", "--type", "transfer", "--amount", "100", "--account", "Checking",
            "--to-account", "Euro Savings", "--destination-amount", "90",
        )

        assert result.exit_code == 0
        assert "@ 0.9" in result.output

    def test_transfer_needs_destination(self, run, ledger):
        result = run("add", "--type", "transfer", "--amount", "5", "--account", "Wallet")

        assert result.exit_code == 1
        assert "Destination account is required for transfers" in result.output

    def test_missing_category(self, run, ledger):
        result = run("add", "--amount", "5", "--category", "Nope")

        assert result.exit_code == 1
        assert "Category 'Nope' not found" in result.output

    def test_invalid_amount(self, run, ledger):
        result = run("add", "--amount", "-5", "--category", "Food")

        assert result.exit_code == 1
        assert "Invalid amount" in result.output

    def test_no_accounts(self, run):
        result = run("add", "--amount", "5")

        assert result.exit_code == 1
        assert "No accounts found" in result.output


class TestOperationCommands:
    def test_list(self, run, ledger):
        run("add", "--amount", "12.50", "--account", "Wallet", "--category", "Food", "--description", "Lunch")
        run("add", "--type", "income", "--amount", "300", "--account", "Checking", "--category", "Salary")

        result = run("operation", "list")

        assert result.exit_code == 0
        assert "2 operation(s)" in result.output
        assert "-$12.50" in result.output
        assert "+$300.00" in result.output
        assert "Lunch" in result.output

    def test_list_empty(self, run, ledger):
        assert "No operations found." in run("operation", "list").output

    def test_list_skips_quiet_weeks(self, run, ledger):
        long_ago = (date.today() - timedelta(days=60)).isoformat()
        run("add", "--amount", "7", "--category", "Food", "--date", long_ago)

        result = run("operation", "list")

        assert "1 operation(s)" in result.output
        assert long_ago in result.output

    def test_list_from_date(self, run, ledger):
        recent = (date.today() - timedelta(days=3)).isoformat()
        older = (date.today() - timedelta(days=20)).isoformat()
        run("add", "--amount", "1", "--category", "Food", "--date", recent)
        run("add", "--amount", "2", "--category", "Food", "--date", older)

        result = run("operation", "list", "--from", (date.today() - timedelta(days=30)).isoformat())

        assert "2 operation(s)" in result.output

    def test_list_uses_saved_filter(self, run, ledger):
        run("add", "--amount", "1", "--category", "Food")
        run("add", "--type", "income", "--amount", "2", "--category", "Salary")
        run("filter", "set", "--type", "income")

        result = run("operation", "list")
        assert "Filters active: 1" in result.output
        assert "1 operation(s)" in result.output

        result = run("operation", "list", "--no-filter")
        assert "2 operation(s)" in result.output

    def test_show(self, run, ledger):
        run("add", "--amount", "4", "--category", "Transport", "--account", "Wallet")

        result = run("operation", "show", "1")

        assert "Operation 1" in result.output
        assert "Category: Transport" in result.output
        assert run("operation", "show", "9").exit_code == 1

    def test_update(self, run, ledger):
        run("add", "--amount", "10", "--account", "Wallet", "--category", "Food")

        result = run("operation", "update", "1", "--amount", "25", "--category", "Transport")

        assert result.exit_code == 0
        assert "Updated operation 1" in result.output
        assert "Category: Transport" in result.output
        assert "$75.00" in run("account", "list").output

    def test_update_nothing(self, run, ledger):
        run("add", "--amount", "10", "--category", "Food")

        assert "Nothing to update." in run("operation", "update", "1").output

    def test_update_missing(self, run, ledger):
        result = run("operation", "update", "5", "--amount", "1")

        assert result.exit_code == 1
        assert "Operation 5 not found" in result.output

    def test_delete(self, run, ledger):
        run("add", "--amount", "10", "--account", "Wallet", "--category", "Food")

        result = run("operation", "delete", "1", "--yes")

        assert result.exit_code == 0
        assert "Deleted operation 1" in result.output
        assert "$100.00" in run("account", "list").output
        assert run("operation", "delete", "1", "--yes").exit_code == 1


class TestFilterCommands:
    def test_no_filter(self, run):
        assert "No filter set." in run("filter", "show").output

    def test_set_show_clear(self, run, ledger):
        result = run(
            "filter", "set", "--type", "expense", "--account", "Wallet", "--category", "Food",
            "--search", "coffee", "--min-amount", "5",
        )
        assert result.exit_code == 0
        assert "Saved filter with 5 active group(s)" in result.output

        output = run("filter", "show").output
        assert "Active filter groups: 5" in output
        assert "Types: expense" in output
        assert "Accounts: Wallet" in output
        assert "Categories: Food" in output
        assert "Search: coffee" in output
        assert "Amounts: 5 to ..." in output

        assert "Filter cleared." in run("filter", "clear").output
        assert "No filter set." in run("filter", "show").output

    def test_period(self, run):
        result = run("filter", "set", "--period", "last-month")

        assert result.exit_code == 0
        assert "Dates:" in run("filter", "show").output

    def test_period_conflicts_with_dates(self, run):
        result = run("filter", "set", "--period", "this-month", "--start-date", "2024-01-01")

        assert result.exit_code == 1
        assert "cannot be combined" in result.output


class TestRateCommand:
    def test_offline_rate(self, run):
        result = run("rate", "usd", "EUR", "--offline")

        assert result.exit_code == 0
        assert "1 USD = 0.96 EUR (offline)" in result.output
        assert "Offline rates last updated 2025-01-26" in result.output

    def test_unknown_pair(self, run):
        result = run("rate", "USD", "XYZ", "--offline")

        assert result.exit_code == 1
        assert "No rate available for USD -> XYZ" in result.output


def test_log_file_option(run, tmp_path):
    log_file = tmp_path / "logs" / "ledgerkeep.log"

    result = run("--log-level", "info", "--log-file", str(log_file), "account", "create", "Wallet")

    assert result.exit_code == 0
    assert "Created account 1 'Wallet'" in log_file.read_text(encoding="utf-8")
