import pytest
from datetime import date
from decimal import Decimal

from spend_sorter.categorization import Category, Categorizer
from spend_sorter.database.connection import DatabaseConfig, DatabaseManager
from spend_sorter.domain.errors import (
    CategoryNotFoundError,
    EmptyResultError,
    SourceReadError,
    ValidationError,
)
from spend_sorter.domain.models import LedgerTransaction, Transaction
from spend_sorter.repositories.base import DuplicateCategoryError
from spend_sorter.repositories.sqlite_ledger_repository import SQLiteLedgerRepository

@pytest.fixture
def repo(test_db) -> SQLiteLedgerRepository:
    """Create a repository with a test database."""
    return SQLiteLedgerRepository(test_db)

@pytest.fixture
def ledger_transactions():
    return [
        LedgerTransaction.create("2024-01-05", "PAYROLL", credit="1500.00"),
        LedgerTransaction.create("2024-01-06", "KROGER #12", debit="62.10"),
        LedgerTransaction.create("2024-02-01", "RENT", debit="900.00", check="1042"),
    ]

@pytest.mark.integration
class TestCategoryManagement:
    """Test the add/list commands against a real temp db."""

    def test_add_category_returns_id(self, repo):
        category_id = repo.add_category("Groceries")

        assert isinstance(category_id, int)
        assert category_id > 0

    def test_duplicate_category_any_case(self, repo):
        repo.add_category("Groceries")

        with pytest.raises(DuplicateCategoryError, match="already exists"):
            repo.add_category("groceries")

    def test_blank_category(self, repo):
        with pytest.raises(ValidationError):
            repo.add_category("  ")

    def test_add_keyword(self, repo):
        # Arrange
        repo.add_category("Groceries")

        # Act
        first = repo.add_keyword("kroger", "groceries")
        again = repo.add_keyword("kroger", "Groceries")

        # Assert
        assert first is True
        assert again is False
        assert [k.keyword for k in repo.list_keywords()] == ["kroger"]

    def test_add_keyword_to_unknown_category(self, repo):
        with pytest.raises(CategoryNotFoundError, match="Rent"):
            repo.add_keyword("landlord", "Rent")

    def test_add_invalid_keyword(self, repo):
        repo.add_category("Groceries")

        with pytest.raises(ValidationError, match="Invalid pattern"):
            repo.add_keyword("kroger(", "Groceries")

        assert repo.list_keywords() == []

    def test_list_categories_with_keyword_counts(self, repo):
        # Arrange
        repo.add_category("Gas")
        repo.add_category("Groceries")
        repo.add_keyword("kroger", "Groceries")
        repo.add_keyword("walmart", "Groceries")

        # Act
        records = repo.list_categories()

        # Assert
        assert [(r.name, r.keyword_count) for r in records] == [
            ("Gas", 0),
            ("Groceries", 2),
        ]

    def test_list_keywords_for_one_category(self, repo):
        repo.add_category("Gas")
        repo.add_category("Groceries")
        repo.add_keyword("shell", "Gas")
        repo.add_keyword("walmart", "Groceries")
        repo.add_keyword("kroger", "Groceries")

        records = repo.list_keywords("groceries")

        assert [(r.keyword, r.category) for r in records] == [
            ("kroger", "Groceries"),
            ("walmart", "Groceries"),
        ]

    def test_list_keywords_for_unknown_category(self, repo):
        with pytest.raises(CategoryNotFoundError):
            repo.list_keywords("Rent")


@pytest.mark.integration
class TestLedgerSource:

    def test_load_categories_builds_ledger_patterns(self, repo):
        # Arrange
        repo.add_category("Groceries")
        repo.add_keyword("walmart", "Groceries")
        repo.add_keyword("kroger", "Groceries")

        # Act
        [category] = repo.load_categories()

        # Assert
        assert category.name == "Groceries"
        assert category.ledger
        assert category.pattern.alternatives == ["walmart", "kroger"]

    def test_no_categories(self, repo):
        with pytest.raises(EmptyResultError, match="No categories found"):
            repo.load_categories()

    def test_category_without_keywords(self, repo):
        repo.add_category("Groceries")

        with pytest.raises(ValidationError, match="no keywords"):
            repo.load_categories()

    def test_transactions_round_trip(self, repo, ledger_transactions):
        # Act
        stored = repo.save_transactions(ledger_transactions)
        loaded = repo.load_transactions()

        # Assert
        assert stored == 3
        assert loaded == ledger_transactions

    def test_decimal_precision_preserved(self, repo):
        amounts = ["0.01", "19.95", "1234567.89"]
        repo.save_transactions([
            LedgerTransaction.create("2024-01-01", f"T{i}", debit=amount)
            for i, amount in enumerate(amounts)
        ])

        loaded = repo.load_transactions()

        assert [t.debit for t in loaded] == [Decimal(a) for a in amounts]

    def test_signed_transactions_are_split(self, repo):
        repo.save_transactions([
            Transaction(date(2024, 1, 1), "REFUND", Decimal("20")),
            Transaction(date(2024, 1, 2), "SHELL", Decimal("-30")),
        ])

        refund, shell = repo.load_transactions()

        assert (refund.credit, refund.debit) == (Decimal("20"), Decimal("0"))
        assert (shell.credit, shell.debit) == (Decimal("0"), Decimal("30"))

    def test_load_transactions_in_window(self, repo, ledger_transactions):
        repo.save_transactions(ledger_transactions)

        loaded = repo.load_transactions(from_date=date(2024, 1, 6), to_date=date(2024, 1, 31))

        assert [t.description for t in loaded] == ["KROGER #12"]

    def test_empty_window(self, repo, ledger_transactions):
        repo.save_transactions(ledger_transactions)

        with pytest.raises(EmptyResultError, match="No transactions found"):
            repo.load_transactions(from_date=date(2025, 1, 1))

    def test_missing_schema(self, tmp_path):
        with DatabaseManager(DatabaseConfig(tmp_path / "blank.db")) as db:
            repo = SQLiteLedgerRepository(db)

            with pytest.raises(SourceReadError):
                repo.load_categories()


@pytest.mark.integration
class TestLedgerSink:

    def test_save_categories_only_adds(self, repo):
        # Arrange
        repo.add_category("Groceries")
        repo.add_keyword("walmart", "Groceries")
        groceries = Category("Groceries", "walmart|kroger", ledger=True)
        income = Category("Income", "payroll", ledger=True)

        # Act
        repo.save_categories([groceries, income])

        # Assert
        loaded = {c.name: c.pattern.alternatives for c in repo.load_categories()}
        assert loaded == {"Groceries": ["walmart", "kroger"], "Income": ["payroll"]}

    def test_learned_category_is_reused_on_next_run(self, repo, ledger_transactions):
        """Test categories saved by one run categorize the next run's transactions"""
        # Arrange
        repo.add_category("Home")
        repo.add_keyword("rent", "Home")
        repo.save_transactions(ledger_transactions)
        categorizer = Categorizer(repo.load_categories())
        payroll, kroger, _ = repo.load_transactions()
        categorizer.resolve(payroll, "Income", "payroll")
        categorizer.resolve(kroger, "Groceries", "kroger")

        # Act
        repo.save_categories(categorizer.categories)
        next_run = Categorizer(repo.load_categories())
        next_run.categorize(repo.load_transactions())

        # Assert
        totals = {c.name: (c.total_credits, c.total_debits) for c in next_run.categories}
        assert totals == {
            "Groceries": (Decimal("0"), Decimal("62.10")),
            "Home": (Decimal("0"), Decimal("900.00")),
            "Income": (Decimal("1500.00"), Decimal("0")),
        }
