import pytest
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Callable, List

from spend_sorter.categorization.category import Category
from spend_sorter.database.connection import DatabaseConfig, DatabaseManager
from spend_sorter.domain.models import Transaction

@pytest.fixture
def categories() -> List[Category]:
    """Two categories with mutually exclusive keywords"""
    return [
        Category("Groceries", "walmart|kroger"),
        Category("Gas", "shell|exxon"),
    ]

@pytest.fixture
def transactions() -> List[Transaction]:
    return [
        Transaction(date(2024, 1, 1), "WALMART #123", Decimal("45.00")),
        Transaction(date(2024, 1, 2), "SHELL OIL", Decimal("30.00")),
    ]

@pytest.fixture
def write_csv(tmp_path) -> Callable[[str, str], Path]:
    """Write CSV text to a file in a temp directory and return its path"""
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content)
        return path
    return _write

@pytest.fixture
def test_db(tmp_path):
    """
    Create a real ledger database.

    Uses pytest's tmp_path so the database is removed after each test.
    """
    db_manager = DatabaseManager(DatabaseConfig(tmp_path / "ledger.db"))
    db_manager.initialize()

    yield db_manager

    db_manager.close()
