import sqlite3
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence

from spend_sorter.categorization.category import Category, AnyTransaction
from spend_sorter.categorization.pattern import PatternRule
from spend_sorter.database.connection import DatabaseManager
from spend_sorter.domain.errors import (
    CategoryNotFoundError,
    EmptyResultError,
    SourceReadError,
    SourceWriteError,
    ValidationError,
)
from spend_sorter.domain.models import LedgerTransaction
from spend_sorter.logging_setup import get_logger
from spend_sorter.repositories.base import (
    CategoryRecord,
    DuplicateCategoryError,
    KeywordRecord,
    LedgerRepository,
)

logger = get_logger(__name__)

class SQLiteLedgerRepository(LedgerRepository):
    """
    SQLite implementation of the LedgerRepository.

    Categories and keywords live in separate tables; a category's
    keywords, in insertion order, are the alternatives of its pattern.
    Everything loaded from here is a ledger (credit/debit) category.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    @property
    def _source(self) -> str:
        return self.db.config.connection_string

    def _category_id(self, conn: sqlite3.Connection, name: str) -> Optional[int]:
        row = conn.execute(
            "SELECT id FROM categories WHERE name = ?", (name.strip(),)
        ).fetchone()
        return row["id"] if row else None

    def load_categories(self) -> List[Category]:
        """Build categories from their keyword rows."""
        try:
            conn = self.db.get_connection()
            category_rows = conn.execute(
                "SELECT id, name FROM categories ORDER BY name"
            ).fetchall()
            keyword_rows = conn.execute(
                "SELECT name, category_id FROM keywords ORDER BY id"
            ).fetchall()
        except sqlite3.Error as e:
            raise SourceReadError(self._source, str(e))

        if not category_rows:
            raise EmptyResultError(self._source, "categories")

        keywords: Dict[int, List[str]] = defaultdict(list)
        for row in keyword_rows:
            keywords[row["category_id"]].append(row["name"])

        categories = []
        for row in category_rows:
            if not keywords[row["id"]]:
                raise ValidationError(f"Category {row['name']!r} has no keywords")
            categories.append(
                Category(row["name"], PatternRule(keywords[row["id"]]), ledger=True)
            )

        logger.info("Loaded %d categories from %s", len(categories), self._source)
        return categories

    def load_transactions(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[LedgerTransaction]:
        """Retrieve ledger transactions in date order, with optional filtering."""
        query = 'SELECT date, description, "check", credit, debit FROM transactions WHERE 1=1'
        params = []

        if from_date:
            query += " AND date >= ?"
            params.append(from_date.isoformat())

        if to_date:
            query += " AND date <= ?"
            params.append(to_date.isoformat())

        query += " ORDER BY date, id"

        try:
            rows = self.db.get_connection().execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise SourceReadError(self._source, str(e))

        if not rows:
            raise EmptyResultError(self._source, "transactions")

        return [self._row_to_transaction(row) for row in rows]

    def save_categories(self, categories: Sequence[Category]) -> None:
        """
        Insert categories and keywords that aren't stored yet.

        Nothing is deleted: patterns only ever grow.
        """
        try:
            with self.db.transaction() as conn:
                for category in categories:
                    conn.execute(
                        "INSERT OR IGNORE INTO categories (name) VALUES (?)",
                        (category.name,),
                    )
                    category_id = self._category_id(conn, category.name)

                    for keyword in category.pattern.alternatives:
                        conn.execute(
                            "INSERT OR IGNORE INTO keywords (name, category_id) VALUES (?, ?)",
                            (keyword, category_id),
                        )
        except sqlite3.Error as e:
            raise SourceWriteError(self._source, str(e))

        logger.info("Saved %d categories to %s", len(categories), self._source)

    def add_category(self, name: str) -> int:
        """Create an empty category and return its ID."""
        if not name or not name.strip():
            raise ValidationError("Cannot add category without name")

        try:
            with self.db.transaction() as conn:
                cursor = conn.execute(
                    "INSERT INTO categories (name) VALUES (?)", (name.strip(),)
                )
        except sqlite3.IntegrityError:
            raise DuplicateCategoryError(f'Category "{name}" already exists')

        return cursor.lastrowid

    def add_keyword(self, keyword: str, category_name: str) -> bool:
        """Attach a keyword to an existing category."""
        if not keyword or not category_name:
            raise ValidationError("Cannot add keyword without name and category name")

        # Reject keywords that wouldn't compile before they're stored
        PatternRule([keyword])

        with self.db.transaction() as conn:
            category_id = self._category_id(conn, category_name)
            if category_id is None:
                raise CategoryNotFoundError(category_name)

            cursor = conn.execute(
                "INSERT OR IGNORE INTO keywords (name, category_id) VALUES (?, ?)",
                (keyword.strip(), category_id),
            )

        return cursor.rowcount > 0

    def list_categories(self) -> List[CategoryRecord]:
        rows = self.db.get_connection().execute(
            """
            SELECT c.id, c.name, COUNT(k.id) AS keyword_count
            FROM categories c
            LEFT JOIN keywords k ON k.category_id = c.id
            GROUP BY c.id, c.name
            ORDER BY c.name
            """
        ).fetchall()

        return [
            CategoryRecord(id=row["id"], name=row["name"], keyword_count=row["keyword_count"])
            for row in rows
        ]

    def list_keywords(self, category_name: Optional[str] = None) -> List[KeywordRecord]:
        conn = self.db.get_connection()
        query = (
            "SELECT k.id, k.name AS keyword, c.name AS category "
            "FROM keywords k "
            "JOIN categories c ON k.category_id = c.id "
        )
        params = []

        if category_name:
            if self._category_id(conn, category_name) is None:
                raise CategoryNotFoundError(category_name)
            query += "WHERE c.name = ? "
            params.append(category_name.strip())

        query += "ORDER BY category, keyword"

        return [
            KeywordRecord(id=row["id"], keyword=row["keyword"], category=row["category"])
            for row in conn.execute(query, params).fetchall()
        ]

    def save_transactions(self, transactions: Sequence[AnyTransaction]) -> int:
        """Store transactions; signed amounts are split into credit/debit."""
        with self.db.transaction() as conn:
            for txn in transactions:
                conn.execute(
                    """
                    INSERT INTO transactions (date, description, "check", credit, debit)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        txn.date.isoformat(),
                        txn.description,
                        getattr(txn, "check", None),
                        str(txn.credit),
                        str(txn.debit),
                    ),
                )

        logger.info("Stored %d transactions in %s", len(transactions), self._source)
        return len(transactions)

    def _row_to_transaction(self, row: sqlite3.Row) -> LedgerTransaction:
        """Convert database row to LedgerTransaction object."""
        return LedgerTransaction.create(
            date=row["date"],
            description=row["description"],
            credit=row["credit"],
            debit=row["debit"],
            check=row["check"],
        )
