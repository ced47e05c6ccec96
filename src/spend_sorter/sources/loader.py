from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from spend_sorter.categorization.category import Category, AnyTransaction
from spend_sorter.config.settings import CategoryColumns, ColumnMapping, TransactionColumns
from spend_sorter.domain.errors import EmptyResultError, SourceReadError, ValidationError
from spend_sorter.domain.models import Transaction, LedgerTransaction
from spend_sorter.logging_setup import get_logger
from spend_sorter.sources.base import CategorySource
from spend_sorter.sources.csv_rows import CsvRowReader, Row

logger = get_logger(__name__)


def _require_columns(rows: Sequence[Row], required: Iterable[str], source: str) -> None:
    missing = [column for column in required if column not in rows[0]]
    if missing:
        raise SourceReadError(source, f"missing column(s): {', '.join(missing)}")


def in_date_range(
    transaction: AnyTransaction,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> bool:
    """Whether a transaction falls inside the inclusive [from_date, to_date] window"""
    if from_date and transaction.date < from_date:
        return False
    if to_date and transaction.date > to_date:
        return False
    return True


def is_ledger(
    rows: Sequence[Row],
    columns: TransactionColumns,
    source: str = "transactions",
) -> bool:
    """
    Whether transaction rows carry credit/debit columns instead of an amount.

    Raises:
        SourceReadError: If the rows have neither
    """
    header = rows[0] if rows else {}
    if columns.amount in header:
        return False
    if columns.credit in header or columns.debit in header:
        return True
    if not rows:
        return False
    raise SourceReadError(
        source,
        f"missing column(s): {columns.amount} (or {columns.credit}/{columns.debit})",
    )


def build_categories(
    rows: Sequence[Row],
    columns: CategoryColumns = CategoryColumns(),
    source: str = "categories",
    ledger: bool = False,
) -> List[Category]:
    """
    Turn category rows into Category objects.

    Raises:
        EmptyResultError: If there are no rows
        SourceReadError: If the name or pattern column is missing
        ValidationError: If a row is incomplete or a name is repeated
    """
    if not rows:
        raise EmptyResultError(source, "categories")

    _require_columns(rows, [columns.name, columns.pattern], source)

    categories: List[Category] = []
    for row in rows:
        category = Category(row[columns.name], row[columns.pattern], ledger=ledger)

        if any(existing.is_named(category.name) for existing in categories):
            raise ValidationError(f"Category {category.name!r} is defined more than once")

        categories.append(category)

    logger.info("Loaded %d categories from %s", len(categories), source)
    return categories


def build_transactions(
    rows: Sequence[Row],
    columns: TransactionColumns = TransactionColumns(),
    source: str = "transactions",
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[AnyTransaction]:
    """
    Turn transaction rows into Transactions, dropping those outside the window.

    Rows with an amount column become Transactions; rows with credit/debit
    columns become LedgerTransactions.

    Raises:
        EmptyResultError: If no transaction is left after filtering
        SourceReadError: If a required column is missing
        ValidationError: If a row is incomplete
    """
    if not rows:
        raise EmptyResultError(source, "transactions")

    ledger = is_ledger(rows, columns, source)
    _require_columns(rows, [columns.date, columns.description], source)

    transactions: List[AnyTransaction] = []
    for row in rows:
        if ledger:
            transaction = LedgerTransaction.create(
                date=row[columns.date],
                description=row[columns.description],
                credit=row.get(columns.credit),
                debit=row.get(columns.debit),
                check=row.get(columns.check),
            )
        else:
            transaction = Transaction.create(
                date=row[columns.date],
                description=row[columns.description],
                amount=row[columns.amount],
            )

        if in_date_range(transaction, from_date, to_date):
            transactions.append(transaction)

    if not transactions:
        raise EmptyResultError(source, "transactions")

    logger.info(
        "Loaded %d of %d transactions from %s", len(transactions), len(rows), source
    )
    return transactions


class CsvSource(CategorySource):
    """
    Categories and transactions read from a pair of CSV files.

    Usage:
        source = CsvSource("transactions.csv", "categories.csv")
        categories = source.load_categories()
        transactions = source.load_transactions(from_date=date(2024, 1, 1))
    """

    def __init__(
        self,
        transactions_path: Union[str, Path],
        categories_path: Union[str, Path],
        columns: Optional[ColumnMapping] = None,
        reader: Optional[CsvRowReader] = None,
    ):
        self.transactions_path = Path(transactions_path)
        self.categories_path = Path(categories_path)
        self.columns = columns or ColumnMapping()
        self.reader = reader or CsvRowReader()
        self._transaction_rows: Optional[List[Row]] = None

    def _read_transaction_rows(self) -> List[Row]:
        if self._transaction_rows is None:
            self._transaction_rows = self.reader.read(self.transactions_path)
        return self._transaction_rows

    @property
    def ledger(self) -> bool:
        """Whether the transaction file is a credit/debit ledger"""
        return is_ledger(
            self._read_transaction_rows(),
            self.columns.transactions,
            source=str(self.transactions_path),
        )

    def load_categories(self) -> List[Category]:
        rows = self.reader.read(self.categories_path)
        return build_categories(
            rows,
            self.columns.categories,
            source=str(self.categories_path),
            ledger=self.ledger,
        )

    def load_transactions(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[AnyTransaction]:
        return build_transactions(
            self._read_transaction_rows(),
            self.columns.transactions,
            source=str(self.transactions_path),
            from_date=from_date,
            to_date=to_date,
        )
