from decimal import Decimal
from typing import List, Optional, Tuple, Union

from spend_sorter.categorization.pattern import PatternRule
from spend_sorter.domain.errors import ValidationError
from spend_sorter.domain.models import Transaction, LedgerTransaction

AnyTransaction = Union[Transaction, LedgerTransaction]


class Category:
    """
    Named bucket of transactions defined by a matching pattern.

    A category exclusively owns the transactions recorded into it and keeps
    running totals that always equal the sum over those transactions.
    record_transaction() is the only way to change them.

    Ledger categories (ledger=True) report credits and debits separately
    instead of a single signed total.

    Example:
        ```
        groceries = Category("Groceries", "walmart|kroger")
        if groceries.matches(txn):
            groceries.record_transaction(txn)
        print(groceries.render(verbose=True))
        ```
    """

    def __init__(
        self,
        name: Optional[str],
        pattern: Union[str, PatternRule, None],
        ledger: bool = False,
    ):
        """
        Args:
            name: Category name, compared case-insensitively
            pattern: "|"-joined keyword text or a prepared PatternRule
            ledger: Whether totals are reported as credits/debits

        Raises:
            ValidationError: If name or pattern is missing
        """
        if not name or not name.strip() or pattern is None or (
            isinstance(pattern, str) and not pattern.strip()
        ):
            raise ValidationError("Cannot create category without name and keywords")

        self.name = name.strip()
        self.pattern = pattern if isinstance(pattern, PatternRule) else PatternRule.from_source(pattern)
        self.ledger = ledger

        self._transactions: List[AnyTransaction] = []
        self.total_transaction_count = 0
        self.total_amount = Decimal("0")
        self.total_credits = Decimal("0")
        self.total_debits = Decimal("0")

    @property
    def transactions(self) -> Tuple[AnyTransaction, ...]:
        """Recorded transactions in categorization order"""
        return tuple(self._transactions)

    def is_named(self, name: str) -> bool:
        return self.name.casefold() == name.strip().casefold()

    def extend_pattern(self, fragment: str) -> None:
        """Add keyword alternatives to this category's pattern"""
        self.pattern.extend(fragment)

    def matches(self, transaction: AnyTransaction) -> bool:
        return self.pattern.matches(transaction.description)

    def record_transaction(self, transaction: AnyTransaction) -> None:
        """Take ownership of a transaction and fold it into the totals"""
        self._transactions.append(transaction)
        self.total_transaction_count += 1
        self.total_amount += transaction.amount
        self.total_credits += transaction.credit
        self.total_debits += transaction.debit

    def sorted_transactions(self) -> List[AnyTransaction]:
        """Transactions ordered by date; equal dates keep insertion order"""
        return sorted(self._transactions, key=lambda t: t.date)

    def render(self, verbose: bool = False) -> str:
        """
        Summary block for reports.

        Args:
            verbose: Append every transaction, oldest first
        """
        lines = [
            f"Category: {self.name}",
            f"Keywords: {self.pattern.display()}",
            f"Total transactions: {self.total_transaction_count}",
        ]
        if self.ledger:
            lines.append(f"Total debits: {self.total_debits:.2f}")
            lines.append(f"Total credits: {self.total_credits:.2f}")
        else:
            lines.append(f"Total amount: {self.total_amount:.2f}")

        text = "\n".join(lines) + "\n"

        if verbose:
            text += "".join(
                "\n" + txn.render() for txn in self.sorted_transactions()
            )

        return text

    def __repr__(self) -> str:
        return (
            f"Category({self.name!r}, {self.pattern.source!r}, "
            f"{self.total_transaction_count} transactions)"
        )
