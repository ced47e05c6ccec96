"""
Service layer models - DTOs for service operations.

These models represent the results of service operations, not domain entities.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from spend_sorter.categorization.category import Category, AnyTransaction

@dataclass
class RunResult:
    """
    Result of categorizing a batch of transactions.

    Every transaction ends up in exactly one category, so the category
    counts always add up to the number of transactions loaded.
    """
    categories: List[Category]
    transactions: List[AnyTransaction] = field(default_factory=list)
    resolved: int = 0

    @property
    def total_transactions(self) -> int:
        return len(self.transactions)

    @property
    def total_amount(self) -> Decimal:
        """Net amount across every category"""
        return sum((c.total_amount for c in self.categories), Decimal("0"))

    @property
    def ledger(self) -> bool:
        return any(category.ledger for category in self.categories)

    def __str__(self) -> str:
        "Human-readable summary"
        lines = [
            f"Categorized {self.total_transactions} transactions "
            f"into {len(self.categories)} categories",
            f"Net amount: {self.total_amount:.2f}",
        ]

        if self.resolved:
            lines.append(f"Resolved interactively: {self.resolved}")

        return "\n".join(lines)

    def __post_init__(self):
        """Validate the categories partition the transactions"""
        recorded = sum(c.total_transaction_count for c in self.categories)
        if recorded != len(self.transactions):
            raise ValueError(
                f"Count mismatch: categories hold {recorded} transactions "
                f"but {len(self.transactions)} were loaded"
            )
