from dataclasses import dataclass
from typing import Iterable, List, Optional

from spend_sorter.categorization.category import Category, AnyTransaction
from spend_sorter.domain.errors import AmbiguousCategoryError, UncategorizedError
from spend_sorter.logging_setup import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CategorizationStep:
    """
    Outcome of categorizing one transaction.

    category is None when nothing matched and the caller has to supply
    a category name and pattern before moving on.
    """
    transaction: AnyTransaction
    category: Optional[Category] = None

    @property
    def needs_input(self) -> bool:
        return self.category is None


class Categorizer:
    """
    Assigns every transaction to exactly one category.

    Each transaction is tested against the whole category set, never
    first-match-wins, so overlapping keyword rules surface as an
    AmbiguousCategoryError instead of being silently masked.

    Usage:
        # Batch - any uncategorized transaction aborts the run
        categorizer = Categorizer(categories)
        categorizer.categorize(transactions)

        # Step-wise - the caller resolves unmatched transactions itself
        step = categorizer.step(txn)
        if step.needs_input:
            categorizer.resolve(txn, "Groceries", "costco")
    """

    def __init__(self, categories: Iterable[Category]):
        self._categories: List[Category] = list(categories)

    @property
    def categories(self) -> List[Category]:
        """The working category set, including categories created mid-run"""
        return list(self._categories)

    @property
    def ledger(self) -> bool:
        return any(category.ledger for category in self._categories)

    def find_category(self, name: str) -> Optional[Category]:
        """Case-insensitive lookup by name"""
        for category in self._categories:
            if category.is_named(name):
                return category
        return None

    def find_matches(self, transaction: AnyTransaction) -> List[Category]:
        """Every category whose pattern matches the transaction"""
        return [
            category for category in self._categories
            if category.matches(transaction)
        ]

    def step(self, transaction: AnyTransaction) -> CategorizationStep:
        """
        Categorize a single transaction.

        Records the transaction into its category when exactly one
        matches. Nothing is mutated otherwise.

        Returns:
            A step whose needs_input is True when no category matched

        Raises:
            AmbiguousCategoryError: If two or more categories match
        """
        matches = self.find_matches(transaction)

        if len(matches) > 1:
            raise AmbiguousCategoryError(
                transaction, [category.name for category in matches]
            )

        if not matches:
            logger.debug("No category matched %r", transaction)
            return CategorizationStep(transaction)

        category = matches[0]
        category.record_transaction(transaction)
        logger.debug("%r -> %s", transaction, category.name)
        return CategorizationStep(transaction, category)

    def categorize(self, transactions: Iterable[AnyTransaction]) -> None:
        """
        Categorize transactions in input order, batch style.

        Raises:
            UncategorizedError: On the first transaction no category matches
            AmbiguousCategoryError: On the first transaction several categories match
        """
        count = 0
        for transaction in transactions:
            if self.step(transaction).needs_input:
                raise UncategorizedError(transaction)
            count += 1

        logger.info(
            "Categorized %d transactions into %d categories",
            count, len(self._categories),
        )

    def resolve(
        self,
        transaction: AnyTransaction,
        name: str,
        fragment: str,
    ) -> Category:
        """
        Place an unmatched transaction using a user-supplied name and pattern.

        An existing category (matched case-insensitively) gets the fragment
        added to its pattern; otherwise a new category is created and joins
        the working set so later transactions can match it.

        Returns:
            The category the transaction was recorded into

        Raises:
            ValidationError: If the name or fragment is empty or invalid
        """
        category = self.find_category(name) if name else None

        if category is not None:
            category.extend_pattern(fragment)
            logger.info("Extended %s with %r", category.name, fragment)
        else:
            category = Category(name, fragment, ledger=self.ledger)
            self._categories.append(category)
            logger.info("Created category %s with %r", category.name, fragment)

        if not category.matches(transaction):
            logger.warning(
                "Pattern for %s does not match %r; recording it there anyway",
                category.name, transaction.description,
            )

        category.record_transaction(transaction)
        return category

    def __repr__(self) -> str:
        return f"Categorizer({len(self._categories)} categories)"
