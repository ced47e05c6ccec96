from abc import ABC, abstractmethod
from typing import Sequence, Union

from spend_sorter.categorization.category import Category
from spend_sorter.domain.models import Transaction, LedgerTransaction


class CategorySink(ABC):
    """
    Store that categories are written back to after they change.

    Only the learning flow needs one: every new category or pattern
    extension is persisted before the next transaction is processed.
    """

    @abstractmethod
    def save_categories(self, categories: Sequence[Category]) -> None:
        """
        Persist the full, current category set.

        Args:
            categories: Every category in the working set, in order

        Raises:
            SourceWriteError: If the store can't be written
        """
        pass


class CategoryPrompter(ABC):
    """
    The external actor consulted when no category matches a transaction.

    Calls are synchronous: the whole run waits for each answer. The CLI
    implements this with rich prompts; tests script the answers.
    """

    @abstractmethod
    def ask_category_name(
        self,
        transaction: Union[Transaction, LedgerTransaction],
        existing_names: Sequence[str],
    ) -> str:
        """
        Ask which category an uncategorized transaction belongs to.

        Args:
            transaction: The transaction nothing matched
            existing_names: Names of the categories known so far

        Returns:
            A category name. An existing name (any case) extends that
            category, anything else creates a new one.
        """
        pass

    @abstractmethod
    def ask_pattern(
        self,
        transaction: Union[Transaction, LedgerTransaction],
        category_name: str,
    ) -> str:
        """
        Ask for the keyword pattern that should catch this transaction.

        Args:
            transaction: The transaction nothing matched
            category_name: The name given to ask_category_name()

        Returns:
            A case-insensitive regular expression fragment
        """
        pass
