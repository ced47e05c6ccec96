from abc import abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from spend_sorter.categorization.base import CategorySink
from spend_sorter.categorization.category import AnyTransaction
from spend_sorter.domain.errors import SpendSorterError
from spend_sorter.sources.base import CategorySource

class DuplicateCategoryError(SpendSorterError):
    """Raised when adding a category whose name is already taken."""
    pass

@dataclass(frozen=True)
class CategoryRecord:
    id: int
    name: str
    keyword_count: int

@dataclass(frozen=True)
class KeywordRecord:
    id: int
    keyword: str
    category: str

class LedgerRepository(CategorySource, CategorySink):
    """
    Abstract store for the ledger variant.

    On top of being a category source and sink, the ledger keeps
    categories and keywords as separate records that can be managed
    one at a time.
    """

    @abstractmethod
    def add_category(self, name: str) -> int:
        """
        Create an empty category.

        Returns:
            The new category's ID

        Raises:
            ValidationError: If the name is blank
            DuplicateCategoryError: If the name exists (any case)
        """
        pass

    @abstractmethod
    def add_keyword(self, keyword: str, category_name: str) -> bool:
        """
        Attach a keyword pattern to a category.

        Returns:
            True if added, False if the category already had it

        Raises:
            ValidationError: If the keyword is blank or not a valid regex
            CategoryNotFoundError: If the category doesn't exist
        """
        pass

    @abstractmethod
    def list_categories(self) -> List[CategoryRecord]:
        """All categories ordered by name"""
        pass

    @abstractmethod
    def list_keywords(self, category_name: Optional[str] = None) -> List[KeywordRecord]:
        """
        Keywords ordered by category then keyword.

        Args:
            category_name: Only list this category's keywords

        Raises:
            CategoryNotFoundError: If category_name doesn't exist
        """
        pass

    @abstractmethod
    def save_transactions(self, transactions: Sequence[AnyTransaction]) -> int:
        """
        Store transactions in the ledger.

        Returns:
            Number of transactions stored
        """
        pass
