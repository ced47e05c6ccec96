from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from spend_sorter.categorization.category import Category, AnyTransaction


class CategorySource(ABC):
    """
    Abstract source of categories and transactions for a run.

    Implements the Strategy pattern - CSV files and the SQLite ledger
    each provide a concrete source.
    """

    @abstractmethod
    def load_categories(self) -> List[Category]:
        """
        Load every category definition.

        Returns:
            Categories in source order, with no transactions recorded yet

        Raises:
            SourceReadError: If the source can't be read
            EmptyResultError: If no categories are defined
            ValidationError: If a category row is incomplete
        """
        pass

    @abstractmethod
    def load_transactions(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[AnyTransaction]:
        """
        Load transactions inside an optional inclusive date window.

        Args:
            from_date: Skip transactions before this date
            to_date: Skip transactions after this date

        Returns:
            Transactions in source order

        Raises:
            SourceReadError: If the source can't be read
            EmptyResultError: If no transaction falls in the window
            ValidationError: If a transaction row is incomplete
        """
        pass
