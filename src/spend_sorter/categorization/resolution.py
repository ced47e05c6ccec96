from typing import Iterable, Optional

from spend_sorter.categorization.base import CategoryPrompter, CategorySink
from spend_sorter.categorization.category import Category, AnyTransaction
from spend_sorter.categorization.categorizer import Categorizer
from spend_sorter.domain.enums import ResolutionState
from spend_sorter.logging_setup import get_logger

logger = get_logger(__name__)


class InteractiveResolver:
    """
    Learns new categories and keywords while categorizing.

    For every transaction no category matches, the prompter is asked for
    a category name and then a pattern. The categorizer extends or creates
    the category. The full category set is persisted before moving on to
    the next transaction.

    Ambiguous matches are never offered for resolution; they stay fatal.
    """

    def __init__(
        self,
        categorizer: Categorizer,
        prompter: CategoryPrompter,
        sink: Optional[CategorySink] = None,
    ):
        self.categorizer = categorizer
        self.prompter = prompter
        self.sink = sink
        self.state = ResolutionState.IDLE
        self.resolved_count = 0

    def resolve(self, transaction: AnyTransaction) -> Category:
        """
        Ask for a category and pattern, apply them and persist.

        Raises:
            ValidationError: If the answers can't form a category/pattern
            SourceWriteError: If persisting the categories fails
        """
        existing = [category.name for category in self.categorizer.categories]

        try:
            self.state = ResolutionState.AWAITING_CATEGORY_NAME
            name = self.prompter.ask_category_name(transaction, existing)

            self.state = ResolutionState.AWAITING_PATTERN
            fragment = self.prompter.ask_pattern(transaction, name)
        finally:
            self.state = ResolutionState.IDLE

        category = self.categorizer.resolve(transaction, name, fragment)
        self.resolved_count += 1

        if self.sink is not None:
            self.sink.save_categories(self.categorizer.categories)
            logger.info("Saved %d categories", len(self.categorizer.categories))

        return category

    def run(self, transactions: Iterable[AnyTransaction]) -> None:
        """
        Categorize transactions in order, resolving unmatched ones.

        Raises:
            AmbiguousCategoryError: If several categories match a transaction
        """
        for transaction in transactions:
            if self.categorizer.step(transaction).needs_input:
                self.resolve(transaction)

        logger.info("Resolved %d transactions interactively", self.resolved_count)
