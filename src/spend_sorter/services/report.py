from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from spend_sorter.categorization.category import Category
from spend_sorter.domain.errors import CategoryNotFoundError
from spend_sorter.logging_setup import get_logger

logger = get_logger(__name__)


class ReportSink(ABC):
    """Destination for rendered report blocks, in the order they are written"""

    @abstractmethod
    def write(self, block: str) -> None:
        pass


def build_report(
    categories: Sequence[Category],
    only_categories: Optional[Iterable[str]] = None,
    inspect_category: Optional[str] = None,
    verbose: bool = False,
) -> List[str]:
    """
    Render categories into ordered text blocks, one per category.

    With verbose, each block lists the category's transactions (oldest
    first) under its summary. Filtering happens here, after categorization, so
    categories left out of the report still took part in matching.

    Args:
        categories: Categorized categories, in report order
        only_categories: Names to include (any case); None includes all
        inspect_category: Report just this category with every transaction
        verbose: Include transactions in each block

    Raises:
        CategoryNotFoundError: If inspect_category names no category
    """
    if inspect_category:
        matching = [c for c in categories if c.is_named(inspect_category)]
        if not matching:
            raise CategoryNotFoundError(inspect_category)
        selected = matching
        verbose = True
    elif only_categories:
        wanted = {name.strip().casefold() for name in only_categories if name.strip()}
        known = {category.name.casefold() for category in categories}
        for unknown in sorted(wanted - known):
            logger.warning("No category named %r to report", unknown)
        selected = [c for c in categories if c.name.casefold() in wanted]
    else:
        selected = list(categories)

    return [category.render(verbose) for category in selected]
