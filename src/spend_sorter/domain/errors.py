from typing import Any, List, Sequence


class SpendSorterError(Exception):
    """Base class for every error that aborts a categorization run."""
    pass


class ValidationError(SpendSorterError, ValueError):
    """Raised when a Transaction or Category is built from missing or malformed fields."""
    pass


class UncategorizedError(SpendSorterError):
    """
    Raised in batch mode when no category matches a transaction.

    Attributes:
        transaction: The transaction nothing matched
    """

    def __init__(self, transaction: Any):
        self.transaction = transaction
        super().__init__(f"Transaction not categorized:\n{transaction.render()}")


class AmbiguousCategoryError(SpendSorterError):
    """
    Raised when two or more categories match the same transaction.

    Fatal in every mode: keyword sets are expected to be mutually
    exclusive, so a collision is a data-authoring bug.

    Attributes:
        transaction: The transaction that matched more than once
        category_names: Names of every matching category, in category order
    """

    def __init__(self, transaction: Any, category_names: Sequence[str]):
        self.transaction = transaction
        self.category_names: List[str] = list(category_names)
        super().__init__(
            f"Transaction matches multiple categories "
            f"({', '.join(self.category_names)}):\n{transaction.render()}"
        )


class SourceReadError(SpendSorterError):
    """Raised when a row source can't be read or has the wrong shape."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not read {source}: {reason}")


class SourceWriteError(SpendSorterError):
    """Raised when categories can't be persisted back to their store."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not write {source}: {reason}")


class EmptyResultError(SpendSorterError):
    """Raised when a source yields no usable categories or transactions."""

    def __init__(self, source: str, kind: str):
        self.source = source
        self.kind = kind
        super().__init__(f"No {kind} found in {source}")


class CategoryNotFoundError(SpendSorterError):
    """Raised when a category is looked up by a name nobody defined."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No category found named {name}")
