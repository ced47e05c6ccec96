"""
Rule-based transaction categorization.

Every transaction is matched against every category's keyword pattern and
must land in exactly one category. Unmatched transactions either abort the
run (batch) or are resolved by asking the user (interactive).

Quick Start:
    >>> from spend_sorter.categorization import Category, Categorizer
    >>>
    >>> categorizer = Categorizer([Category("Groceries", "walmart|kroger")])
    >>> categorizer.categorize(transactions)
"""
from spend_sorter.categorization.pattern import PatternRule, split_alternatives
from spend_sorter.categorization.category import Category
from spend_sorter.categorization.categorizer import Categorizer, CategorizationStep
from spend_sorter.categorization.base import CategoryPrompter, CategorySink
from spend_sorter.categorization.resolution import InteractiveResolver

__all__ = [
    "PatternRule",
    "split_alternatives",
    "Category",
    "Categorizer",
    "CategorizationStep",
    "CategoryPrompter",
    "CategorySink",
    "InteractiveResolver",
]
