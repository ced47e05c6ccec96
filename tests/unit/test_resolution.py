import pytest
from datetime import date
from decimal import Decimal
from typing import List, Sequence, Tuple

from spend_sorter.categorization import Category, Categorizer, CategoryPrompter, InteractiveResolver
from spend_sorter.domain.enums import ResolutionState
from spend_sorter.domain.errors import AmbiguousCategoryError, SourceWriteError
from spend_sorter.domain.models import Transaction


class ScriptedPrompter(CategoryPrompter):
    """Answers prompts from a list and records what it was asked"""

    def __init__(self, answers: List[Tuple[str, str]], resolver_ref=None):
        self.answers = list(answers)
        self.asked: List[str] = []
        self.states: List[ResolutionState] = []
        self.resolver = resolver_ref

    def ask_category_name(self, transaction, existing_names: Sequence[str]) -> str:
        self.asked.append(transaction.description)
        self.existing_names = list(existing_names)
        if self.resolver:
            self.states.append(self.resolver.state)
        return self.answers[0][0]

    def ask_pattern(self, transaction, category_name: str) -> str:
        if self.resolver:
            self.states.append(self.resolver.state)
        return self.answers.pop(0)[1]


@pytest.fixture
def unmatched() -> List[Transaction]:
    return [
        Transaction(date(2024, 1, 3), "COSTCO WHSE #1", Decimal("80.00")),
        Transaction(date(2024, 1, 4), "NETFLIX.COM", Decimal("15.49")),
        Transaction(date(2024, 1, 5), "COSTCO GAS", Decimal("50.00")),
    ]


@pytest.mark.unit
class TestInteractiveResolver:

    def test_run_learns_and_reuses_new_categories(self, categories, transactions, unmatched, mocker):
        """Test that a learned pattern catches later transactions without asking again"""
        # Arrange
        categorizer = Categorizer(categories)
        prompter = ScriptedPrompter([("Warehouse", "costco"), ("Subscriptions", "netflix")])
        sink = mocker.Mock()
        resolver = InteractiveResolver(categorizer, prompter, sink)

        # Act
        resolver.run(transactions + unmatched)

        # Assert
        assert prompter.asked == ["COSTCO WHSE #1", "NETFLIX.COM"]
        assert resolver.resolved_count == 2
        names = [c.name for c in categorizer.categories]
        assert names == ["Groceries", "Gas", "Warehouse", "Subscriptions"]
        warehouse = categorizer.find_category("warehouse")
        assert warehouse.total_amount == Decimal("130.00")
        assert sum(c.total_transaction_count for c in categorizer.categories) == 5

    def test_persists_full_set_after_every_resolution(self, categories, unmatched, mocker):
        # Arrange
        categorizer = Categorizer(categories)
        prompter = ScriptedPrompter([("Groceries", "costco"), ("Subscriptions", "netflix")])
        sink = mocker.Mock()
        resolver = InteractiveResolver(categorizer, prompter, sink)

        # Act
        resolver.run(unmatched)

        # Assert
        assert sink.save_categories.call_count == 2
        saved = sink.save_categories.call_args_list[-1].args[0]
        assert [c.name for c in saved] == ["Groceries", "Gas", "Subscriptions"]
        assert saved[0].pattern.alternatives == ["walmart", "kroger", "costco"]

    def test_prompter_sees_existing_names(self, categories, unmatched):
        prompter = ScriptedPrompter([("Warehouse", "costco")])
        resolver = InteractiveResolver(Categorizer(categories), prompter)

        resolver.resolve(unmatched[0])

        assert prompter.existing_names == ["Groceries", "Gas"]

    def test_state_machine(self, categories, unmatched):
        """Test the resolver waits for a name, then a pattern, then goes idle"""
        # Arrange
        prompter = ScriptedPrompter([("Warehouse", "costco")])
        resolver = InteractiveResolver(Categorizer(categories), prompter)
        prompter.resolver = resolver

        # Act
        resolver.resolve(unmatched[0])

        # Assert
        assert prompter.states == [
            ResolutionState.AWAITING_CATEGORY_NAME,
            ResolutionState.AWAITING_PATTERN,
        ]
        assert resolver.state == ResolutionState.IDLE

    def test_ambiguity_is_never_offered_for_resolution(self, mocker):
        categorizer = Categorizer([Category("A", "store"), Category("B", "store")])
        prompter = mocker.Mock(spec=CategoryPrompter)
        resolver = InteractiveResolver(categorizer, prompter)
        txn = Transaction(date(2024, 1, 1), "the store", Decimal("5"))

        with pytest.raises(AmbiguousCategoryError):
            resolver.run([txn])

        prompter.ask_category_name.assert_not_called()

    def test_persistence_failure_is_fatal(self, categories, unmatched, mocker):
        # Arrange
        sink = mocker.Mock()
        sink.save_categories.side_effect = SourceWriteError("categories.csv", "disk full")
        prompter = ScriptedPrompter([("Warehouse", "costco"), ("Subscriptions", "netflix")])
        resolver = InteractiveResolver(Categorizer(categories), prompter, sink)

        # Act / Assert
        with pytest.raises(SourceWriteError):
            resolver.run(unmatched)

        assert prompter.asked == ["COSTCO WHSE #1"]
