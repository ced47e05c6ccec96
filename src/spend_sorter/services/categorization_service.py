from typing import Optional

from spend_sorter.categorization import Categorizer, CategoryPrompter, CategorySink, InteractiveResolver
from spend_sorter.config.settings import RunConfig
from spend_sorter.logging_setup import get_logger
from spend_sorter.services.models import RunResult
from spend_sorter.services.report import ReportSink, build_report
from spend_sorter.sources.base import CategorySource

logger = get_logger(__name__)

class CategorizationService:
    """
    Runs the load -> categorize -> report pipeline.

    Usage:
        # Batch - stops at the first uncategorized transaction
        service = CategorizationService(CsvSource(txn_path, cat_path))
        result = service.run(RunConfig())

        # Interactive - asks the prompter and saves learned categories
        service = CategorizationService(source, sink=sink, prompter=prompter)
        result = service.run(RunConfig(interactive=True))

        service.report(result, config, report_sink)
    """

    def __init__(
        self,
        source: CategorySource,
        sink: Optional[CategorySink] = None,
        prompter: Optional[CategoryPrompter] = None,
    ):
        self.source = source
        self.sink = sink
        self.prompter = prompter

    def run(self, config: RunConfig) -> RunResult:
        """
        Load categories and transactions and categorize every transaction.

        Args:
            config: Date window and interactive flag for the run

        Returns:
            A RunResult holding the (possibly extended) category set

        Raises:
            ValueError: If interactive mode is requested without a prompter
            UncategorizedError: Batch mode, when nothing matches a transaction
            AmbiguousCategoryError: When several categories match a transaction
        """
        if config.interactive and self.prompter is None:
            raise ValueError("Interactive mode needs a prompter")

        categories = self.source.load_categories()
        transactions = self.source.load_transactions(
            from_date=config.from_date,
            to_date=config.to_date,
        )

        categorizer = Categorizer(categories)
        resolved = 0

        if config.interactive:
            resolver = InteractiveResolver(categorizer, self.prompter, self.sink)
            resolver.run(transactions)
            resolved = resolver.resolved_count
        else:
            categorizer.categorize(transactions)

        return RunResult(
            categories=categorizer.categories,
            transactions=transactions,
            resolved=resolved,
        )

    def report(
        self,
        result: RunResult,
        config: RunConfig,
        sink: ReportSink,
    ) -> int:
        """
        Write the report blocks for a run to a sink.

        Returns:
            Number of blocks written
        """
        blocks = build_report(
            result.categories,
            only_categories=config.only_categories,
            inspect_category=config.inspect_category,
            verbose=config.verbose,
        )

        for block in blocks:
            sink.write(block)

        logger.debug("Wrote %d report blocks", len(blocks))
        return len(blocks)
