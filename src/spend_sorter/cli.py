import logging
import typer
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from spend_sorter.categorization import CategoryPrompter
from spend_sorter.categorization.category import AnyTransaction
from spend_sorter.config.settings import ColumnMapping, RunConfig
from spend_sorter.database.connection import DEFAULT_DB_PATH, DatabaseConfig, DatabaseManager
from spend_sorter.domain.errors import SourceReadError
from spend_sorter.logging_setup import configure_logging, get_logger
from spend_sorter.repositories.sqlite_ledger_repository import SQLiteLedgerRepository
from spend_sorter.services.categorization_service import CategorizationService
from spend_sorter.services.report import ReportSink
from spend_sorter.sources.csv_rows import CsvCategorySink, CsvRowReader
from spend_sorter.sources.loader import CsvSource, build_transactions

app = typer.Typer(
    name="spend-sorter",
    help="Sort bank transactions into keyword-defined categories",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

class State:
    debug: bool = False


state = State()


class ConsoleReportSink(ReportSink):
    """Prints report blocks verbatim"""

    def __init__(self, console: Console):
        self.console = console

    def write(self, block: str) -> None:
        self.console.print(block, markup=False, highlight=False)


class RichCategoryPrompter(CategoryPrompter):
    """Asks the user at the terminal where an unmatched transaction belongs"""

    def __init__(self, console: Console):
        self.console = console

    def ask_category_name(
        self,
        transaction: AnyTransaction,
        existing_names: Sequence[str],
    ) -> str:
        self.console.print(Panel(
            Text(transaction.render().rstrip()),
            title="[bold yellow]Uncategorized transaction[/bold yellow]",
            border_style="yellow",
        ))
        if existing_names:
            self.console.print(
                f"[dim]Existing categories:[/dim] {escape(', '.join(existing_names))}"
            )
        return Prompt.ask("[cyan]Category name[/cyan]", console=self.console).strip()

    def ask_pattern(self, transaction: AnyTransaction, category_name: str) -> str:
        return Prompt.ask(
            f"[cyan]Keyword pattern for[/cyan] [bold]{escape(category_name)}[/bold]",
            console=self.console,
        ).strip()


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value else None


def _abort(error: Exception) -> None:
    """Report a fatal error and exit with status 1"""
    logger.error("%s: %s", type(error).__name__, error)
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    if state.debug:
        console.print_exception()
    raise typer.Exit(code=1)


def _ledger_repository(db_path: Path) -> SQLiteLedgerRepository:
    """Open an initialized ledger database"""
    db_manager = DatabaseManager(DatabaseConfig(db_path))
    try:
        db_manager.require_schema()
    except SourceReadError:
        db_manager.close()
        raise
    return SQLiteLedgerRepository(db_manager)


def _run_and_report(service: CategorizationService, config: RunConfig) -> None:
    result = service.run(config)
    service.report(result, config, ConsoleReportSink(console))

    if result.resolved:
        console.print(
            f"[green]✓[/green] Learned categories for {result.resolved} transactions"
        )


@app.callback()
def main(
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show debug logs and tracebacks",
    )
):
    """
    Spend Sorter - Categorize transactions by keyword and total them up.
    """
    configure_logging(logging.DEBUG if debug else None)
    state.debug = debug

@app.command(name="categorize")
def categorize(
    transactions_file: Path = typer.Argument(
        ...,
        help="CSV file of transactions",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    categories_file: Path = typer.Argument(
        ...,
        help="CSV file of category names and keyword patterns",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    from_date: Optional[datetime] = typer.Option(
        None, "--from-date", formats=["%Y-%m-%d"],
        help="Ignore transactions before this date",
    ),
    to_date: Optional[datetime] = typer.Option(
        None, "--to-date", formats=["%Y-%m-%d"],
        help="Ignore transactions after this date",
    ),
    only: Optional[List[str]] = typer.Option(
        None, "--only", "-o",
        help="Only report this category (repeatable)",
    ),
    inspect_category: Optional[str] = typer.Option(
        None, "--inspect-category",
        help="Report a single category with all of its transactions",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="List every transaction under its category",
    ),
    interactive: bool = typer.Option(
        False, "--interactive", "-i",
        help="Ask for a category when nothing matches and save it",
    ),
):
    """
    Categorize a CSV of transactions using a CSV of categories.

    Examples:
        spend-sorter categorize transactions.csv categories.csv
        spend-sorter categorize transactions.csv categories.csv --verbose
        spend-sorter categorize transactions.csv categories.csv --interactive
    """
    try:
        config = RunConfig(
            transactions_path=transactions_file,
            categories_path=categories_file,
            columns=ColumnMapping.from_config(),
            from_date=_as_date(from_date),
            to_date=_as_date(to_date),
            only_categories=only or None,
            inspect_category=inspect_category,
            interactive=interactive,
            verbose=verbose,
        )

        service = CategorizationService(
            CsvSource(config.transactions_path, config.categories_path, config.columns),
            sink=CsvCategorySink(config.categories_path, config.columns.categories) if interactive else None,
            prompter=RichCategoryPrompter(console) if interactive else None,
        )
        _run_and_report(service, config)

    except Exception as e:
        _abort(e)

@app.command(name="ledger")
def ledger(
    db: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="Ledger database file"),
    from_date: Optional[datetime] = typer.Option(
        None, "--from-date", formats=["%Y-%m-%d"],
        help="Ignore transactions before this date",
    ),
    to_date: Optional[datetime] = typer.Option(
        None, "--to-date", formats=["%Y-%m-%d"],
        help="Ignore transactions after this date",
    ),
    only: Optional[List[str]] = typer.Option(
        None, "--only", "-o",
        help="Only report this category (repeatable)",
    ),
    inspect_category: Optional[str] = typer.Option(
        None, "--inspect-category",
        help="Report a single category with all of its transactions",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="List every transaction under its category",
    ),
    interactive: bool = typer.Option(
        False, "--interactive", "-i",
        help="Ask for a category when nothing matches and save it",
    ),
):
    """
    Categorize the ledger database's transactions.

    Examples:
        spend-sorter ledger
        spend-sorter ledger --from-date 2024-01-01 --to-date 2024-03-31
        spend-sorter ledger --inspect-category groceries
    """
    try:
        config = RunConfig(
            db_path=db,
            from_date=_as_date(from_date),
            to_date=_as_date(to_date),
            only_categories=only or None,
            inspect_category=inspect_category,
            interactive=interactive,
            verbose=verbose,
        )

        repository = _ledger_repository(config.db_path)
        service = CategorizationService(
            repository,
            sink=repository if interactive else None,
            prompter=RichCategoryPrompter(console) if interactive else None,
        )
        try:
            _run_and_report(service, config)
        finally:
            repository.db.close()

    except Exception as e:
        _abort(e)

@app.command(name="import")
def import_transactions(
    filepath: Path = typer.Argument(
        ...,
        help="CSV file of transactions",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    db: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="Ledger database file"),
):
    """
    Import a CSV of transactions into the ledger database.

    Examples:
        spend-sorter import checking.csv
        spend-sorter import checking.csv --db data/2024.db
    """
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Importing transactions...", total=None)

            rows = CsvRowReader().read(filepath)
            transactions = build_transactions(
                rows,
                ColumnMapping.from_config().transactions,
                source=str(filepath),
            )
            repository = _ledger_repository(db)
            with repository.db:
                count = repository.save_transactions(transactions)

            progress.update(task, completed=True)

        console.print(f"[bold green]✓ Imported {count} transactions[/bold green]")

    except Exception as e:
        _abort(e)

@app.command(name="init-db")
def init_db(
    db: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="Ledger database file"),
):
    """
    Create the ledger database tables.
    """
    try:
        with DatabaseManager(DatabaseConfig(db)) as db_manager:
            version = db_manager.initialize()

        console.print(f"[green]✓[/green] Database initialized at {escape(str(db))}")
        console.print(f"  Schema version: {escape(str(version))}")

    except Exception as e:
        _abort(e)

@app.command(name="add-category")
def add_category(
    name: str = typer.Argument(..., help="Name of the new category"),
    db: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="Ledger database file"),
):
    """
    Add a category to the ledger database.
    """
    try:
        repository = _ledger_repository(db)
        with repository.db:
            repository.add_category(name)

        console.print(f'[green]✓[/green] Category "{escape(name)}" added')

    except Exception as e:
        _abort(e)

@app.command(name="add-keyword")
def add_keyword(
    keyword: str = typer.Argument(..., help="Keyword pattern to add"),
    to_category: str = typer.Option(..., "--to-category", "-c", help="Category to add it to"),
    db: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="Ledger database file"),
):
    """
    Add a keyword pattern to a ledger category.

    Examples:
        spend-sorter add-keyword kroger --to-category Groceries
    """
    try:
        repository = _ledger_repository(db)
        with repository.db:
            added = repository.add_keyword(keyword, to_category)

        if added:
            console.print(
                f'[green]✓[/green] Keyword "{escape(keyword)}" added to category "{escape(to_category)}"'
            )
        else:
            console.print(
                f'[yellow]Keyword "{escape(keyword)}" is already in category "{escape(to_category)}"[/yellow]'
            )

    except Exception as e:
        _abort(e)

@app.command(name="list-categories")
def list_categories(
    db: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="Ledger database file"),
):
    """
    List the ledger's categories.
    """
    try:
        repository = _ledger_repository(db)
        with repository.db:
            records = repository.list_categories()

        table = Table(title="Categories")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Keywords", justify="right")

        for record in records:
            table.add_row(str(record.id), escape(record.name), str(record.keyword_count))

        console.print(table)

    except Exception as e:
        _abort(e)

@app.command(name="list-keywords")
def list_keywords(
    category: Optional[str] = typer.Argument(None, help="Only list this category's keywords"),
    db: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="Ledger database file"),
):
    """
    List the ledger's keywords, optionally for one category.
    """
    try:
        repository = _ledger_repository(db)
        with repository.db:
            records = repository.list_keywords(category)

        table = Table(title="Keywords")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Keyword", style="white")
        table.add_column("Category", style="cyan")

        for record in records:
            table.add_row(str(record.id), escape(record.keyword), escape(record.category))

        console.print(table)

    except Exception as e:
        _abort(e)


def cli_main():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    cli_main()
