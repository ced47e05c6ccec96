import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Generator, Optional

from spend_sorter.domain.errors import SourceReadError
from spend_sorter.logging_setup import get_logger

Connection = sqlite3.Connection

SCHEMA_PATH = Path(__file__).parent / "schema.sql"
DEFAULT_DB_PATH = Path("data/ledger.db")

logger = get_logger(__name__)


@dataclass(frozen=True)
class SchemaVersion:
    version: int
    description: str

    def __str__(self) -> str:
        return f"{self.version} ({self.description})"


class DatabaseConfig:
    """Where the ledger database lives. The parent directory is created on demand."""

    def __init__(self, db_path: Path | str = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def connection_string(self) -> str:
        return str(self.db_path.absolute())


def configure_connection(conn: Connection) -> None:
    """
    Apply the ledger's connection settings.

    Keywords are deleted with their category, so foreign keys must be on.
    Rows come back as sqlite3.Row so repositories can read columns by name.
    """
    conn.execute("PRAGMA foreign_keys = ON")
    conn.row_factory = sqlite3.Row


class DatabaseManager:
    """
    Owns the single SQLite connection of a run.

    Dates and amounts are stored as text and parsed by the domain models,
    so the connection does no type detection of its own.

    Usage:
        with DatabaseManager(DatabaseConfig("data/ledger.db")) as db:
            db.initialize()
            with db.transaction() as conn:
                conn.execute("INSERT INTO categories (name) VALUES (?)", ("Gas",))
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._connection: Connection | None = None

    def get_connection(self) -> Connection:
        """Open the connection on first use and reuse it afterwards"""
        if self._connection is None:
            self._connection = sqlite3.connect(self.config.connection_string)
            configure_connection(self._connection)
        return self._connection

    def close(self) -> None:
        if self._connection:
            self._connection.close()
            self._connection = None

    @contextmanager
    def transaction(self) -> Generator[Connection, None, None]:
        """
        Commit the block's statements together, or roll all of them back.

        Usage:
            with db_manager.transaction() as conn:
                conn.execute("INSERT INTO categories ...")
                conn.execute("INSERT INTO keywords ...")
        """
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize(self, schema_path: Path = SCHEMA_PATH) -> SchemaVersion:
        """
        Create any missing ledger tables. Safe to run on an existing database.

        Returns:
            The schema version now in place
        """
        execute_schema(self.get_connection(), schema_path)
        version = self.schema_version()
        logger.info("Ledger schema %s ready at %s", version, self.config.db_path)
        return version

    def schema_version(self) -> Optional[SchemaVersion]:
        """Latest applied schema version, or None for an uninitialized database"""
        conn = self.get_connection()
        has_table = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
        ).fetchone()
        if not has_table:
            return None

        row = conn.execute(
            "SELECT version, description FROM schema_version ORDER BY version DESC LIMIT 1"
        ).fetchone()
        return SchemaVersion(row["version"], row["description"]) if row else None

    def require_schema(self) -> SchemaVersion:
        """
        Raises:
            SourceReadError: If init-db hasn't been run on this database
        """
        version = self.schema_version()
        if version is None:
            raise SourceReadError(
                str(self.config.db_path),
                "database is not initialized (run init-db first)",
            )
        return version

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def execute_schema(conn: Connection, schema_path: Path = SCHEMA_PATH) -> None:
    """Run a .sql script and commit it"""
    with open(schema_path) as f:
        conn.executescript(f.read())
    conn.commit()
