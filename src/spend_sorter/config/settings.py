from dataclasses import dataclass, field, fields
from datetime import date
from pathlib import Path
import json
from typing import Dict, Any, FrozenSet, Optional

# Package defaults (bundled with code)
PACKAGE_CONFIG_DIR = Path(__file__).parent / "defaults"

# User configs (relative to the working directory, gitignored)
USER_CONFIG_DIR = Path("config")

class ConfigLoader:
    """Load configuration with user overrides"""

    @staticmethod
    def load_config(config_name: str) -> Dict[str, Any]:
        """
        Load config with fallback: user config -> default config

        Args:
            config_name: Name of the config file (e.g., 'columns.json')

        Raises:
            FileNotFoundError: If no config file was found

        Returns:
            Parsed JSON configuration
        """
        user_config_path = USER_CONFIG_DIR / config_name
        if user_config_path.exists():
            with open(user_config_path) as f:
                return json.load(f)

        default_config_path = PACKAGE_CONFIG_DIR / config_name
        if default_config_path.exists():
            with open(default_config_path) as f:
                return json.load(f)

        raise FileNotFoundError(
            f"Config file '{config_name}' not found in:\n"
            f" - {user_config_path}\n"
            f" - {default_config_path}"
        )

    @staticmethod
    def load_columns_config() -> Dict[str, Any]:
        """Load column name aliases for the CSV sources"""
        return ConfigLoader.load_config('columns.json')


def _from_dict(cls, values: Optional[Dict[str, Any]]):
    """Build a dataclass from a dict, ignoring unknown keys"""
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in (values or {}).items() if k in known})


@dataclass(frozen=True)
class CategoryColumns:
    """Header names of the category file"""
    name: str = "Name"
    pattern: str = "Keywords"


@dataclass(frozen=True)
class TransactionColumns:
    """
    Header names of the transaction file.

    A file with the amount column is read as signed amounts; one with
    credit/debit columns instead is read as a ledger.
    """
    date: str = "Date"
    description: str = "Name"
    amount: str = "Amount"
    credit: str = "Credit"
    debit: str = "Debit"
    check: str = "Check"


@dataclass(frozen=True)
class ColumnMapping:
    categories: CategoryColumns = field(default_factory=CategoryColumns)
    transactions: TransactionColumns = field(default_factory=TransactionColumns)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "ColumnMapping":
        """
        Build the mapping from a columns config.

        Args:
            config: Optional config dict. If None, loads from ConfigLoader.
                Example: {"categories": {"pattern": "Regex"},
                          "transactions": {"description": "Memo"}}
        """
        if config is None:
            config = ConfigLoader.load_columns_config()

        return cls(
            categories=_from_dict(CategoryColumns, config.get("categories")),
            transactions=_from_dict(TransactionColumns, config.get("transactions")),
        )


@dataclass
class RunConfig:
    """
    Everything a categorization run needs to know.

    Built by the CLI and passed explicitly into the service and sources.
    """
    transactions_path: Optional[Path] = None
    categories_path: Optional[Path] = None
    db_path: Optional[Path] = None
    columns: ColumnMapping = field(default_factory=ColumnMapping)
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    only_categories: Optional[FrozenSet[str]] = None
    inspect_category: Optional[str] = None
    interactive: bool = False
    verbose: bool = False

    def __post_init__(self):
        """Validate the date window"""
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError(
                f"from_date {self.from_date} is after to_date {self.to_date}"
            )

        if self.only_categories is not None:
            self.only_categories = frozenset(self.only_categories)

