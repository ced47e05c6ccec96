import csv
from pathlib import Path
from typing import Dict, List, Sequence, Union

import pandas as pd

from spend_sorter.categorization.base import CategorySink
from spend_sorter.categorization.category import Category
from spend_sorter.config.settings import CategoryColumns
from spend_sorter.domain.errors import SourceReadError, SourceWriteError
from spend_sorter.logging_setup import get_logger

logger = get_logger(__name__)

Row = Dict[str, str]


class CsvRowReader:
    """
    Reads a CSV file into header-keyed rows of text.

    Every cell is kept as a string; typing happens when rows become
    Transactions and Categories. Lines with nothing but separators are
    skipped. A row with more or fewer fields than the header is an error.
    """

    def read(self, filepath: Union[str, Path]) -> List[Row]:
        """
        Read a CSV file.

        Args:
            filepath: Path to the CSV file

        Returns:
            One dict per data row, keyed by the (trimmed) header names

        Raises:
            SourceReadError: If the file is missing, unreadable or malformed
        """
        path = Path(filepath)

        if not path.exists():
            raise SourceReadError(str(path), "file does not exist")

        try:
            self._check_field_counts(path)
            raw = pd.read_csv(
                path,
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except pd.errors.EmptyDataError:
            raise SourceReadError(str(path), "file is empty")
        except (csv.Error, pd.errors.ParserError) as e:
            raise SourceReadError(str(path), f"columns mismatch: {e}")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(str(path), str(e))

        header = [str(column).strip() for column in raw.iloc[0]]
        rows: List[Row] = []

        for values in raw.iloc[1:].itertuples(index=False):
            if not any(value.strip() for value in values):
                continue

            rows.append(dict(zip(header, values)))

        logger.info("Read %d rows from %s", len(rows), path)
        return rows

    @staticmethod
    def _check_field_counts(path: Path) -> None:
        """
        Reject rows whose field count differs from the header's.

        pandas pads short rows with empty cells (or NaN, depending on the
        version), which would read a missing debit as zero.

        Raises:
            SourceReadError: On the first row with too many or too few fields
        """
        with open(path, newline="", encoding="utf-8") as csvfile:
            reader = csv.reader(csvfile)
            expected = None

            for fields in reader:
                if not fields:
                    continue

                if expected is None:
                    expected = len(fields)
                elif len(fields) != expected:
                    raise SourceReadError(
                        str(path),
                        f"columns mismatch on line {reader.line_num}: "
                        f"expected {expected} fields, saw {len(fields)}",
                    )


class CsvCategorySink(CategorySink):
    """Writes categories back to a CSV file in the format CsvRowReader reads"""

    def __init__(
        self,
        filepath: Union[str, Path],
        columns: CategoryColumns = CategoryColumns(),
    ):
        self.filepath = Path(filepath)
        self.columns = columns

    def save_categories(self, categories: Sequence[Category]) -> None:
        """Replace the file's contents with the given categories"""
        df = pd.DataFrame(
            [
                {
                    self.columns.name: category.name,
                    self.columns.pattern: category.pattern.source,
                }
                for category in categories
            ],
            columns=[self.columns.name, self.columns.pattern],
        )

        try:
            df.to_csv(self.filepath, index=False)
        except OSError as e:
            raise SourceWriteError(str(self.filepath), str(e))

        logger.info("Wrote %d categories to %s", len(categories), self.filepath)
