"""
Dataset loading for admitstats.

Reads a spreadsheet (or CSV) and reduces it to the numeric subset the
analysis works on: numeric columns only, and only rows that are complete
across those columns. Incomplete rows are removed on purpose and counted;
that is not an error.
"""

import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Tuple, Union

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from admitstats.errors import DataAccessError, SchemaError

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = ('.xlsx', '.xlsm', '.xls')
CSV_SUFFIXES = ('.csv',)


@dataclass(frozen=True, eq=False)
class LoadedDataset:
    """Numeric subset of a dataset plus what was filtered out to get it."""
    data: pd.DataFrame
    source: str
    raw_columns: List[str] = field(default_factory=list)
    excluded_columns: List[str] = field(default_factory=list)
    dropped_columns: List[str] = field(default_factory=list)
    raw_rows: int = 0
    dropped_rows: int = 0

    @property
    def columns(self) -> List[str]:
        return list(self.data.columns)

    @property
    def n_rows(self) -> int:
        return len(self.data)


def read_table(path: Union[str, Path], sheet: Any = 0) -> pd.DataFrame:
    """
    Read a spreadsheet or CSV file into a DataFrame.

    Args:
        path: File path
        sheet: Sheet name or position for spreadsheet files

    Returns:
        Raw DataFrame
    """
    path = Path(path)

    if not path.is_file():
        raise DataAccessError(str(path), "file not found")

    suffix = path.suffix.lower()
    try:
        if suffix in EXCEL_SUFFIXES:
            engine = 'openpyxl' if suffix != '.xls' else None
            df = pd.read_excel(path, sheet_name=sheet, engine=engine)
        elif suffix in CSV_SUFFIXES:
            df = pd.read_csv(path)
        else:
            raise DataAccessError(str(path), f"unsupported file type '{suffix}'")
    except DataAccessError:
        raise
    except (OSError, ValueError, KeyError, IndexError, ImportError,
            zipfile.BadZipFile, InvalidFileException) as e:
        # Missing sheets surface as ValueError (by name) or IndexError (by position)
        logger.error(f"Failed to read {path}: {e}")
        raise DataAccessError(str(path), str(e)) from e

    logger.info(f"Read {len(df)} rows x {len(df.columns)} columns from {path}")
    return df


def clean_column_names(df: pd.DataFrame) -> pd.DataFrame:
    """Strip surrounding whitespace from column names."""
    return df.rename(columns=lambda c: str(c).strip())


def select_numeric(df: pd.DataFrame) -> Tuple[pd.DataFrame, List[str]]:
    """
    Keep only numeric columns.

    Args:
        df: DataFrame with mixed column types

    Returns:
        Tuple of (numeric DataFrame, names of excluded columns)
    """
    numeric = df.select_dtypes(include='number', exclude='bool')
    excluded = [c for c in df.columns if c not in numeric.columns]
    return numeric, excluded


def drop_incomplete_rows(df: pd.DataFrame) -> Tuple[pd.DataFrame, int]:
    """
    Remove rows with any missing value, keeping source row order.

    Args:
        df: Numeric DataFrame

    Returns:
        Tuple of (complete rows, number of rows removed)
    """
    complete = df.dropna(how='any')
    removed = len(df) - len(complete)
    if removed:
        logger.info(f"Dropped {removed} of {len(df)} rows with missing numeric values")
    return complete, removed


def load_dataframe(df: pd.DataFrame,
                   drop_columns: Iterable[str] = (),
                   source: str = '<dataframe>') -> LoadedDataset:
    """
    Reduce an in-memory DataFrame to its numeric subset.

    Args:
        df: Raw DataFrame
        drop_columns: Columns to remove before numeric selection (identifiers and the like)
        source: Description of where the data came from

    Returns:
        LoadedDataset
    """
    df = clean_column_names(df)
    raw_columns = list(df.columns)
    duplicated = sorted(set(df.columns[df.columns.duplicated()]))
    if duplicated:
        raise SchemaError(f"Duplicate column names after stripping whitespace in {source}: {duplicated}")

    drop_columns = [str(c).strip() for c in drop_columns]
    unknown = [c for c in drop_columns if c not in df.columns]
    if unknown:
        logger.warning(f"Ignoring unknown drop columns: {unknown}")
    dropped_columns = [c for c in drop_columns if c in df.columns]
    df = df.drop(columns=dropped_columns)

    numeric, excluded = select_numeric(df)
    if numeric.shape[1] == 0:
        raise SchemaError(f"No numeric columns in {source}")
    if excluded:
        logger.info(f"Excluded non-numeric columns: {excluded}")

    complete, removed = drop_incomplete_rows(numeric)
    if len(complete) == 0:
        raise SchemaError(f"No complete numeric rows in {source}")

    return LoadedDataset(
        data=complete.astype(float),
        source=source,
        raw_columns=raw_columns,
        excluded_columns=excluded,
        dropped_columns=dropped_columns,
        raw_rows=len(numeric),
        dropped_rows=removed
    )


def load_dataset(path: Union[str, Path],
                 sheet: Any = 0,
                 drop_columns: Iterable[str] = ()) -> LoadedDataset:
    """
    Load a spreadsheet and reduce it to its numeric subset.

    Args:
        path: Spreadsheet or CSV path
        sheet: Sheet name or position for spreadsheet files
        drop_columns: Columns to remove before numeric selection

    Returns:
        LoadedDataset

    Raises:
        DataAccessError: if the file is missing or unreadable
        SchemaError: if no numeric columns or complete rows remain
    """
    raw = read_table(path, sheet)
    return load_dataframe(raw, drop_columns=drop_columns, source=str(path))
