"""Whole-table CSV persistence with text-typed code columns and atomic writes."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from .records import CODE_COLUMNS, DATE_COLUMNS

logger = logging.getLogger(__name__)

DELIMITER = ','
TEXT_COLUMNS = CODE_COLUMNS + DATE_COLUMNS


class TableIOError(Exception):
    """A persisted table could not be read or written."""


def is_missing_cell(value) -> bool:
    """Check if a cell value is considered missing.

    A cell is missing if it:
    - Is None or NaN/NA
    - Is empty string or only whitespace
    - Is a common missing value placeholder (NA, N/A, null, etc.)

    Args:
        value: Cell value

    Returns:
        True if cell is missing, False otherwise
    """
    if value is None:
        return True

    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        pass

    if not isinstance(value, str):
        value = str(value)

    value_stripped = value.strip()
    if not value_stripped:
        return True

    missing_indicators = {'na', 'n/a', 'none', 'null', 'nan', '<na>'}
    return value_stripped.lower() in missing_indicators


def load_table(filepath: Path, text_columns: Iterable[str] = TEXT_COLUMNS) -> Optional[pd.DataFrame]:
    """Load a persisted table in full.

    Code and date columns are read as text so codes keep their exact form
    and the column types do not drift between runs. Tries utf-8 first and
    falls back to latin-1 for files written by other tools.

    Args:
        filepath: Path to CSV file
        text_columns: Columns to read as strings when present

    Returns:
        DataFrame, or None when the file does not exist yet

    Raises:
        TableIOError: If the file exists but cannot be read
    """
    filepath = Path(filepath)
    if not filepath.exists():
        return None

    dtype = {col: str for col in text_columns}
    last_error = None

    for encoding in ('utf-8', 'latin-1'):
        try:
            df = pd.read_csv(filepath, sep=DELIMITER, encoding=encoding, dtype=dtype)
            logger.info(f"Loaded {filepath.name}: {len(df)} rows, {len(df.columns)} columns")
            return df
        except UnicodeDecodeError as e:
            logger.debug(f"Encoding {encoding} failed for {filepath}")
            last_error = e
        except pd.errors.EmptyDataError:
            logger.warning(f"{filepath} is empty; treating it as a new table")
            return None
        except (OSError, pd.errors.ParserError) as e:
            raise TableIOError(f"Could not read {filepath}: {e}") from e

    raise TableIOError(f"Could not decode {filepath}: {last_error}")


def save_table(df: pd.DataFrame, filepath: Path) -> Path:
    """Write a whole table, replacing the previous file atomically.

    The table is written to a temporary file in the target directory and
    swapped into place, so a failed write leaves the previous file intact.

    Args:
        df: Table to persist
        filepath: Destination CSV path

    Returns:
        The destination path

    Raises:
        TableIOError: If the table cannot be written
    """
    filepath = Path(filepath)
    tmp_path = None

    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{filepath.stem}.", suffix=".tmp", dir=filepath.parent)
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            df.to_csv(f, sep=DELIMITER, index=False)
        os.replace(tmp_path, filepath)
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise TableIOError(f"Could not write {filepath}: {e}") from e

    logger.info(f"Saved {len(df)} rows to: {filepath}")
    return filepath
