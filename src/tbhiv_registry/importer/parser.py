"""Record parser for uploaded patient files.

This module turns the raw bytes of an uploaded CSV or Excel file into an
ordered list of rows, each a mapping from column name to raw cell value.
The whole file is read up front; the row count is needed before any row is
processed.
"""

import io
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from tbhiv_registry.logging_audit import get_logger
from tbhiv_registry.utils.exceptions import ParseFailureError, UnsupportedFormatError


logger = get_logger(__name__)

CSV_FORMAT = "csv"
SPREADSHEET_FORMAT = "spreadsheet"

# Suffix -> format, matched case-insensitively
SUPPORTED_EXTENSIONS = {
    ".csv": CSV_FORMAT,
    ".xlsx": SPREADSHEET_FORMAT,
    ".xls": SPREADSHEET_FORMAT,
}

RawRow = dict[str, Any]


def detect_format(file_name: str) -> str:
    """Determine the file format from its name.

    Args:
        file_name: Original name of the uploaded file

    Returns:
        CSV_FORMAT or SPREADSHEET_FORMAT

    Raises:
        UnsupportedFormatError: If the extension is not .csv, .xlsx or .xls
    """
    suffix = Path(file_name).suffix.lower()
    file_format = SUPPORTED_EXTENSIONS.get(suffix)
    if file_format is None:
        raise UnsupportedFormatError(
            f"Unsupported file format '{suffix or file_name}'. "
            "Please use CSV or Excel files (.csv, .xlsx, .xls)."
        )
    return file_format


def parse_records(data: bytes, file_name: str) -> list[RawRow]:
    """Parse an uploaded file into a list of raw rows.

    The first row of the file (or first sheet) is the header; its cells become
    the keys of every row mapping, matched exactly. Blank and missing cells
    are left out of the row mapping.

    Args:
        data: Raw file content
        file_name: Original file name; its extension selects the format

    Returns:
        List of rows in file order, header excluded

    Raises:
        UnsupportedFormatError: If the extension is not supported. Raised
            before the content is read.
        ParseFailureError: If the content does not conform to the format
    """
    file_format = detect_format(file_name)
    logger.info(f"Parsing {file_format} upload {file_name} ({len(data)} bytes)")

    if file_format == CSV_FORMAT:
        df = _read_csv(data, file_name)
    else:
        df = _read_spreadsheet(data, file_name)

    rows = [_clean_row(record) for record in df.to_dict(orient="records")]
    logger.info(f"Parsed {len(rows)} data row(s) from {file_name}")
    return rows


def _read_csv(data: bytes, file_name: str) -> pd.DataFrame:
    """Read comma-separated content with every cell kept as text."""
    if not data.strip():
        logger.warning(f"{file_name} is empty")
        return pd.DataFrame()

    try:
        return pd.read_csv(
            io.BytesIO(data),
            dtype=str,
            keep_default_na=False,
            index_col=False,
            encoding="utf-8-sig",
        )
    except Exception as e:
        raise ParseFailureError(
            f"Failed to read CSV file {file_name}. Ensure file is valid CSV "
            f"with UTF-8 encoding. Error: {e}"
        ) from e


def _read_spreadsheet(data: bytes, file_name: str) -> pd.DataFrame:
    """Read the first sheet of an Excel workbook."""
    try:
        df = pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=object)
    except Exception as e:
        raise ParseFailureError(
            f"Failed to read Excel file {file_name}. Ensure file is a valid "
            f".xlsx or .xls workbook. Error: {e}"
        ) from e

    # Fully blank rows are not data rows
    return df.dropna(how="all")


def _clean_row(record: dict[Any, Any]) -> RawRow:
    """Drop missing cells and convert numpy/pandas scalars to plain Python."""
    row: RawRow = {}
    for key, value in record.items():
        if _is_missing(value):
            continue
        row[str(key)] = _to_native(value)
    return row


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _to_native(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        return value.item()
    return value
