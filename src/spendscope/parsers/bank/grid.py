"""
Tabular statement extraction.

Reads the first sheet of a spreadsheet statement (xlsx, legacy xls or CSV)
into a plain 2-D grid of cell values. No business logic lives here.
"""

import csv
import io
import logging
import math
from typing import Any, List, Optional

import pandas as pd

from spendscope.core.exceptions import UnsupportedFormatError

logger = logging.getLogger(__name__)

# File signatures
ZIP_MAGIC = b"PK\x03\x04"  # xlsx (Office Open XML)
OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"  # legacy xls (BIFF)


def is_spreadsheet_bytes(data: bytes) -> bool:
    """Check for an xlsx or xls file signature."""
    return data.startswith(ZIP_MAGIC) or data.startswith(OLE_MAGIC)


def read_sheet_grid(data: bytes, filename: Optional[str] = None) -> List[List[Any]]:
    """
    Return the first sheet of a spreadsheet as a 2-D grid.

    Cells are str, int, float, datetime or None (empty cells and NaN become
    None). Trailing empty cells are kept so column positions are stable.

    Args:
        data: Spreadsheet bytes (xlsx, xls or CSV text)
        filename: Original filename, used only in error messages

    Returns:
        List of rows, each a list of cell values

    Raises:
        UnsupportedFormatError: If the bytes are not a readable spreadsheet
    """
    name = filename or "spreadsheet"

    if is_spreadsheet_bytes(data):
        engine = "openpyxl" if data.startswith(ZIP_MAGIC) else "xlrd"
        try:
            df = pd.read_excel(
                io.BytesIO(data),
                sheet_name=0,
                header=None,
                dtype=object,
                engine=engine,
            )
        except Exception as e:
            raise UnsupportedFormatError(f"Could not read {name} as a spreadsheet: {e}") from e
        grid = [[_clean_cell(cell) for cell in row] for row in df.itertuples(index=False, name=None)]
    else:
        grid = _read_csv_grid(data, name)

    logger.debug(f"Read {len(grid)} rows from {name}")
    return grid


def _read_csv_grid(data: bytes, name: str) -> List[List[Any]]:
    """Read CSV text into a grid of strings (empty strings become None)."""
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        try:
            text = data.decode("latin-1")
        except UnicodeDecodeError as e:
            raise UnsupportedFormatError(f"Could not decode {name} as text: {e}") from e

    if "\x00" in text or not text.strip():
        raise UnsupportedFormatError(f"{name} is not a spreadsheet or CSV file")

    try:
        rows = list(csv.reader(io.StringIO(text)))
    except csv.Error as e:
        raise UnsupportedFormatError(f"Could not read {name} as CSV: {e}") from e

    return [[cell if cell.strip() else None for cell in row] for row in rows]


def _clean_cell(cell: Any) -> Any:
    """Normalize pandas missing values to None."""
    if cell is None:
        return None
    if isinstance(cell, float) and math.isnan(cell):
        return None
    if cell is pd.NaT:
        return None
    if isinstance(cell, str) and not cell.strip():
        return None
    return cell


def cell_text(cell: Any) -> str:
    """
    Render a cell as text.

    Integral floats print without the ".0" pandas adds (serial numbers,
    account numbers stored as numbers).
    """
    if cell is None:
        return ""
    if isinstance(cell, float):
        if math.isnan(cell):
            return ""
        if cell.is_integer():
            return str(int(cell))
    return str(cell).strip()
