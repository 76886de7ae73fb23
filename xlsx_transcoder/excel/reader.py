from __future__ import annotations

from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any

import pandas as pd
import xlrd
from openpyxl.utils.datetime import MAC_EPOCH

from ..errors import OpenError
from ..models.cell import Cell, CellKind, SourceSheet
from .date_codec import EXCEL_EPOCH, encode

"""Source workbook reader.

pandas.ExcelFile picks the engine from the file content (openpyxl for the
xlsx container, xlrd for legacy xls). Cells are then read from the engine's
own workbook object instead of a DataFrame so that the cell type tags
(boolean, error, date, empty) survive; pandas dtype inference would merge
them.

Date cells keep the serial stored in the file. openpyxl is told not to
convert date-formatted numbers, so a serial it cannot turn into a datetime
still reaches the date decoder instead of becoming a "#VALUE!" error, and
the 1900 leap-year correction is never applied on the way in.

Only the first worksheet is ever read. The whole sheet is loaded in memory.
"""

__all__ = [
    "read_first_sheet",
    "cell_from_openpyxl",
    "cell_from_xlrd",
]

# Day offset between the 1904 and 1900 date systems
_DATE_1904_OFFSET = 1462


def _serial_from_value(value: date | time | timedelta) -> float:
    if isinstance(value, datetime):
        return encode(value.replace(tzinfo=None))
    if isinstance(value, date):
        return encode(datetime.combine(value, time()))
    if isinstance(value, time):
        return encode(datetime.combine(EXCEL_EPOCH.date(), value.replace(tzinfo=None)))
    return value / timedelta(days=1)


def cell_from_openpyxl(cell: Any, date_offset: float = 0.0) -> Cell:
    """Classify an openpyxl (read-only) cell.

    Date-formatted numbers are taken as serials as stored, shifted by
    ``date_offset`` days (1462 for a 1904 workbook). Values openpyxl already
    converted (ISO ``t="d"`` cells) are folded back to 1900-system serials.
    """
    value = cell.value
    if value is None:
        return Cell.empty()
    data_type = cell.data_type
    if data_type == "e":
        return Cell.error(str(value))
    if isinstance(value, bool):
        return Cell.boolean(value)
    if isinstance(value, (datetime, date, time, timedelta)):
        return Cell.datetime(_serial_from_value(value))
    if isinstance(value, str):
        return Cell.text(value)
    if isinstance(value, (int, float)):
        if getattr(cell, "is_date", False):
            return Cell.datetime(float(value) + date_offset)
        return Cell.number(value)
    return Cell(CellKind.OTHER, value)


def cell_from_xlrd(cell: Any, datemode: int = 0) -> Cell:
    """Classify an xlrd cell. Date serials are rebased to the 1900 system."""
    ctype = cell.ctype
    if ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return Cell.empty()
    if ctype == xlrd.XL_CELL_TEXT:
        return Cell.text(cell.value)
    if ctype == xlrd.XL_CELL_NUMBER:
        return Cell.number(cell.value)
    if ctype == xlrd.XL_CELL_DATE:
        serial = float(cell.value)
        if datemode == 1:
            serial += _DATE_1904_OFFSET
        return Cell.datetime(serial)
    if ctype == xlrd.XL_CELL_BOOLEAN:
        return Cell.boolean(bool(cell.value))
    if ctype == xlrd.XL_CELL_ERROR:
        return Cell.error(xlrd.error_text_from_code.get(cell.value))
    return Cell(CellKind.OTHER, cell.value)


def _read_openpyxl(book: Any) -> SourceSheet:
    worksheets = book.worksheets
    if not worksheets:
        raise OpenError("No sheets found in the excel file.")
    ws = worksheets[0]
    if getattr(book, "read_only", False):
        # Dimension tags written by some producers are wrong; read what is there
        ws.reset_dimensions()
    # Cells are parsed lazily from these style sets; empty means raw serials
    book._date_formats = set()
    book._timedelta_formats = set()
    date_offset = _DATE_1904_OFFSET if getattr(book, "epoch", None) == MAC_EPOCH else 0.0
    rows = [[cell_from_openpyxl(c, date_offset) for c in row] for row in ws.iter_rows()]
    return SourceSheet(name=ws.title, rows=rows)


def _read_xlrd(book: Any) -> SourceSheet:
    if book.nsheets == 0:
        raise OpenError("No sheets found in the excel file.")
    sheet = book.sheet_by_index(0)
    rows = [
        [cell_from_xlrd(c, book.datemode) for c in sheet.row(r)]
        for r in range(sheet.nrows)
    ]
    return SourceSheet(name=sheet.name, rows=rows)


def read_first_sheet(path: Path) -> SourceSheet:
    """Load the first worksheet of a workbook as typed cells.

    Args:
        path: .xlsx or .xls workbook

    Returns:
        SourceSheet with every row of the first worksheet

    Raises:
        OpenError: the workbook cannot be parsed or contains no worksheet
    """
    try:
        xls = pd.ExcelFile(path)
    except Exception as e:
        raise OpenError(f"cannot open workbook {path.name}: {e}") from e

    with xls:
        try:
            if xls.engine == "xlrd":
                return _read_xlrd(xls.book)
            return _read_openpyxl(xls.book)
        except OpenError:
            raise
        except Exception as e:
            raise OpenError(f"cannot read first sheet of {path.name}: {e}") from e
