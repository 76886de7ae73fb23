from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE, TYPE_STRING

from ..errors import WriteError
from .date_codec import EXCEL_DATE_NUMBER_FORMAT, encode

"""Output sheet sink backed by openpyxl.

Positions are 0-based (row, column) like the source iteration; openpyxl is
1-based, the conversion happens here only. Every library failure while
emitting a value is re-raised as WriteError.
"""

__all__ = [
    "SheetSink",
    "OpenpyxlSheetSink",
    "escape_control_characters",
]


class SheetSink(Protocol):
    """Write-side interface the cell transcoder drives."""

    def write_number(self, row: int, col: int, value: float) -> None: ...

    def write_string(self, row: int, col: int, value: str) -> None: ...

    def write_boolean(self, row: int, col: int, value: bool) -> None: ...

    def write_datetime(self, row: int, col: int, value: datetime) -> None: ...

    def write_blank(self, row: int, col: int) -> None: ...


def _ooxml_escape(match: re.Match) -> str:
    return "_x{:0>4x}_".format(ord(match.group(0)))


def escape_control_characters(value: str) -> str:
    """Replace characters XML cannot carry with their OOXML ``_xHHHH_`` escape.

    Tab, line feed and carriage return are legal and stay as they are.
    Excel (and ``openpyxl.utils.escape.unescape``) turn the escapes back
    into the original characters.
    """
    return ILLEGAL_CHARACTERS_RE.sub(_ooxml_escape, value)


class OpenpyxlSheetSink:
    """Single-sheet output workbook.

    The workbook lives in memory until save(); nothing touches the disk
    before that.
    """

    def __init__(self, sheet_name: str | None = None) -> None:
        self.workbook = Workbook()
        self.sheet = self.workbook.active
        if sheet_name:
            try:
                self.sheet.title = sheet_name
            except ValueError as e:
                raise WriteError(f"invalid sheet title {sheet_name!r}: {e}") from e

    def _cell(self, row: int, col: int, value: Any) -> Any:
        try:
            return self.sheet.cell(row=row + 1, column=col + 1, value=value)
        except Exception as e:
            raise WriteError(f"cannot write {value!r} at row {row}, column {col}: {e}") from e

    def write_number(self, row: int, col: int, value: float) -> None:
        self._cell(row, col, value)

    def write_string(self, row: int, col: int, value: str) -> None:
        cell = self._cell(row, col, escape_control_characters(value))
        # openpyxl would otherwise store "=..." text as a formula
        cell.data_type = TYPE_STRING

    def write_boolean(self, row: int, col: int, value: bool) -> None:
        self._cell(row, col, value)

    def write_datetime(self, row: int, col: int, value: datetime) -> None:
        # Stored as the serial itself; openpyxl's datetime conversion would
        # shift dates before 1900-03-01 by a day
        cell = self._cell(row, col, encode(value))
        cell.number_format = EXCEL_DATE_NUMBER_FORMAT

    def write_blank(self, row: int, col: int) -> None:
        self._cell(row, col, None)

    def save(self, path: Path) -> None:
        try:
            self.workbook.save(path)
        except Exception as e:
            raise WriteError(f"cannot save workbook to {path}: {e}") from e
