from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Typed cell model shared by the reader and the transcoders.

A Cell is a tagged value read from the source sheet. It is never mutated,
only translated into one write on the output sheet.
"""

__all__ = [
    "CellKind",
    "Cell",
    "SourceSheet",
]


class CellKind(Enum):
    """Variant tag of a source cell.

    - NUMBER: value is a float
    - TEXT: value is a str, kept byte for byte
    - BOOLEAN: value is a bool
    - DATETIME: value is a float Excel serial date (1900 date system)
    - ERROR: value is the error code text ("#DIV/0!") or None
    - EMPTY: value is None
    - OTHER: source value with no output mapping; nothing is written for it
    """
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    ERROR = "error"
    EMPTY = "empty"
    OTHER = "other"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: Any = None

    @classmethod
    def number(cls, value: float) -> Cell:
        return cls(CellKind.NUMBER, float(value))

    @classmethod
    def text(cls, value: str) -> Cell:
        return cls(CellKind.TEXT, value)

    @classmethod
    def boolean(cls, value: bool) -> Cell:
        return cls(CellKind.BOOLEAN, bool(value))

    @classmethod
    def datetime(cls, serial: float) -> Cell:
        return cls(CellKind.DATETIME, float(serial))

    @classmethod
    def error(cls, code: str | None = None) -> Cell:
        return cls(CellKind.ERROR, code)

    @classmethod
    def empty(cls) -> Cell:
        return cls(CellKind.EMPTY, None)


@dataclass
class SourceSheet:
    """First sheet of a source workbook, fully loaded in memory.

    ``rows`` is ordered like the source; every row is column-index aligned
    with the source (leading empty cells are kept as EMPTY cells).
    """
    name: str
    rows: list[list[Cell]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)
