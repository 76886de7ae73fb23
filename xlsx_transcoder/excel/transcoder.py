from __future__ import annotations

import logging

from ..errors import DateDecodeError
from ..models.cell import Cell, CellKind, SourceSheet
from .date_codec import decode
from .writer import SheetSink

"""Cell and sheet transcoding.

transcode_sheet drops the leading rows, re-indexes the rest from 0 and hands
every cell to transcode_cell, which emits exactly one typed write per
recognized cell. Row and cell order of the source are preserved.
"""

__all__ = [
    "transcode_cell",
    "transcode_sheet",
]

logger = logging.getLogger(__name__)


def transcode_cell(cell: Cell, row_idx: int, col_idx: int, sink: SheetSink) -> None:
    """Write one source cell at its translated output position.

    Args:
        cell: Source cell
        row_idx: Output row (source row minus skipped rows)
        col_idx: Output column (same as source column)
        sink: Output sheet

    Raises:
        DateDecodeError: DATETIME cell whose serial cannot be converted. The
            row reported is the output row; transcode_sheet re-raises it with
            the source row.
    """
    kind = cell.kind
    if kind == CellKind.NUMBER:
        sink.write_number(row_idx, col_idx, cell.value)
    elif kind == CellKind.TEXT:
        sink.write_string(row_idx, col_idx, cell.value)
    elif kind == CellKind.BOOLEAN:
        sink.write_boolean(row_idx, col_idx, cell.value)
    elif kind == CellKind.DATETIME:
        decoded = decode(cell.value)
        if decoded is None:
            logger.error("invalid Excel serial date %r at row %d, column %d", cell.value, row_idx, col_idx)
            raise DateDecodeError(row_idx, col_idx, cell.value)
        sink.write_datetime(row_idx, col_idx, decoded)
    elif kind in (CellKind.ERROR, CellKind.EMPTY):
        sink.write_blank(row_idx, col_idx)
    else:
        # No output mapping: the position stays absent
        logger.debug("no write for %s cell at row %d, column %d", kind, row_idx, col_idx)


def transcode_sheet(sheet: SourceSheet, skip_rows: int, sink: SheetSink) -> int:
    """Copy a source sheet into the sink without its first ``skip_rows`` rows.

    Skipping more rows than the sheet holds is not an error; nothing is
    written then.

    Returns:
        Number of rows emitted (source rows minus skipped rows, floored at 0)
    """
    if skip_rows < 0:
        raise ValueError(f"skip_rows must be >= 0, got {skip_rows}")
    emitted = 0
    for out_row, row in enumerate(sheet.rows[skip_rows:]):
        for col_idx, cell in enumerate(row):
            try:
                transcode_cell(cell, out_row, col_idx, sink)
            except DateDecodeError as e:
                raise DateDecodeError(out_row + skip_rows, col_idx, e.serial) from e
        emitted += 1
    return emitted
