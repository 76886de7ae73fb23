from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path

from ..errors import UnsupportedFormatError, WriteError
from ..excel.file_ops import ensure_directory, has_excel_extension, output_path_for
from ..excel.reader import read_first_sheet
from ..excel.transcoder import transcode_sheet
from ..excel.writer import OpenpyxlSheetSink

"""Single-file transcoding: one source workbook in, one .xlsx out.

The output is saved under a temporary name inside the target directory and
renamed onto ``<target>/<stem>.xlsx`` only after a complete save, so a failed
file never leaves a half-written workbook under its final name.
"""

__all__ = [
    "TranscodedFile",
    "transcode_file",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscodedFile:
    source_path: Path
    output_path: Path
    sheet_name: str
    source_rows: int     # Rows in the source sheet
    rows_written: int    # Rows left after the skip


def _save_atomically(sink: OpenpyxlSheetSink, output_path: Path) -> None:
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{output_path.stem}.", suffix=".part", dir=output_path.parent
    )
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        sink.save(tmp_path)
        os.replace(tmp_path, output_path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise WriteError(f"cannot move output into place at {output_path}: {e}") from e
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def transcode_file(source_path: Path, target_dir: Path, skip_rows: int) -> TranscodedFile:
    """Transcode the first sheet of ``source_path`` into ``target_dir``.

    Steps:
    1. Validate the extension (.xls/.xlsx) before touching the filesystem
    2. Open the workbook (format detected from content) and read sheet 0
    3. Drop ``skip_rows`` leading rows and re-emit the rest cell by cell
    4. Save as ``<target_dir>/<stem>.xlsx`` (temp file + rename)

    Args:
        source_path: Source workbook
        target_dir: Output directory, created if absent
        skip_rows: Leading rows to drop (>= 0)

    Returns:
        TranscodedFile describing the written output

    Raises:
        UnsupportedFormatError: Extension is not .xls/.xlsx
        OpenError: Workbook unreadable or without sheets
        DateDecodeError: A date cell cannot be converted
        WriteError: Emitting or saving the output failed
    """
    if not has_excel_extension(source_path):
        raise UnsupportedFormatError(f"unsupported file extension: {source_path.name}")

    logger.info("Processing file: %s (thread=%s)", source_path, threading.current_thread().name)
    sheet = read_first_sheet(source_path)

    output_path = output_path_for(source_path, target_dir)
    try:
        ensure_directory(target_dir)
    except OSError as e:
        raise WriteError(f"cannot create target directory {target_dir}: {e}") from e

    sink = OpenpyxlSheetSink(sheet.name)
    rows_written = transcode_sheet(sheet, skip_rows, sink)
    _save_atomically(sink, output_path)

    logger.info("File processed and saved: %s (%d rows)", output_path, rows_written)
    return TranscodedFile(
        source_path=source_path,
        output_path=output_path,
        sheet_name=sheet.name,
        source_rows=sheet.row_count,
        rows_written=rows_written,
    )
