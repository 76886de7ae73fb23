# Shared pytest fixtures
from __future__ import annotations
import struct
import tempfile
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import xlrd
from openpyxl import Workbook

from xlsx_transcoder.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Iterator[Path]:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "uploads").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> Iterator[None]:
    for name in ("XLSX_TRANSCODER_CONFIG", "XLSX_TRANSCODER_WORKERS", "XLSX_TRANSCODER_LOGS_DIR"):
        monkeypatch.delenv(name, raising=False)
    reset_logging()
    yield
    reset_logging()


def _write_workbook(path: Path, rows: list[list[Any]], sheet_name: str = "Sheet1") -> Path:
    """Write ``rows`` to the first sheet of a new workbook at ``path``.

    None leaves the position unset. "=..." strings are stored as text, not
    formulas. A second sheet "Other" is always added.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    for r, row in enumerate(rows, start=1):
        for c, value in enumerate(row, start=1):
            if value is None:
                continue
            cell = ws.cell(row=r, column=c, value=value)
            if isinstance(value, str) and value.startswith("="):
                cell.data_type = "s"
    wb.create_sheet("Other")["A1"] = "second sheet is never read"
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


@pytest.fixture()
def make_workbook() -> Callable[..., Path]:
    return _write_workbook


# Legacy .xls (BIFF8 inside an OLE2 compound file)

_XLS_ERROR_CODES = {text: code for code, text in xlrd.error_text_from_code.items()}
_SERIAL_EPOCH = datetime(1899, 12, 30)
_SECTOR = 512
_MIN_STANDARD_STREAM = 4096


def _biff_record(code: int, data: bytes = b"") -> bytes:
    return struct.pack("<HH", code, len(data)) + data


def _biff_bof(stream_type: int) -> bytes:
    return _biff_record(0x0809, struct.pack("<HHHHII", 0x0600, stream_type, 0x0DBB, 0x07CC, 0, 6))


def _biff_cell(r: int, c: int, value: Any, datemode: int) -> bytes:
    if isinstance(value, bool):
        return _biff_record(0x0205, struct.pack("<HHHBB", r, c, 0, int(value), 0))
    if isinstance(value, datetime):
        serial = (value - _SERIAL_EPOCH) / timedelta(days=1) - (1462 if datemode else 0)
        # XF 1 carries the built-in date format 14
        return _biff_record(0x0203, struct.pack("<HHHd", r, c, 1, serial))
    if isinstance(value, (int, float)):
        return _biff_record(0x0203, struct.pack("<HHHd", r, c, 0, value))
    if value == "":
        return _biff_record(0x0201, struct.pack("<HHH", r, c, 0))
    if value in _XLS_ERROR_CODES:
        return _biff_record(0x0205, struct.pack("<HHHBB", r, c, 0, _XLS_ERROR_CODES[value], 1))
    text = value.encode("utf-16-le")
    return _biff_record(0x0204, struct.pack("<HHHHB", r, c, 0, len(text) // 2, 1) + text)


def _biff8_stream(rows: list[list[Any]], sheet_name: str, datemode: int) -> bytes:
    xfs = b"".join(
        _biff_record(0x00E0, struct.pack("<HHHBBBBIiH", 0, fmt, 0, 0, 0, 0, 0, 0, 0, 0))
        for fmt in (0, 14)
    )
    name = sheet_name.encode("latin-1")

    def workbook_globals(sheet_offset: int) -> bytes:
        return (
            _biff_bof(0x0005)
            + _biff_record(0x0022, struct.pack("<H", datemode))
            + xfs
            + _biff_record(0x0085, struct.pack("<iBBBB", sheet_offset, 0, 0, len(name), 0) + name)
            + _biff_record(0x000A)
        )

    ncols = max((len(row) for row in rows), default=0)
    cells = b"".join(
        _biff_cell(r, c, value, datemode)
        for r, row in enumerate(rows)
        for c, value in enumerate(row)
        if value is not None
    )
    sheet = (
        _biff_bof(0x0010)
        + _biff_record(0x0200, struct.pack("<IIHHH", 0, len(rows), 0, ncols, 0))
        + cells
        + _biff_record(0x000A)
    )
    return workbook_globals(len(workbook_globals(0))) + sheet


def _dir_entry(name: str, entry_type: int, child: int = -1, start: int = -2, size: int = 0) -> bytes:
    encoded = (name + "\0").encode("utf-16-le") if name else b""
    return (
        encoded.ljust(64, b"\0")
        + struct.pack("<HBBiii", len(encoded), entry_type, 1, -1, -1, child)
        + b"\0" * 36
        + struct.pack("<iII", start, size, 0)
    )


def _compound_file(stream: bytes) -> bytes:
    """Wrap ``stream`` as the "Workbook" stream of a version 3 compound file.

    Layout: header, one allocation-table sector, one directory sector, then
    the stream in consecutive sectors (padded so it never lands in the
    short-stream container).
    """
    size = max(_MIN_STANDARD_STREAM, -(-len(stream) // _SECTOR) * _SECTOR)
    nsectors = size // _SECTOR
    assert nsectors + 2 <= _SECTOR // 4, "workbook too large for a single allocation sector"

    fat = [-3, -2] + list(range(3, nsectors + 2)) + [-2]
    fat += [-1] * (_SECTOR // 4 - len(fat))
    header = (
        b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
        + b"\0" * 16
        + struct.pack("<HHHHH", 0x003E, 0x0003, 0xFFFE, 9, 6)
        + b"\0" * 6
        + struct.pack("<9i", 0, 1, 1, 0, _MIN_STANDARD_STREAM, -2, 0, -2, 0)
        + struct.pack("<109i", 0, *([-1] * 108))
    )
    directory = (
        _dir_entry("Root Entry", 5, child=1)
        + _dir_entry("Workbook", 2, start=2, size=size)
        + _dir_entry("", 0)
        + _dir_entry("", 0)
    )
    return header + struct.pack(f"<{len(fat)}i", *fat) + directory + stream.ljust(size, b"\0")


def _write_xls_workbook(
    path: Path, rows: list[list[Any]], sheet_name: str = "Sheet1", datemode: int = 0
) -> Path:
    """Write ``rows`` as the only sheet of a BIFF8 ``.xls`` workbook.

    None leaves the position unset, "" writes a BLANK record, error texts
    ("#DIV/0!") become error cells and datetimes date-formatted numbers
    (1904 serials when ``datemode`` is 1).
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(_compound_file(_biff8_stream(rows, sheet_name, datemode)))
    return path


@pytest.fixture()
def make_xls_workbook() -> Callable[..., Path]:
    return _write_xls_workbook


@pytest.fixture()
def sample_config_yaml() -> str:
    return """upload_root: ./uploads
skip_rows: 1
logs_dir: ./logs
output_prefix: firstsheet
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "transcoder.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def job_dir(temp_workdir: Path) -> Path:
    d = temp_workdir / "uploads" / "job42"
    d.mkdir()
    return d
