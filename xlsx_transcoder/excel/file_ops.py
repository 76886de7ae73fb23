from __future__ import annotations

import logging
from pathlib import Path

from ..errors import ProcessingError

"""Path helpers for spreadsheet files: extension checks, output naming,
directory creation and non-recursive discovery."""

__all__ = [
    "SPREADSHEET_EXTENSIONS",
    "OUTPUT_EXTENSION",
    "has_excel_extension",
    "output_path_for",
    "ensure_directory",
    "scan_spreadsheet_files",
]

logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = frozenset({".xls", ".xlsx"})
# Legacy xls is read, never written
OUTPUT_EXTENSION = ".xlsx"


def has_excel_extension(path: Path | str) -> bool:
    """True for .xls / .xlsx (case-insensitive)."""
    return Path(path).suffix.lower() in SPREADSHEET_EXTENSIONS


def output_path_for(source_path: Path, target_dir: Path) -> Path:
    """``<target_dir>/<source stem>.xlsx``, whatever the source extension."""
    return target_dir / f"{source_path.stem}{OUTPUT_EXTENSION}"


def ensure_directory(directory: Path) -> Path:
    """Create ``directory`` (and parents) if missing. Idempotent."""
    if directory.is_dir():
        logger.debug("Directory already exists: %s", directory)
        return directory
    directory.mkdir(parents=True, exist_ok=True)
    logger.info("Created directory: %s", directory)
    return directory


def scan_spreadsheet_files(directory: Path) -> list[str]:
    """List .xls/.xlsx file names directly under ``directory``, sorted.

    Raises:
        ProcessingError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")
    try:
        return sorted(
            p.name for p in directory.iterdir() if p.is_file() and has_excel_extension(p)
        )
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e
