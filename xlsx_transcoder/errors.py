from __future__ import annotations

"""Exception hierarchy for the spreadsheet transcoder.

Per-file failures derive from TranscodeError and carry an UPPER_SNAKE
``error_type`` that is copied into FileOutcome / ErrorRecord. Only
ProcessingError is fatal for a whole batch.
"""

__all__ = [
    "TranscodeError",
    "UnsupportedFormatError",
    "OpenError",
    "DateDecodeError",
    "WriteError",
    "ArchiveError",
    "ArchiveExtractError",
    "ArchivePackageError",
    "ProcessingError",
    "JobNotFoundError",
]


class TranscodeError(Exception):
    """Base class for errors that abort a single file."""

    error_type = "TRANSCODE_ERROR"


class UnsupportedFormatError(TranscodeError):
    """Raised when a file does not carry a recognized spreadsheet extension."""

    error_type = "UNSUPPORTED_FORMAT"


class OpenError(TranscodeError):
    """Raised when a workbook cannot be parsed or has no sheets."""

    error_type = "OPEN_ERROR"


class DateDecodeError(TranscodeError):
    """Raised when a date cell's serial value has no calendar representation.

    ``row`` and ``column`` are 0-based positions in the *source* sheet.
    """

    error_type = "DATE_DECODE_ERROR"

    def __init__(self, row: int, column: int, serial: float) -> None:
        self.row = row
        self.column = column
        self.serial = serial
        super().__init__(
            f"invalid Excel serial date {serial!r} at source row {row}, column {column}"
        )


class WriteError(TranscodeError):
    """Raised when emitting a value to the output workbook fails."""

    error_type = "WRITE_ERROR"


class ArchiveError(Exception):
    error_type = "ARCHIVE_ERROR"


class ArchiveExtractError(ArchiveError):
    error_type = "ARCHIVE_EXTRACT_ERROR"


class ArchivePackageError(ArchiveError):
    error_type = "ARCHIVE_PACKAGE_ERROR"


class ProcessingError(Exception):
    """Fatal error: no file of the batch can be processed."""


class JobNotFoundError(ProcessingError):
    """Raised when the job directory does not exist."""
