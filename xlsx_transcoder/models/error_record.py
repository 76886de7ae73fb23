from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

row=-1 / column=-1 are sentinels for file-level errors where no cell position
applies (open failures, unsupported formats, write failures).
"""

__all__ = [
    "ErrorRecord",
    "FILE_LEVEL",
]

FILE_LEVEL = -1


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Spreadsheet filename being processed
        row: 0-based source row. -1 for file-level errors
        column: 0-based source column. -1 when not applicable
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable reason
    """
    timestamp: str
    file: str
    row: int
    column: int
    error_type: str
    message: str

    @staticmethod
    def create(
        file: str,
        error_type: str,
        message: str,
        row: int = FILE_LEVEL,
        column: int = FILE_LEVEL,
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            column=column,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # Fixed key set: dataclass fields only
        return json.dumps(asdict(self), ensure_ascii=False)
