from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

"""FileStatus enum and FileOutcome, the per-file result of a batch.

Every file handed to the orchestrator ends up as exactly one FileOutcome:
success with the output path, failure with a classified reason, or skipped
because its extension is not a recognized spreadsheet format.
"""

__all__ = [
    "FileStatus",
    "FileOutcome",
]


class FileStatus(Enum):
    """Terminal status of one file in a batch.

    - SUCCESS: output workbook written under its final name
    - FAILED: transcoding aborted, no output under the final name
    - SKIPPED: rejected before processing (unsupported extension)
    """
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class FileOutcome:
    file_name: str                      # Name as given in the batch file list
    status: FileStatus
    output_path: Path | None = None     # <target>/<stem>.xlsx on success
    rows_written: int = 0               # Rows retained after the skip
    error_type: str | None = None       # UPPER_SNAKE classification on failure/skip
    error: str | None = None            # Failure reason
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == FileStatus.SUCCESS
