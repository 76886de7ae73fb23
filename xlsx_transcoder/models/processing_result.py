from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .excel_file import FileOutcome, FileStatus

"""Aggregated batch and job results.

BatchReport combines every FileOutcome of one batch with headline counters.
JobReport wraps a BatchReport with the archive step around it.
"""

__all__ = [
    "BatchStatus",
    "BatchReport",
    "JobReport",
]


class BatchStatus(Enum):
    """Caller-facing classification of a batch.

    - SUCCESS: every attempted file succeeded
    - PARTIAL_FAILURE: at least one attempted file failed
    - NOT_FOUND: nothing was attempted (no files, or every file skipped)
    """
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class BatchReport:
    """Result of one orchestrator run.

    ``rows_deleted`` echoes the requested skip count. It is uniform across
    files and not measured per file; sheets shorter than the skip count lose
    fewer rows than reported.
    """
    outcomes: list[FileOutcome]
    rows_deleted: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float

    @property
    def success_files(self) -> int:
        return sum(1 for o in self.outcomes if o.status == FileStatus.SUCCESS)

    @property
    def failed_files(self) -> int:
        return sum(1 for o in self.outcomes if o.status == FileStatus.FAILED)

    @property
    def skipped_files(self) -> int:
        return sum(1 for o in self.outcomes if o.status == FileStatus.SKIPPED)

    @property
    def total_rows_written(self) -> int:
        return sum(o.rows_written for o in self.outcomes if o.status == FileStatus.SUCCESS)

    @property
    def errors(self) -> dict[str, str]:
        """File name -> reason, for every failed or skipped file."""
        return {
            o.file_name: o.error or (o.error_type or "")
            for o in self.outcomes
            if o.status != FileStatus.SUCCESS
        }

    @property
    def status(self) -> BatchStatus:
        if self.success_files + self.failed_files == 0:
            return BatchStatus.NOT_FOUND
        if self.failed_files > 0:
            return BatchStatus.PARTIAL_FAILURE
        return BatchStatus.SUCCESS

    def outcome_for(self, file_name: str) -> FileOutcome | None:
        for o in self.outcomes:
            if o.file_name == file_name:
                return o
        return None


@dataclass(frozen=True)
class JobReport:
    """Result of a full job: extraction, batch and packaging.

    A packaging failure after successful processing leaves ``archive_path``
    as None and sets ``archive_error``; the batch result is kept.
    """
    batch: BatchReport
    archive_path: Path | None = None
    archive_error: str | None = None
    extraction_errors: dict[str, str] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    @property
    def status(self) -> BatchStatus:
        return self.batch.status
