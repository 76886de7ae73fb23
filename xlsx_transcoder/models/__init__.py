"""Domain models for the spreadsheet transcoder.

Cells and sheets read from source workbooks, request-scoped job inputs,
per-file outcomes and aggregated batch/job reports.
"""

from .batch_job import BatchJob, JobContext
from .cell import Cell, CellKind, SourceSheet
from .config_models import TranscoderConfig
from .error_record import ErrorRecord
from .excel_file import FileOutcome, FileStatus
from .processing_result import BatchReport, BatchStatus, JobReport

__all__ = [
    # Cell models
    "Cell",
    "CellKind",
    "SourceSheet",
    # Job inputs
    "BatchJob",
    "JobContext",
    "TranscoderConfig",
    # Results
    "FileOutcome",
    "FileStatus",
    "BatchReport",
    "BatchStatus",
    "JobReport",
    "ErrorRecord",
]
