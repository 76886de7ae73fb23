from __future__ import annotations

import logging
import os
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import UTC, datetime
from pathlib import Path

from ..errors import DateDecodeError, ProcessingError, TranscodeError, UnsupportedFormatError
from ..excel.file_ops import ensure_directory, has_excel_extension
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.batch_job import BatchJob
from ..models.excel_file import FileOutcome, FileStatus
from ..models.processing_result import BatchReport
from .file_transcoder import transcode_file
from .progress import ProgressTracker

"""Batch orchestration: fan a file list out over a bounded thread pool.

- The target directory is created once, before any worker starts
- Files with an unrecognized extension are skipped (WARN), never failed
- Every submitted file yields exactly one FileOutcome; a failing file never
  cancels or aborts its siblings
- Outcomes are collected on the calling thread as workers complete and
  reported in input order
"""

__all__ = [
    "run_batch",
    "run",
    "default_workers",
]

logger = logging.getLogger(__name__)


def default_workers() -> int:
    """Logical core count of the host (at least 1)."""
    return os.cpu_count() or 1


def _error_record(file_name: str, error: Exception) -> ErrorRecord:
    error_type = getattr(error, "error_type", "UNEXPECTED_ERROR")
    if isinstance(error, DateDecodeError):
        return ErrorRecord.create(
            file=file_name, error_type=error_type, message=str(error),
            row=error.row, column=error.column,
        )
    return ErrorRecord.create(file=file_name, error_type=error_type, message=str(error))


def _process_single_file(
    source_dir: Path,
    file_name: str,
    target_dir: Path,
    skip_rows: int,
    error_log: ErrorLogBuffer,
) -> FileOutcome:
    """Worker body. Converts every failure into a FAILED outcome."""
    started = time.perf_counter()
    source_path = source_dir / file_name
    try:
        result = transcode_file(source_path, target_dir, skip_rows)
    except TranscodeError as e:
        logger.error("Error processing file %s: %s", source_path, e)
        error_log.append(_error_record(file_name, e))
        return FileOutcome(
            file_name=file_name,
            status=FileStatus.FAILED,
            error_type=e.error_type,
            error=str(e),
            elapsed_seconds=time.perf_counter() - started,
        )
    except Exception as e:
        logger.exception("Unexpected error processing file %s", source_path)
        error_log.append(_error_record(file_name, e))
        return FileOutcome(
            file_name=file_name,
            status=FileStatus.FAILED,
            error_type="UNEXPECTED_ERROR",
            error=str(e),
            elapsed_seconds=time.perf_counter() - started,
        )
    return FileOutcome(
        file_name=file_name,
        status=FileStatus.SUCCESS,
        output_path=result.output_path,
        rows_written=result.rows_written,
        elapsed_seconds=time.perf_counter() - started,
    )


def run_batch(
    job: BatchJob,
    *,
    max_workers: int | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> BatchReport:
    """Transcode every file of ``job`` concurrently.

    Args:
        job: Source/target directories, file names and skip count
        max_workers: Thread pool bound (None = logical core count)
        error_log: Buffer receiving one record per failed or skipped file;
            flushed once before returning. A private buffer is used when None.

    Returns:
        BatchReport with one outcome per input file, in input order

    Raises:
        ProcessingError: The target directory cannot be created
    """
    start_time = datetime.now(UTC)
    started = time.perf_counter()
    error_log = error_log if error_log is not None else ErrorLogBuffer()

    try:
        ensure_directory(job.target_dir)
    except OSError as e:
        raise ProcessingError(f"cannot create target directory {job.target_dir}: {e}") from e

    logger.info("Folders source=%s target=%s files=%d", job.source_dir, job.target_dir, len(job.file_names))

    outcomes: list[FileOutcome | None] = [None] * len(job.file_names)
    pending: list[tuple[int, str]] = []
    for idx, file_name in enumerate(job.file_names):
        if has_excel_extension(file_name):
            pending.append((idx, file_name))
            continue
        logger.warning("Skipping invalid excel file: %s", file_name)
        error = UnsupportedFormatError(f"unsupported file extension: {file_name}")
        error_log.append(_error_record(file_name, error))
        outcomes[idx] = FileOutcome(
            file_name=file_name,
            status=FileStatus.SKIPPED,
            error_type=error.error_type,
            error=str(error),
        )

    if pending:
        workers = min(max_workers or default_workers(), len(pending))
        logger.debug("thread pool size=%d for %d files", workers, len(pending))
        with ProgressTracker(len(pending)) as progress, ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="transcode"
        ) as executor:
            futures = {
                executor.submit(
                    _process_single_file,
                    job.source_dir,
                    file_name,
                    job.target_dir,
                    job.skip_rows,
                    error_log,
                ): idx
                for idx, file_name in pending
            }
            for future in as_completed(futures):
                outcome = future.result()
                outcomes[futures[future]] = outcome
                progress.finish_file(outcome.file_name, success=outcome.ok)

    try:
        error_log.flush()
    except OSError as e:
        # The report still carries every failure
        logger.warning("could not write error log: %s", e)

    end_time = datetime.now(UTC)
    report = BatchReport(
        outcomes=[o for o in outcomes if o is not None],
        rows_deleted=job.skip_rows,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=time.perf_counter() - started,
    )
    logger.info(
        "Batch finished success=%d failed=%d skipped=%d rows_written=%d",
        report.success_files,
        report.failed_files,
        report.skipped_files,
        report.total_rows_written,
    )
    return report


def run(
    source_dir: Path,
    target_dir: Path,
    file_names: Sequence[str],
    skip_rows: int,
    *,
    max_workers: int | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> BatchReport:
    """Convenience wrapper building the BatchJob."""
    job = BatchJob(
        source_dir=Path(source_dir),
        target_dir=Path(target_dir),
        file_names=list(file_names),
        skip_rows=skip_rows,
    )
    return run_batch(job, max_workers=max_workers, error_log=error_log)
