from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from pathlib import Path

from ..archive.zip_ops import extract_archive, find_archives, package_directory
from ..errors import ArchiveError, JobNotFoundError, ProcessingError
from ..excel.file_ops import ensure_directory, scan_spreadsheet_files
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.batch_job import BatchJob, JobContext
from ..models.processing_result import JobReport
from .orchestrator import run_batch

"""Job runner: archive extraction, batch transcoding and repackaging.

The caller supplies every directory through JobContext; nothing here knows
about upload roots or job ids.

Flow:
1. extract each top-level zip of the job directory (best effort)
2. list .xls/.xlsx files directly under the job directory
3. transcode them concurrently into the output directory
4. zip the output directory when at least one file succeeded
"""

__all__ = [
    "OUTPUT_DIR_TIMESTAMP_FMT",
    "make_output_dir_name",
    "extract_job_archives",
    "run_job",
]

logger = logging.getLogger(__name__)

OUTPUT_DIR_TIMESTAMP_FMT = "%m%d%y%H%M%S"


def make_output_dir_name(prefix: str = "firstsheet", now: datetime | None = None) -> str:
    """Timestamped output folder name, e.g. ``firstsheet101926134501``."""
    now = now or datetime.now(UTC)
    return f"{prefix}{now.strftime(OUTPUT_DIR_TIMESTAMP_FMT)}"


def extract_job_archives(job_dir: Path, error_log: ErrorLogBuffer | None = None) -> dict[str, str]:
    """Extract every top-level archive of ``job_dir``.

    A failing archive is logged and recorded; the others still run.

    Returns:
        Archive file name -> error message, for failed archives only
    """
    errors: dict[str, str] = {}
    for archive_path in find_archives(job_dir):
        try:
            extract_archive(archive_path)
        except ArchiveError as e:
            logger.error("Failed to unzip and extract '%s': %s", archive_path, e)
            errors[archive_path.name] = str(e)
            if error_log is not None:
                error_log.append(
                    ErrorRecord.create(file=archive_path.name, error_type=e.error_type, message=str(e))
                )
    return errors


def run_job(
    ctx: JobContext,
    *,
    max_workers: int | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> JobReport:
    """Run one job end to end.

    Args:
        ctx: Job directory, output directory and skip count
        max_workers: Thread pool bound for the batch
        error_log: Buffer for archive and per-file failures

    Returns:
        JobReport. ``archive_path`` is None when no file succeeded or when
        packaging failed (``archive_error`` is then set).

    Raises:
        JobNotFoundError: ``ctx.job_dir`` does not exist
        ProcessingError: The output directory cannot be created
    """
    started = time.perf_counter()
    error_log = error_log if error_log is not None else ErrorLogBuffer()

    if not ctx.job_dir.is_dir():
        raise JobNotFoundError(f"Job folder not found: {ctx.job_dir}")

    try:
        ensure_directory(ctx.output_dir)
    except OSError as e:
        raise ProcessingError(f"Failed to create output folder {ctx.output_dir}: {e}") from e

    extraction_errors = extract_job_archives(ctx.job_dir, error_log)

    file_names = scan_spreadsheet_files(ctx.job_dir)
    if file_names:
        logger.info("Found %d Excel files to process in '%s'", len(file_names), ctx.job_dir)
    else:
        logger.warning("No Excel files (.xlsx or .xls) found in %s", ctx.job_dir)

    batch = run_batch(
        BatchJob(
            source_dir=ctx.job_dir,
            target_dir=ctx.output_dir,
            file_names=file_names,
            skip_rows=ctx.skip_rows,
        ),
        max_workers=max_workers,
        error_log=error_log,
    )

    archive_path: Path | None = None
    archive_error: str | None = None
    if batch.success_files > 0:
        try:
            archive_path = package_directory(ctx.output_dir)
        except ArchiveError as e:
            logger.error("Failed to create ZIP file: %s", e)
            archive_error = str(e)
            error_log.append(
                ErrorRecord.create(file=ctx.output_dir.name, error_type=e.error_type, message=str(e))
            )
            try:
                error_log.flush()
            except OSError as flush_error:
                logger.warning("could not write error log: %s", flush_error)

    return JobReport(
        batch=batch,
        archive_path=archive_path,
        archive_error=archive_error,
        extraction_errors=extraction_errors,
        elapsed_seconds=time.perf_counter() - started,
    )
