from __future__ import annotations

from ..models.processing_result import BatchReport, JobReport

"""SUMMARY line rendering.

Format:
SUMMARY files={attempted}/{total} success={n} failed={n} skipped={n}
rows_written={n} rows_deleted={n} elapsed_sec={x} archive={path|-}
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
]


def format_seconds(seconds: float) -> str:
    """Render elapsed seconds without scientific notation.

    Examples:
        >>> format_seconds(2.0)
        '2'
        >>> format_seconds(0.0001234)
        '0.000123'
    """
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(report: BatchReport | JobReport) -> str:
    """Render the SUMMARY line for a batch or a whole job.

    ``files`` is ``attempted/total`` where skipped files count in the total
    only. ``archive`` is only meaningful for a JobReport.
    """
    if isinstance(report, JobReport):
        batch = report.batch
        archive = str(report.archive_path) if report.archive_path else "-"
        elapsed = report.elapsed_seconds
    else:
        batch = report
        archive = "-"
        elapsed = report.elapsed_seconds

    total = len(batch.outcomes)
    attempted = batch.success_files + batch.failed_files
    return (
        f"SUMMARY files={attempted}/{total} "
        f"success={batch.success_files} "
        f"failed={batch.failed_files} "
        f"skipped={batch.skipped_files} "
        f"rows_written={batch.total_rows_written} "
        f"rows_deleted={batch.rows_deleted} "
        f"elapsed_sec={format_seconds(elapsed)} "
        f"archive={archive}"
    )
