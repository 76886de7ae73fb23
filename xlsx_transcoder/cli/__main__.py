from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from xlsx_transcoder.config.loader import (
    ConfigError,
    apply_env_overrides,
    load_config,
    resolve_config_path,
)
from xlsx_transcoder.errors import JobNotFoundError, ProcessingError
from xlsx_transcoder.logging.error_log import ErrorLogBuffer
from xlsx_transcoder.logging.init import log_summary, set_level, setup_logging
from xlsx_transcoder.models.batch_job import JobContext
from xlsx_transcoder.models.config_models import TranscoderConfig
from xlsx_transcoder.models.processing_result import BatchStatus
from xlsx_transcoder.services.job import make_output_dir_name, run_job
from xlsx_transcoder.services.summary import render_summary_line

"""CLI entrypoint.

    python -m xlsx_transcoder.cli <job_id> [--skip-rows N] [--config PATH]
                                  [--upload-root DIR] [--workers N] [--debug]

Resolves ``<upload_root>/<job_id>`` as the job directory, writes the
transcoded workbooks to a timestamped folder inside it, zips that folder and
prints one SUMMARY line.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2
EXIT_NOT_FOUND = 3


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="xlsx-transcoder",
        description="Drop leading rows from the first sheet of every workbook in a job folder",
    )
    p.add_argument("job_id", help="Job folder name under the upload root")
    p.add_argument("--skip-rows", type=int, default=None, help="Leading rows to drop (default from config)")
    p.add_argument("--config", type=Path, default=None, help="YAML config file")
    p.add_argument("--upload-root", default=None, help="Override upload_root from config")
    p.add_argument("--workers", type=int, default=None, help="Worker threads (default: logical cores)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _load_settings(args: argparse.Namespace) -> TranscoderConfig:
    config_path = args.config or resolve_config_path()
    if config_path.exists() or args.upload_root is None:
        cfg = load_config(config_path)
    else:
        # No config file: --upload-root alone is enough
        cfg = TranscoderConfig(upload_root=args.upload_root)
    cfg = apply_env_overrides(cfg)
    if args.upload_root is not None:
        cfg = dataclasses.replace(cfg, upload_root=args.upload_root)
    return cfg


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an empty list must not fall back to sys.argv (pytest args)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    load_dotenv(dotenv_path=Path(".env"), override=False)

    if args.debug:
        set_level(logging.DEBUG)
        logger.debug("debug mode enabled")

    try:
        cfg = _load_settings(args)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    skip_rows = args.skip_rows if args.skip_rows is not None else cfg.skip_rows
    workers = args.workers if args.workers is not None else cfg.workers
    if skip_rows < 0:
        logger.error(f"skip rows must be >= 0: {skip_rows}")
        return EXIT_FATAL
    if workers is not None and workers < 1:
        logger.error(f"workers must be >= 1: {workers}")
        return EXIT_FATAL

    job_dir = Path(cfg.upload_root) / args.job_id
    ctx = JobContext(
        job_dir=job_dir,
        output_dir=job_dir / make_output_dir_name(cfg.output_prefix),
        skip_rows=skip_rows,
    )
    logger.info(f"Received process request for job_id: {args.job_id}, rows_to_delete: {skip_rows}")

    try:
        report = run_job(ctx, max_workers=workers, error_log=ErrorLogBuffer(Path(cfg.logs_dir)))
    except JobNotFoundError as e:
        logger.error(f"job: {e}")
        return EXIT_NOT_FOUND
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    for file_name, error in report.extraction_errors.items():
        logger.warning(f"archive {file_name} not extracted: {error}")
    for file_name, error in report.batch.errors.items():
        logger.warning(f"file {file_name}: {error}")
    if report.archive_error:
        logger.warning(f"processed but no archive produced: {report.archive_error}")

    summary_line = render_summary_line(report)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line.removeprefix("SUMMARY "))

    status = report.status
    if status == BatchStatus.NOT_FOUND:
        return EXIT_NOT_FOUND
    if status == BatchStatus.PARTIAL_FAILURE:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
