from __future__ import annotations

from dataclasses import dataclass

"""Configuration dataclass for the transcoder CLI.

Populated by xlsx_transcoder.config.loader from YAML plus environment
overrides. The core (orchestrator, transcoders, archive adapter) never reads
it directly; the CLI turns it into a JobContext and keyword arguments.
"""

__all__ = [
    "TranscoderConfig",
]

DEFAULT_LOGS_DIR = "./logs"
DEFAULT_OUTPUT_PREFIX = "firstsheet"


@dataclass(frozen=True)
class TranscoderConfig:
    upload_root: str                        # Directory holding one folder per job id
    skip_rows: int = 0                      # Default leading rows to drop
    workers: int | None = None              # Thread pool size (None = logical cores)
    logs_dir: str = DEFAULT_LOGS_DIR        # JSON Lines error log directory
    output_prefix: str = DEFAULT_OUTPUT_PREFIX  # Output folder name prefix inside a job
