from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

"""Request-scoped inputs of the core: BatchJob and JobContext.

Neither value is persisted. Directory conventions (upload roots, job ids,
timestamped output folders) are resolved by the caller and handed in here.
"""

__all__ = [
    "BatchJob",
    "JobContext",
]


def _check_skip_rows(skip_rows: int) -> None:
    if skip_rows < 0:
        raise ValueError(f"skip_rows must be >= 0, got {skip_rows}")


@dataclass(frozen=True)
class BatchJob:
    """One request to transcode a named set of files.

    ``file_names`` are relative to ``source_dir`` and already known to exist.
    """
    source_dir: Path
    target_dir: Path
    file_names: list[str] = field(default_factory=list)
    skip_rows: int = 0

    def __post_init__(self) -> None:
        _check_skip_rows(self.skip_rows)


@dataclass(frozen=True)
class JobContext:
    """Directories and parameters of one uploaded job."""
    job_dir: Path        # Uploaded files (and archives) live here
    output_dir: Path     # Transcoded workbooks are written here, then zipped
    skip_rows: int = 0

    def __post_init__(self) -> None:
        _check_skip_rows(self.skip_rows)
