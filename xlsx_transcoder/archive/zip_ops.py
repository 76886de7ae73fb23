from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath

from ..errors import ArchiveExtractError, ArchivePackageError

"""Zip archive extraction and packaging.

extract_archive unpacks next to the archive (same parent directory) and
deletes the archive afterwards. Entries are first unpacked into a staging
directory and moved into place only once every entry succeeded, so a failed
extraction leaves nothing behind.

package_directory zips a directory tree into ``<dir>.zip`` walking it in
lexicographic order, so the same tree always yields the same entry order.
"""

__all__ = [
    "ARCHIVE_EXTENSION",
    "find_archives",
    "extract_archive",
    "package_directory",
]

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = ".zip"
_COPY_CHUNK = 1024 * 1024


def find_archives(directory: Path) -> list[Path]:
    """Top-level ``*.zip`` files of ``directory``, sorted by name."""
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() == ARCHIVE_EXTENSION
    )


def _safe_relative_path(name: str) -> PurePosixPath:
    rel = PurePosixPath(name.replace("\\", "/"))
    if rel.is_absolute() or ".." in rel.parts or (rel.parts and ":" in rel.parts[0]):
        raise ArchiveExtractError(f"unsafe entry path in archive: {name!r}")
    return rel


def _roll_back(moved: list[tuple[Path, Path]], created: list[Path]) -> None:
    for source, target in reversed(moved):
        try:
            os.replace(target, source)
        except OSError as e:
            logger.warning("Could not take back %s after a failed extraction: %s", target, e)
    for directory in reversed(created):
        try:
            directory.rmdir()
        except OSError as e:
            logger.warning("Could not remove %s after a failed extraction: %s", directory, e)


def _move_into_place(staging: Path, destination: Path) -> list[Path]:
    """Move every staged file to the same relative path under ``destination``.

    On failure the files already moved go back to the staging directory and
    the directories created here are removed before the error propagates.
    """
    moved: list[tuple[Path, Path]] = []
    created: list[Path] = []
    try:
        for root, dirs, files in os.walk(staging):
            dirs.sort()
            rel_root = Path(root).relative_to(staging)
            for d in dirs:
                directory = destination / rel_root / d
                if not directory.is_dir():
                    directory.mkdir()
                    created.append(directory)
            for f in sorted(files):
                source = Path(root) / f
                target = destination / rel_root / f
                os.replace(source, target)
                moved.append((source, target))
    except OSError:
        _roll_back(moved, created)
        raise
    return [target for _, target in moved]


def extract_archive(archive_path: Path) -> list[Path]:
    """Extract ``archive_path`` into its parent directory, then delete it.

    Args:
        archive_path: Zip file to extract

    Returns:
        Extracted file paths (directories excluded), in entry-walk order

    Raises:
        ArchiveExtractError: Archive missing or unreadable, unsafe entry
            path, or any entry failing to extract or move into place. Files
            and directories added to the parent are taken back in that case
            and the archive is kept. A file an entry had already replaced
            is not restored.
    """
    output_directory = archive_path.parent
    try:
        archive = zipfile.ZipFile(archive_path)
    except (OSError, zipfile.BadZipFile) as e:
        raise ArchiveExtractError(f"cannot open archive {archive_path}: {e}") from e

    staging = Path(tempfile.mkdtemp(prefix=f".{archive_path.stem}.", dir=output_directory))
    try:
        with archive:
            for info in archive.infolist():
                rel = _safe_relative_path(info.filename)
                if not rel.parts:
                    continue
                target = staging.joinpath(*rel.parts)
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as src, target.open("wb") as dst:
                    shutil.copyfileobj(src, dst, _COPY_CHUNK)
        extracted = _move_into_place(staging, output_directory)
    except ArchiveExtractError:
        raise
    except (OSError, zipfile.BadZipFile, RuntimeError, ValueError) as e:
        # RuntimeError: encrypted entries; ValueError: unsupported compression
        raise ArchiveExtractError(f"failed to extract {archive_path}: {e}") from e
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    try:
        archive_path.unlink()
    except OSError as e:
        raise ArchiveExtractError(f"extracted but could not remove {archive_path}: {e}") from e
    logger.info("Extracted %d files from %s", len(extracted), archive_path.name)
    return extracted


def package_directory(source_dir: Path) -> Path:
    """Zip ``source_dir`` into ``source_dir.with_suffix('.zip')``.

    Directories become ``name/`` entries, files deflate-compressed entries,
    both at their path relative to ``source_dir``. An empty directory gives
    a valid archive without entries.

    Returns:
        Path of the written archive

    Raises:
        ArchivePackageError: ``source_dir`` is not a directory or writing
            fails (a half-written archive is removed)
    """
    if not source_dir.is_dir():
        raise ArchivePackageError(f"The path {source_dir} is not a directory.")

    archive_path = source_dir.with_suffix(ARCHIVE_EXTENSION)
    try:
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for root, dirs, files in os.walk(source_dir):
                dirs.sort()
                root_path = Path(root)
                for d in dirs:
                    rel = (root_path / d).relative_to(source_dir).as_posix()
                    zf.mkdir(rel)
                for f in sorted(files):
                    file_path = root_path / f
                    rel = file_path.relative_to(source_dir).as_posix()
                    zf.write(file_path, arcname=rel, compress_type=zipfile.ZIP_DEFLATED)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        archive_path.unlink(missing_ok=True)
        raise ArchivePackageError(f"failed to package {source_dir}: {e}") from e

    logger.info("Created archive: %s", archive_path)
    return archive_path
