"""Unpack source archives into the external sources directory."""

from __future__ import annotations

import logging
import os
import shutil
import stat
import sys
import zipfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from sublime_sources.exceptions import ExtractionError
from sublime_sources.models import ResolvedArtifact

logger = logging.getLogger(__name__)

SOURCES_SUFFIX = "-sources"

_WRITE_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH


@dataclass(frozen=True)
class ReadOnlyFailure:
    """A file that could not be made read-only."""

    path: Path
    reason: str


@dataclass
class ExtractionReport:
    """What `extract_sources` did.

    Attributes:
        target_dir: The external sources directory.
        extracted: Destination directory name -> archives unpacked into it, in order.
        collisions: The subset of `extracted` fed by more than one archive.
        read_only_failures: Files left writable.
    """

    target_dir: Path
    extracted: dict[str, list[Path]] = field(default_factory=dict)
    collisions: dict[str, list[Path]] = field(default_factory=dict)
    read_only_failures: list[ReadOnlyFailure] = field(default_factory=list)


def destination_name(archive: Path) -> str:
    """Directory name for an archive: file name without extension and `-sources` suffix."""
    stem = archive.stem
    if stem.endswith(SOURCES_SUFFIX):
        stem = stem[: -len(SOURCES_SUFFIX)]
    return stem


def plan_extraction(archives: Sequence[Path]) -> dict[str, list[Path]]:
    """Group archives by destination directory, keeping their order."""
    plan: dict[str, list[Path]] = {}
    for archive in archives:
        plan.setdefault(destination_name(archive), []).append(archive)
    return plan


def _make_writable_and_retry(func, path, _exc) -> None:
    os.chmod(path, stat.S_IMODE(os.lstat(path).st_mode) | stat.S_IWUSR)
    func(path)


def remove_directory(target: Path) -> bool:
    """Delete `target` and everything below it, read-only files included.

    Returns:
        False if there was nothing to delete.

    Raises:
        ExtractionError: If the directory cannot be removed.
    """
    if not target.exists():
        return False
    try:
        if sys.version_info >= (3, 12):
            shutil.rmtree(target, onexc=_make_writable_and_retry)
        else:
            shutil.rmtree(target, onerror=_make_writable_and_retry)
    except OSError as exc:
        raise ExtractionError(f"Cannot remove external sources directory {target}: {exc}") from exc
    return True


def reset_directory(target: Path) -> None:
    """Delete `target` if it exists and recreate it empty.

    Raises:
        ExtractionError: If the directory cannot be removed or created.
    """
    remove_directory(target)
    try:
        target.mkdir(parents=True)
    except OSError as exc:
        raise ExtractionError(f"Cannot create external sources directory {target}: {exc}") from exc


def unpack_archive(archive: Path, dest: Path) -> None:
    """Unpack the whole archive into `dest`, overwriting files already there.

    Raises:
        ExtractionError: If the archive cannot be read or a file cannot be written.
    """
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(dest)
    except (OSError, zipfile.BadZipFile) as exc:
        raise ExtractionError(f"Cannot extract {archive}: {exc}") from exc


def mark_tree_read_only(directory: Path) -> list[ReadOnlyFailure]:
    """Clear the write bits of every regular file below `directory`.

    Directories stay writable so the tree can be reset on the next run. A file
    that cannot be changed is reported and the walk goes on.
    """
    failures: list[ReadOnlyFailure] = []

    def on_walk_error(exc: OSError) -> None:
        failures.append(ReadOnlyFailure(Path(exc.filename or directory), str(exc)))

    for dirpath, _dirnames, filenames in os.walk(directory, onerror=on_walk_error):
        for name in filenames:
            path = Path(dirpath) / name
            if path.is_symlink() or not path.is_file():
                continue
            try:
                path.chmod(stat.S_IMODE(path.stat().st_mode) & ~_WRITE_BITS)
            except OSError as exc:
                failures.append(ReadOnlyFailure(path, str(exc)))
    return failures


def extract_sources(target_dir: Path, source_jars: Sequence[ResolvedArtifact]) -> ExtractionReport:
    """Reset `target_dir` and unpack every source archive into its own subdirectory.

    Archives sharing a destination name are unpacked into the same directory in
    order, so the later archive wins for files present in both.

    Raises:
        ExtractionError: On any failure to reset the directory or read an archive.
    """
    reset_directory(target_dir)
    report = ExtractionReport(target_dir=target_dir)

    plan = plan_extraction([jar.path for jar in source_jars])
    for dest_name, archives in plan.items():
        if len(archives) > 1:
            logger.warning(
                "%d archives extract to '%s'; the last one wins on conflicting files: %s",
                len(archives),
                dest_name,
                ", ".join(a.name for a in archives),
            )
            report.collisions[dest_name] = list(archives)

        dest = target_dir / dest_name
        for archive in archives:
            logger.debug("Extracting %s to %s", archive, dest)
            unpack_archive(archive, dest)
        report.extracted[dest_name] = list(archives)

    report.read_only_failures = mark_tree_read_only(target_dir)
    for failure in report.read_only_failures:
        logger.warning("Could not mark %s read-only: %s", failure.path, failure.reason)
    return report
