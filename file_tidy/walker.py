"""
Directory traversal and empty-directory cleanup.

Every operation gets its file set from walk() or scan_directory(). Problems
with individual entries are collected as FileError values and never raised;
only an unusable root is fatal.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Set

from .errors import InvalidDirectoryError
from .models import FileError, FileRecord, PruneResult, WalkOutcome
from .utils import normalize_extension, normalize_path

logger = logging.getLogger(__name__)


def require_directory(path) -> Path:
    """
    Normalize a path and make sure it is an existing directory.

    Raises:
        InvalidDirectoryError: If it is missing or not a directory
    """
    directory = normalize_path(path)
    if not directory.is_dir():
        raise InvalidDirectoryError(directory)
    return directory


def _error(path, exc: BaseException) -> FileError:
    message = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
    return FileError(Path(path), message)


def _record_entry(entry: os.DirEntry, directory: Path, outcome: WalkOutcome) -> None:
    """Stat a file entry and append its record, or the error, to outcome."""
    path = directory / entry.name
    try:
        stat = entry.stat(follow_symlinks=False)
    except OSError as e:
        outcome.errors.append(_error(path, e))
        return
    outcome.files.append(FileRecord(
        path=path,
        name=entry.name,
        extension=normalize_extension(os.path.splitext(entry.name)[1]),
        size=stat.st_size,
        directory=directory,
        mtime=datetime.fromtimestamp(stat.st_mtime),
    ))


def _skip_symlink(path: Path, outcome: WalkOutcome) -> None:
    # Links are never records or descended; only a dangling one is reported
    if os.path.exists(path):
        logger.debug("Skipping symbolic link %s", path)
    else:
        outcome.errors.append(FileError(path, "broken symbolic link"))


def _walk_dir(
    directory: Path,
    level: int,
    max_depth: int,
    outcome: WalkOutcome,
    visited: Set[str],
) -> None:
    try:
        real = os.path.realpath(directory)
    except OSError as e:
        outcome.errors.append(_error(directory, e))
        return
    if real in visited:
        logger.debug("Already visited %s, not descending", directory)
        return
    visited.add(real)

    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        outcome.errors.append(_error(directory, e))
        return

    for entry in entries:
        path = directory / entry.name
        try:
            if entry.is_symlink():
                _skip_symlink(path, outcome)
            elif entry.is_dir(follow_symlinks=False):
                if max_depth == 0 or level + 1 <= max_depth:
                    _walk_dir(path, level + 1, max_depth, outcome, visited)
            elif entry.is_file(follow_symlinks=False):
                _record_entry(entry, directory, outcome)
        except OSError as e:
            outcome.errors.append(_error(path, e))


def walk(root, max_depth: int = 0) -> WalkOutcome:
    """
    Recursively collect every regular file under root.

    Symbolic links are neither reported nor descended, so nothing outside
    root is ever visited. Each real directory is still read at most once.

    Args:
        root: Directory to walk
        max_depth: 0 for unlimited; otherwise how many directory levels
            below root are descended

    Returns:
        WalkOutcome with files in traversal order and per-entry errors

    Raises:
        InvalidDirectoryError: If root does not exist or is not a directory
    """
    root = normalize_path(root)
    try:
        resolved = root.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise InvalidDirectoryError(root, str(e)) from e
    if not resolved.is_dir():
        raise InvalidDirectoryError(root)

    outcome = WalkOutcome()
    _walk_dir(root, 0, max(max_depth, 0), outcome, set())
    logger.debug("Walked %s: %d files, %d errors", root, len(outcome.files), len(outcome.errors))
    return outcome


def scan_directory(directory) -> WalkOutcome:
    """
    Collect the regular files directly inside directory.

    Subdirectories are ignored, not descended.

    Raises:
        InvalidDirectoryError: If directory can't be listed at all
    """
    directory = require_directory(directory)
    outcome = WalkOutcome()
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise InvalidDirectoryError(directory, str(e)) from e

    for entry in entries:
        path = directory / entry.name
        try:
            if entry.is_symlink():
                _skip_symlink(path, outcome)
            elif entry.is_file(follow_symlinks=False):
                _record_entry(entry, directory, outcome)
        except OSError as e:
            outcome.errors.append(_error(path, e))
    return outcome


def _prune(directory: Path, protected: Path, result: PruneResult) -> bool:
    """Remove empty directories below and including directory. Returns True if it was removed."""
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        logger.debug("Could not read %s: %s", directory, e)
        result.skipped += 1
        return False

    is_empty = True
    for entry in entries:
        # Symlinks count as content, even when they point at a directory
        if entry.is_dir(follow_symlinks=False):
            if not _prune(Path(entry.path), protected, result):
                is_empty = False
        else:
            is_empty = False

    if not is_empty or directory.resolve() == protected:
        return False

    try:
        directory.rmdir()
    except OSError as e:
        logger.debug("Could not remove %s: %s", directory, e)
        result.skipped += 1
        return False
    result.deleted += 1
    result.removed.append(directory)
    logger.debug("Removed empty directory %s", directory)
    return True


def prune_empty_dirs(root, protected: Optional[Path] = None) -> PruneResult:
    """
    Remove every directory under root that contains no files, bottom up.

    Args:
        root: Directory to clean
        protected: Directory that must survive even when empty (default: root)

    Returns:
        PruneResult with counts and removed paths
    """
    root = normalize_path(root)
    protected = normalize_path(protected if protected is not None else root).resolve()
    result = PruneResult()
    _prune(root, protected, result)
    return result
