"""
Core file operations for file_tidy.

Each operation validates its arguments up front (raising on anything fatal),
walks the tree, plans one change per file and then carries the plan out
with safe_move or unlink. Failures on individual files are collected in the
returned result and the operation moves on to the next file.

Progress is reported through an optional OperationObserver, kept separate
from the operations themselves so that any front end can be plugged in.
"""

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Set

from .config import Config, DEFAULT_CONFIG
from .errors import ConfigurationError, MoveError
from .models import (
    ArchiveResult,
    EmptyFilesResult,
    FileError,
    FileRecord,
    LargeFile,
    LargeFilesResult,
    MovePlanEntry,
    OperationStats,
)
from .mover import safe_move
from .observers import OperationObserver
from .router import ExtensionRouter
from .utils import disambiguate_name, normalize_path, unique_destination
from .walker import prune_empty_dirs, require_directory, scan_directory, walk

logger = logging.getLogger(__name__)

CONFLICT_STRATEGIES = ("rename", "overwrite", "skip")


def _prefix(dry_run: bool) -> str:
    return "[DRY RUN] " if dry_run else ""


def arrange(
    directory,
    rules: Optional[Mapping[str, Iterable[str]]] = None,
    dry_run: bool = False,
    observer: Optional[OperationObserver] = None,
    config: Config = DEFAULT_CONFIG,
) -> OperationStats:
    """
    Move the files directly inside directory into category subfolders.

    Subdirectories are left alone. Files are routed by extension using the
    built-in categories, with rules layered on top. A name that is already
    taken in the category folder gets a -(n) suffix.

    Args:
        directory: Path to the directory to arrange
        rules: Optional user categories, name -> extensions
        dry_run: If True, only plan the moves
        observer: Optional progress hooks
        config: Configuration to use

    Returns:
        OperationStats with statistics and the plan

    Raises:
        InvalidDirectoryError: If directory is not valid
        DuplicateExtensionError: If the rules route one extension twice
    """
    directory = require_directory(directory)
    router = ExtensionRouter(rules, fallback=config.fallback_category)

    outcome = scan_directory(directory)
    stats = OperationStats(scanned=len(outcome.files))
    logger.info("%sArranging %d files in %s", _prefix(dry_run), stats.scanned, directory)

    taken: Set[Path] = set()
    for record in outcome.files:
        entry = router.route(record, directory)
        if entry.destination == record.path:
            stats.plan.append(entry)
            stats.skipped += 1
        else:
            destination = unique_destination(entry.destination, taken)
            taken.add(destination)
            entry = MovePlanEntry(
                source=record, destination_dir=entry.destination_dir, destination=destination,
            )
            stats.plan.append(entry)
            _move(entry, dry_run, stats)

        if observer is not None:
            observer.on_move(entry, stats.snapshot())

    stats.errors[:0] = outcome.errors
    logger.info(
        "%s%d moved, %d skipped, %d errors",
        _prefix(dry_run), stats.moved, stats.skipped, stats.error_count,
    )
    return stats


def resolve_flatten_names(
    root,
    files: Sequence[FileRecord],
    conflict: str = "rename",
) -> List[MovePlanEntry]:
    """
    Compute where each file lands when the tree is flattened into root.

    With "rename", files already directly in root keep their names, and
    each further file with a name in use gets "-(2)", "-(3)", ... before its
    extension. "overwrite" and "skip" keep every name as is; what happens on
    a collision is decided when the plan is carried out.

    No filesystem access happens here.

    Args:
        root: Directory everything is flattened into
        files: Files in traversal order
        conflict: One of CONFLICT_STRATEGIES

    Returns:
        One MovePlanEntry per file, in the same order
    """
    if conflict not in CONFLICT_STRATEGIES:
        raise ConfigurationError(
            f"Unknown conflict strategy '{conflict}', expected one of: {', '.join(CONFLICT_STRATEGIES)}"
        )
    root = normalize_path(root)

    taken: Set[str] = {f.name for f in files if f.directory == root}
    counters = {}
    plan = []
    for record in files:
        name = record.name
        if conflict == "rename" and record.directory != root:
            if name in taken:
                index = counters.get(name, 1)
                candidate = name
                while candidate in taken:
                    index += 1
                    candidate = disambiguate_name(name, index)
                counters[name] = index
                name = candidate
            taken.add(name)
        plan.append(MovePlanEntry(source=record, destination_dir=root, destination=root / name))
    return plan


def flatten(
    directory,
    depth: int = 0,
    conflict: str = "rename",
    dry_run: bool = False,
    delete_empty: bool = True,
    observer: Optional[OperationObserver] = None,
    config: Config = DEFAULT_CONFIG,
) -> OperationStats:
    """
    Move every file in the tree under directory up into directory itself.

    Args:
        directory: Root to flatten into
        depth: How many levels to collect from (0 for unlimited)
        conflict: "rename", "overwrite" or "skip" for clashing names
        dry_run: If True, only plan the moves
        delete_empty: Remove directories left empty (never the root)
        observer: Optional progress hooks
        config: Configuration to use

    Returns:
        OperationStats with statistics and the plan

    Raises:
        InvalidDirectoryError: If directory is not valid
        ConfigurationError: On an unknown conflict strategy
    """
    directory = require_directory(directory)
    if conflict not in CONFLICT_STRATEGIES:
        raise ConfigurationError(
            f"Unknown conflict strategy '{conflict}', expected one of: {', '.join(CONFLICT_STRATEGIES)}"
        )

    outcome = walk(directory, max_depth=depth)
    stats = OperationStats(scanned=len(outcome.files))

    if not any(f.directory != directory for f in outcome.files):
        logger.info("Nothing to flatten in %s (no nested files)", directory)
        stats.errors.extend(outcome.errors)
        return stats

    plan = resolve_flatten_names(directory, outcome.files, conflict)
    logger.info("%sFlattening %d files into %s", _prefix(dry_run), len(plan), directory)

    claimed: Set[Path] = set()
    for entry in plan:
        record = entry.source
        stats.plan.append(entry)

        if entry.destination == record.path:
            stats.skipped += 1
            claimed.add(entry.destination)
        elif entry.destination in claimed or os.path.lexists(entry.destination):
            if conflict == "overwrite":
                _overwrite(entry, dry_run, stats)
                claimed.add(entry.destination)
            elif conflict == "skip":
                stats.skipped += 1
            else:
                stats.errors.append(FileError(record.path, f"{entry.destination} already exists"))
        else:
            _move(entry, dry_run, stats)
            claimed.add(entry.destination)

        if observer is not None:
            observer.on_move(entry, stats.snapshot())

    if delete_empty and not dry_run:
        pruned = prune_empty_dirs(directory)
        logger.info("Removed %d empty directories", pruned.deleted)

    stats.errors[:0] = outcome.errors
    logger.info(
        "%s%d moved, %d skipped, %d errors",
        _prefix(dry_run), stats.moved, stats.skipped, stats.error_count,
    )
    return stats


def _move(entry: MovePlanEntry, dry_run: bool, stats: OperationStats) -> bool:
    if dry_run:
        stats.moved += 1
        return True
    try:
        safe_move(entry.source.path, entry.destination)
    except MoveError as e:
        logger.warning("Could not move %s: %s", entry.source.path, e)
        stats.errors.append(FileError(entry.source.path, str(e)))
        return False
    stats.moved += 1
    return True


def _overwrite(entry: MovePlanEntry, dry_run: bool, stats: OperationStats) -> None:
    if not dry_run:
        try:
            entry.destination.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            stats.errors.append(FileError(entry.source.path, f"could not replace {entry.destination}: {e}"))
            return
    _move(entry, dry_run, stats)


def archive(
    root,
    archive_path,
    duration_days: float,
    dry_run: bool = False,
    observer: Optional[OperationObserver] = None,
    now: Optional[datetime] = None,
    config: Config = DEFAULT_CONFIG,
) -> ArchiveResult:
    """
    Move files not modified for duration_days into one flat archive folder.

    Files already inside the archive folder are left where they are. Name
    clashes inside the archive get a "-(n)" suffix.

    Args:
        root: Directory to scan recursively
        archive_path: Destination folder (created if missing)
        duration_days: Minimum age in days, by modification time
        dry_run: If True, only plan the moves
        observer: Optional progress hooks
        now: Current time (optional, for testing)
        config: Configuration to use

    Returns:
        ArchiveResult with statistics

    Raises:
        InvalidDirectoryError: If root is not valid
        ConfigurationError: If archive_path is empty or duration_days <= 0
    """
    root = require_directory(root)
    if archive_path is None or not str(archive_path).strip():
        raise ConfigurationError("Archive path is required")
    if duration_days <= 0:
        raise ConfigurationError("duration_days must be greater than 0")

    archive_dir = normalize_path(root / normalize_path(archive_path))
    result = ArchiveResult(archive_path=archive_dir)

    outcome = walk(root)
    result.errors.extend(outcome.errors)
    result.scanned = len(outcome.files)

    cutoff = (now or datetime.now()) - timedelta(days=duration_days)
    old_files = [
        f for f in outcome.files
        if f.mtime is not None
        and f.mtime < cutoff
        and f.directory != archive_dir
        and archive_dir not in f.directory.parents
    ]
    if not old_files:
        logger.info("No files older than %s days in %s", duration_days, root)
        return result

    if not dry_run and not archive_dir.is_dir():
        logger.info("Creating archive directory %s", archive_dir)
        archive_dir.mkdir(parents=True, exist_ok=True)

    logger.info("%sArchiving %d files into %s", _prefix(dry_run), len(old_files), archive_dir)

    taken: Set[Path] = set()
    stats = OperationStats(scanned=result.scanned)
    for record in old_files:
        destination = unique_destination(archive_dir / record.name, taken)
        taken.add(destination)
        entry = MovePlanEntry(source=record, destination_dir=archive_dir, destination=destination)
        result.plan.append(entry)

        if _move(entry, dry_run, stats):
            result.archived += 1
            result.archived_bytes += record.size

        if observer is not None:
            observer.on_move(entry, stats.snapshot())

    result.errors.extend(stats.errors)
    logger.info(
        "%s%d files archived (%s), %d errors",
        _prefix(dry_run), result.archived, result.archived_size, len(stats.errors),
    )
    return result


def find_empty_files(
    root,
    delete: bool = False,
    dry_run: bool = False,
    collect_paths: bool = False,
    observer: Optional[OperationObserver] = None,
) -> EmptyFilesResult:
    """
    Find zero-byte files under root and optionally delete them.

    Args:
        root: Directory to scan recursively
        delete: Delete the empty files (simulated when dry_run is set)
        dry_run: If True, count deletions without deleting
        collect_paths: Fill result.files with the empty files' paths
        observer: Optional progress hooks

    Returns:
        EmptyFilesResult with counts and errors
    """
    root = require_directory(root)
    result = EmptyFilesResult()

    outcome = walk(root)
    result.errors.extend(outcome.errors)
    result.scanned = len(outcome.files)

    for record in outcome.files:
        if record.size != 0:
            continue
        result.empty += 1
        if collect_paths:
            result.files.append(record.path)

        deleted = False
        if delete and dry_run:
            result.deleted += 1
        elif delete:
            try:
                record.path.unlink()
            except OSError as e:
                logger.warning("Could not delete %s: %s", record.path, e)
                result.errors.append(FileError(record.path, str(e)))
                if observer is not None:
                    observer.on_error(record.path, e)
                continue
            logger.debug("Deleted empty file %s", record.path)
            result.deleted += 1
            deleted = True

        if observer is not None:
            observer.on_empty_file(record.path, deleted)

    logger.info("%d empty files found, %d deleted", result.empty, result.deleted)
    return result


def find_large_files(
    root,
    min_size_bytes: Optional[int] = None,
    limit: Optional[int] = None,
    config: Config = DEFAULT_CONFIG,
) -> LargeFilesResult:
    """
    List the largest files under root that are at least min_size_bytes.

    Args:
        root: Directory to scan recursively
        min_size_bytes: Threshold (default: config.large_file_threshold_bytes)
        limit: How many files to return (default: config.large_file_limit)
        config: Configuration to use

    Returns:
        LargeFilesResult with the top files, largest first, and the total
        number of matches

    Raises:
        InvalidDirectoryError: If root is not valid
        ConfigurationError: If the threshold or limit is not positive
    """
    root = require_directory(root)
    if min_size_bytes is None:
        min_size_bytes = config.large_file_threshold_bytes
    if limit is None:
        limit = config.large_file_limit
    if min_size_bytes <= 0:
        raise ConfigurationError("min_size_bytes must be greater than 0")
    if limit <= 0:
        raise ConfigurationError("limit must be greater than 0")

    outcome = walk(root)
    matches = sorted(
        (LargeFile(f.path, f.size) for f in outcome.files if f.size >= min_size_bytes),
        key=lambda f: f.size,
        reverse=True,
    )
    return LargeFilesResult(
        limit=limit,
        matched=len(matches),
        files=matches[:limit],
        errors=list(outcome.errors),
    )
