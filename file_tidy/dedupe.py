"""
Content-based duplicate removal.

Files are bucketed by size first, since files of a unique size can't have a
duplicate. Only members of shared-size buckets are hashed. Files whose
digests match form a duplicate group; one member is kept according to the
chosen strategy and the rest are deleted.
"""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .config import Config, DEFAULT_CONFIG
from .errors import ConfigurationError
from .models import DedupeGroup, DedupeResult, FileError, FileRecord
from .observers import OperationObserver
from .utils import compute_file_hash, normalize_path, should_ignore
from .walker import prune_empty_dirs, require_directory, walk

logger = logging.getLogger(__name__)

STRATEGIES = ("canonical", "oldest", "newest", "shortest-path", "longest-path", "first")


def group_by_size(files: Iterable[FileRecord]) -> Dict[int, List[FileRecord]]:
    """Bucket files by exact size, keeping only buckets with 2+ files."""
    buckets: Dict[int, List[FileRecord]] = defaultdict(list)
    for record in files:
        buckets[record.size].append(record)
    return {size: group for size, group in buckets.items() if len(group) > 1}


def group_by_hash(
    files: Iterable[FileRecord],
    result: DedupeResult,
    observer: Optional[OperationObserver] = None,
    config: Config = DEFAULT_CONFIG,
) -> Dict[str, List[FileRecord]]:
    """
    Hash each file and group by digest, keeping only groups with 2+ files.

    Files that can't be read are recorded in result.errors and left out.
    """
    by_hash: Dict[str, List[FileRecord]] = defaultdict(list)
    for record in files:
        try:
            digest = compute_file_hash(record.path, config.hash_algorithm, config.hash_buffer_size)
        except OSError as e:
            logger.warning("Could not hash %s: %s", record.path, e)
            result.errors.append(FileError(record.path, str(e)))
            if observer is not None:
                observer.on_error(record.path, e)
            continue
        by_hash[digest].append(record)
    return {digest: group for digest, group in by_hash.items() if len(group) > 1}


def _is_under(path: Path, prefix: Path) -> bool:
    return path == prefix or prefix in path.parents


def choose_canonical(
    files: Sequence[FileRecord],
    strategy: str,
    canonical_path: Optional[Path] = None,
    fallback: bool = True,
) -> Optional[FileRecord]:
    """
    Pick the member of a duplicate group to keep.

    Ties always go to the file seen first. For "canonical", returns the
    first file at or below canonical_path; when none is, returns the first
    file if fallback is set and None otherwise.

    Args:
        files: Group members in traversal order
        strategy: One of STRATEGIES
        canonical_path: Required for the "canonical" strategy
        fallback: See above

    Returns:
        The chosen FileRecord, or None if nothing may be chosen
    """
    if strategy == "canonical":
        if canonical_path is None:
            raise ConfigurationError("canonical_path is required for the 'canonical' strategy")
        for record in files:
            if _is_under(record.path, canonical_path):
                return record
        if not fallback:
            return None
        logger.warning(
            "No file matches canonical path '%s', falling back to %s",
            canonical_path, files[0].path,
        )
        return files[0]

    chosen = files[0]
    for current in files[1:]:
        if strategy == "oldest":
            better = current.mtime is not None and chosen.mtime is not None and current.mtime < chosen.mtime
        elif strategy == "newest":
            better = current.mtime is not None and chosen.mtime is not None and current.mtime > chosen.mtime
        elif strategy == "shortest-path":
            better = len(str(current.path)) < len(str(chosen.path))
        elif strategy == "longest-path":
            better = len(str(current.path)) > len(str(chosen.path))
        else:
            better = False
        if better:
            chosen = current
    return chosen


def dedupe(
    root,
    strategy: Optional[str] = None,
    canonical_path=None,
    dry_run: bool = False,
    ignore_patterns: Optional[Iterable[str]] = None,
    delete_empty: bool = False,
    observer: Optional[OperationObserver] = None,
    config: Config = DEFAULT_CONFIG,
) -> DedupeResult:
    """
    Find files with identical content under root and delete all but one.

    Args:
        root: Directory to scan recursively
        strategy: Which copy to keep (see STRATEGIES). Defaults to
            "canonical" when canonical_path is given, "first" otherwise
        canonical_path: Preferred location for kept copies; relative paths
            are taken relative to root
        dry_run: If True, report what would be deleted without deleting
        ignore_patterns: Glob-like patterns of paths to leave alone
        delete_empty: Remove directories left empty afterwards
        observer: Optional progress hooks
        config: Configuration to use

    Returns:
        DedupeResult with statistics and per-group detail

    Raises:
        InvalidDirectoryError: If root is not a directory
        ConfigurationError: On an unknown strategy or a missing canonical_path
    """
    root = require_directory(root)
    if strategy is None:
        strategy = "canonical" if canonical_path else "first"
    if strategy not in STRATEGIES:
        raise ConfigurationError(
            f"Unknown dedupe strategy '{strategy}', expected one of: {', '.join(STRATEGIES)}"
        )
    if strategy == "canonical":
        if not canonical_path:
            raise ConfigurationError("canonical_path is required for the 'canonical' strategy")
        canonical_path = normalize_path(root / normalize_path(canonical_path))
    else:
        canonical_path = None

    result = DedupeResult()
    logger.info("%sScanning %s for duplicates", "[DRY RUN] " if dry_run else "", root)

    outcome = walk(root)
    result.errors.extend(outcome.errors)

    files = [f for f in outcome.files if not should_ignore(f.path, ignore_patterns)]
    result.scanned_files = len(files)

    candidates = [f for group in group_by_size(files).values() for f in group]
    duplicates = group_by_hash(candidates, result, observer=observer, config=config)
    result.duplicate_groups = len(duplicates)

    for digest, members in duplicates.items():
        canonical = choose_canonical(members, strategy, canonical_path, config.canonical_fallback)
        if canonical is None:
            result.errors.append(FileError(
                members[0].path,
                f"no duplicate under canonical path '{canonical_path}', group {digest[:8]} left untouched",
            ))
            continue

        group = DedupeGroup(
            content_hash=digest,
            canonical=canonical,
            duplicates=tuple(f for f in members if f is not canonical),
        )
        result.groups.append(group)
        if observer is not None:
            observer.on_duplicate_found(group)

        for dup in group.duplicates:
            if not dry_run:
                try:
                    dup.path.unlink()
                except OSError as e:
                    logger.warning("Could not delete %s: %s", dup.path, e)
                    result.errors.append(FileError(dup.path, str(e)))
                    if observer is not None:
                        observer.on_error(dup.path, e)
                    continue
                logger.debug("Deleted duplicate %s (kept %s)", dup.path, canonical.path)
            result.files_deleted += 1
            result.space_saved += dup.size

    if delete_empty and not dry_run:
        result.empty_dirs_removed = prune_empty_dirs(root).deleted

    logger.info(
        "%s %d duplicate files in %d groups",
        "Would delete" if dry_run else "Deleted",
        result.files_deleted, result.duplicate_groups,
    )
    return result
