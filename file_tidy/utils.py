"""
Pure utility functions for file_tidy.

These functions are stateless. Apart from compute_file_hash (reads a file)
and unique_destination (checks for existing files) they do no I/O and are
easy to unit test in isolation.
"""

import hashlib
import os
import re
from pathlib import Path
from typing import Iterable, Optional, Pattern, Set


def normalize_path(path) -> Path:
    """
    Canonicalize a path without touching the filesystem.

    Expands ``~``, collapses redundant separators and ``.``/``..`` segments
    and uses the platform's native separator. Symlinks are not resolved.

    Args:
        path: A str or Path

    Returns:
        Normalized Path
    """
    return Path(os.path.normpath(os.path.expanduser(os.fspath(path))))


def normalize_extension(extension: str) -> str:
    """
    Normalize an extension to lowercase without leading dots.

    Example:
        >>> normalize_extension(".JPG")
        'jpg'
    """
    return extension.strip().lstrip(".").lower()


def format_file_size(size_bytes: int) -> str:
    """
    Convert bytes to human-readable format (KB, MB, GB).

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable string like "1.5 GB" or "256 MB"

    Example:
        >>> format_file_size(1536000000)
        '1.43 GB'
    """
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024:
            return f"{size:.2f} {unit}" if unit != 'B' else f"{int(size)} {unit}"
        size /= 1024
    return f"{size:.2f} PB"


def compute_file_hash(file_path: Path, algorithm: str = "sha256", buffer_size: int = 64 * 1024) -> str:
    """
    Compute the content digest of a file for duplicate detection.

    Reads the file in chunks so large files are never held in memory.

    Args:
        file_path: Path to the file to hash
        algorithm: Any name accepted by hashlib.new
        buffer_size: Size of chunks to read

    Returns:
        Hex digest string
    """
    hasher = hashlib.new(algorithm)

    with open(file_path, 'rb') as f:
        while chunk := f.read(buffer_size):
            hasher.update(chunk)

    return hasher.hexdigest()


def compile_ignore_pattern(pattern: str) -> Pattern[str]:
    """
    Translate an ignore pattern into a regular expression.

    ``*`` matches any run of characters (including none and including path
    separators), ``?`` matches exactly one character. Every other character
    is literal: dots, brackets, plus signs and so on are escaped. The
    expression is unanchored, so it matches anywhere in the path.

    Example:
        >>> bool(compile_ignore_pattern("*.log").search("logs/app.log"))
        True
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts))


def matches_ignore_pattern(path, pattern: str) -> bool:
    """
    Check a single path against a single ignore pattern.

    The path is compared in POSIX form so patterns can use ``/`` on every
    platform. A path also matches when it simply contains the pattern text.
    Empty patterns never match.
    """
    if not pattern:
        return False
    text = Path(path).as_posix()
    return bool(compile_ignore_pattern(pattern).search(text)) or pattern in text


def should_ignore(path, patterns: Optional[Iterable[str]]) -> bool:
    """Return True if the path matches any of the ignore patterns."""
    if not patterns:
        return False
    return any(matches_ignore_pattern(path, p) for p in patterns)


def disambiguate_name(name: str, index: int) -> str:
    """
    Insert a numeric disambiguator before the extension.

    Example:
        >>> disambiguate_name("report.pdf", 2)
        'report-(2).pdf'
    """
    stem, suffix = os.path.splitext(name)
    return f"{stem}-({index}){suffix}"


def unique_destination(destination: Path, taken: Optional[Set[Path]] = None) -> Path:
    """
    Return destination, or the first free ``name-(n)`` variant of it.

    A candidate is free when it doesn't exist on disk and isn't in taken
    (paths already claimed earlier in the same operation).

    Args:
        destination: Proposed destination path
        taken: Paths already handed out

    Returns:
        A path that is free to move a file to
    """
    taken = taken or set()
    candidate = destination
    index = 1
    while candidate in taken or os.path.lexists(candidate):
        index += 1
        candidate = destination.parent / disambiguate_name(destination.name, index)
    return candidate
