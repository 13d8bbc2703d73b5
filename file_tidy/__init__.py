"""
file_tidy - Organize the files in a directory tree.

This package sorts files into category folders by extension, removes
duplicate files by content, flattens nested folders, archives old files and
finds empty or oversized files.
"""

from .config import Config, DEFAULT_CONFIG
from .dedupe import dedupe
from .errors import (
    ConfigurationError,
    DestinationExistsError,
    DuplicateExtensionError,
    FileTidyError,
    InvalidDirectoryError,
    MoveError,
)
from .mover import safe_move
from .observers import ConsoleObserver, OperationObserver
from .operations import (
    archive,
    arrange,
    find_empty_files,
    find_large_files,
    flatten,
)
from .router import ExtensionRouter, resolve_rules
from .walker import prune_empty_dirs, walk

__version__ = "1.0.0"
__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "arrange",
    "flatten",
    "dedupe",
    "archive",
    "find_empty_files",
    "find_large_files",
    "walk",
    "prune_empty_dirs",
    "safe_move",
    "resolve_rules",
    "ExtensionRouter",
    "OperationObserver",
    "ConsoleObserver",
    "FileTidyError",
    "InvalidDirectoryError",
    "ConfigurationError",
    "DuplicateExtensionError",
    "MoveError",
    "DestinationExistsError",
]
