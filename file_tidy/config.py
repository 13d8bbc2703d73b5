"""
Configuration for file_tidy.

Uses a dataclass to make configuration testable and injectable.
The built-in category table is static data and is loaded once into an
immutable mapping; user rules are layered on top of it by the router.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, FrozenSet

from .errors import ConfigurationError


# Extensions are stored lowercase without the leading dot.
DEFAULT_CATEGORIES: Mapping[str, FrozenSet[str]] = MappingProxyType({
    "Images": frozenset({"jpg", "jpeg", "png", "gif", "bmp", "svg", "webp", "ico", "tiff", "heic"}),
    "Documents": frozenset({"pdf", "doc", "docx", "txt", "rtf", "odt", "xls", "xlsx", "ppt", "pptx", "csv"}),
    "Audio": frozenset({"mp3", "wav", "flac", "aac", "ogg", "wma", "m4a"}),
    "Video": frozenset({"mp4", "avi", "mkv", "mov", "wmv", "flv", "webm", "m4v"}),
    "Archives": frozenset({"zip", "rar", "7z", "tar", "gz", "bz2", "xz"}),
    "Code": frozenset({"py", "js", "ts", "html", "css", "json", "xml", "yml", "yaml", "md", "sh", "c", "cpp", "h", "java", "go", "rs"}),
    "Executables": frozenset({"exe", "msi", "dmg", "app", "deb", "rpm"}),
    "Fonts": frozenset({"ttf", "otf", "woff", "woff2"}),
})

DEFAULT_FALLBACK_CATEGORY = "Others"


@dataclass
class Config:
    """
    Configuration for file_tidy operations.

    All settings can be overridden when creating a Config instance,
    making it easy to test with different values.

    Example:
        # Use defaults
        config = Config()

        # Override for testing
        config = Config(large_file_threshold_bytes=1024, large_file_limit=3)
    """

    # Category routing
    fallback_category: str = DEFAULT_FALLBACK_CATEGORY

    # Archive settings
    archive_age_days: int = 30
    archive_folder: str = "_Archive"

    # Large file settings
    large_file_threshold_bytes: int = 500 * 1024 * 1024  # 500 MB
    large_file_limit: int = 10

    # Duplicate detection settings
    hash_algorithm: str = "sha256"
    hash_buffer_size: int = 64 * 1024

    # When no duplicate lives under the canonical path, keep the first one
    # (True) or leave the whole group alone and report it (False).
    canonical_fallback: bool = True


# Default configuration instance
DEFAULT_CONFIG = Config()


def load_rules(path) -> Dict[str, List[str]]:
    """
    Load user category rules from a JSON file.

    The file must hold an object mapping category folder names to lists of
    extensions, e.g. ``{"Photos": ["jpg", "raw"], "Books": [".epub"]}``.

    Args:
        path: Path to the JSON file

    Returns:
        Mapping of category name to extension list

    Raises:
        ConfigurationError: If the file can't be read or has the wrong shape
    """
    path = Path(path).expanduser()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not load rules from '{path}': {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Rules file '{path}' must contain a JSON object")

    rules: Dict[str, List[str]] = {}
    for category, extensions in data.items():
        if not isinstance(extensions, list) or not all(isinstance(e, str) for e in extensions):
            raise ConfigurationError(
                f"Rules file '{path}': category '{category}' must map to a list of strings"
            )
        if not category.strip():
            raise ConfigurationError(f"Rules file '{path}': empty category name")
        rules[category] = extensions
    return rules
