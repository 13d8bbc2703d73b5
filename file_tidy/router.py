"""
Extension-based routing of files to category folders.

The built-in table lives in config.DEFAULT_CATEGORIES. User rules are
layered on top: a user's extensions are taken away from whichever built-in
category held them, and each user category replaces the built-in category
of the same name outright.
"""

from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from .config import DEFAULT_CATEGORIES, DEFAULT_FALLBACK_CATEGORY
from .errors import DuplicateExtensionError
from .models import FileRecord, MovePlanEntry
from .utils import normalize_extension, normalize_path

CategoryRules = Dict[str, FrozenSet[str]]


def resolve_rules(user_rules: Optional[Mapping[str, Iterable[str]]] = None) -> CategoryRules:
    """
    Merge user rules over the built-in categories.

    Args:
        user_rules: Category name -> extensions (any case, dot optional)

    Returns:
        New mapping of category name -> frozenset of normalized extensions
    """
    result: CategoryRules = dict(DEFAULT_CATEGORIES)
    if not user_rules:
        return result

    normalized = {
        category: frozenset(normalize_extension(e) for e in extensions)
        for category, extensions in user_rules.items()
    }
    claimed = frozenset().union(*normalized.values())

    for category in result:
        result[category] = result[category] - claimed
    result.update(normalized)
    return result


def build_extension_map(rules: Mapping[str, Iterable[str]]) -> Dict[str, str]:
    """
    Invert category rules into an extension -> category lookup.

    Raises:
        DuplicateExtensionError: If one extension belongs to two categories
    """
    lookup: Dict[str, str] = {}
    for category, extensions in rules.items():
        for ext in extensions:
            if ext in lookup:
                raise DuplicateExtensionError(ext, [lookup[ext], category])
            lookup[ext] = category
    return lookup


class ExtensionRouter:
    """Decides which category folder a file belongs in."""

    def __init__(
        self,
        user_rules: Optional[Mapping[str, Iterable[str]]] = None,
        fallback: str = DEFAULT_FALLBACK_CATEGORY,
    ):
        self.rules = resolve_rules(user_rules)
        self.fallback = fallback
        self._lookup = build_extension_map(self.rules)

    def category_for(self, extension: str) -> str:
        return self._lookup.get(normalize_extension(extension), self.fallback)

    def route(self, record: FileRecord, base_dir) -> MovePlanEntry:
        """Plan a move of record into its category folder under base_dir."""
        dest_dir = normalize_path(Path(base_dir) / self.category_for(record.extension))
        return MovePlanEntry(
            source=record,
            destination_dir=dest_dir,
            destination=dest_dir / record.name,
        )
