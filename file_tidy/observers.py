"""
Progress hooks for long-running operations.

Operations accept an optional observer and call one method per event.
Passing None means no calls at all. Subclass OperationObserver and override
only the events you care about.
"""

from pathlib import Path
from typing import Callable

from .models import DedupeGroup, MovePlanEntry, OperationStats
from .utils import format_file_size

# Type alias for output callback
OutputCallback = Callable[[str], None]


class OperationObserver:
    """Base observer. Every hook does nothing by default."""

    def on_move(self, entry: MovePlanEntry, stats: OperationStats) -> None:
        """Called after each planned move, whatever its outcome."""

    def on_duplicate_found(self, group: DedupeGroup) -> None:
        """Called once per duplicate group, before any of it is deleted."""

    def on_error(self, path: Path, error: Exception) -> None:
        """Called for per-file failures while hashing or deleting."""

    def on_empty_file(self, path: Path, deleted: bool) -> None:
        """Called for each zero-byte file found, with whether it was deleted."""


def _default_output(message: str) -> None:
    """Default output callback that prints to stdout."""
    print(message)


class ConsoleObserver(OperationObserver):
    """Writes one line per event through an output callback."""

    def __init__(self, dry_run: bool = False, output: OutputCallback = _default_output):
        self.dry_run = dry_run
        self.output = output
        self._last = (0, 0, 0)

    def on_move(self, entry: MovePlanEntry, stats: OperationStats) -> None:
        # The stats delta since the previous event tells us what happened
        _, skipped, errors = self._last
        self._last = (stats.moved, stats.skipped, stats.error_count)
        if stats.error_count > errors:
            self.output(f"  [ERROR] {entry.source.path}: {stats.errors[-1].message}")
        elif stats.skipped > skipped:
            self.output(f"  [SKIP] {entry.source.path}")
        else:
            tag = "[WOULD MOVE]" if self.dry_run else "[MOVED]"
            self.output(f"  {tag} {entry.source.path} -> {entry.destination}")

    def on_duplicate_found(self, group: DedupeGroup) -> None:
        self.output(f"\n  Keeping: {group.canonical.path}")
        tag = "[WOULD DELETE]" if self.dry_run else "[DELETE]"
        for dup in group.duplicates:
            self.output(f"    {tag} {dup.path} ({format_file_size(dup.size)})")

    def on_error(self, path: Path, error: Exception) -> None:
        self.output(f"  [ERROR] {path}: {error}")

    def on_empty_file(self, path: Path, deleted: bool) -> None:
        if deleted:
            self.output(f"  [DELETED] {path}")
        elif self.dry_run:
            self.output(f"  [WOULD DELETE] {path}")
        else:
            self.output(f"  [EMPTY] {path}")
