"""
Data types shared by the walker and the operations.

Records describing files on disk are frozen. Result objects are plain
dataclasses that an operation fills in as it works through its plan and
hands back to the caller when it is done.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from .utils import format_file_size


@dataclass(frozen=True)
class FileRecord:
    """A regular file found during a walk."""
    path: Path
    name: str
    extension: str  # lowercase, no dot
    size: int
    directory: Path
    mtime: Optional[datetime] = None


@dataclass(frozen=True)
class FileError:
    path: Path
    message: str


@dataclass
class WalkOutcome:
    """Files and per-entry errors collected by one traversal, in traversal order."""
    files: List[FileRecord] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)


@dataclass(frozen=True)
class MovePlanEntry:
    source: FileRecord
    destination_dir: Path
    destination: Path


@dataclass
class OperationStats:
    """Statistics for arrange and flatten."""
    scanned: int = 0
    moved: int = 0
    skipped: int = 0
    errors: List[FileError] = field(default_factory=list)
    plan: List[MovePlanEntry] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def snapshot(self) -> "OperationStats":
        """Return an independent copy, safe to hand to observers."""
        return replace(self, errors=list(self.errors), plan=list(self.plan))


@dataclass(frozen=True)
class DedupeGroup:
    """Files sharing one content hash, with the member chosen to keep."""
    content_hash: str
    canonical: FileRecord
    duplicates: Tuple[FileRecord, ...]

    @property
    def bytes_reclaimable(self) -> int:
        return sum(f.size for f in self.duplicates)


@dataclass
class DedupeResult:
    scanned_files: int = 0
    duplicate_groups: int = 0
    files_deleted: int = 0
    space_saved: int = 0
    errors: List[FileError] = field(default_factory=list)
    groups: List[DedupeGroup] = field(default_factory=list)
    empty_dirs_removed: int = 0


@dataclass
class ArchiveResult:
    archive_path: Optional[Path] = None
    scanned: int = 0
    archived: int = 0
    archived_bytes: int = 0
    errors: List[FileError] = field(default_factory=list)
    plan: List[MovePlanEntry] = field(default_factory=list)

    @property
    def archived_size(self) -> str:
        return format_file_size(self.archived_bytes)


@dataclass
class EmptyFilesResult:
    scanned: int = 0
    empty: int = 0
    deleted: int = 0
    errors: List[FileError] = field(default_factory=list)
    files: List[Path] = field(default_factory=list)


@dataclass(frozen=True)
class LargeFile:
    path: Path
    size: int

    @property
    def size_display(self) -> str:
        return format_file_size(self.size)


@dataclass
class LargeFilesResult:
    limit: int = 0
    matched: int = 0
    files: List[LargeFile] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)


@dataclass
class PruneResult:
    """Outcome of removing empty directories."""
    deleted: int = 0
    skipped: int = 0
    removed: List[Path] = field(default_factory=list)
