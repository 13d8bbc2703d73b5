"""
Pytest fixtures for file_tidy tests.

Provides reusable fixtures for creating temporary directory trees,
test files, observers and configurations.
"""

import hashlib
import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from file_tidy.config import Config
from file_tidy.observers import OperationObserver


def set_age(path: Path, days: float = 0, hours: float = 0) -> None:
    """Set a file's modification time to the given age."""
    stamp = (datetime.now() - timedelta(days=days, hours=hours)).timestamp()
    os.utime(path, (stamp, stamp))


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for testing."""
    return tmp_path


@pytest.fixture
def test_config() -> Config:
    """Create a test configuration with small thresholds."""
    return Config(
        large_file_threshold_bytes=1024,  # 1 KB for testing
        large_file_limit=3,
        hash_buffer_size=16,
    )


@pytest.fixture
def sample_files(temp_dir: Path) -> dict:
    """
    Create one file per routing outcome in the root.

    Returns a dict mapping expected category to the created file.
    """
    files = {
        "Images": temp_dir / "photo.jpg",
        "Documents": temp_dir / "notes.txt",
        "Others": temp_dir / "script.unknownext",
    }
    for category, f in files.items():
        f.write_text(f"content for {category}")
    return files


@pytest.fixture
def nested_tree(temp_dir: Path) -> dict:
    """
    Create a small nested tree with a repeated file name.

    root/
      a/a.txt        "first"
      b/a.txt        "second"
      b/c/deep.md    "deep"
      top.txt        "top"
    """
    (temp_dir / "a").mkdir()
    (temp_dir / "b" / "c").mkdir(parents=True)
    files = {
        "a/a.txt": "first",
        "b/a.txt": "second",
        "b/c/deep.md": "deep",
        "top.txt": "top",
    }
    for rel, content in files.items():
        (temp_dir / rel).write_text(content)
    return files


@pytest.fixture
def duplicate_files(temp_dir: Path) -> list:
    """
    Create three files with identical content spread over the tree.

    Modification times are staggered: the one in the root is oldest.
    """
    content = "This is duplicate content that will produce the same hash."
    (temp_dir / "sub" / "deeper").mkdir(parents=True)

    files = []
    for rel, hours_ago in [("original.txt", 3), ("sub/copy1.txt", 2), ("sub/deeper/copy2.txt", 1)]:
        f = temp_dir / rel
        f.write_text(content)
        set_age(f, hours=hours_ago)
        files.append(f)
    return files


@pytest.fixture
def old_file(temp_dir: Path) -> Path:
    """Create a file that is 60 days old."""
    f = temp_dir / "old_file.txt"
    f.write_text("old content")
    set_age(f, days=60)
    return f


@pytest.fixture
def tree_snapshot():
    """Return a function capturing every file under a root with its hash."""
    def snapshot(root: Path) -> dict:
        return {
            p.relative_to(root).as_posix(): hashlib.sha256(p.read_bytes()).hexdigest()
            for p in sorted(root.rglob("*"))
            if p.is_file()
        }
    return snapshot


class RecordingObserver(OperationObserver):
    """Observer that remembers every event it receives."""

    def __init__(self):
        self.moves = []
        self.groups = []
        self.errors = []
        self.empty = []

    def on_move(self, entry, stats):
        self.moves.append((entry, stats))

    def on_duplicate_found(self, group):
        self.groups.append(group)

    def on_error(self, path, error):
        self.errors.append((path, error))

    def on_empty_file(self, path, deleted):
        self.empty.append((path, deleted))


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def capture_output() -> list:
    """Create a list to capture output lines."""
    return []


@pytest.fixture
def output_callback(capture_output: list):
    """Create an output callback that captures messages."""
    def callback(message: str) -> None:
        capture_output.append(message)
    return callback
