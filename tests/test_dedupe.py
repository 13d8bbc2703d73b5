"""
Tests for file_tidy.dedupe.

Covers canonical selection on its own and full dedupe runs on real trees.
"""

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from conftest import set_age
from file_tidy.config import Config
from file_tidy.dedupe import choose_canonical, dedupe, group_by_size
from file_tidy.errors import ConfigurationError, InvalidDirectoryError
from file_tidy.models import FileRecord


def _rec(path: str, size: int = 10, age_hours: float = 0) -> FileRecord:
    p = Path(path)
    return FileRecord(
        path=p,
        name=p.name,
        extension=p.suffix.lstrip("."),
        size=size,
        directory=p.parent,
        mtime=datetime(2024, 1, 1) - timedelta(hours=age_hours),
    )


class TestChooseCanonical:
    """Tests for choose_canonical function."""

    def setup_method(self):
        self.files = [
            _rec("/r/bb/x.txt", age_hours=1),
            _rec("/r/a/x.txt", age_hours=5),
            _rec("/r/keep/deep/x.txt", age_hours=5),
            _rec("/r/c/x.txt", age_hours=0),
        ]

    def test_first(self):
        assert choose_canonical(self.files, "first") is self.files[0]

    def test_oldest_first_wins_ties(self):
        assert choose_canonical(self.files, "oldest") is self.files[1]

    def test_newest(self):
        assert choose_canonical(self.files, "newest") is self.files[3]

    def test_shortest_path_first_wins_ties(self):
        assert choose_canonical(self.files, "shortest-path") is self.files[1]

    def test_longest_path(self):
        assert choose_canonical(self.files, "longest-path") is self.files[2]

    def test_canonical_prefix(self):
        chosen = choose_canonical(self.files, "canonical", Path("/r/keep"))
        assert chosen is self.files[2]

    def test_canonical_prefix_matches_whole_components(self):
        chosen = choose_canonical(self.files, "canonical", Path("/r/b"))
        # "/r/bb" is not under "/r/b", so this falls back to the first file
        assert chosen is self.files[0]

    def test_canonical_fallback_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="file_tidy.dedupe"):
            chosen = choose_canonical(self.files, "canonical", Path("/elsewhere"))

        assert chosen is self.files[0]
        assert "falling back" in caplog.text

    def test_canonical_without_fallback(self):
        assert choose_canonical(self.files, "canonical", Path("/elsewhere"), fallback=False) is None

    def test_missing_mtime_never_wins(self):
        files = [_rec("/r/a.txt", age_hours=1), FileRecord(Path("/r/b.txt"), "b.txt", "txt", 10, Path("/r"))]
        assert choose_canonical(files, "oldest") is files[0]


class TestGroupBySize:

    def test_drops_unique_sizes(self):
        files = [_rec("/r/a", size=1), _rec("/r/b", size=2), _rec("/r/c", size=1)]
        groups = group_by_size(files)
        assert list(groups) == [1]
        assert [f.name for f in groups[1]] == ["a", "c"]


class TestDedupe:
    """Tests for dedupe function."""

    def test_deletes_all_but_one(self, temp_dir: Path, duplicate_files: list):
        size = duplicate_files[0].stat().st_size

        result = dedupe(temp_dir)

        assert result.duplicate_groups == 1
        assert result.files_deleted == 2
        assert result.space_saved == 2 * size
        assert [f.exists() for f in duplicate_files] == [True, False, False]
        group = result.groups[0]
        assert group.canonical.path == duplicate_files[0]
        assert group.bytes_reclaimable == 2 * size

    def test_same_size_different_content_kept(self, temp_dir: Path):
        (temp_dir / "a.txt").write_text("aaaa")
        (temp_dir / "b.txt").write_text("bbbb")

        result = dedupe(temp_dir)

        assert result.duplicate_groups == 0
        assert result.files_deleted == 0
        assert (temp_dir / "a.txt").exists() and (temp_dir / "b.txt").exists()

    def test_dry_run_changes_nothing(self, temp_dir: Path, duplicate_files: list, tree_snapshot):
        before = tree_snapshot(temp_dir)

        result = dedupe(temp_dir, dry_run=True, delete_empty=True)

        assert tree_snapshot(temp_dir) == before
        assert result.files_deleted == 2
        assert result.space_saved > 0

    def test_newest_strategy(self, temp_dir: Path, duplicate_files: list):
        result = dedupe(temp_dir, strategy="newest")

        assert result.groups[0].canonical.path == duplicate_files[2]
        assert duplicate_files[2].exists()
        assert not duplicate_files[0].exists()

    def test_canonical_path_implies_strategy(self, temp_dir: Path, duplicate_files: list):
        result = dedupe(temp_dir, canonical_path="sub/deeper")

        assert result.groups[0].canonical.path == duplicate_files[2]
        assert [f.exists() for f in duplicate_files] == [False, False, True]

    def test_canonical_without_path_is_fatal(self, temp_dir: Path):
        with pytest.raises(ConfigurationError, match="canonical_path"):
            dedupe(temp_dir, strategy="canonical")

    def test_unknown_strategy_is_fatal(self, temp_dir: Path):
        with pytest.raises(ConfigurationError, match="Unknown dedupe strategy"):
            dedupe(temp_dir, strategy="biggest")

    def test_invalid_root(self, temp_dir: Path):
        with pytest.raises(InvalidDirectoryError):
            dedupe(temp_dir / "missing")

    def test_strict_canonical_leaves_group_alone(self, temp_dir: Path, duplicate_files: list):
        config = Config(canonical_fallback=False)

        result = dedupe(temp_dir, canonical_path="nowhere", config=config)

        assert result.files_deleted == 0
        assert len(result.errors) == 1
        assert all(f.exists() for f in duplicate_files)

    def test_ignore_patterns(self, temp_dir: Path, duplicate_files: list):
        result = dedupe(temp_dir, ignore_patterns=["deeper/*"])

        assert result.scanned_files == 2
        assert result.files_deleted == 1
        assert duplicate_files[2].exists()

    def test_empty_files_are_duplicates(self, temp_dir: Path):
        for name in ("a", "b", "c"):
            (temp_dir / name).write_bytes(b"")

        result = dedupe(temp_dir)

        assert result.duplicate_groups == 1
        assert result.files_deleted == 2
        assert result.space_saved == 0
        assert (temp_dir / "a").exists()

    def test_symlink_and_target_not_duplicates(self, temp_dir: Path):
        real = temp_dir / "b_real.txt"
        real.write_text("precious")
        os.symlink(real, temp_dir / "a_link.txt")

        result = dedupe(temp_dir)

        assert result.scanned_files == 1
        assert result.files_deleted == 0
        assert real.read_text() == "precious"
        assert (temp_dir / "a_link.txt").resolve() == real.resolve()

    def test_delete_empty_prunes_but_keeps_root(self, temp_dir: Path, duplicate_files: list):
        result = dedupe(temp_dir, delete_empty=True)

        assert not (temp_dir / "sub").exists()
        assert temp_dir.is_dir()
        assert result.empty_dirs_removed == 2

    def test_observer_events(self, temp_dir: Path, duplicate_files: list, recorder):
        dedupe(temp_dir, observer=recorder)

        assert len(recorder.groups) == 1
        assert len(recorder.groups[0].duplicates) == 2
        assert recorder.errors == []

    def test_delete_failure_is_recorded(self, temp_dir: Path, duplicate_files: list, recorder, monkeypatch):
        real_unlink = Path.unlink

        def flaky_unlink(self, *args, **kwargs):
            if self.name == "copy1.txt":
                raise PermissionError(13, "Permission denied")
            return real_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)

        result = dedupe(temp_dir, observer=recorder)

        assert result.files_deleted == 1
        assert [e.path for e in result.errors] == [duplicate_files[1]]
        assert [p for p, _ in recorder.errors] == [duplicate_files[1]]
        assert duplicate_files[1].exists()

    def test_many_copies(self, temp_dir: Path):
        for i in range(5):
            d = temp_dir / f"d{i}"
            d.mkdir()
            (d / "same.bin").write_bytes(b"\x00\x01" * 512)
            set_age(d / "same.bin", hours=i)
        (temp_dir / "other.bin").write_bytes(b"\x02\x03" * 512)

        result = dedupe(temp_dir)

        assert result.files_deleted == 4
        assert result.space_saved == 4 * 1024
        assert (temp_dir / "d0" / "same.bin").exists()
        assert (temp_dir / "other.bin").exists()
