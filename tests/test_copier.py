"""
Tests for relpack.build.copier module.

Tests file copying including:
- Exclusion rules (case-insensitive)
- Progress reporting over copied and excluded files
- Overwriting and directory structure
- Symbolic links, which are copied as links and never followed
"""

from __future__ import annotations

import os

import pytest

from relpack.build.copier import copy_files, count_files, is_excluded

pytestmark = pytest.mark.unit


class TestIsExcluded:
    """Tests for the exclusion rules."""

    @pytest.mark.parametrize(
        "path,rule",
        [
            ("MyApp.pdb", "debug symbols"),
            ("sub/Native.PDB", "debug symbols"),
            ("packages/Old-1.0.0-full.nupkg", "package archive"),
            ("createdump.exe", "crash dump tool"),
            ("tools\\CreateDump", "crash dump tool"),
            ("createdump/readme.txt", "crash dump tool"),
            ("MyApp.vshost.exe", "host shim"),
            ("bin/MyApp.VSHOST.exe.config", "host shim"),
            ("Foo.vshost.x/readme.txt", "host shim"),
        ],
    )
    def test_excluded_paths(self, path, rule):
        """Test that each rule matches regardless of case and separator."""
        assert is_excluded(path) == rule

    @pytest.mark.parametrize(
        "path",
        ["MyApp.exe", "sub/data.txt", "dump.exe", "mycreatedump.exe", "pdb/readme.md"],
    )
    def test_kept_paths(self, path):
        """Test that ordinary files are kept."""
        assert is_excluded(path) is None


class TestCopyFiles:
    """Tests for copy_files."""

    def test_copies_everything_without_exclusions(self, pack_dir, tmp_path):
        """Test that all files are copied when exclusions are off."""
        target = tmp_path / "out"

        copied = copy_files(pack_dir, target)

        assert copied == 6
        assert (target / "MyApp.pdb").exists()
        assert (target / "sub" / "data.txt").read_text(encoding="utf-8") == "payload"

    def test_excludes_annoyances(self, pack_dir, tmp_path):
        """Test that N files with K excluded yield N-K copies."""
        target = tmp_path / "out"

        copied = copy_files(pack_dir, target, exclude_annoyances=True)

        assert copied == 3
        assert sorted(p.relative_to(target).as_posix() for p in target.rglob("*") if p.is_file()) == [
            "MyApp.exe",
            "core.dll",
            "sub/data.txt",
        ]

    def test_progress_counts_every_file(self, pack_dir, tmp_path):
        """Test one progress call per file, excluded ones included, ending at 100."""
        seen = []

        copy_files(pack_dir, tmp_path / "out", seen.append, exclude_annoyances=True)

        assert len(seen) == 6
        assert seen == sorted(seen)
        assert seen[-1] == 100

    def test_empty_directory_reports_no_progress(self, tmp_path):
        """Test that an empty source copies nothing and emits no progress."""
        source = tmp_path / "empty"
        source.mkdir()
        seen = []

        assert copy_files(source, tmp_path / "out", seen.append) == 0
        assert seen == []
        assert (tmp_path / "out").is_dir()

    def test_overwrites_existing_files(self, pack_dir, tmp_path):
        """Test that files already in the target are replaced."""
        target = tmp_path / "out"
        target.mkdir()
        (target / "MyApp.exe").write_bytes(b"stale")

        copy_files(pack_dir, target)

        assert (target / "MyApp.exe").read_bytes() == b"MZ main executable"

    def test_creates_directories_of_fully_excluded_files(self, tmp_path):
        """Test that subdirectories are created even if every file is excluded."""
        source = tmp_path / "src"
        (source / "symbols").mkdir(parents=True)
        (source / "symbols" / "a.pdb").write_bytes(b"x")

        copy_files(source, tmp_path / "out", exclude_annoyances=True)

        assert (tmp_path / "out" / "symbols").is_dir()
        assert not (tmp_path / "out" / "symbols" / "a.pdb").exists()

    def test_missing_source_raises(self, tmp_path):
        """Test that a missing source directory raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            copy_files(tmp_path / "missing", tmp_path / "out")

    def test_count_files(self, pack_dir):
        assert count_files(pack_dir) == 6


@pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges on Windows")
class TestSymlinks:
    """Tests for copying trees that contain symbolic links."""

    @pytest.fixture
    def linked_tree(self, tmp_path):
        """Source with a file, a real directory of two files and a link to it."""
        source = tmp_path / "src"
        (source / "real").mkdir(parents=True)
        (source / "a.txt").write_text("a", encoding="utf-8")
        (source / "real" / "one.txt").write_text("1", encoding="utf-8")
        (source / "real" / "two.txt").write_text("2", encoding="utf-8")
        (source / "Current").symlink_to("real", target_is_directory=True)
        return source

    def test_linked_directory_counts_once(self, linked_tree):
        assert count_files(linked_tree) == 4

    def test_progress_never_exceeds_100(self, linked_tree, tmp_path):
        seen = []

        copied = copy_files(linked_tree, tmp_path / "out", seen.append)

        assert copied == 4
        assert len(seen) == 4
        assert max(seen) <= 100
        assert seen[-1] == 100

    def test_linked_directory_is_copied_as_link(self, linked_tree, tmp_path):
        target = tmp_path / "out"

        copy_files(linked_tree, target)

        assert (target / "Current").is_symlink()
        assert os.readlink(target / "Current") == "real"
        assert (target / "real" / "one.txt").read_text(encoding="utf-8") == "1"

    def test_link_cycle_is_not_followed(self, tmp_path):
        source = tmp_path / "src"
        (source / "sub").mkdir(parents=True)
        (source / "sub" / "file.txt").write_text("x", encoding="utf-8")
        (source / "sub" / "loop").symlink_to("..", target_is_directory=True)
        seen = []

        copied = copy_files(source, tmp_path / "out", seen.append)

        assert copied == 2
        assert seen == [50, 100]
        assert (tmp_path / "out" / "sub" / "loop").is_symlink()

    def test_recopy_replaces_existing_link(self, linked_tree, tmp_path):
        target = tmp_path / "out"
        copy_files(linked_tree, target)

        assert copy_files(linked_tree, target) == 4
        assert (target / "Current").is_symlink()
