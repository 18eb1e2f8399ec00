"""Tests for primitive filesystem operations."""

import logging
import os
import stat

import pytest

from contentsync.core.file_ops import FileOperations, _rmtree_onerror


@pytest.fixture
def ops():
    return FileOperations()


@pytest.fixture
def blocked(tmp_path):
    """A path whose parent is a regular file, so nothing can be created there."""
    blocker = tmp_path / "blocker"
    blocker.write_text("in the way")
    return str(blocker / "child")


class TestCopy:
    def test_creates_parents(self, tmp_path, ops):
        src = tmp_path / "a.txt"
        src.write_text("hello")
        dst = tmp_path / "out" / "deep" / "a.txt"
        assert ops.copy_file(str(src), str(dst))
        assert dst.read_text() == "hello"

    def test_preserves_mtime(self, tmp_path, ops):
        src = tmp_path / "a.txt"
        src.write_text("hello")
        os.utime(src, (1000, 1000))
        dst = tmp_path / "b.txt"
        ops.copy_file(str(src), str(dst))
        assert os.stat(dst).st_mtime_ns == os.stat(src).st_mtime_ns

    def test_overwrites_read_only(self, tmp_path, ops):
        src = tmp_path / "a.txt"
        src.write_text("new")
        dst = tmp_path / "b.txt"
        dst.write_text("old")
        os.chmod(dst, stat.S_IREAD)
        assert ops.copy_file(str(src), str(dst))
        assert dst.read_text() == "new"

    def test_failure_recorded(self, tmp_path, ops, blocked):
        src = tmp_path / "a.txt"
        src.write_text("x")
        assert not ops.copy_file(str(src), blocked)
        assert len(ops.errors) == 1
        assert ops.errors[0].operation == "copy"
        assert ops.errors[0].path == blocked


class TestDelete:
    def test_delete_file(self, tmp_path, ops):
        f = tmp_path / "a.txt"
        f.write_text("x")
        assert ops.delete_file(str(f))
        assert not f.exists()

    def test_missing_file_counts_as_deleted(self, tmp_path, ops):
        assert ops.delete_file(str(tmp_path / "missing"))
        assert ops.errors == []

    def test_read_only_file(self, tmp_path, ops):
        f = tmp_path / "a.txt"
        f.write_text("x")
        os.chmod(f, stat.S_IREAD)
        assert ops.delete_file(str(f))
        assert not f.exists()

    def test_delete_directory_tree(self, tmp_path, ops):
        d = tmp_path / "d"
        (d / "inner").mkdir(parents=True)
        (d / "inner" / "f.txt").write_text("x")
        assert ops.delete_directory(str(d))
        assert not d.exists()

    def test_missing_directory_counts_as_deleted(self, tmp_path, ops):
        assert ops.delete_directory(str(tmp_path / "missing"))
        assert ops.errors == []


@pytest.fixture
def linked_dir(tmp_path):
    """A link inside a destination pointing at a directory outside it."""
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "keep.txt").write_text("keep")
    os.chmod(outside, 0o755)
    link = tmp_path / "dst" / "link"
    link.parent.mkdir()
    try:
        os.symlink(outside, link, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not available")
    return link, outside


class TestDirectoryLinks:
    def test_link_removed_target_untouched(self, ops, linked_dir):
        link, outside = linked_dir
        assert ops.delete_directory(str(link))
        assert not os.path.lexists(link)
        assert (outside / "keep.txt").read_text() == "keep"
        assert stat.S_IMODE(os.stat(outside).st_mode) == 0o755

    def test_rmtree_hook_does_not_follow_links(self, linked_dir):
        link, outside = linked_dir
        with pytest.raises(OSError):
            _rmtree_onerror(os.path.islink, str(link), OSError("Cannot call rmtree on a symbolic link"))
        assert stat.S_IMODE(os.stat(outside).st_mode) == 0o755
        assert os.path.lexists(link)


class TestCreate:
    def test_create_nested(self, tmp_path, ops):
        d = tmp_path / "a" / "b"
        assert ops.create_directory(str(d))
        assert d.is_dir()

    def test_existing_is_fine(self, tmp_path, ops):
        assert ops.create_directory(str(tmp_path))

    def test_failure_recorded(self, ops, blocked):
        assert not ops.create_directory(blocked)
        assert ops.errors[0].operation == "create directory"


class TestSpeculative:
    def test_nothing_touched(self, tmp_path):
        ops = FileOperations(speculative=True)
        src = tmp_path / "a.txt"
        src.write_text("x")
        d = tmp_path / "d"
        d.mkdir()

        assert ops.copy_file(str(src), str(tmp_path / "copy.txt"))
        assert ops.delete_file(str(src))
        assert ops.create_directory(str(tmp_path / "new"))
        assert ops.delete_directory(str(d))

        assert src.exists()
        assert d.exists()
        assert not (tmp_path / "copy.txt").exists()
        assert not (tmp_path / "new").exists()
        assert ops.errors == []

    def test_logs_intent(self, caplog):
        caplog.set_level(logging.INFO)
        FileOperations(speculative=True).copy_file("a", "b")
        assert "Would copy a to b" in caplog.text
