"""Tests for byte-exact content comparison."""

import threading

import pytest

from contentsync.core.files import ContentComparator, are_contents_identical


@pytest.fixture
def comparator():
    return ContentComparator()


class TestAreIdentical:
    def test_identical(self, tmp_path, comparator):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.write_bytes(b"x" * 10000)
        b.write_bytes(b"x" * 10000)
        assert comparator.are_identical(a, b)
        assert comparator.bytes_read == 20000

    def test_self_identity(self, tmp_path, comparator):
        a = tmp_path / "a"
        a.write_bytes(b"hello")
        assert comparator.are_identical(a, a)

    def test_empty_files(self, tmp_path, comparator):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.write_bytes(b"")
        b.write_bytes(b"")
        assert comparator.are_identical(a, b)

    def test_size_mismatch_reads_nothing(self, tmp_path, comparator):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.write_bytes(b"abc")
        b.write_bytes(b"abcd")
        assert not comparator.are_identical(a, b)
        assert comparator.bytes_read == 0

    def test_same_size_different_bytes(self, tmp_path, comparator):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.write_bytes(b"abcd")
        b.write_bytes(b"abce")
        assert not comparator.are_identical(a, b)

    def test_difference_in_last_chunk(self, tmp_path):
        comparator = ContentComparator(chunk_size=4)
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.write_bytes(b"0123456789")
        b.write_bytes(b"012345678X")
        assert not comparator.are_identical(a, b)
        assert comparator.bytes_read == 20

    def test_missing_file_raises(self, tmp_path, comparator):
        a = tmp_path / "a"
        a.write_bytes(b"x")
        with pytest.raises(OSError):
            comparator.are_identical(a, tmp_path / "missing")

    def test_cancelled_reports_identical(self, tmp_path, comparator):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.write_bytes(b"aaaa")
        b.write_bytes(b"bbbb")
        cancel = threading.Event()
        cancel.set()
        assert comparator.are_identical(a, b, cancel)
        assert comparator.bytes_read == 0

    def test_reset_counters(self, tmp_path, comparator):
        a = tmp_path / "a"
        a.write_bytes(b"abc")
        comparator.are_identical(a, a)
        comparator.reset_counters()
        assert comparator.bytes_read == 0


def test_module_level_helper(tmp_path):
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_text("same")
    b.write_text("same")
    assert are_contents_identical(str(a), str(b))
    b.write_text("diff")
    assert not are_contents_identical(str(a), str(b))
