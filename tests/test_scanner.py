"""Tests for the directory scanner."""

import os

import pytest

from contentsync.core.errors import ScanError
from contentsync.core.folder.scanner import TreeScanner


@pytest.fixture
def tree(make_tree):
    return make_tree("root", {
        "a.txt": "a",
        "B.TXT": "b",
        "image.png": "png",
        "sub/c.txt": "c",
        "sub/inner/d.md": "d",
        "empty/": None,
    })


class TestRecursive:
    def test_files_and_folders(self, tree, cache):
        listing = TreeScanner(cache).scan(tree)
        assert listing.files == {"a.txt", "B.TXT", "image.png", "sub/c.txt", "sub/inner/d.md"}
        assert listing.folders == {"sub", "sub/inner", "empty"}

    def test_pattern_filters_files_not_folders(self, tree, cache):
        listing = TreeScanner(cache).scan(tree, "*.txt")
        assert listing.files == {"a.txt", "B.TXT", "sub/c.txt"}
        assert listing.folders == {"sub", "sub/inner", "empty"}

    def test_pattern_case_sensitive(self, tree, cache):
        listing = TreeScanner(cache, case_sensitive=True).scan(tree, "*.txt")
        assert listing.files == {"a.txt", "sub/c.txt"}

    def test_trailing_separator(self, tree, cache):
        plain = TreeScanner(cache).scan(tree)
        trailing = TreeScanner().scan(str(tree) + os.sep)
        assert plain == trailing

    def test_empty_root(self, make_tree, cache):
        listing = TreeScanner(cache).scan(make_tree("nothing"))
        assert listing.is_empty


class TestNonRecursive:
    def test_top_level_files_only(self, tree, cache):
        listing = TreeScanner(cache).scan(tree, recursive=False)
        assert listing.files == {"a.txt", "B.TXT", "image.png"}
        assert listing.folders == frozenset()

    def test_pattern(self, tree, cache):
        listing = TreeScanner(cache).scan(tree, "*.png", recursive=False)
        assert listing.files == {"image.png"}

    def test_not_cached(self, tree, cache):
        TreeScanner(cache).scan(tree, recursive=False)
        assert len(cache) == 0


class TestCaching:
    def test_second_scan_served_from_cache(self, tree, cache):
        scanner = TreeScanner(cache)
        first = scanner.scan(tree)
        (tree / "later.txt").write_text("later")
        assert scanner.scan(tree) == first
        assert (str(tree), "*") in cache

    def test_pattern_is_part_of_key(self, tree, cache):
        scanner = TreeScanner(cache)
        scanner.scan(tree, "*.txt")
        assert scanner.scan(tree, "*.md").files == {"sub/inner/d.md"}

    def test_case_sensitivity_is_part_of_key(self, tree, cache):
        TreeScanner(cache).scan(tree, "*.txt")
        listing = TreeScanner(cache, case_sensitive=True).scan(tree, "*.txt")
        assert listing.files == {"a.txt", "sub/c.txt"}
        assert (str(tree), "*.txt", True) in cache

    def test_cleared_cache_rescans(self, tree, cache):
        scanner = TreeScanner(cache)
        scanner.scan(tree)
        (tree / "later.txt").write_text("later")
        cache.clear()
        assert "later.txt" in scanner.scan(tree).files


class TestErrors:
    def test_missing_root(self, tmp_path, cache):
        missing = tmp_path / "missing"
        with pytest.raises(ScanError) as exc:
            TreeScanner(cache).scan(missing)
        assert exc.value.root == str(missing)
        assert len(cache) == 0

    def test_missing_root_non_recursive(self, tmp_path):
        with pytest.raises(ScanError):
            TreeScanner().scan(tmp_path / "missing", recursive=False)

    def test_root_is_a_file(self, tmp_path):
        f = tmp_path / "file.txt"
        f.write_text("x")
        with pytest.raises(ScanError):
            TreeScanner().scan(f)


def test_matches():
    scanner = TreeScanner()
    assert scanner.matches("anything", "*")
    assert scanner.matches("anything", "")
    assert scanner.matches("Report.DOCX", "report.*")
    assert not TreeScanner(case_sensitive=True).matches("Report.DOCX", "report.*")
    assert scanner.matches("a1.log", "a?.log")
