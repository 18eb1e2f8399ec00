"""Tests for relative path handling."""

import os

from contentsync.core.paths import (
    PathSet,
    comparison_key,
    dedupe_sorted,
    join_relative,
    normalize_relative,
    relative_to_root,
    trim_separator,
)


class TestTrimSeparator:
    def test_strips_trailing(self):
        assert trim_separator("/a/b/") == "/a/b"
        assert trim_separator("a\\b\\\\") == "a\\b"

    def test_no_separator(self):
        assert trim_separator("/a/b") == "/a/b"

    def test_filesystem_root_kept(self):
        assert trim_separator("/") == "/"
        assert trim_separator("//") == "/"

    def test_drive_root_kept(self):
        assert trim_separator("C:\\") == "C:" + os.sep


class TestRelative:
    def test_normalize(self):
        assert normalize_relative("\\a\\b/") == "a/b"
        assert normalize_relative("a/b") == "a/b"

    def test_relative_to_root(self):
        root = os.path.join("base", "root")
        full = os.path.join(root, "x", "y.txt")
        assert relative_to_root(full, len(root) + 1) == "x/y.txt"

    def test_join(self):
        assert join_relative("base", "a/b.txt") == os.path.join("base", "a", "b.txt")

    def test_join_empty_is_root(self):
        assert join_relative("base", "") == "base"

    def test_comparison_key(self):
        assert comparison_key("ABC") == "abc"
        assert comparison_key("ABC", case_sensitive=True) == "ABC"


class TestPathSet:
    def test_case_insensitive_lookup_keeps_spelling(self):
        s = PathSet(["Dir/ReadMe.TXT"])
        assert "dir/readme.txt" in s
        assert s.get("DIR/README.txt") == "Dir/ReadMe.TXT"

    def test_add_duplicate(self):
        s = PathSet()
        assert s.add("a.txt")
        assert not s.add("A.TXT")
        assert len(s) == 1

    def test_case_sensitive(self):
        s = PathSet(["a.txt", "A.txt"], case_sensitive=True)
        assert len(s) == 2
        assert s.get("A.TXT") is None

    def test_discard(self):
        s = PathSet(["a", "b"])
        s.discard("A")
        s.discard("missing")
        assert s.sorted() == ["b"]

    def test_difference(self):
        left = PathSet(["a", "b", "c"])
        right = PathSet(["B", "d"])
        assert left.difference(right).sorted() == ["a", "c"]

    def test_iterate_while_discarding(self):
        s = PathSet(["a", "b", "c"])
        for p in s:
            s.discard(p)
        assert len(s) == 0

    def test_non_string_not_contained(self):
        assert 1 not in PathSet(["1"])


class TestDedupeSorted:
    def test_first_spelling_wins(self):
        assert dedupe_sorted(["b", "A", "a"]) == ("A", "b")

    def test_case_sensitive(self):
        assert dedupe_sorted(["b", "A", "a"], case_sensitive=True) == ("A", "a", "b")

    def test_ordinal_order(self):
        assert dedupe_sorted(["b/c", "a", "B"], case_sensitive=True) == ("B", "a", "b/c")
