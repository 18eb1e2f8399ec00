"""Shared fixtures for contentsync tests."""

import os
from pathlib import Path

import pytest

from contentsync.services.listing_cache import MemoryListingCache


def write_tree(root: Path, entries: dict) -> Path:
    """Create files and folders under root.

    Keys ending in '/' are folders; other keys are files whose value is
    str or bytes content.
    """
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in entries.items():
        path = root / rel
        if rel.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
    return root


def read_tree(root: Path) -> dict:
    """Return {relative path: bytes} for every file, plus folders as 'x/'."""
    result = {}
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root).replace(os.sep, "/")
        prefix = "" if rel_dir == "." else rel_dir + "/"
        for d in dirnames:
            result[prefix + d + "/"] = None
        for f in filenames:
            result[prefix + f] = Path(dirpath, f).read_bytes()
    return result


@pytest.fixture
def make_tree(tmp_path):
    """Factory: make_tree("src", {"a.txt": "x", "empty/": None}) -> Path."""
    def _make(name, entries=None):
        return write_tree(tmp_path / name, entries or {})
    return _make


@pytest.fixture
def tree_contents():
    return read_tree


@pytest.fixture
def set_mtime():
    """Factory: set_mtime(path, seconds) sets both atime and mtime."""
    def _set(path, seconds):
        os.utime(path, (seconds, seconds))
    return _set


@pytest.fixture
def cache():
    return MemoryListingCache()


# ---------------------------------------------------------------------------
# Common trees
# ---------------------------------------------------------------------------

@pytest.fixture
def mirror_pair(make_tree):
    """Source and destination that differ in every category.

    Source:      same.txt, new.txt, sub/deep.txt, empty/
    Destination: same.txt, extra.txt, old/stale.txt, old/
    """
    src = make_tree("src", {
        "same.txt": "same",
        "new.txt": "new",
        "sub/deep.txt": "deep",
        "empty/": None,
    })
    dst = make_tree("dst", {
        "same.txt": "same",
        "extra.txt": "extra",
        "old/stale.txt": "stale",
    })
    os.utime(src / "same.txt", (1000, 1000))
    os.utime(dst / "same.txt", (1000, 1000))
    return src, dst
