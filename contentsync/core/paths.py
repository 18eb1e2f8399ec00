"""
Relative path handling shared by the scanner, differ and sync engine.

Relative paths are plain strings:
- rooted at a scan root (never containing the root prefix)
- using '/' as the separator, without a leading separator
- compared case-insensitively unless told otherwise
"""

from __future__ import annotations

import os
from typing import Iterable, Iterator, Optional


SEPARATOR = '/'


def trim_separator(path: str) -> str:
    """Strip trailing separators, keeping filesystem roots intact."""
    path = os.fspath(path)
    stripped = path.rstrip('/\\')
    if not stripped:
        return path[:1]
    # "C:" alone means the current directory on that drive
    if len(stripped) == 2 and stripped[1] == ':':
        return stripped + os.sep
    return stripped


def normalize_relative(path: str) -> str:
    """Convert a relative path to canonical form."""
    path = path.replace('\\', SEPARATOR)
    if os.sep != SEPARATOR:
        path = path.replace(os.sep, SEPARATOR)
    return path.strip(SEPARATOR)


def relative_to_root(full_path: str, prefix_length: int) -> str:
    """Strip a root prefix of known length from an absolute path."""
    return normalize_relative(full_path[prefix_length:])


def join_relative(root: str, relative_path: str) -> str:
    """Join a root and a canonical relative path into a native path."""
    if not relative_path:
        return root
    return os.path.join(root, *relative_path.split(SEPARATOR))


def comparison_key(path: str, case_sensitive: bool = False) -> str:
    """Key used to decide whether two relative paths are the same."""
    return path if case_sensitive else path.casefold()


class PathSet:
    """
    Set of relative paths with configurable case sensitivity.

    Remembers the first spelling added for each path, so a lookup with
    a differently-cased spelling can recover the path as it exists on disk.
    """

    def __init__(self, paths: Iterable[str] = (), case_sensitive: bool = False):
        self.case_sensitive = case_sensitive
        self._items: dict[str, str] = {}
        for path in paths:
            self.add(path)

    def _key(self, path: str) -> str:
        return comparison_key(path, self.case_sensitive)

    def add(self, path: str) -> bool:
        """Add a path. Returns False if an equivalent path was already present."""
        key = self._key(path)
        if key in self._items:
            return False
        self._items[key] = path
        return True

    def discard(self, path: str) -> None:
        self._items.pop(self._key(path), None)

    def get(self, path: str) -> Optional[str]:
        """Return the stored spelling of *path*, or None."""
        return self._items.get(self._key(path))

    def difference(self, other: 'PathSet') -> 'PathSet':
        return PathSet((p for p in self if p not in other), self.case_sensitive)

    def sorted(self) -> list[str]:
        return sorted(self._items.values())

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self._key(path) in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"PathSet({self.sorted()!r})"


def dedupe_sorted(paths: Iterable[str], case_sensitive: bool = False) -> tuple[str, ...]:
    """Deduplicate by comparison key and sort ascending."""
    return tuple(PathSet(paths, case_sensitive).sorted())
