"""
Directory scanner for folder synchronization.

Produces the relative file and folder paths under a root:
- Recursive walks, answered from the listing cache when possible
- Top-level-only enumeration, always live
- Glob filtering on file names
- All-or-nothing error handling (no partial listings)
"""

from __future__ import annotations

import fnmatch
import logging
import os
from typing import Optional

from contentsync.core.errors import ScanError
from contentsync.core.models import TreeListing
from contentsync.core.paths import relative_to_root, trim_separator
from contentsync.services.listing_cache import ListingCache, MemoryListingCache


MATCH_ALL = '*'


class TreeScanner:
    """
    Scans a directory tree into a TreeListing.

    Recursive scans go through the injected ListingCache: a cached
    listing for the same root, pattern and case sensitivity is returned
    as-is, and a fresh walk is stored back into the cache.
    """

    def __init__(
        self,
        cache: Optional[ListingCache] = None,
        case_sensitive: bool = False
    ):
        self.cache = cache if cache is not None else MemoryListingCache()
        self.case_sensitive = case_sensitive

    def matches(self, name: str, pattern: str) -> bool:
        """Check a file name against a glob pattern."""
        if pattern in ('', MATCH_ALL):
            return True
        if self.case_sensitive:
            return fnmatch.fnmatchcase(name, pattern)
        return fnmatch.fnmatchcase(name.casefold(), pattern.casefold())

    def scan(
        self,
        root: str | os.PathLike,
        pattern: str = MATCH_ALL,
        recursive: bool = True
    ) -> TreeListing:
        """
        Scan a directory.

        Args:
            root: Existing directory to scan
            pattern: Glob matched against file names
            recursive: Walk the whole subtree instead of direct children

        Returns:
            TreeListing with paths relative to root

        Raises:
            ScanError: if the root or any directory below it cannot be read
        """
        root = trim_separator(os.fspath(root))

        if not recursive:
            return self._scan_top_level(root, pattern)

        cached = self.cache.try_read(root, pattern, self.case_sensitive)
        if cached is not None:
            return cached

        listing = self._walk(root, pattern)
        self.cache.write(root, pattern, listing, self.case_sensitive)
        return listing

    def _prefix_length(self, root: str) -> int:
        # Roots like "/" already end with a separator
        return len(root) if root.endswith(('/', '\\')) else len(root) + 1

    def _scan_top_level(self, root: str, pattern: str) -> TreeListing:
        prefix_length = self._prefix_length(root)
        files: list[str] = []

        try:
            with os.scandir(root) as entries:
                for entry in entries:
                    if not entry.is_file():
                        continue
                    if not self.matches(entry.name, pattern):
                        continue
                    files.append(relative_to_root(entry.path, prefix_length))
        except OSError as e:
            logging.error(f"TreeScanner - Failed to enumerate {root}: {e}")
            raise ScanError(root, str(e)) from e

        return TreeListing.create(files)

    def _walk(self, root: str, pattern: str) -> TreeListing:
        prefix_length = self._prefix_length(root)
        files: list[str] = []
        folders: list[str] = []

        def on_walk_error(error: OSError) -> None:
            raise error

        try:
            if not os.path.isdir(root):
                raise NotADirectoryError(f"Not a directory: {root}")

            for dirpath, dirnames, filenames in os.walk(root, topdown=True, onerror=on_walk_error):
                for dirname in dirnames:
                    folders.append(relative_to_root(os.path.join(dirpath, dirname), prefix_length))

                for filename in filenames:
                    if not self.matches(filename, pattern):
                        continue
                    files.append(relative_to_root(os.path.join(dirpath, filename), prefix_length))
        except OSError as e:
            logging.error(f"TreeScanner - Failed to scan {root}: {e}")
            raise ScanError(root, str(e)) from e

        logging.debug(f"TreeScanner - Found {len(files)} files and {len(folders)} folders in {root}")
        return TreeListing.create(files, folders)
