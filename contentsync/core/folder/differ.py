"""
Folder diff engine.

Classifies every relative path of two scanned trees as:
- Left-only / right-only files
- Identical or changed files (present on both sides)
- Left-only / right-only folders

File pairs are compared concurrently on a bounded thread pool.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Optional

from contentsync.core.errors import CompareError
from contentsync.core.files import CancellationToken, ContentComparator
from contentsync.core.folder.scanner import MATCH_ALL, TreeScanner
from contentsync.core.models import (
    EMPTY_LISTING,
    DiffCategory,
    FolderDiffResult,
)
from contentsync.core.paths import PathSet, dedupe_sorted, join_relative, trim_separator
from contentsync.core.timing import Timings, measure_time
from contentsync.services.listing_cache import ListingCache


_FAILED = object()


def default_worker_count() -> int:
    """Twice the available parallelism."""
    return 2 * (os.cpu_count() or 1)


@dataclass
class DiffOptions:
    """Options for folder diffing."""
    pattern: str = MATCH_ALL
    recursive: bool = True
    compare_contents: bool = True
    respect_date: bool = True
    case_sensitive: bool = False
    max_workers: Optional[int] = None


def is_same_file(
    compare_contents: bool,
    contents_identical,
    respect_date: bool,
    left_mtime: int,
    right_mtime: int
) -> bool:
    """
    Decide whether a file present on both sides counts as the same.

    `contents_identical` is a zero-argument callable, invoked only when
    `compare_contents` is set. Once any of the three conditions holds,
    only the timestamps decide. Note that differing contents with
    `respect_date` off yield True.
    """
    if not compare_contents or contents_identical() or respect_date:
        return left_mtime <= right_mtime
    return True


class FolderDiffer:
    """
    Diffs a source tree against a destination tree.

    Scanning goes through a TreeScanner (and so through the listing
    cache); content checks go through a ContentComparator.
    """

    def __init__(
        self,
        cache: Optional[ListingCache] = None,
        comparator: Optional[ContentComparator] = None,
        case_sensitive: bool = False,
        max_workers: Optional[int] = None,
        timings: Optional[Timings] = None
    ):
        self.scanner = TreeScanner(cache, case_sensitive=case_sensitive)
        self.comparator = comparator or ContentComparator()
        self.case_sensitive = case_sensitive
        self.max_workers = max_workers or default_worker_count()
        self.timings = timings

    @property
    def cache(self) -> ListingCache:
        return self.scanner.cache

    @classmethod
    def from_options(
        cls,
        options: DiffOptions,
        cache: Optional[ListingCache] = None,
        comparator: Optional[ContentComparator] = None
    ) -> 'FolderDiffer':
        return cls(
            cache=cache,
            comparator=comparator,
            case_sensitive=options.case_sensitive,
            max_workers=options.max_workers,
        )

    def diff(
        self,
        left_root: str | os.PathLike,
        right_root: str | os.PathLike,
        pattern: str = MATCH_ALL,
        recursive: bool = True,
        compare_contents: bool = True,
        respect_date: bool = True,
        cancel: Optional[CancellationToken] = None
    ) -> FolderDiffResult:
        """
        Diff two directories.

        Args:
            left_root: Existing source directory
            right_root: Destination directory; may not exist yet
            pattern: Glob matched against file names
            recursive: Include subdirectories
            compare_contents: Read files present on both sides
            respect_date: Let modification times decide same vs changed
            cancel: Cancellation token polled between comparisons

        Returns:
            FolderDiffResult with six sorted categories

        Raises:
            ScanError: if either tree cannot be enumerated
        """
        left_root = trim_separator(os.fspath(left_root))
        right_root = trim_separator(os.fspath(right_root))

        with measure_time("Scanning source directory", self.timings):
            left_listing = self.scanner.scan(left_root, pattern, recursive)

        right_listing = EMPTY_LISTING
        if os.path.isdir(right_root):
            with measure_time("Scanning destination directory", self.timings):
                right_listing = self.scanner.scan(right_root, pattern, recursive)

        case_sensitive = self.case_sensitive
        left_files = PathSet(sorted(left_listing.files), case_sensitive)
        right_files = PathSet(sorted(right_listing.files), case_sensitive)
        left_folders = PathSet(sorted(left_listing.folders), case_sensitive)
        right_folders = PathSet(sorted(right_listing.folders), case_sensitive)

        left_only_folders = left_folders.difference(right_folders)
        right_only_folders = right_folders.difference(left_folders)

        left_only: list[str] = []
        identical: list[str] = []
        changed: list[str] = []
        right_only = PathSet(right_files, case_sensitive)
        right_spellings: dict[str, str] = {}
        errors: list[CompareError] = []

        with measure_time("Comparing", self.timings):
            pairs: list[tuple[str, str]] = []
            for path in left_files:
                right_path = right_files.get(path)
                if right_path is None:
                    left_only.append(path)
                else:
                    pairs.append((path, right_path))
                    if right_path != path:
                        right_spellings[path] = right_path

            for path, category in self._compare_pairs(
                left_root, right_root, pairs,
                compare_contents, respect_date, cancel, errors
            ):
                # A failed pair keeps its right-only entry
                if category is _FAILED:
                    continue

                if category is DiffCategory.IDENTICAL:
                    identical.append(path)
                elif category is DiffCategory.CHANGED:
                    changed.append(path)
                right_only.discard(path)

        with measure_time("Sorting", self.timings):
            return FolderDiffResult(
                left_only_files=dedupe_sorted(left_only, case_sensitive),
                identical_files=dedupe_sorted(identical, case_sensitive),
                changed_files=dedupe_sorted(changed, case_sensitive),
                right_only_files=dedupe_sorted(right_only, case_sensitive),
                left_only_folders=dedupe_sorted(left_only_folders, case_sensitive),
                right_only_folders=dedupe_sorted(right_only_folders, case_sensitive),
                compare_errors=tuple(sorted(errors, key=lambda e: e.relative_path)),
                right_spellings=tuple(sorted(right_spellings.items())),
            )

    def _compare_pairs(
        self,
        left_root: str,
        right_root: str,
        pairs: list[tuple[str, str]],
        compare_contents: bool,
        respect_date: bool,
        cancel: Optional[CancellationToken],
        errors: list[CompareError]
    ):
        """
        Compare file pairs in parallel.

        Yields (left relative path, category). Category is _FAILED for a
        pair that raised (recorded in `errors`) and None for one skipped
        after cancellation.
        """
        if not pairs:
            return

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(pairs))) as executor:
            futures = {
                executor.submit(
                    self._compare_single_file,
                    join_relative(left_root, left_path),
                    join_relative(right_root, right_path),
                    compare_contents,
                    respect_date,
                    cancel
                ): left_path
                for left_path, right_path in pairs
            }

            for future in as_completed(futures):
                path = futures[future]
                try:
                    category = future.result()
                except Exception as e:
                    error = CompareError(path, str(e))
                    logging.error(f"FolderDiffer - {error}")
                    errors.append(error)
                    category = _FAILED
                yield path, category

    def _compare_single_file(
        self,
        left_path: str,
        right_path: str,
        compare_contents: bool,
        respect_date: bool,
        cancel: Optional[CancellationToken]
    ) -> Optional[DiffCategory]:
        """Classify a single pair. Returns None if cancelled before starting."""
        if cancel is not None and cancel.is_set():
            return None

        same = is_same_file(
            compare_contents,
            lambda: self.comparator.are_identical(left_path, right_path, cancel),
            respect_date,
            os.stat(left_path).st_mtime_ns,
            os.stat(right_path).st_mtime_ns,
        )
        return DiffCategory.IDENTICAL if same else DiffCategory.CHANGED
