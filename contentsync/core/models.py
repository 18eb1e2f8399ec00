"""
Core data models for the sync engine.

This module defines the data structures passed between components:
- Tree listings produced by the scanner
- Categorized diff results
- Sync counters and the final report

All models are UI-agnostic and carry plain relative path strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from functools import cached_property
from typing import Iterable, Optional

from contentsync.core.errors import CompareError, FileOpError


# =============================================================================
# Enumerations
# =============================================================================

class DiffCategory(Enum):
    """Category of a relative path in a folder diff."""
    LEFT_ONLY = auto()   # Exists only in the source
    IDENTICAL = auto()   # Exists on both sides and counts as the same
    CHANGED = auto()     # Exists on both sides and needs attention
    RIGHT_ONLY = auto()  # Exists only in the destination


# =============================================================================
# Scan Models
# =============================================================================

@dataclass(frozen=True)
class TreeListing:
    """
    Files and folders found under one root at one point in time.

    Paths are relative to the root. In non-recursive mode `folders`
    is always empty.
    """
    files: frozenset[str] = frozenset()
    folders: frozenset[str] = frozenset()

    @classmethod
    def create(cls, files: Iterable[str] = (), folders: Iterable[str] = ()) -> 'TreeListing':
        return cls(frozenset(files), frozenset(folders))

    @property
    def is_empty(self) -> bool:
        return not self.files and not self.folders

    def to_dict(self) -> dict:
        return {'files': sorted(self.files), 'folders': sorted(self.folders)}

    @classmethod
    def from_dict(cls, data: dict) -> 'TreeListing':
        return cls.create(data.get('files', []), data.get('folders', []))


EMPTY_LISTING = TreeListing()


# =============================================================================
# Diff Models
# =============================================================================

@dataclass(frozen=True)
class FolderDiffResult:
    """
    Result of diffing a source tree against a destination tree.

    Every sequence is deduplicated and sorted. A file path is in at most
    one file category; folders present on both sides are in neither
    folder category.
    """
    left_only_files: tuple[str, ...] = ()
    identical_files: tuple[str, ...] = ()
    changed_files: tuple[str, ...] = ()
    right_only_files: tuple[str, ...] = ()
    left_only_folders: tuple[str, ...] = ()
    right_only_folders: tuple[str, ...] = ()
    compare_errors: tuple[CompareError, ...] = ()
    # (source spelling, destination spelling) where the two differ in case
    right_spellings: tuple[tuple[str, str], ...] = ()

    @property
    def are_fully_identical(self) -> bool:
        return (
            not self.left_only_files
            and not self.changed_files
            and not self.right_only_files
            and not self.left_only_folders
            and not self.right_only_folders
        )

    def files_in(self, category: DiffCategory) -> tuple[str, ...]:
        """Get the file paths for a category."""
        return {
            DiffCategory.LEFT_ONLY: self.left_only_files,
            DiffCategory.IDENTICAL: self.identical_files,
            DiffCategory.CHANGED: self.changed_files,
            DiffCategory.RIGHT_ONLY: self.right_only_files,
        }[category]

    @cached_property
    def _right_spelling_map(self) -> dict[str, str]:
        return dict(self.right_spellings)

    def right_path(self, path: str) -> str:
        """Get the destination spelling of a file present on both sides."""
        return self._right_spelling_map.get(path, path)


# =============================================================================
# Sync Models
# =============================================================================

@dataclass
class SyncProgress:
    """Progress of a sync run, reported before each item."""
    current_item: str
    items_completed: int
    total_items: int
    current_action: str = ""

    @property
    def percent_items(self) -> float:
        if self.total_items == 0:
            return 0.0
        return (self.items_completed / self.total_items) * 100


@dataclass
class SyncCounters:
    """Tallies for a single sync run."""
    files_copied: int = 0
    files_updated: int = 0
    files_deleted: int = 0
    folders_created: int = 0
    folders_deleted: int = 0

    # files_deleted broken down by phase
    changed_files_deleted: int = 0
    identical_files_deleted: int = 0
    right_only_files_deleted: int = 0

    files_failed_to_copy: int = 0
    files_failed_to_delete: int = 0
    folders_failed_to_create: int = 0
    folders_failed_to_delete: int = 0

    changes_made: bool = False

    @property
    def failures(self) -> int:
        return (
            self.files_failed_to_copy
            + self.files_failed_to_delete
            + self.folders_failed_to_create
            + self.folders_failed_to_delete
        )


@dataclass
class SyncReport:
    """Result of a synchronization run."""
    source: str
    destination: str
    diff: FolderDiffResult
    counters: SyncCounters
    dry_run: bool = False
    cancelled: bool = False
    summary: list[str] = field(default_factory=list)
    errors: list[FileOpError] = field(default_factory=list)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.counters.failures == 0

    @property
    def changes_made(self) -> bool:
        return self.counters.changes_made

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def error_for(self, path: str) -> Optional[FileOpError]:
        for error in self.errors:
            if error.path == path:
                return error
        return None
