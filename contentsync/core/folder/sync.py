"""
Folder synchronization engine.

Provides one-way synchronization from a source to a destination with:
- Independently switchable operations (copy, update, delete, folders)
- Preview (what-if) mode
- Per-item failure accounting
- Cooperative cancellation
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional

from contentsync.core.file_ops import FileOperations
from contentsync.core.files import CancellationToken, ContentComparator
from contentsync.core.folder.differ import DiffOptions, FolderDiffer
from contentsync.core.folder.scanner import MATCH_ALL
from contentsync.core.models import FolderDiffResult, SyncCounters, SyncProgress, SyncReport
from contentsync.core.paths import SEPARATOR, comparison_key, join_relative, trim_separator
from contentsync.core.timing import Timings, measure_time
from contentsync.services.listing_cache import ListingCache, MemoryListingCache


@dataclass
class SyncOptions:
    """Options for synchronization."""
    # What to sync
    copy_left_only_files: bool = False
    update_changed_files: bool = False
    delete_changed_files: bool = False
    delete_identical_files: bool = False
    delete_right_only_files: bool = False
    create_empty_folders: bool = False
    delete_right_only_folders: bool = False

    # Safety
    dry_run: bool = False

    # Scanning and comparison
    pattern: str = MATCH_ALL
    recursive: bool = True
    respect_date: bool = True
    case_sensitive: bool = False
    max_workers: Optional[int] = None

    @property
    def compare_contents(self) -> bool:
        """Contents only matter to operations that act on files present on both sides."""
        return (
            self.update_changed_files
            or self.delete_changed_files
            or self.delete_identical_files
        )

    @classmethod
    def mirror(cls, **overrides) -> 'SyncOptions':
        """Make the destination match the source, including deletions."""
        values = dict(
            copy_left_only_files=True,
            update_changed_files=True,
            delete_right_only_files=True,
            create_empty_folders=True,
            delete_right_only_folders=True,
        )
        values.update(overrides)
        return cls(**values)

    def diff_options(self) -> DiffOptions:
        return DiffOptions(
            pattern=self.pattern,
            recursive=self.recursive,
            compare_contents=self.compare_contents,
            respect_date=self.respect_date,
            case_sensitive=self.case_sensitive,
            max_workers=self.max_workers,
        )


def pluralize(word: str, count: int) -> str:
    return word if count == 1 else word + 's'


class FolderSync:
    """
    Synchronizes a destination folder with a source folder.

    Usage:
        sync = FolderSync(SyncOptions.mirror(), cache=JsonListingCache())
        report = sync.sync(source, destination)
    """

    def __init__(
        self,
        options: Optional[SyncOptions] = None,
        cache: Optional[ListingCache] = None,
        comparator: Optional[ContentComparator] = None,
        timings: Optional[Timings] = None
    ):
        self.options = options or SyncOptions()
        self.cache = cache if cache is not None else MemoryListingCache()
        self.comparator = comparator or ContentComparator()
        self.timings = timings

    def sync(
        self,
        source: str | os.PathLike,
        destination: str | os.PathLike,
        cancel: Optional[CancellationToken] = None,
        progress_callback: Optional[Callable[[SyncProgress], None]] = None
    ) -> SyncReport:
        """
        Diff source against destination and apply the enabled operations.

        Args:
            source: Existing source directory
            destination: Destination directory; created if missing
            cancel: Cancellation token checked before every item
            progress_callback: Called with progress before every item

        Returns:
            SyncReport with counters and summary

        Raises:
            FileNotFoundError: if source is not an existing directory
            ScanError: if either tree cannot be enumerated
        """
        start_time = time.time()
        options = self.options

        source = trim_separator(os.fspath(source))
        destination = trim_separator(os.fspath(destination))

        if not os.path.isdir(source):
            logging.error(f"FolderSync - Source directory not found: {source}")
            raise FileNotFoundError(f"Source directory not found: {source}")

        file_ops = FileOperations(speculative=options.dry_run)
        counters = SyncCounters()

        if not os.path.isdir(destination) and not file_ops.create_directory(destination):
            counters.folders_failed_to_create += 1

        if not options.dry_run:
            self.cache.mark_written(destination)

        differ = FolderDiffer(
            cache=self.cache,
            comparator=self.comparator,
            case_sensitive=options.case_sensitive,
            max_workers=options.max_workers,
            timings=self.timings,
        )
        diff = differ.diff(
            source,
            destination,
            pattern=options.pattern,
            recursive=options.recursive,
            compare_contents=options.compare_contents,
            respect_date=options.respect_date,
            cancel=cancel,
        )

        self._apply(diff, source, destination, file_ops, counters, cancel, progress_callback)

        report = SyncReport(
            source=source,
            destination=destination,
            diff=diff,
            counters=counters,
            dry_run=options.dry_run,
            cancelled=cancel is not None and cancel.is_set(),
            errors=list(file_ops.errors),
        )
        report.summary = self._summarize(diff, counters)
        for line in report.summary:
            if line.startswith('Failed'):
                logging.warning(line)
            else:
                logging.info(line)

        # Failed runs keep the cache
        if counters.failures == 0:
            self.cache.clear_written_entries()

        report.duration = time.time() - start_time
        return report

    def _phases(self, diff: FolderDiffResult) -> list[tuple[str, tuple[str, ...], str]]:
        """Enabled phases in order, as (label, paths, action name)."""
        options = self.options
        phases = []

        if options.copy_left_only_files:
            phases.append(("Copying new files", diff.left_only_files, 'copy_new'))

        if options.update_changed_files:
            phases.append(("Updating changed files", diff.changed_files, 'update_changed'))
        elif options.delete_changed_files:
            phases.append(("Deleting changed files", diff.changed_files, 'delete_changed'))

        if options.delete_identical_files:
            phases.append(("Deleting identical files", diff.identical_files, 'delete_identical'))

        if options.delete_right_only_files:
            phases.append(("Deleting extra files", diff.right_only_files, 'delete_right_only'))

        if options.create_empty_folders:
            phases.append(("Creating folders", diff.left_only_folders, 'create_folder'))

        if options.delete_right_only_folders:
            phases.append(("Deleting folders", diff.right_only_folders, 'delete_folder'))

        return phases

    def _apply(
        self,
        diff: FolderDiffResult,
        source: str,
        destination: str,
        file_ops: FileOperations,
        counters: SyncCounters,
        cancel: Optional[CancellationToken],
        progress_callback: Optional[Callable[[SyncProgress], None]] = None
    ) -> None:
        """Run the enabled phases in order."""
        options = self.options

        case_sensitive = options.case_sensitive
        # What-if runs track the folders earlier phases would have created
        # or removed, so counts match a real run
        implied_folders: set[str] = set()
        removed_folders: list[str] = []

        def imply_folder_and_parents(path: str) -> None:
            parts = path.split(SEPARATOR)
            for i in range(1, len(parts) + 1):
                implied_folders.add(comparison_key(SEPARATOR.join(parts[:i]), case_sensitive))

        def imply_parents(path: str) -> None:
            if SEPARATOR in path:
                imply_folder_and_parents(path.rsplit(SEPARATOR, 1)[0])

        def folder_exists(path: str) -> bool:
            on_disk = os.path.isdir(join_relative(destination, path))
            if not options.dry_run:
                return on_disk
            key = comparison_key(path, case_sensitive)
            if any(key == r or key.startswith(r + SEPARATOR) for r in removed_folders):
                return False
            return on_disk or key in implied_folders

        def cancelled() -> bool:
            return cancel is not None and cancel.is_set()

        def copy_new(path: str) -> None:
            if file_ops.copy_file(join_relative(source, path), join_relative(destination, path)):
                counters.files_copied += 1
                imply_parents(path)
            else:
                counters.files_failed_to_copy += 1
            counters.changes_made = True

        def update_changed(path: str) -> None:
            # Overwrite the destination's own spelling of the name
            target = join_relative(destination, diff.right_path(path))
            if file_ops.copy_file(join_relative(source, path), target):
                counters.files_updated += 1
            else:
                counters.files_failed_to_copy += 1
            counters.changes_made = True

        def delete_destination_file(path: str) -> bool:
            deleted = file_ops.delete_file(join_relative(destination, diff.right_path(path)))
            if deleted:
                counters.files_deleted += 1
            else:
                counters.files_failed_to_delete += 1
            counters.changes_made = True
            return deleted

        def delete_changed(path: str) -> None:
            if delete_destination_file(path):
                counters.changed_files_deleted += 1

        def delete_identical(path: str) -> None:
            if delete_destination_file(path):
                counters.identical_files_deleted += 1

        def delete_right_only(path: str) -> None:
            if delete_destination_file(path):
                counters.right_only_files_deleted += 1

        def create_folder(path: str) -> None:
            if folder_exists(path):
                return
            if file_ops.create_directory(join_relative(destination, path)):
                counters.folders_created += 1
                imply_folder_and_parents(path)
            else:
                counters.folders_failed_to_create += 1
            counters.changes_made = True

        def delete_folder(path: str) -> None:
            if not folder_exists(path):
                return
            if file_ops.delete_directory(join_relative(destination, path)):
                counters.folders_deleted += 1
                removed_folders.append(comparison_key(path, case_sensitive))
            else:
                counters.folders_failed_to_delete += 1
            counters.changes_made = True

        actions = {
            'copy_new': copy_new,
            'update_changed': update_changed,
            'delete_changed': delete_changed,
            'delete_identical': delete_identical,
            'delete_right_only': delete_right_only,
            'create_folder': create_folder,
            'delete_folder': delete_folder,
        }

        phases = self._phases(diff)
        total_items = sum(len(paths) for _, paths, _ in phases)
        items_completed = 0

        for label, paths, name in phases:
            action = actions[name]
            with measure_time(label, self.timings):
                for path in paths:
                    if cancelled():
                        logging.info(f"FolderSync - Cancelled during: {label}")
                        return

                    if progress_callback:
                        progress_callback(SyncProgress(
                            current_item=path,
                            items_completed=items_completed,
                            total_items=total_items,
                            current_action=label,
                        ))

                    action(path)
                    items_completed += 1

    def _summarize(self, diff: FolderDiffResult, counters: SyncCounters) -> list[str]:
        """Build the human-readable summary of a run from what was actually done."""
        options = self.options
        what_if = options.dry_run
        lines: list[str] = []

        def add(done: str, would: str) -> None:
            lines.append(would if what_if else done)

        if counters.files_copied > 0:
            count = counters.files_copied
            files = pluralize("file", count)
            add(f"{count} new {files} copied", f"Would have copied {count} new {files}")

        if counters.folders_created > 0:
            count = counters.folders_created
            folders = pluralize("folder", count)
            add(f"{count} {folders} created", f"Would have created {count} {folders}")

        if counters.files_updated > 0:
            count = counters.files_updated
            files = pluralize("file", count)
            add(f"{count} changed {files} updated", f"Would have updated {count} changed {files}")
        elif counters.changed_files_deleted > 0:
            count = counters.changed_files_deleted
            files = pluralize("file", count)
            add(f"{count} changed {files} deleted", f"Would have deleted {count} changed {files}")

        if counters.right_only_files_deleted > 0:
            count = counters.right_only_files_deleted
            files = pluralize("file", count)
            add(f"{count} right-only {files} deleted", f"Would have deleted {count} right-only {files}")

        if counters.folders_deleted > 0:
            count = counters.folders_deleted
            folders = pluralize("folder", count)
            add(f"{count} right-only {folders} deleted", f"Would have deleted {count} right-only {folders}")

        if options.delete_identical_files:
            if counters.identical_files_deleted > 0:
                count = counters.identical_files_deleted
                files = pluralize("file", count)
                add(f"{count} identical {files} deleted from destination",
                    f"Would have deleted {count} identical {files} from destination")
        elif diff.identical_files:
            count = len(diff.identical_files)
            lines.append(f"{count} identical {pluralize('file', count)}")

        if counters.files_failed_to_copy > 0:
            count = counters.files_failed_to_copy
            lines.append(f"Failed to copy {count} {pluralize('file', count)}")

        if counters.files_failed_to_delete > 0:
            count = counters.files_failed_to_delete
            lines.append(f"Failed to delete {count} {pluralize('file', count)}.")

        if counters.folders_failed_to_create > 0:
            count = counters.folders_failed_to_create
            lines.append(f"Failed to create {count} {pluralize('folder', count)}.")

        if counters.folders_failed_to_delete > 0:
            count = counters.folders_failed_to_delete
            lines.append(f"Failed to delete {count} {pluralize('folder', count)}.")

        if not counters.changes_made:
            add("Made no changes.", "Would have made no changes.")

        return lines


def sync_file(
    source: str | os.PathLike,
    destination: str | os.PathLike,
    options: Optional[SyncOptions] = None,
    cancel: Optional[CancellationToken] = None,
    comparator: Optional[ContentComparator] = None
) -> bool:
    """
    Synchronize a single file.

    If the destination exists with identical contents nothing is done;
    otherwise the source is copied over it.

    Returns:
        True if the destination is (or would be, in dry-run) up to date
    """
    options = options or SyncOptions()
    comparator = comparator or ContentComparator()
    source = os.fspath(source)
    destination = os.fspath(destination)

    if os.path.isfile(destination) and comparator.are_identical(source, destination, cancel):
        logging.info("File contents are identical.")
        return True

    return FileOperations(speculative=options.dry_run).copy_file(source, destination)
