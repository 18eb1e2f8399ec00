"""
Workers for folder diff and synchronization.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from contentsync.core.folder.differ import FolderDiffer
from contentsync.core.folder.sync import FolderSync, SyncOptions
from contentsync.core.models import FolderDiffResult, SyncReport
from contentsync.core.timing import Timings
from contentsync.services.listing_cache import ListingCache
from contentsync.workers.base_worker import BaseWorker


class DiffWorker(BaseWorker):
    """Diffs two folders without changing anything."""

    def __init__(
        self,
        left_path: str | Path,
        right_path: str | Path,
        options: Optional[SyncOptions] = None,
        cache: Optional[ListingCache] = None,
        cancel_event: Optional[threading.Event] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(cancel_event, parent)
        self.left_path = Path(left_path)
        self.right_path = Path(right_path)
        self.options = options or SyncOptions()
        self.cache = cache

    def do_work(self) -> FolderDiffResult:
        self.report_status(f"Comparing {self.left_path} with {self.right_path}...")

        diff_options = self.options.diff_options()
        differ = FolderDiffer.from_options(diff_options, cache=self.cache)

        return differ.diff(
            self.left_path,
            self.right_path,
            pattern=diff_options.pattern,
            recursive=diff_options.recursive,
            compare_contents=diff_options.compare_contents,
            respect_date=diff_options.respect_date,
            cancel=self.cancel_event,
        )


class SyncWorker(BaseWorker):
    """
    Runs FolderSync.sync.

    Per-item failures do not fail the worker: each one is emitted
    through `sync_error` and the report is the result. Progress is
    forwarded before every item.
    """

    # (destination path, message) for each item that failed
    sync_error = pyqtSignal(str, str)

    def __init__(
        self,
        source: str | Path,
        destination: str | Path,
        options: Optional[SyncOptions] = None,
        cache: Optional[ListingCache] = None,
        timings: Optional[Timings] = None,
        cancel_event: Optional[threading.Event] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(cancel_event, parent)
        self.source = Path(source)
        self.destination = Path(destination)
        self.options = options or SyncOptions()
        self.cache = cache
        self.timings = timings

    def do_work(self) -> SyncReport:
        self.report_status("Starting synchronization...")

        sync = FolderSync(self.options, cache=self.cache, timings=self.timings)
        report = sync.sync(
            self.source,
            self.destination,
            self.cancel_event,
            progress_callback=self.report_progress,
        )

        for error in report.errors:
            self.sync_error.emit(error.path, error.message)

        for line in report.summary:
            self.report_status(line)

        return report
