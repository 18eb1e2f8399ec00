"""
Qt workers that run diffs and syncs on a background thread.

Used by `contentsync --progress`; usable from any Qt application.
"""

from contentsync.workers.base_worker import (
    BaseWorker,
    WorkerSignals,
    WorkerState,
    start_in_thread,
)
from contentsync.workers.sync_worker import (
    DiffWorker,
    SyncWorker,
)

__all__ = [
    'BaseWorker',
    'WorkerSignals',
    'WorkerState',
    'start_in_thread',
    'DiffWorker',
    'SyncWorker',
]
