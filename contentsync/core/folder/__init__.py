"""
Folder synchronization module.

Provides functionality for:
- Recursive and top-level directory scanning
- Folder-to-folder diffing
- One-way synchronization
"""

from contentsync.core.folder.scanner import (
    TreeScanner,
    MATCH_ALL,
)
from contentsync.core.folder.differ import (
    FolderDiffer,
    DiffOptions,
)
from contentsync.core.folder.sync import (
    FolderSync,
    SyncOptions,
    sync_file,
)

__all__ = [
    # Scanner
    'TreeScanner',
    'MATCH_ALL',
    # Differ
    'FolderDiffer',
    'DiffOptions',
    # Sync
    'FolderSync',
    'SyncOptions',
    'sync_file',
]
