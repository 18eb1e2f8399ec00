"""
ContentSync: one-way directory synchronization.
"""

from contentsync.core.errors import CompareError, ContentSyncError, FileOpError, ScanError
from contentsync.core.files import ContentComparator, are_contents_identical
from contentsync.core.folder import (
    DiffOptions,
    FolderDiffer,
    FolderSync,
    SyncOptions,
    TreeScanner,
    sync_file,
)
from contentsync.core.models import FolderDiffResult, SyncProgress, SyncReport, TreeListing
from contentsync.services.listing_cache import (
    JsonListingCache,
    ListingCache,
    MemoryListingCache,
)

__version__ = "1.0.0"

__all__ = [
    'CompareError',
    'ContentComparator',
    'ContentSyncError',
    'DiffOptions',
    'FileOpError',
    'FolderDiffResult',
    'FolderDiffer',
    'FolderSync',
    'JsonListingCache',
    'ListingCache',
    'MemoryListingCache',
    'ScanError',
    'SyncOptions',
    'SyncProgress',
    'SyncReport',
    'TreeListing',
    'TreeScanner',
    'are_contents_identical',
    'sync_file',
]
