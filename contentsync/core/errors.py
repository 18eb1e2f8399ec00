"""
Error types raised and reported by the sync engine.

Only ScanError aborts a run. CompareError and FileOpError are collected
per item and reported at the end.
"""

from __future__ import annotations


class ContentSyncError(Exception):
    """Base class for sync engine errors."""
    pass


class ScanError(ContentSyncError):
    """Enumeration of a root directory failed."""

    def __init__(self, root: str, message: str):
        super().__init__(f"Unable to scan {root}: {message}")
        self.root = root
        self.message = message


class CompareError(ContentSyncError):
    """A single file pair could not be compared."""

    def __init__(self, relative_path: str, message: str):
        super().__init__(f"Unable to compare {relative_path}: {message}")
        self.relative_path = relative_path
        self.message = message


class FileOpError(ContentSyncError):
    """A single copy/delete/create operation failed."""

    def __init__(self, operation: str, path: str, message: str):
        super().__init__(f"Unable to {operation} {path}: {message}")
        self.operation = operation
        self.path = path
        self.message = message
