"""
Byte-exact file content comparison.
"""

from __future__ import annotations

import os
import threading
from typing import Optional, Protocol


CHUNK_SIZE = 4096


class CancellationToken(Protocol):
    """Anything with an `is_set()` method, e.g. threading.Event."""

    def is_set(self) -> bool: ...


def _is_cancelled(cancel: Optional[CancellationToken]) -> bool:
    return cancel is not None and cancel.is_set()


def _open_for_scan(path: str):
    """Open a file for a single unbuffered sequential pass."""
    f = open(path, 'rb', buffering=0)
    if hasattr(os, 'posix_fadvise'):
        try:
            fd = f.fileno()
            os.posix_fadvise(fd, 0, 0, os.POSIX_FADV_SEQUENTIAL)
            os.posix_fadvise(fd, 0, 0, os.POSIX_FADV_NOREUSE)
        except OSError:
            # Advice only; some filesystems reject it
            pass
    return f


class ContentComparator:
    """
    Compares two existing files byte for byte.

    Sizes are checked first, so files of different length are never
    opened. Otherwise both files are read in lockstep, `chunk_size`
    bytes at a time.

    `bytes_read` counts every byte read, across all threads.
    """

    def __init__(self, chunk_size: int = CHUNK_SIZE):
        self.chunk_size = chunk_size
        self._lock = threading.Lock()
        self._bytes_read = 0

    @property
    def bytes_read(self) -> int:
        with self._lock:
            return self._bytes_read

    def reset_counters(self) -> None:
        with self._lock:
            self._bytes_read = 0

    def _count(self, n: int) -> None:
        with self._lock:
            self._bytes_read += n

    def are_identical(
        self,
        path_a: str | os.PathLike,
        path_b: str | os.PathLike,
        cancel: Optional[CancellationToken] = None
    ) -> bool:
        """
        Check whether two files have identical contents.

        Assumes both files exist. If cancellation is requested mid-way the
        comparison stops and reports the files as identical; callers must
        not act on the result once they have been cancelled.

        Raises:
            OSError: if either file cannot be read
        """
        if os.stat(path_a).st_size != os.stat(path_b).st_size:
            return False

        chunk_size = self.chunk_size
        with _open_for_scan(path_a) as f1, _open_for_scan(path_b) as f2:
            while True:
                if _is_cancelled(cancel):
                    break

                chunk1 = f1.read(chunk_size)
                chunk2 = f2.read(chunk_size)
                self._count(len(chunk1) + len(chunk2))

                if len(chunk1) != len(chunk2):
                    # Only possible if a file changed under us
                    return False

                if chunk1 != chunk2:
                    return False

                if not chunk1:
                    break

        return True


_default_comparator = ContentComparator()


def are_contents_identical(
    path_a: str | os.PathLike,
    path_b: str | os.PathLike,
    cancel: Optional[CancellationToken] = None
) -> bool:
    """Compare two existing files with a shared default comparator."""
    return _default_comparator.are_identical(path_a, path_b, cancel)
